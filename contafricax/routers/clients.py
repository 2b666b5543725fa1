from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from contafricax.db import get_db
from contafricax.orm_models import User
from contafricax.routers.deps import payload, service_errors
from contafricax.schemas.parties import (
    ClientCreate,
    ClientOut,
    ClientStatus,
    ClientUpdate,
    NoteCreate,
    NoteOut,
)
from contafricax.schemas.transactions import TransactionOut
from contafricax.services import parties as svc
from contafricax.utils.auth import get_current_user, require_permission

router = APIRouter(prefix="/clients", tags=["clients"])

_write = require_permission("manage_transactions")


@router.get("", response_model=list[ClientOut])
def list_clients(
    status_: Optional[ClientStatus] = Query(default=None, alias="status"),
    country: Optional[str] = None,
    q: Optional[str] = None,
    has_outstanding: Optional[bool] = None,
    sort_by: str = "name",
    sort_order: str = "asc",
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    with service_errors():
        return svc.list_parties(
            db,
            svc.CLIENTS,
            status=status_.value if status_ else None,
            country=country,
            q=q,
            has_outstanding=has_outstanding,
            sort_by=sort_by,
            sort_order=sort_order,
        )


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ClientOut)
def create_client(
    body: ClientCreate,
    db: Session = Depends(get_db),
    user: User = Depends(_write),
):
    return svc.create_party(db, svc.CLIENTS, payload(body), author=user.name or user.email)


@router.get("/{client_id}", response_model=ClientOut)
def get_client(
    client_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    with service_errors():
        return svc.get_party(db, svc.CLIENTS, client_id)


@router.put("/{client_id}", response_model=ClientOut)
def update_client(
    client_id: int,
    body: ClientUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(_write),
):
    with service_errors():
        c = svc.get_party(db, svc.CLIENTS, client_id)
        return svc.update_party(db, c, payload(body, exclude_unset=True))


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_client(
    client_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(_write),
):
    with service_errors():
        svc.delete_party(db, svc.CLIENTS, svc.get_party(db, svc.CLIENTS, client_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{client_id}/notes", status_code=status.HTTP_201_CREATED, response_model=NoteOut)
def add_client_note(
    client_id: int,
    body: NoteCreate,
    db: Session = Depends(get_db),
    user: User = Depends(_write),
):
    with service_errors():
        c = svc.get_party(db, svc.CLIENTS, client_id)
    return svc.add_note(db, svc.CLIENTS, c, body.content, author=user.name or user.email)


@router.get("/{client_id}/transactions", response_model=list[TransactionOut])
def client_transactions(
    client_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    with service_errors():
        c = svc.get_party(db, svc.CLIENTS, client_id)
    return svc.party_transactions(db, svc.CLIENTS, c)
