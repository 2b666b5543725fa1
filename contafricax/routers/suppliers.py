from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from contafricax.db import get_db
from contafricax.orm_models import User
from contafricax.routers.deps import payload, service_errors
from contafricax.schemas.parties import (
    NoteCreate,
    NoteOut,
    SupplierCreate,
    SupplierOut,
    SupplierStatus,
    SupplierUpdate,
)
from contafricax.schemas.transactions import TransactionOut
from contafricax.services import parties as svc
from contafricax.utils.auth import get_current_user, require_permission

router = APIRouter(prefix="/suppliers", tags=["suppliers"])

_write = require_permission("manage_transactions")


@router.get("", response_model=list[SupplierOut])
def list_suppliers(
    status_: Optional[SupplierStatus] = Query(default=None, alias="status"),
    country: Optional[str] = None,
    category: Optional[str] = None,
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
            svc.SUPPLIERS,
            status=status_.value if status_ else None,
            country=country,
            category=category,
            q=q,
            has_outstanding=has_outstanding,
            sort_by=sort_by,
            sort_order=sort_order,
        )


@router.post("", status_code=status.HTTP_201_CREATED, response_model=SupplierOut)
def create_supplier(
    body: SupplierCreate,
    db: Session = Depends(get_db),
    user: User = Depends(_write),
):
    return svc.create_party(db, svc.SUPPLIERS, payload(body), author=user.name or user.email)


@router.get("/{supplier_id}", response_model=SupplierOut)
def get_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    with service_errors():
        return svc.get_party(db, svc.SUPPLIERS, supplier_id)


@router.put("/{supplier_id}", response_model=SupplierOut)
def update_supplier(
    supplier_id: int,
    body: SupplierUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(_write),
):
    with service_errors():
        s = svc.get_party(db, svc.SUPPLIERS, supplier_id)
        return svc.update_party(db, s, payload(body, exclude_unset=True))


@router.delete("/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(_write),
):
    with service_errors():
        svc.delete_party(db, svc.SUPPLIERS, svc.get_party(db, svc.SUPPLIERS, supplier_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{supplier_id}/notes", status_code=status.HTTP_201_CREATED, response_model=NoteOut)
def add_supplier_note(
    supplier_id: int,
    body: NoteCreate,
    db: Session = Depends(get_db),
    user: User = Depends(_write),
):
    with service_errors():
        s = svc.get_party(db, svc.SUPPLIERS, supplier_id)
    return svc.add_note(db, svc.SUPPLIERS, s, body.content, author=user.name or user.email)


@router.get("/{supplier_id}/transactions", response_model=list[TransactionOut])
def supplier_transactions(
    supplier_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    with service_errors():
        s = svc.get_party(db, svc.SUPPLIERS, supplier_id)
    return svc.party_transactions(db, svc.SUPPLIERS, s)
