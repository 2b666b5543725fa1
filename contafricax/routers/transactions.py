import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from contafricax.db import get_db
from contafricax.metrics import transactions_written
from contafricax.orm_models import Attachment, TransactionStatus, TransactionType, User
from contafricax.routers.deps import service_errors
from contafricax.schemas.transactions import (
    AttachmentOut,
    StatusBody,
    TransactionCreate,
    TransactionOut,
    TransactionPage,
    TransactionUpdate,
)
from contafricax.services import attachments as att_svc
from contafricax.services import transactions as svc
from contafricax.utils.auth import get_current_user, require_permission

router = APIRouter(prefix="/transactions", tags=["transactions"])
log = logging.getLogger(__name__)

_write = require_permission("manage_transactions")


@router.get("", response_model=TransactionPage)
def list_transactions(
    type: Optional[TransactionType] = None,
    status_: Optional[TransactionStatus] = Query(default=None, alias="status"),
    category_id: Optional[int] = None,
    tag_id: Optional[int] = None,
    currency: Optional[str] = None,
    client_id: Optional[int] = None,
    supplier_id: Optional[int] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    min_amount: Optional[Decimal] = None,
    max_amount: Optional[Decimal] = None,
    q: Optional[str] = None,
    sort: str = "-date",
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    f = svc.TxnFilters(
        type=type,
        status=status_,
        category_id=category_id,
        tag_id=tag_id,
        currency=currency,
        client_id=client_id,
        supplier_id=supplier_id,
        start=start,
        end=end,
        min_amount=min_amount,
        max_amount=max_amount,
        q=q,
    )
    with service_errors():
        rows, total = svc.list_transactions(db, f, limit=limit, offset=offset, sort=sort)
    return TransactionPage(
        items=[TransactionOut.model_validate(r) for r in rows],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.post("", status_code=status.HTTP_201_CREATED, response_model=TransactionOut)
def create_transaction(
    body: TransactionCreate,
    db: Session = Depends(get_db),
    user: User = Depends(_write),
):
    with service_errors():
        t = svc.create_transaction(db, body, user)
    transactions_written.labels(op="create").inc()
    return t


@router.get("/{txn_id}", response_model=TransactionOut)
def get_transaction(
    txn_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    with service_errors():
        return svc.get_transaction(db, txn_id)


@router.put("/{txn_id}", response_model=TransactionOut)
def update_transaction(
    txn_id: int,
    body: TransactionUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(_write),
):
    with service_errors():
        t = svc.update_transaction(db, svc.get_transaction(db, txn_id), body)
    transactions_written.labels(op="update").inc()
    return t


@router.patch("/{txn_id}/status", response_model=TransactionOut)
def set_status(
    txn_id: int,
    body: StatusBody,
    db: Session = Depends(get_db),
    _: User = Depends(_write),
):
    with service_errors():
        t = svc.set_status(db, svc.get_transaction(db, txn_id), body.status)
    transactions_written.labels(op="status").inc()
    return t


@router.delete("/{txn_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transaction(
    txn_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(_write),
):
    with service_errors():
        svc.delete_transaction(db, svc.get_transaction(db, txn_id))
    att_svc.remove_transaction_files(txn_id)
    transactions_written.labels(op="delete").inc()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- tags --------------------------------------------------------------------


@router.post("/{txn_id}/tags/{tag_id}", response_model=TransactionOut)
def add_tag(
    txn_id: int,
    tag_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(_write),
):
    with service_errors():
        return svc.add_tag(db, svc.get_transaction(db, txn_id), tag_id)


@router.delete("/{txn_id}/tags/{tag_id}", response_model=TransactionOut)
def remove_tag(
    txn_id: int,
    tag_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(_write),
):
    with service_errors():
        return svc.remove_tag(db, svc.get_transaction(db, txn_id), tag_id)


# --- attachments -------------------------------------------------------------


def _attachment(db: Session, txn_id: int, att_id: int) -> Attachment:
    att = db.get(Attachment, att_id)
    if att is None or att.transaction_id != txn_id:
        raise HTTPException(status_code=404, detail="Attachment not found")
    return att


@router.post(
    "/{txn_id}/attachments",
    status_code=status.HTTP_201_CREATED,
    response_model=AttachmentOut,
)
async def upload_attachment(
    txn_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    _: User = Depends(_write),
):
    with service_errors():
        t = svc.get_transaction(db, txn_id)
    if not att_svc.is_allowed_type(file.content_type):
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Unsupported file type: {file.content_type}",
        )
    # read one byte past the limit so oversize uploads are detected without buffering them whole
    data = await file.read(att_svc.max_bytes() + 1)
    try:
        return att_svc.save_attachment(db, t, file.filename, file.content_type, data)
    except att_svc.AttachmentTooLarge as e:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(e)) from e
    except att_svc.UnsupportedMediaType as e:
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.get("/{txn_id}/attachments", response_model=list[AttachmentOut])
def list_attachments(
    txn_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    with service_errors():
        return svc.get_transaction(db, txn_id).attachments


@router.get("/{txn_id}/attachments/{att_id}/download")
def download_attachment(
    txn_id: int,
    att_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    att = _attachment(db, txn_id, att_id)
    path = att_svc.absolute_path(att)
    if not path.is_file():
        log.warning("attachment file missing id=%s path=%s", att.id, path)
        raise HTTPException(status_code=404, detail="Attachment file missing")
    return FileResponse(path, media_type=att.file_type, filename=att.file_name)


@router.delete("/{txn_id}/attachments/{att_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_attachment(
    txn_id: int,
    att_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(_write),
):
    att_svc.delete_attachment(db, _attachment(db, txn_id, att_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
