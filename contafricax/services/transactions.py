from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session, selectinload

from contafricax.orm_models import (
    Category,
    Client,
    Supplier,
    Tag,
    Transaction,
    TransactionStatus,
    TransactionType,
    User,
)
from contafricax.schemas.transactions import (
    REQUIRED_ON_UPDATE,
    TransactionCreate,
    TransactionUpdate,
)
from contafricax.services.bootstrap import get_app_settings
from contafricax.services.errors import NotFoundError

log = logging.getLogger(__name__)

SORT_FIELDS = {
    "date": Transaction.date,
    "amount": Transaction.amount,
    "created_at": Transaction.created_at,
}


@dataclass
class TxnFilters:
    type: Optional[TransactionType] = None
    status: Optional[TransactionStatus] = None
    category_id: Optional[int] = None
    tag_id: Optional[int] = None
    currency: Optional[str] = None
    client_id: Optional[int] = None
    supplier_id: Optional[int] = None
    start: Optional[date] = None
    end: Optional[date] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    q: Optional[str] = None

    def validate(self) -> None:
        if self.start and self.end and self.start > self.end:
            raise ValueError("start must be on or before end")
        if (
            self.min_amount is not None
            and self.max_amount is not None
            and self.min_amount > self.max_amount
        ):
            raise ValueError("min_amount must be <= max_amount")


def _order(sort: str):
    desc = sort.startswith("-")
    field = sort[1:] if desc else sort
    col = SORT_FIELDS.get(field)
    if col is None:
        raise ValueError(
            f"Invalid sort '{sort}'; use one of {', '.join(sorted(SORT_FIELDS))} (prefix - for descending)"
        )
    return (col.desc(), Transaction.id.desc()) if desc else (col.asc(), Transaction.id.asc())


def filtered_query(db: Session, f: TxnFilters) -> Query:
    f.validate()
    qry = db.query(Transaction)
    if f.type:
        qry = qry.filter(Transaction.type == f.type.value)
    if f.status:
        qry = qry.filter(Transaction.status == f.status.value)
    if f.category_id is not None:
        qry = qry.filter(Transaction.category_id == f.category_id)
    if f.tag_id is not None:
        qry = qry.filter(Transaction.tags.any(Tag.id == f.tag_id))
    if f.currency:
        qry = qry.filter(Transaction.currency == f.currency.upper())
    if f.client_id is not None:
        qry = qry.filter(Transaction.client_id == f.client_id)
    if f.supplier_id is not None:
        qry = qry.filter(Transaction.supplier_id == f.supplier_id)
    if f.start:
        qry = qry.filter(Transaction.date >= f.start)
    if f.end:
        qry = qry.filter(Transaction.date <= f.end)
    if f.min_amount is not None:
        qry = qry.filter(Transaction.amount >= f.min_amount)
    if f.max_amount is not None:
        qry = qry.filter(Transaction.amount <= f.max_amount)
    if f.q:
        like = f"%{f.q.strip()}%"
        qry = qry.filter(
            or_(
                Transaction.description.ilike(like),
                Transaction.reference.ilike(like),
                Transaction.notes.ilike(like),
            )
        )
    return qry


def list_transactions(
    db: Session, f: TxnFilters, limit: int, offset: int, sort: str = "-date"
) -> tuple[list[Transaction], int]:
    order = _order(sort)
    qry = filtered_query(db, f)
    total = qry.count()
    rows = (
        qry.options(
            selectinload(Transaction.category),
            selectinload(Transaction.tags),
            selectinload(Transaction.attachments),
        )
        .order_by(*order)
        .limit(limit)
        .offset(offset)
        .all()
    )
    return rows, total


def get_transaction(db: Session, txn_id: int) -> Transaction:
    t = db.get(Transaction, txn_id)
    if t is None:
        raise NotFoundError("Transaction not found")
    return t


def _category_for(db: Session, category_id: int, ttype: str) -> Category:
    cat = db.get(Category, category_id)
    if cat is None:
        raise ValueError(f"Unknown category_id {category_id}")
    if cat.type != ttype:
        raise ValueError(
            f"Category '{cat.name}' is a {cat.type} category and cannot be used on a {ttype} transaction"
        )
    return cat


def _tags_for(db: Session, tag_ids: list[int]) -> list[Tag]:
    ids = list(dict.fromkeys(tag_ids))
    if not ids:
        return []
    tags = db.query(Tag).filter(Tag.id.in_(ids)).all()
    missing = set(ids) - {t.id for t in tags}
    if missing:
        raise ValueError(f"Unknown tag ids: {sorted(missing)}")
    return tags


def _check_party(db: Session, model, party_id: Optional[int], label: str) -> None:
    if party_id is not None and db.get(model, party_id) is None:
        raise ValueError(f"Unknown {label} {party_id}")


def create_transaction(db: Session, body: TransactionCreate, user: User) -> Transaction:
    _category_for(db, body.category_id, body.type.value)
    _check_party(db, Client, body.client_id, "client_id")
    _check_party(db, Supplier, body.supplier_id, "supplier_id")
    currency = body.currency or get_app_settings(db).primary_currency
    t = Transaction(
        amount=body.amount,
        type=body.type.value,
        description=body.description,
        date=body.date,
        status=body.status.value,
        category_id=body.category_id,
        reference=body.reference,
        currency=currency,
        notes=body.notes,
        client_id=body.client_id,
        supplier_id=body.supplier_id,
        created_by=user.id,
    )
    t.tags = _tags_for(db, body.tag_ids)
    db.add(t)
    db.commit()
    db.refresh(t)
    log.info("transaction created id=%s type=%s by=%s", t.id, t.type, user.id)
    return t


def update_transaction(db: Session, t: Transaction, patch: TransactionUpdate) -> Transaction:
    data = patch.model_dump(exclude_unset=True)
    for k in REQUIRED_ON_UPDATE:
        if k in data and data[k] is None:
            raise ValueError(f"{k} cannot be null")

    ttype = data["type"].value if "type" in data else t.type
    if "type" in data or "category_id" in data:
        _category_for(db, data.get("category_id", t.category_id), ttype)
    if "client_id" in data:
        _check_party(db, Client, data["client_id"], "client_id")
    if "supplier_id" in data:
        _check_party(db, Supplier, data["supplier_id"], "supplier_id")
    if "tag_ids" in data:
        t.tags = _tags_for(db, data.pop("tag_ids") or [])

    for k, v in data.items():
        if k in ("type", "status"):
            v = v.value
        setattr(t, k, v)
    db.commit()
    db.refresh(t)
    return t


def set_status(db: Session, t: Transaction, status: TransactionStatus) -> Transaction:
    t.status = status.value
    db.commit()
    db.refresh(t)
    return t


def add_tag(db: Session, t: Transaction, tag_id: int) -> Transaction:
    tag = db.get(Tag, tag_id)
    if tag is None:
        raise NotFoundError("Tag not found")
    if tag not in t.tags:
        t.tags.append(tag)
        db.commit()
        db.refresh(t)
    return t


def remove_tag(db: Session, t: Transaction, tag_id: int) -> Transaction:
    t.tags = [tag for tag in t.tags if tag.id != tag_id]
    db.commit()
    db.refresh(t)
    return t


def delete_transaction(db: Session, t: Transaction) -> None:
    db.delete(t)
    db.commit()
