"""Shared list/search/CRUD logic for clients and suppliers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from contafricax.orm_models import Client, ClientNote, Payment, Supplier, SupplierNote, Transaction
from contafricax.services.errors import NotFoundError

log = logging.getLogger(__name__)

Party = Union[Client, Supplier]


@dataclass(frozen=True)
class PartyKind:
    model: type
    note_model: type
    note_fk: str
    party_fk: str
    outstanding: str
    label: str
    search: tuple[str, ...]
    sorts: dict[str, str]


CLIENTS = PartyKind(
    model=Client,
    note_model=ClientNote,
    note_fk="client_id",
    party_fk="client_id",
    outstanding="outstanding_balance",
    label="Client",
    search=("name", "email", "country", "city", "phone"),
    sorts={
        "name": "name",
        "last_order_date": "last_order_date",
        "total_sales": "total_sales",
        "outstanding_balance": "outstanding_balance",
        "created_at": "created_at",
    },
)

SUPPLIERS = PartyKind(
    model=Supplier,
    note_model=SupplierNote,
    note_fk="supplier_id",
    party_fk="supplier_id",
    outstanding="outstanding_payable",
    label="Supplier",
    search=("name", "email", "country", "city", "phone", "category"),
    sorts={
        "name": "name",
        "last_order_date": "last_order_date",
        "total_purchases": "total_purchases",
        "outstanding_payable": "outstanding_payable",
        "created_at": "created_at",
    },
)


def list_parties(
    db: Session,
    kind: PartyKind,
    *,
    status: Optional[str] = None,
    country: Optional[str] = None,
    category: Optional[str] = None,
    q: Optional[str] = None,
    has_outstanding: Optional[bool] = None,
    sort_by: str = "name",
    sort_order: str = "asc",
) -> list[Party]:
    m = kind.model
    if sort_by not in kind.sorts:
        raise ValueError(f"Invalid sort_by '{sort_by}'; use one of {', '.join(kind.sorts)}")
    if sort_order not in ("asc", "desc"):
        raise ValueError("sort_order must be 'asc' or 'desc'")

    qry = db.query(m).options(selectinload(m.notes))
    if status:
        qry = qry.filter(m.status == status)
    if country:
        qry = qry.filter(func.lower(m.country) == country.strip().lower())
    if category and kind is SUPPLIERS:
        qry = qry.filter(func.lower(m.category) == category.strip().lower())
    if q and q.strip():
        like = f"%{q.strip().lower()}%"
        qry = qry.filter(
            or_(*[func.lower(getattr(m, col)).like(like) for col in kind.search])
        )
    if has_outstanding is not None:
        col = getattr(m, kind.outstanding)
        qry = qry.filter(col > 0 if has_outstanding else col == 0)

    col = getattr(m, kind.sorts[sort_by])
    qry = qry.order_by(col.desc() if sort_order == "desc" else col.asc(), m.id.asc())
    return qry.all()


def get_party(db: Session, kind: PartyKind, party_id: int) -> Party:
    p = db.get(kind.model, party_id)
    if p is None:
        raise NotFoundError(f"{kind.label} not found")
    return p


def create_party(db: Session, kind: PartyKind, data: dict, author: str) -> Party:
    initial_note = data.pop("notes", None)
    p = kind.model(**data)
    if initial_note and initial_note.strip():
        p.notes.append(kind.note_model(content=initial_note.strip(), created_by=author))
    db.add(p)
    db.commit()
    db.refresh(p)
    log.info("%s created id=%s", kind.label.lower(), p.id)
    return p


_NOT_NULL = (
    "name", "email", "phone", "address", "country", "status", "category", "contacts",
    "total_sales", "outstanding_balance", "total_purchases", "outstanding_payable",
)


def update_party(db: Session, p: Party, data: dict) -> Party:
    for k in _NOT_NULL:
        if k in data and data[k] is None:
            raise ValueError(f"{k} cannot be null")
    for k, v in data.items():
        setattr(p, k, v)
    db.commit()
    db.refresh(p)
    return p


def delete_party(db: Session, kind: PartyKind, p: Party) -> None:
    for model in (Transaction, Payment):
        fk = getattr(model, kind.party_fk)
        db.query(model).filter(fk == p.id).update(
            {kind.party_fk: None}, synchronize_session=False
        )
    db.delete(p)
    db.commit()


def add_note(db: Session, kind: PartyKind, p: Party, content: str, author: str):
    note = kind.note_model(content=content, created_by=author)
    setattr(note, kind.note_fk, p.id)
    db.add(note)
    db.commit()
    db.refresh(note)
    return note


def party_transactions(db: Session, kind: PartyKind, p: Party) -> list[Transaction]:
    fk = getattr(Transaction, kind.party_fk)
    return (
        db.query(Transaction)
        .filter(fk == p.id)
        .order_by(Transaction.date.desc(), Transaction.id.desc())
        .all()
    )
