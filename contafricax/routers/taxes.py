from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from contafricax.db import get_db
from contafricax.orm_models import TaxRule, TaxType, User
from contafricax.routers.deps import payload, service_errors
from contafricax.schemas.taxes import TaxRuleCreate, TaxRuleOut, TaxRuleUpdate
from contafricax.services import taxes as svc
from contafricax.utils.auth import get_current_user, require_permission
from contafricax.utils.time import today

router = APIRouter(prefix="/taxes", tags=["taxes"])

_write = require_permission("manage_settings")


def _name_taken(db: Session, name: str, exclude_id: Optional[int] = None) -> bool:
    q = db.query(TaxRule.id).filter(func.lower(TaxRule.name) == name.lower())
    if exclude_id is not None:
        q = q.filter(TaxRule.id != exclude_id)
    return q.first() is not None


def _commit_or_conflict(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise HTTPException(status_code=409, detail="Tax rule already exists") from e


def _get_rule(db: Session, rule_id: int) -> TaxRule:
    r = db.get(TaxRule, rule_id)
    if r is None:
        raise HTTPException(status_code=404, detail="Tax rule not found")
    return r


@router.get("", response_model=list[TaxRuleOut])
def list_tax_rules(
    tax_type: Optional[TaxType] = None,
    enabled: Optional[bool] = None,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    q = db.query(TaxRule)
    if tax_type:
        q = q.filter(TaxRule.tax_type == tax_type.value)
    if enabled is not None:
        q = q.filter(TaxRule.enabled.is_(enabled))
    return q.order_by(TaxRule.tax_type, TaxRule.name).all()


@router.post("", status_code=status.HTTP_201_CREATED, response_model=TaxRuleOut)
def create_tax_rule(
    body: TaxRuleCreate,
    db: Session = Depends(get_db),
    _: User = Depends(_write),
):
    if _name_taken(db, body.name):
        raise HTTPException(status_code=409, detail="Tax rule already exists")
    r = TaxRule(**payload(body))
    db.add(r)
    _commit_or_conflict(db)
    db.refresh(r)
    return r


@router.put("/{rule_id}", response_model=TaxRuleOut)
def update_tax_rule(
    rule_id: int,
    body: TaxRuleUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(_write),
):
    r = _get_rule(db, rule_id)
    data = payload(body, exclude_unset=True)
    if data.get("name") and _name_taken(db, data["name"], exclude_id=r.id):
        raise HTTPException(status_code=409, detail="Tax rule already exists")
    for k, v in data.items():
        if k != "notes" and v is None:
            raise HTTPException(status_code=400, detail=f"{k} cannot be null")
        setattr(r, k, v)
    _commit_or_conflict(db)
    db.refresh(r)
    return r


@router.delete("/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tax_rule(
    rule_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(_write),
):
    db.delete(_get_rule(db, rule_id))
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/calendar")
def tax_calendar(
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    if year is None:
        year = today().year
    with service_errors():
        obligations = svc.tax_calendar(db, year, today())
    return {"year": year, "obligations": obligations}


@router.get("/upcoming")
def upcoming(
    days: int = 30,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    with service_errors():
        return svc.upcoming_obligations(db, today(), days)


@router.get("/vat")
def vat_summary(
    start: date,
    end: date,
    currency: Optional[str] = None,
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("view_reports")),
):
    with service_errors():
        return svc.vat_summary(db, start, end, currency)
