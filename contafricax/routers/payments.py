from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from contafricax.db import get_db
from contafricax.metrics import payment_events
from contafricax.orm_models import (
    PaymentCountry,
    PaymentDirection,
    PaymentProvider,
    PaymentStatus,
    User,
)
from contafricax.routers.deps import service_errors
from contafricax.schemas.payments import (
    PaymentInitiate,
    PaymentOut,
    PaymentStatusOut,
    PhoneCheck,
    PhoneCheckOut,
    ProviderCallback,
    RefundRequest,
)
from contafricax.services import payments as svc
from contafricax.utils.auth import get_current_user, require_permission

router = APIRouter(prefix="/payments", tags=["payments"])

_write = require_permission("manage_transactions")


def _filters(
    start: Optional[date] = None,
    end: Optional[date] = None,
    status_: Optional[PaymentStatus] = Query(default=None, alias="status"),
    provider: Optional[PaymentProvider] = None,
    country: Optional[PaymentCountry] = None,
    direction: Optional[PaymentDirection] = None,
    min_amount: Optional[Decimal] = None,
    max_amount: Optional[Decimal] = None,
    reference: Optional[str] = None,
    phone_number: Optional[str] = None,
    client_id: Optional[int] = None,
    supplier_id: Optional[int] = None,
) -> svc.PaymentFilters:
    return svc.PaymentFilters(
        start=start,
        end=end,
        status=status_,
        provider=provider,
        country=country,
        direction=direction,
        min_amount=min_amount,
        max_amount=max_amount,
        reference=reference,
        phone_number=phone_number,
        client_id=client_id,
        supplier_id=supplier_id,
    )


@router.get("", response_model=list[PaymentOut])
def list_payments(
    f: svc.PaymentFilters = Depends(_filters),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    with service_errors():
        return svc.list_payments(db, f)


@router.get("/stats")
def payment_stats(
    f: svc.PaymentFilters = Depends(_filters),
    currency: Optional[str] = None,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    with service_errors():
        return svc.payment_stats(db, f, currency)


@router.get("/countries", response_model=list[PaymentCountry])
def supported_countries(_: User = Depends(get_current_user)):
    return list(svc.PROVIDERS_BY_COUNTRY)


@router.get("/providers", response_model=list[PaymentProvider])
def available_providers(country: PaymentCountry, _: User = Depends(get_current_user)):
    return svc.providers_for(country)


@router.post("/validate-phone", response_model=PhoneCheckOut)
def validate_phone(body: PhoneCheck, _: User = Depends(get_current_user)):
    ok, message = svc.validate_phone_number(body.phone_number, body.provider, body.country)
    return {"is_valid": ok, "message": message}


@router.post("", status_code=status.HTTP_201_CREATED, response_model=PaymentOut)
def initiate_payment(
    body: PaymentInitiate,
    db: Session = Depends(get_db),
    user: User = Depends(_write),
):
    with service_errors():
        p = svc.initiate_payment(db, body, user.id)
    payment_events.labels(op="initiate").inc()
    return p


@router.get("/{payment_id}", response_model=PaymentOut)
def get_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    with service_errors():
        return svc.get_payment(db, payment_id)


@router.get("/{payment_id}/status", response_model=PaymentStatusOut)
def check_status(
    payment_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    with service_errors():
        return svc.get_payment(db, payment_id)


@router.post("/{payment_id}/callback", response_model=PaymentOut)
def provider_callback(
    payment_id: int,
    body: ProviderCallback,
    db: Session = Depends(get_db),
    _: User = Depends(_write),
):
    with service_errors():
        p = svc.apply_callback(db, svc.get_payment(db, payment_id), body)
    payment_events.labels(op="callback").inc()
    return p


@router.post("/{payment_id}/cancel", response_model=PaymentOut)
def cancel_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(_write),
):
    with service_errors():
        p = svc.cancel_payment(db, svc.get_payment(db, payment_id))
    payment_events.labels(op="cancel").inc()
    return p


@router.post("/{payment_id}/refund", response_model=PaymentOut)
def refund_payment(
    payment_id: int,
    body: Optional[RefundRequest] = None,
    db: Session = Depends(get_db),
    _: User = Depends(_write),
):
    with service_errors():
        p = svc.refund_payment(
            db, svc.get_payment(db, payment_id), body.amount if body else None
        )
    payment_events.labels(op="refund").inc()
    return p
