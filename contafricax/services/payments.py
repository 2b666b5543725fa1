"""Mobile-money payments: initiation, provider outcomes, cancel/refund and stats.

Providers are not called from here. A payment is recorded as INITIATED with
the references a provider checkout needs, and moves on when the provider's
outcome is posted back (``apply_callback``).
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Query, Session

from contafricax.config import settings
from contafricax.orm_models import (
    Client,
    Payment,
    PaymentCountry,
    PaymentDirection,
    PaymentProvider,
    PaymentStatus,
    Supplier,
)
from contafricax.schemas.payments import PaymentInitiate, ProviderCallback
from contafricax.services.bootstrap import get_app_settings
from contafricax.services.errors import NotFoundError
from contafricax.services.reports import report_context
from contafricax.utils.time import utc_now

log = logging.getLogger(__name__)

P = PaymentProvider
C = PaymentCountry

PROVIDERS_BY_COUNTRY: dict[PaymentCountry, tuple[PaymentProvider, ...]] = {
    C.senegal: (P.orange_money, P.free_money, P.wave, P.mtn_mobile_money),
    C.cote_divoire: (P.orange_money, P.mtn_mobile_money, P.wave, P.moov_money),
    C.cameroun: (P.orange_money, P.mtn_mobile_money),
    C.mali: (P.orange_money, P.moov_money),
    C.burkina_faso: (P.orange_money, P.moov_money),
    C.benin: (P.mtn_mobile_money, P.moov_money),
    C.togo: (P.moov_money,),
    C.niger: (P.orange_money, P.moov_money),
    C.guinee: (P.orange_money, P.mtn_mobile_money),
    C.kenya: (P.mpesa,),
    C.ghana: (P.mtn_mobile_money,),
    C.nigeria: (P.mtn_mobile_money,),
}

# (pattern, message when it does not match)
PHONE_RULES: dict[PaymentCountry, tuple[re.Pattern, str]] = {
    C.senegal: (
        re.compile(r"^\+221(76|77|78)\d{7}$"),
        "Le numéro doit commencer par +221 suivi de 76, 77 ou 78 et 7 chiffres",
    ),
    C.cote_divoire: (
        re.compile(r"^\+225\d{10}$"),
        "Le numéro doit commencer par +225 suivi de 10 chiffres",
    ),
    C.kenya: (
        re.compile(r"^\+254[71]\d{8}$"),
        "Le numéro doit commencer par +254 suivi de 7 ou 1 et 8 chiffres",
    ),
}
_DEFAULT_PHONE = (re.compile(r"^\+\d{1,3}\d{9,12}$"), "Format de numéro invalide")
_PHONE_NOISE = re.compile(r"[\s\-.()]")

OPEN = (PaymentStatus.pending.value, PaymentStatus.initiated.value, PaymentStatus.processing.value)
CANCELLABLE = (PaymentStatus.pending.value, PaymentStatus.initiated.value)
CALLBACK_OUTCOMES = (
    PaymentStatus.processing,
    PaymentStatus.completed,
    PaymentStatus.failed,
)


def providers_for(country: PaymentCountry) -> list[PaymentProvider]:
    return list(PROVIDERS_BY_COUNTRY.get(country, ()))


def normalize_phone(phone: str) -> str:
    return _PHONE_NOISE.sub("", phone or "")


def validate_phone_number(
    phone: str, provider: PaymentProvider, country: PaymentCountry
) -> tuple[bool, str]:
    if provider not in PROVIDERS_BY_COUNTRY.get(country, ()):
        return False, f"Le fournisseur {provider.value} n'est pas disponible dans {country.value}"
    pattern, message = PHONE_RULES.get(country, _DEFAULT_PHONE)
    if pattern.match(normalize_phone(phone)):
        return True, "Numéro valide"
    return False, message


@dataclass
class PaymentFilters:
    start: Optional[date] = None
    end: Optional[date] = None
    status: Optional[PaymentStatus] = None
    provider: Optional[PaymentProvider] = None
    country: Optional[PaymentCountry] = None
    direction: Optional[PaymentDirection] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    reference: Optional[str] = None
    phone_number: Optional[str] = None
    client_id: Optional[int] = None
    supplier_id: Optional[int] = None

    def validate(self) -> None:
        if self.start and self.end and self.start > self.end:
            raise ValueError("start must be on or before end")
        if (
            self.min_amount is not None
            and self.max_amount is not None
            and self.min_amount > self.max_amount
        ):
            raise ValueError("min_amount must be <= max_amount")


def _day_start(d: date) -> datetime:
    return datetime.combine(d, time.min, tzinfo=timezone.utc)


def filtered_query(db: Session, f: PaymentFilters) -> Query:
    f.validate()
    qry = db.query(Payment)
    if f.start:
        qry = qry.filter(Payment.created_at >= _day_start(f.start))
    if f.end:
        qry = qry.filter(Payment.created_at < _day_start(f.end + timedelta(days=1)))
    if f.status:
        qry = qry.filter(Payment.status == f.status.value)
    if f.provider:
        qry = qry.filter(Payment.provider == f.provider.value)
    if f.country:
        qry = qry.filter(Payment.country == f.country.value)
    if f.direction:
        qry = qry.filter(Payment.direction == f.direction.value)
    if f.min_amount is not None:
        qry = qry.filter(Payment.amount >= f.min_amount)
    if f.max_amount is not None:
        qry = qry.filter(Payment.amount <= f.max_amount)
    if f.reference:
        qry = qry.filter(Payment.reference.ilike(f"%{f.reference.strip()}%"))
    if f.phone_number:
        qry = qry.filter(Payment.phone_number.contains(normalize_phone(f.phone_number)))
    if f.client_id is not None:
        qry = qry.filter(Payment.client_id == f.client_id)
    if f.supplier_id is not None:
        qry = qry.filter(Payment.supplier_id == f.supplier_id)
    return qry


def list_payments(db: Session, f: PaymentFilters) -> list[Payment]:
    return filtered_query(db, f).order_by(Payment.created_at.desc(), Payment.id.desc()).all()


def get_payment(db: Session, payment_id: int) -> Payment:
    p = db.get(Payment, payment_id)
    if p is None:
        raise NotFoundError("Payment not found")
    return p


def _checkout_url(provider: PaymentProvider, provider_reference: str) -> str:
    base = settings.PAYMENT_CHECKOUT_BASE_URL.rstrip("/")
    return f"{base}/{provider.value.lower()}/checkout?ref={provider_reference}"


def initiate_payment(db: Session, body: PaymentInitiate, user_id: Optional[int]) -> Payment:
    if body.provider not in PROVIDERS_BY_COUNTRY.get(body.country, ()):
        raise ValueError(
            f"Provider {body.provider.value} is not available in {body.country.value}"
        )
    ok, message = validate_phone_number(body.phone_number, body.provider, body.country)
    if not ok:
        raise ValueError(f"Invalid phone number: {message}")
    if body.client_id is not None and db.get(Client, body.client_id) is None:
        raise ValueError("Client not found")
    if body.supplier_id is not None and db.get(Supplier, body.supplier_id) is None:
        raise ValueError("Supplier not found")

    token = uuid.uuid4().hex[:12].upper()
    provider_reference = f"REF-{body.provider.value}-{token}"
    now = utc_now()
    p = Payment(
        reference=body.reference,
        amount=body.amount,
        currency=body.currency or get_app_settings(db).primary_currency,
        description=body.description,
        status=PaymentStatus.initiated.value,
        direction=body.direction.value,
        provider=body.provider.value,
        phone_number=normalize_phone(body.phone_number),
        country=body.country.value,
        provider_transaction_id=f"TXN-{token}",
        provider_reference=provider_reference,
        redirect_url=_checkout_url(body.provider, provider_reference),
        extra=body.metadata,
        client_id=body.client_id,
        supplier_id=body.supplier_id,
        created_by=user_id,
        created_at=now,
        updated_at=now,
    )
    db.add(p)
    db.commit()
    db.refresh(p)
    log.info(
        "payment initiated id=%s provider=%s direction=%s", p.id, p.provider, p.direction
    )
    return p


def _touch(db: Session, p: Payment) -> Payment:
    p.updated_at = utc_now()
    db.commit()
    db.refresh(p)
    return p


def apply_callback(db: Session, p: Payment, body: ProviderCallback) -> Payment:
    if body.status not in CALLBACK_OUTCOMES:
        raise ValueError(
            "status must be one of " + ", ".join(s.value for s in CALLBACK_OUTCOMES)
        )
    if p.status not in OPEN:
        raise ValueError(f"Cannot update a payment with status {p.status}")

    p.status = body.status.value
    if body.provider_transaction_id:
        p.provider_transaction_id = body.provider_transaction_id
    if body.status == PaymentStatus.completed:
        p.completed_at = utc_now()
        p.failure_reason = None
    elif body.status == PaymentStatus.failed:
        p.failure_reason = body.failure_reason or "Rejected by provider"
    log.info("payment %s -> %s", p.id, p.status)
    return _touch(db, p)


def cancel_payment(db: Session, p: Payment) -> Payment:
    if p.status not in CANCELLABLE:
        raise ValueError(f"Cannot cancel a payment with status {p.status}")
    p.status = PaymentStatus.cancelled.value
    return _touch(db, p)


def refund_payment(db: Session, p: Payment, amount: Optional[Decimal] = None) -> Payment:
    if p.status != PaymentStatus.completed.value:
        raise ValueError(f"Cannot refund a payment with status {p.status}")
    refund = amount if amount is not None else p.amount
    if refund > p.amount:
        raise ValueError("Refund amount cannot exceed the payment amount")
    p.status = PaymentStatus.refunded.value
    p.refunded_amount = refund
    log.info("payment %s refunded amount=%s %s", p.id, refund, p.currency)
    return _touch(db, p)


def payment_stats(db: Session, f: PaymentFilters, currency: Optional[str] = None) -> dict:
    """Counts and totals over the filtered payments, amounts in one currency."""
    ctx = report_context(db, currency)
    rows = filtered_query(db, f).all()

    by_provider = {p.value: {"count": 0, "_amount": Decimal(0)} for p in PaymentProvider}
    by_country = {c.value: {"count": 0, "_amount": Decimal(0)} for c in PaymentCountry}
    total = Decimal(0)
    for p in rows:
        amount = ctx.convert(p.amount, p.currency)
        total += amount
        for bucket in (by_provider[p.provider], by_country[p.country]):
            bucket["count"] += 1
            bucket["_amount"] += amount

    def _out(buckets: dict) -> dict:
        return {k: {"count": v["count"], "amount": ctx.out(v["_amount"])} for k, v in buckets.items()}

    statuses = [p.status for p in rows]
    return {
        "currency": ctx.currency,
        "total_payments": len(rows),
        "total_amount": ctx.out(total),
        "successful_payments": statuses.count(PaymentStatus.completed.value),
        "failed_payments": statuses.count(PaymentStatus.failed.value),
        "pending_payments": sum(1 for s in statuses if s in OPEN),
        "average_amount": ctx.out(total / len(rows)) if rows else 0.0,
        "by_provider": _out(by_provider),
        "by_country": _out(by_country),
    }
