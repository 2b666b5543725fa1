import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from contafricax.orm_models import (
    PaymentCountry,
    PaymentDirection,
    PaymentProvider,
    PaymentStatus,
)
from contafricax.utils.currency import is_supported

Amount = Decimal


class PaymentInitiate(BaseModel):
    amount: Amount = Field(gt=0, max_digits=20, decimal_places=8)
    currency: Optional[str] = None
    description: str = Field(min_length=1, max_length=500)
    reference: str = Field(min_length=1, max_length=128)
    direction: PaymentDirection = PaymentDirection.inbound
    provider: PaymentProvider
    phone_number: str = Field(min_length=1, max_length=32)
    country: PaymentCountry
    client_id: Optional[int] = None
    supplier_id: Optional[int] = None
    metadata: dict = {}

    @field_validator("description", "reference")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("currency")
    @classmethod
    def _currency(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip().upper()
        if not is_supported(v):
            raise ValueError(f"Unsupported currency: {v}")
        return v


class ProviderCallback(BaseModel):
    """Outcome pushed by the provider (or polled from it) for an open payment."""

    status: PaymentStatus
    provider_transaction_id: Optional[str] = Field(default=None, max_length=64)
    failure_reason: Optional[str] = Field(default=None, max_length=255)


class RefundRequest(BaseModel):
    amount: Optional[Amount] = Field(default=None, gt=0, max_digits=20, decimal_places=8)


class PhoneCheck(BaseModel):
    phone_number: str = Field(max_length=32)
    provider: PaymentProvider
    country: PaymentCountry


class PhoneCheckOut(BaseModel):
    is_valid: bool
    message: str


class PaymentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    reference: str
    amount: Decimal
    currency: str
    description: str
    status: PaymentStatus
    direction: PaymentDirection
    provider: PaymentProvider
    phone_number: str
    country: PaymentCountry
    provider_transaction_id: Optional[str] = None
    provider_reference: Optional[str] = None
    redirect_url: Optional[str] = None
    refunded_amount: Optional[Decimal] = None
    failure_reason: Optional[str] = None
    metadata: dict = Field(default={}, validation_alias="extra")
    client_id: Optional[int] = None
    supplier_id: Optional[int] = None
    created_at: dt.datetime
    updated_at: dt.datetime
    completed_at: Optional[dt.datetime] = None

    @field_serializer("amount", "refunded_amount")
    def _money(self, v: Optional[Decimal]) -> Optional[float]:
        return float(v) if v is not None else None


class PaymentStatusOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: PaymentStatus
    updated_at: dt.datetime
