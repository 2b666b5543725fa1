import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_serializer,
    field_validator,
)

from contafricax.orm_models import TransactionStatus, TransactionType
from contafricax.schemas.catalog import CategoryOut, TagOut
from contafricax.utils.currency import is_supported

Amount = Decimal


def _check_currency(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip().upper()
    if not is_supported(v):
        raise ValueError(f"Unsupported currency: {v}")
    return v


def _check_description(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    if not v:
        raise ValueError("Description is required")
    return v


class TransactionCreate(BaseModel):
    amount: Amount = Field(gt=0, max_digits=20, decimal_places=8)
    type: TransactionType
    description: str = Field(max_length=500)
    date: dt.date
    status: TransactionStatus = TransactionStatus.validated
    category_id: int
    tag_ids: list[int] = []
    reference: Optional[str] = Field(default=None, max_length=128)
    currency: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=5000)
    client_id: Optional[int] = None
    supplier_id: Optional[int] = None

    @field_validator("description")
    @classmethod
    def _description(cls, v: str) -> str:
        return _check_description(v)

    @field_validator("currency")
    @classmethod
    def _currency(cls, v: Optional[str]) -> Optional[str]:
        return _check_currency(v)


class TransactionUpdate(BaseModel):
    """Partial update; only fields present in the body are applied."""

    amount: Optional[Amount] = Field(default=None, gt=0, max_digits=20, decimal_places=8)
    type: Optional[TransactionType] = None
    description: Optional[str] = Field(default=None, max_length=500)
    date: Optional[dt.date] = None
    status: Optional[TransactionStatus] = None
    category_id: Optional[int] = None
    tag_ids: Optional[list[int]] = None
    reference: Optional[str] = Field(default=None, max_length=128)
    currency: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=5000)
    client_id: Optional[int] = None
    supplier_id: Optional[int] = None

    @field_validator("description")
    @classmethod
    def _description(cls, v: Optional[str]) -> Optional[str]:
        return _check_description(v)

    @field_validator("currency")
    @classmethod
    def _currency(cls, v: Optional[str]) -> Optional[str]:
        return _check_currency(v)


# Fields that may not be cleared with an explicit null
REQUIRED_ON_UPDATE = ("amount", "type", "description", "date", "status", "category_id", "currency")


class StatusBody(BaseModel):
    status: TransactionStatus


class AttachmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    transaction_id: int
    file_name: str
    file_type: str
    file_size: int
    upload_date: dt.datetime

    @computed_field  # type: ignore[misc]
    @property
    def url(self) -> str:
        return f"/api/transactions/{self.transaction_id}/attachments/{self.id}/download"


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    amount: Decimal
    type: TransactionType
    description: str
    date: dt.date
    status: TransactionStatus
    category_id: int
    category: Optional[CategoryOut] = None
    tags: list[TagOut] = []
    attachments: list[AttachmentOut] = []
    reference: Optional[str] = None
    currency: str
    notes: Optional[str] = None
    client_id: Optional[int] = None
    supplier_id: Optional[int] = None
    created_by: Optional[int] = None
    created_at: dt.datetime
    updated_at: dt.datetime

    @field_serializer("amount")
    def _amount(self, v: Decimal) -> float:
        return float(v)


class TransactionPage(BaseModel):
    items: list[TransactionOut]
    total: int
    limit: int
    offset: int
