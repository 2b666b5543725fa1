"""Clients and suppliers share most of their shape; the differences are the
status vocabulary and the supplier-only ``category`` / purchase totals."""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class ClientStatus(str, Enum):
    active = "actif"
    inactive = "inactif"
    prospect = "prospect"
    archived = "archivé"


class SupplierStatus(str, Enum):
    active = "actif"
    inactive = "inactif"
    archived = "archivé"


class Contact(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    role: str = ""
    email: str = ""
    phone: str = ""
    is_primary: bool = False


class NoteCreate(BaseModel):
    content: str = Field(min_length=1, max_length=5000)

    @field_validator("content")
    @classmethod
    def _content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Note content is required")
        return v


class NoteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    content: str
    created_by: str
    created_at: dt.datetime


Money = Decimal


class _PartyBase(BaseModel):
    email: str = Field(default="", max_length=255)
    phone: str = Field(default="", max_length=64)
    address: str = Field(default="", max_length=512)
    city: Optional[str] = Field(default=None, max_length=128)
    postal_code: Optional[str] = Field(default=None, max_length=32)
    country: str = Field(default="", max_length=128)
    tax_id: Optional[str] = Field(default=None, max_length=64)
    website: Optional[str] = Field(default=None, max_length=255)
    last_order_date: Optional[dt.date] = None
    contacts: list[Contact] = []


class ClientCreate(_PartyBase):
    name: str = Field(min_length=1, max_length=255)
    status: ClientStatus = ClientStatus.active
    total_sales: Money = Field(default=Decimal(0), ge=0)
    outstanding_balance: Money = Field(default=Decimal(0), ge=0)
    # initial note, as the SPA form sends it
    notes: Optional[str] = None


class ClientUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=64)
    address: Optional[str] = Field(default=None, max_length=512)
    city: Optional[str] = Field(default=None, max_length=128)
    postal_code: Optional[str] = Field(default=None, max_length=32)
    country: Optional[str] = Field(default=None, max_length=128)
    tax_id: Optional[str] = Field(default=None, max_length=64)
    website: Optional[str] = Field(default=None, max_length=255)
    status: Optional[ClientStatus] = None
    total_sales: Optional[Money] = Field(default=None, ge=0)
    outstanding_balance: Optional[Money] = Field(default=None, ge=0)
    last_order_date: Optional[dt.date] = None
    contacts: Optional[list[Contact]] = None


class ClientOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: str
    address: str
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country: str
    tax_id: Optional[str] = None
    website: Optional[str] = None
    status: ClientStatus
    total_sales: Decimal
    outstanding_balance: Decimal
    last_order_date: Optional[dt.date] = None
    contacts: list[Contact] = []
    notes: list[NoteOut] = []
    created_at: dt.datetime
    updated_at: dt.datetime

    @field_serializer("total_sales", "outstanding_balance")
    def _money(self, v: Decimal) -> float:
        return float(v)


class SupplierCreate(_PartyBase):
    name: str = Field(min_length=1, max_length=255)
    category: str = Field(default="", max_length=128)
    status: SupplierStatus = SupplierStatus.active
    total_purchases: Money = Field(default=Decimal(0), ge=0)
    outstanding_payable: Money = Field(default=Decimal(0), ge=0)
    notes: Optional[str] = None


class SupplierUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=64)
    address: Optional[str] = Field(default=None, max_length=512)
    city: Optional[str] = Field(default=None, max_length=128)
    postal_code: Optional[str] = Field(default=None, max_length=32)
    country: Optional[str] = Field(default=None, max_length=128)
    tax_id: Optional[str] = Field(default=None, max_length=64)
    website: Optional[str] = Field(default=None, max_length=255)
    category: Optional[str] = Field(default=None, max_length=128)
    status: Optional[SupplierStatus] = None
    total_purchases: Optional[Money] = Field(default=None, ge=0)
    outstanding_payable: Optional[Money] = Field(default=None, ge=0)
    last_order_date: Optional[dt.date] = None
    contacts: Optional[list[Contact]] = None


class SupplierOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: str
    address: str
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country: str
    tax_id: Optional[str] = None
    website: Optional[str] = None
    category: str
    status: SupplierStatus
    total_purchases: Decimal
    outstanding_payable: Decimal
    last_order_date: Optional[dt.date] = None
    contacts: list[Contact] = []
    notes: list[NoteOut] = []
    created_at: dt.datetime
    updated_at: dt.datetime

    @field_serializer("total_purchases", "outstanding_payable")
    def _money(self, v: Decimal) -> float:
        return float(v)
