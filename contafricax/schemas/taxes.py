from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from contafricax.orm_models import FilingFrequency, TaxType


def _strip_name(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    if not v:
        raise ValueError("Name is required")
    return v


class TaxRuleCreate(BaseModel):
    tax_type: TaxType
    name: str = Field(max_length=128)
    rate: Decimal = Field(ge=0, le=100, decimal_places=2)
    filing_frequency: FilingFrequency = FilingFrequency.monthly
    enabled: bool = True
    notes: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _strip_name(v)


class TaxRuleUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=128)
    rate: Optional[Decimal] = Field(default=None, ge=0, le=100, decimal_places=2)
    filing_frequency: Optional[FilingFrequency] = None
    enabled: Optional[bool] = None
    notes: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("name")
    @classmethod
    def _name(cls, v: Optional[str]) -> Optional[str]:
        return _strip_name(v)


class TaxRuleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tax_type: TaxType
    name: str
    rate: Decimal
    filing_frequency: FilingFrequency
    enabled: bool
    notes: Optional[str] = None

    @field_serializer("rate")
    def _rate(self, v: Decimal) -> float:
        return float(v)
