from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from contafricax.utils.currency import is_supported


class Language(str, Enum):
    fr = "fr"
    en = "en"


DATE_FORMATS = ("DD/MM/YYYY", "MM/DD/YYYY", "YYYY-MM-DD")


class SettingsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    company_name: str
    language: Language
    date_format: str
    primary_currency: str
    secondary_currencies: list[str]
    show_currency_symbol: bool
    share_capital: Decimal
    vat_rate: Decimal

    @field_serializer("share_capital", "vat_rate")
    def _num(self, v: Decimal) -> float:
        return float(v)


class SettingsUpdate(BaseModel):
    company_name: Optional[str] = Field(default=None, max_length=255)
    language: Optional[Language] = None
    date_format: Optional[str] = None
    primary_currency: Optional[str] = None
    secondary_currencies: Optional[list[str]] = None
    show_currency_symbol: Optional[bool] = None
    share_capital: Optional[Decimal] = Field(default=None, ge=0)
    vat_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)

    @field_validator("date_format")
    @classmethod
    def _date_format(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in DATE_FORMATS:
            raise ValueError(f"date_format must be one of {', '.join(DATE_FORMATS)}")
        return v

    @field_validator("primary_currency")
    @classmethod
    def _primary(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip().upper()
        if not is_supported(v):
            raise ValueError(f"Unsupported currency: {v}")
        return v

    @field_validator("secondary_currencies")
    @classmethod
    def _secondary(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        if v is None:
            return None
        out: list[str] = []
        for code in v:
            code = code.strip().upper()
            if not is_supported(code):
                raise ValueError(f"Unsupported currency: {code}")
            if code not in out:
                out.append(code)
        return out
