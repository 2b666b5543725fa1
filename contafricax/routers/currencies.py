from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Query

from contafricax.config import settings
from contafricax.routers.deps import service_errors
from contafricax.utils.currency import (
    convert_currency,
    currency_list,
    format_currency,
    get_currency,
    rate_table,
    round_amount,
)

router = APIRouter(prefix="/currencies", tags=["currencies"])

# same bounds as a stored transaction amount
Amount = Annotated[Decimal, Query(max_digits=20, decimal_places=8)]


@router.get("")
def list_currencies():
    return currency_list()


@router.get("/format")
def format_amount(amount: Amount, currency: str = "XOF"):
    with service_errors():
        code = get_currency(currency).code
        formatted = format_currency(amount, code)
    return {"amount": float(amount), "currency": code, "formatted": formatted}


@router.get("/convert")
def convert(
    amount: Amount,
    from_: str = Query(alias="from"),
    to: str = Query(...),
):
    with service_errors():
        src = get_currency(from_).code
        dst = get_currency(to).code
        rates = rate_table(settings.exchange_rate_overrides())
        rounded = round_amount(convert_currency(amount, src, dst, rates), dst)
        formatted = format_currency(rounded, dst)
    return {
        "amount": float(amount),
        "from": src,
        "to": dst,
        "result": float(rounded),
        "formatted": formatted,
    }
