"""Supported currencies plus formatting, parsing and conversion helpers.

Formatting follows the browser ``Intl.NumberFormat`` output the SPA renders:

- fr-FR grouping (U+202F between thousands, comma before decimals) followed
  by a space and the symbol, e.g. ``1 234 567 FCFA`` or ``12,50 €``
- USD uses en-US grouping with the symbol first, e.g. ``$1,234.56`` or
  ``-$1,234.56``

Conversion goes through a table of units per 1 EUR (the CFA francs are pegged
at 655.957). ``EXCHANGE_RATES`` in settings overrides individual entries.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Mapping, Union

log = logging.getLogger(__name__)

Number = Union[int, float, Decimal, str]

NARROW_NBSP = "\u202f"


@dataclass(frozen=True)
class CurrencyInfo:
    code: str
    symbol: str
    name: str
    decimals: int
    is_international: bool = False
    is_crypto: bool = False


CURRENCIES: dict[str, CurrencyInfo] = {
    c.code: c
    for c in (
        CurrencyInfo("XOF", "FCFA", "Franc CFA BCEAO", 0),
        CurrencyInfo("XAF", "FCFA", "Franc CFA BEAC", 0),
        CurrencyInfo("NGN", "₦", "Nigerian Naira", 2),
        CurrencyInfo("GHS", "GH₵", "Ghanaian Cedi", 2),
        CurrencyInfo("KES", "KSh", "Kenyan Shilling", 2),
        CurrencyInfo("MAD", "DH", "Dirham Marocain", 2),
        CurrencyInfo("ZAR", "R", "Rand Sud-Africain", 2),
        CurrencyInfo("USD", "$", "Dollar Américain", 2, is_international=True),
        CurrencyInfo("EUR", "€", "Euro", 2, is_international=True),
        CurrencyInfo("BTC", "₿", "Bitcoin", 8, is_crypto=True),
    )
}

FALLBACK_CURRENCY = "XOF"

# Units of each currency per 1 EUR. CFA francs are fixed by the peg; the rest
# are indicative and meant to be overridden through EXCHANGE_RATES.
DEFAULT_RATES: dict[str, Decimal] = {
    "EUR": Decimal("1"),
    "XOF": Decimal("655.957"),
    "XAF": Decimal("655.957"),
    "MAD": Decimal("10.34"),
    "NGN": Decimal("460.78"),
    "GHS": Decimal("13.20"),
    "KES": Decimal("140.50"),
    "ZAR": Decimal("20.10"),
    "USD": Decimal("1.08"),
    "BTC": Decimal("0.0000165"),
}


def is_supported(code: str | None) -> bool:
    return bool(code) and code.upper() in CURRENCIES


def get_currency(code: str) -> CurrencyInfo:
    info = CURRENCIES.get((code or "").upper())
    if info is None:
        raise ValueError(f"Unsupported currency: {code}")
    return info


def _to_decimal(amount: Number) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    if isinstance(amount, float):
        # repr round-trips the float without binary noise (0.1 -> "0.1")
        return Decimal(repr(amount))
    return Decimal(str(amount))


def round_amount(amount: Number, code: str) -> Decimal:
    """Round half away from zero to the currency's number of decimals."""
    info = CURRENCIES.get((code or "").upper()) or CURRENCIES[FALLBACK_CURRENCY]
    return _quantize(_to_decimal(amount), info.decimals)


def _quantize(value: Decimal, decimals: int) -> Decimal:
    try:
        return value.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise ValueError(f"Amount out of range: {value}") from e


def _group(digits: str, sep: str) -> str:
    out = []
    while len(digits) > 3:
        out.append(digits[-3:])
        digits = digits[:-3]
    out.append(digits)
    return sep.join(reversed(out))


def _format_number(value: Decimal, decimals: int, group_sep: str, dec_sep: str) -> str:
    value = _quantize(value, decimals)
    sign = "-" if value < 0 else ""
    text = f"{abs(value):.{decimals}f}"
    whole, _, frac = text.partition(".")
    body = _group(whole, group_sep)
    if decimals:
        body = f"{body}{dec_sep}{frac}"
    return sign + body


def format_number_fr(amount: Number, decimals: int) -> str:
    return _format_number(_to_decimal(amount), decimals, NARROW_NBSP, ",")


def format_currency(amount: Number, code: str) -> str:
    info = CURRENCIES.get((code or "").upper())
    if info is None:
        log.warning("Unknown currency %r, formatting as %s", code, FALLBACK_CURRENCY)
        return format_number_fr(amount, 0) + " FCFA"

    value = _to_decimal(amount)
    if info.code == "USD":
        text = _format_number(value, info.decimals, ",", ".")
        if text.startswith("-"):
            return "-" + info.symbol + text[1:]
        return info.symbol + text
    return format_number_fr(value, info.decimals) + " " + info.symbol


_STRIP_RE = re.compile(r"[^0-9,.\-]")


def parse_currency(text: str, code: str) -> Decimal:
    """Read an amount back from user or ``format_currency`` output.

    A single comma is a decimal separator. When both ``,`` and ``.`` appear
    the right-most one is the decimal separator. Repeated identical
    separators are grouping. Anything unparseable yields 0.
    """
    clean = text or ""
    info = CURRENCIES.get((code or "").upper())
    if info is not None:
        clean = clean.replace(info.symbol, "")
    clean = _STRIP_RE.sub("", clean).strip()
    negative = clean.startswith("-")
    clean = clean.replace("-", "")

    has_comma, has_dot = "," in clean, "." in clean
    if has_comma and has_dot:
        dec = "," if clean.rfind(",") > clean.rfind(".") else "."
        grp = "." if dec == "," else ","
        clean = clean.replace(grp, "").replace(dec, ".")
    elif has_comma:
        clean = clean.replace(",", "") if clean.count(",") > 1 else clean.replace(",", ".")
    elif has_dot and clean.count(".") > 1:
        clean = clean.replace(".", "")

    try:
        value = Decimal(clean)
    except InvalidOperation:
        return Decimal(0)
    return -value if negative else value


def rate_table(overrides: Mapping[str, float] | None = None) -> dict[str, Decimal]:
    rates = dict(DEFAULT_RATES)
    for k, v in (overrides or {}).items():
        k = k.upper()
        if k not in CURRENCIES:
            raise ValueError(f"Unsupported currency in rate table: {k}")
        if v <= 0:
            raise ValueError(f"Exchange rate for {k} must be positive")
        rates[k] = _to_decimal(v)
    return rates


def convert_currency(
    amount: Number,
    from_code: str,
    to_code: str,
    rates: Mapping[str, Decimal] | None = None,
) -> Decimal:
    """Convert through EUR; the result is not rounded."""
    src = get_currency(from_code).code
    dst = get_currency(to_code).code
    value = _to_decimal(amount)
    if src == dst:
        return value
    table = rates or DEFAULT_RATES
    return value / table[src] * table[dst]


def currency_list() -> list[dict]:
    return [
        {
            "code": c.code,
            "symbol": c.symbol,
            "name": c.name,
            "decimals": c.decimals,
            "is_international": c.is_international,
            "is_crypto": c.is_crypto,
        }
        for c in CURRENCIES.values()
    ]
