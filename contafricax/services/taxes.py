"""Filing calendar for configured tax rules and the period VAT position."""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from contafricax.orm_models import (
    Category,
    FilingFrequency,
    ReportGroup,
    TaxRule,
    TaxType,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from contafricax.services.bootstrap import get_app_settings
from contafricax.services.reports import report_context

ZERO = Decimal(0)

# day of the following month a monthly return is due
MONTHLY_DUE_DAY = {TaxType.withholding.value: 10}
DEFAULT_MONTHLY_DUE_DAY = 15
PERIODIC_DUE_DAY = 20

# annual taxes owed for the year itself: (month, day) within that year
IN_YEAR_ANNUAL = {
    TaxType.business_license.value: (1, 31),
    TaxType.property.value: (3, 31),
}
# everything else annual is declared on the closed year by 30 April
ANNUAL_RETURN = (4, 30)

MONTHS_PER_PERIOD = {
    FilingFrequency.monthly.value: 1,
    FilingFrequency.quarterly.value: 3,
    FilingFrequency.semi_annual.value: 6,
    FilingFrequency.annual.value: 12,
}

VAT_REVENUE_GROUPS = {ReportGroup.operating.value}
VAT_EXPENSE_GROUPS = {ReportGroup.operating.value, ReportGroup.cost_of_sales.value}


def _month_end(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def _next_month(year: int, month: int, day: int) -> date:
    if month == 12:
        return date(year + 1, 1, day)
    return date(year, month + 1, day)


def filing_periods(rule: TaxRule, year: int) -> list[tuple[date, date, date]]:
    """(period_start, period_end, due_date) for each return ``rule`` needs in ``year``."""
    step = MONTHS_PER_PERIOD.get(rule.filing_frequency)
    if step is None:
        raise ValueError(f"Unknown filing frequency: {rule.filing_frequency}")

    if step == 12:
        start, end = date(year, 1, 1), date(year, 12, 31)
        if rule.tax_type in IN_YEAR_ANNUAL:
            m, d = IN_YEAR_ANNUAL[rule.tax_type]
            return [(start, end, date(year, m, d))]
        m, d = ANNUAL_RETURN
        return [(start, end, date(year + 1, m, d))]

    if step == 1:
        due_day = MONTHLY_DUE_DAY.get(rule.tax_type, DEFAULT_MONTHLY_DUE_DAY)
    else:
        due_day = PERIODIC_DUE_DAY
    out = []
    for first in range(1, 13, step):
        last = first + step - 1
        out.append(
            (
                date(year, first, 1),
                _month_end(year, last),
                _next_month(year, last, due_day),
            )
        )
    return out


def _obligations(rules: Iterable[TaxRule], years: Iterable[int], as_of: date) -> list[dict]:
    out = []
    for year in years:
        for rule in rules:
            for start, end, due in filing_periods(rule, year):
                out.append(
                    {
                        "rule_id": rule.id,
                        "tax_type": rule.tax_type,
                        "name": rule.name,
                        "filing_frequency": rule.filing_frequency,
                        "period_start": start.isoformat(),
                        "period_end": end.isoformat(),
                        "due_date": due.isoformat(),
                        "overdue": due < as_of,
                    }
                )
    out.sort(key=lambda o: (o["due_date"], o["name"], o["period_start"]))
    return out


def _enabled_rules(db: Session) -> list[TaxRule]:
    return db.query(TaxRule).filter(TaxRule.enabled.is_(True)).order_by(TaxRule.name).all()


def tax_calendar(db: Session, year: int, as_of: date) -> list[dict]:
    """Every return for periods inside ``year``, sorted by due date."""
    if not 1900 <= year <= 9998:
        raise ValueError("year out of range")
    return _obligations(_enabled_rules(db), [year], as_of)


def upcoming_obligations(db: Session, as_of: date, days: int) -> list[dict]:
    """Returns due between ``as_of`` and ``as_of + days`` inclusive."""
    if not 1 <= days <= 366:
        raise ValueError("days must be between 1 and 366")
    horizon = as_of + timedelta(days=days)
    # a period of year Y can be due as late as April of Y+1
    years = range(as_of.year - 1, horizon.year + 1)
    lo, hi = as_of.isoformat(), horizon.isoformat()
    return [
        o for o in _obligations(_enabled_rules(db), years, as_of) if lo <= o["due_date"] <= hi
    ]


def vat_rate(db: Session) -> Decimal:
    """Rate of the enabled VAT rule, else the organisation default from settings."""
    rule = (
        db.query(TaxRule)
        .filter(TaxRule.tax_type == TaxType.vat.value, TaxRule.enabled.is_(True))
        .order_by(TaxRule.id)
        .first()
    )
    if rule is not None:
        return Decimal(rule.rate)
    return Decimal(get_app_settings(db).vat_rate or 0)


def _vat_part(amount: Decimal, rate: Decimal) -> Decimal:
    """VAT contained in a tax-inclusive amount."""
    return amount * rate / (Decimal(100) + rate)


def vat_summary(
    db: Session, start: date, end: date, currency: Optional[str] = None
) -> dict:
    """VAT collected on sales less VAT paid on purchases, at the organisation's rate.

    Recorded amounts are taken as tax-inclusive. Cancelled transactions are
    ignored, as on the income statement.
    """
    if start > end:
        raise ValueError("start must be on or before end")
    ctx = report_context(db, currency)
    rate = vat_rate(db)

    rows = (
        db.query(Transaction, Category)
        .join(Category, Transaction.category_id == Category.id)
        .filter(
            Transaction.date >= start,
            Transaction.date <= end,
            Transaction.status != TransactionStatus.cancelled.value,
        )
        .all()
    )
    sales = purchases = ZERO
    for t, cat in rows:
        amount = ctx.convert(t.amount, t.currency)
        if t.type == TransactionType.revenue.value and cat.report_group in VAT_REVENUE_GROUPS:
            sales += amount
        elif t.type == TransactionType.expense.value and cat.report_group in VAT_EXPENSE_GROUPS:
            purchases += amount

    collected = _vat_part(sales, rate)
    deductible = _vat_part(purchases, rate)
    return {
        "period": {"start": start.isoformat(), "end": end.isoformat()},
        "currency": ctx.currency,
        "vat_rate": float(rate),
        "taxable_sales": ctx.out(sales),
        "vat_collected": ctx.out(collected),
        "taxable_purchases": ctx.out(purchases),
        "vat_deductible": ctx.out(deductible),
        "vat_due": ctx.out(collected - deductible),
    }
