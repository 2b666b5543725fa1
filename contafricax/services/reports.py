"""Financial statements computed from transaction records.

Every amount is converted into the report currency before it is summed.
Totals are computed at full precision and only rounded on output, so the
statement identities (net income, balance difference) hold on the
unrounded figures.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from contafricax.config import settings
from contafricax.orm_models import (
    Category,
    Client,
    ReportGroup,
    Supplier,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from contafricax.services.bootstrap import get_app_settings
from contafricax.utils.currency import (
    convert_currency,
    get_currency,
    rate_table,
    round_amount,
)
from contafricax.utils.time import month_key, shift_month, today

log = logging.getLogger(__name__)

ZERO = Decimal(0)
REV = TransactionType.revenue.value
DEP = TransactionType.expense.value
CANCELLED = TransactionStatus.cancelled.value
VALIDATED = TransactionStatus.validated.value
PENDING = TransactionStatus.pending.value

LABELS: dict[str, dict[str, str]] = {
    "fr": {
        "income_statement": "Compte de résultat",
        "balance_sheet": "Bilan",
        "transactions": "Journal des transactions",
        "revenues": "Produits d'exploitation",
        "non_operating_revenues": "Produits hors exploitation",
        "cost_of_sales": "Coût des ventes",
        "gross_profit": "Marge brute",
        "operating_expenses": "Charges d'exploitation",
        "operating_income": "Résultat d'exploitation",
        "financial_expenses": "Charges financières",
        "taxes": "Impôts et taxes",
        "net_income": "Résultat net",
        "total_revenues": "Total des produits",
        "total_expenses": "Total des charges",
        "assets": "Actif",
        "cash": "Trésorerie",
        "pending_receivables": "Créances en attente",
        "client_receivables": "Créances clients",
        "liabilities": "Passif",
        "pending_payables": "Dettes en attente",
        "supplier_payables": "Dettes fournisseurs",
        "equity": "Capitaux propres",
        "share_capital": "Capital social",
        "retained_earnings": "Résultat cumulé",
        "total_assets": "Total actif",
        "total_liabilities_and_equity": "Total passif et capitaux propres",
        "difference": "Écart",
        "period": "Période",
        "as_of": "Au",
        "total": "Total",
        "date": "Date",
        "description": "Libellé",
        "category": "Catégorie",
        "type": "Type",
        "status": "Statut",
        "amount": "Montant",
        "currency": "Devise",
        "reference": "Référence",
        "item": "Poste",
    },
    "en": {
        "income_statement": "Income statement",
        "balance_sheet": "Balance sheet",
        "transactions": "Transaction journal",
        "revenues": "Operating revenue",
        "non_operating_revenues": "Non-operating revenue",
        "cost_of_sales": "Cost of sales",
        "gross_profit": "Gross profit",
        "operating_expenses": "Operating expenses",
        "operating_income": "Operating income",
        "financial_expenses": "Financial expenses",
        "taxes": "Taxes",
        "net_income": "Net income",
        "total_revenues": "Total revenue",
        "total_expenses": "Total expenses",
        "assets": "Assets",
        "cash": "Cash",
        "pending_receivables": "Pending receivables",
        "client_receivables": "Client receivables",
        "liabilities": "Liabilities",
        "pending_payables": "Pending payables",
        "supplier_payables": "Supplier payables",
        "equity": "Equity",
        "share_capital": "Share capital",
        "retained_earnings": "Retained earnings",
        "total_assets": "Total assets",
        "total_liabilities_and_equity": "Total liabilities and equity",
        "difference": "Difference",
        "period": "Period",
        "as_of": "As of",
        "total": "Total",
        "date": "Date",
        "description": "Description",
        "category": "Category",
        "type": "Type",
        "status": "Status",
        "amount": "Amount",
        "currency": "Currency",
        "reference": "Reference",
        "item": "Item",
    },
}


@dataclass
class ReportContext:
    currency: str
    primary_currency: str
    language: str
    rates: dict[str, Decimal]

    @property
    def labels(self) -> dict[str, str]:
        return LABELS.get(self.language, LABELS["fr"])

    def convert(self, amount, code: str) -> Decimal:
        return convert_currency(amount, code, self.currency, self.rates)

    def out(self, amount: Decimal) -> float:
        return float(round_amount(amount, self.currency))


def report_context(db: Session, currency: Optional[str] = None) -> ReportContext:
    s = get_app_settings(db)
    code = get_currency(currency or s.primary_currency).code
    return ReportContext(
        currency=code,
        primary_currency=s.primary_currency,
        language=s.language if s.language in LABELS else "fr",
        rates=rate_table(settings.exchange_rate_overrides()),
    )


def _section(ctx: ReportContext, key: str, items: list[dict], total: Decimal) -> dict:
    """items carry unrounded ``_amount``; emit rounded amounts plus share of section."""
    out = []
    for it in items:
        raw = it.pop("_amount")
        it["amount"] = ctx.out(raw)
        it["pct_of_total"] = round(float(raw / total * 100), 2) if total else 0.0
        out.append(it)
    return {"label": ctx.labels[key], "items": out, "total": ctx.out(total)}


def _by_category(rows: Iterable[tuple[Category, Decimal]]) -> tuple[list[dict], Decimal]:
    sums: dict[int, Decimal] = defaultdict(lambda: ZERO)
    names: dict[int, str] = {}
    for cat, amount in rows:
        sums[cat.id] += amount
        names[cat.id] = cat.name
    items = [
        {"category_id": cid, "label": names[cid], "_amount": amt}
        for cid, amt in sorted(sums.items(), key=lambda kv: (-kv[1], names[kv[0]]))
    ]
    return items, sum(sums.values(), ZERO)


def income_statement(
    db: Session, start: date, end: date, currency: Optional[str] = None
) -> dict:
    if start > end:
        raise ValueError("start must be on or before end")
    ctx = report_context(db, currency)

    rows = (
        db.query(Transaction, Category)
        .join(Category, Transaction.category_id == Category.id)
        .filter(
            Transaction.date >= start,
            Transaction.date <= end,
            Transaction.status != CANCELLED,
        )
        .all()
    )

    buckets: dict[str, list[tuple[Category, Decimal]]] = defaultdict(list)
    for t, cat in rows:
        amount = ctx.convert(t.amount, t.currency)
        if t.type == REV:
            key = (
                "non_operating_revenues"
                if cat.report_group == ReportGroup.non_operating.value
                else "revenues"
            )
        else:
            key = {
                ReportGroup.cost_of_sales.value: "cost_of_sales",
                ReportGroup.financial.value: "financial_expenses",
                ReportGroup.tax.value: "taxes",
            }.get(cat.report_group, "operating_expenses")
        buckets[key].append((cat, amount))

    sections = {}
    totals: dict[str, Decimal] = {}
    for key in (
        "revenues",
        "cost_of_sales",
        "operating_expenses",
        "non_operating_revenues",
        "financial_expenses",
        "taxes",
    ):
        items, total = _by_category(buckets.get(key, []))
        totals[key] = total
        sections[key] = _section(ctx, key, items, total)

    gross_profit = totals["revenues"] - totals["cost_of_sales"]
    operating_income = gross_profit - totals["operating_expenses"]
    total_revenues = totals["revenues"] + totals["non_operating_revenues"]
    total_expenses = (
        totals["cost_of_sales"] + totals["operating_expenses"] + totals["financial_expenses"]
    )
    net_income = (
        operating_income
        + totals["non_operating_revenues"]
        - totals["financial_expenses"]
        - totals["taxes"]
    )

    return {
        "title": ctx.labels["income_statement"],
        "period": {"start": start.isoformat(), "end": end.isoformat()},
        "currency": ctx.currency,
        "language": ctx.language,
        **sections,
        "total_revenues": ctx.out(total_revenues),
        "total_expenses": ctx.out(total_expenses),
        "total_taxes": ctx.out(totals["taxes"]),
        "gross_profit": ctx.out(gross_profit),
        "operating_income": ctx.out(operating_income),
        "net_income": ctx.out(net_income),
        "transaction_count": len(rows),
    }


def _sum_by(
    ctx: ReportContext, rows: Iterable[Transaction], ttype: str, statuses: set[str]
) -> Decimal:
    return sum(
        (ctx.convert(t.amount, t.currency) for t in rows if t.type == ttype and t.status in statuses),
        ZERO,
    )


def balance_sheet(db: Session, as_of: Optional[date] = None, currency: Optional[str] = None) -> dict:
    as_of = as_of or today()
    ctx = report_context(db, currency)
    app = get_app_settings(db)
    L = ctx.labels

    rows = (
        db.query(Transaction)
        .filter(Transaction.date <= as_of, Transaction.status != CANCELLED)
        .all()
    )
    validated_rev = _sum_by(ctx, rows, REV, {VALIDATED})
    validated_dep = _sum_by(ctx, rows, DEP, {VALIDATED})
    pending_rev = _sum_by(ctx, rows, REV, {PENDING})
    pending_dep = _sum_by(ctx, rows, DEP, {PENDING})

    client_out = db.query(func.coalesce(func.sum(Client.outstanding_balance), 0)).scalar()
    supplier_out = db.query(func.coalesce(func.sum(Supplier.outstanding_payable), 0)).scalar()
    client_out = ctx.convert(Decimal(str(client_out)), ctx.primary_currency)
    supplier_out = ctx.convert(Decimal(str(supplier_out)), ctx.primary_currency)
    share_capital = ctx.convert(app.share_capital or ZERO, ctx.primary_currency)

    # paid-in capital is held as cash
    cash = share_capital + validated_rev - validated_dep
    retained = (validated_rev + pending_rev) - (validated_dep + pending_dep)

    def item(key: str, amount: Decimal) -> dict:
        return {"key": key, "label": L[key], "_amount": amount}

    assets_items = [
        item("cash", cash),
        item("pending_receivables", pending_rev),
        item("client_receivables", client_out),
    ]
    liab_items = [
        item("pending_payables", pending_dep),
        item("supplier_payables", supplier_out),
    ]
    equity_items = [
        item("share_capital", share_capital),
        item("retained_earnings", retained),
    ]
    total_assets = cash + pending_rev + client_out
    total_liab = pending_dep + supplier_out
    total_equity = share_capital + retained
    difference = total_assets - (total_liab + total_equity)

    return {
        "title": L["balance_sheet"],
        "as_of": as_of.isoformat(),
        "currency": ctx.currency,
        "language": ctx.language,
        "assets": _section(ctx, "assets", assets_items, total_assets),
        "liabilities": _section(ctx, "liabilities", liab_items, total_liab),
        "equity": _section(ctx, "equity", equity_items, total_equity),
        "total_assets": ctx.out(total_assets),
        "total_liabilities": ctx.out(total_liab),
        "total_equity": ctx.out(total_equity),
        "total_liabilities_and_equity": ctx.out(total_liab + total_equity),
        "difference": ctx.out(difference),
        "balanced": round_amount(difference, ctx.currency) == 0,
    }


def dashboard_summary(db: Session, months: int = 6, currency: Optional[str] = None) -> dict:
    if not 1 <= months <= 24:
        raise ValueError("months must be between 1 and 24")
    ctx = report_context(db, currency)
    now = today()
    y0, m0 = shift_month(now.year, now.month, -(months - 1))
    window_start = date(y0, m0, 1)

    rows = (
        db.query(Transaction, Category)
        .join(Category, Transaction.category_id == Category.id)
        .filter(Transaction.date >= window_start, Transaction.date <= now)
        .all()
    )

    keys = [month_key(date(*shift_month(y0, m0, i), 1)) for i in range(months)]
    series = {k: {"income": ZERO, "expense": ZERO} for k in keys}
    status_counts = {s.value: 0 for s in TransactionStatus}
    expense_by_cat: list[tuple[Category, Decimal]] = []
    income = expense = ZERO

    for t, cat in rows:
        status_counts[t.status] = status_counts.get(t.status, 0) + 1
        if t.status == CANCELLED:
            continue
        amount = ctx.convert(t.amount, t.currency)
        bucket = series[month_key(t.date)]
        if t.type == REV:
            income += amount
            bucket["income"] += amount
        else:
            expense += amount
            bucket["expense"] += amount
            expense_by_cat.append((cat, amount))

    top_items, top_total = _by_category(expense_by_cat)
    top = _section(ctx, "operating_expenses", top_items[:5], top_total)["items"]

    return {
        "currency": ctx.currency,
        "months": months,
        "start": window_start.isoformat(),
        "end": now.isoformat(),
        "total_income": ctx.out(income),
        "total_expenses": ctx.out(expense),
        "net": ctx.out(income - expense),
        "transaction_count": len(rows),
        "status_counts": status_counts,
        "top_expense_categories": top,
        "monthly": [
            {
                "month": k,
                "income": ctx.out(v["income"]),
                "expense": ctx.out(v["expense"]),
                "net": ctx.out(v["income"] - v["expense"]),
            }
            for k, v in series.items()
        ],
    }
