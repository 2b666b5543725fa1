import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session, selectinload

from contafricax.db import get_db
from contafricax.metrics import report_exports
from contafricax.orm_models import Transaction, TransactionStatus, TransactionType, User
from contafricax.routers.deps import service_errors
from contafricax.services import report_export as rx
from contafricax.services import reports as svc
from contafricax.services.transactions import TxnFilters, filtered_query
from contafricax.utils.auth import require_permission
from contafricax.utils.time import today

router = APIRouter(prefix="/reports", tags=["reports"])
log = logging.getLogger(__name__)

_view = require_permission("view_reports")
_export = require_permission("export_data")


@router.get("/income-statement")
def income_statement(
    start: date,
    end: date,
    currency: Optional[str] = None,
    db: Session = Depends(get_db),
    _: User = Depends(_view),
):
    with service_errors():
        return svc.income_statement(db, start, end, currency)


@router.get("/balance-sheet")
def balance_sheet(
    as_of: Optional[date] = Query(default=None, alias="date"),
    currency: Optional[str] = None,
    db: Session = Depends(get_db),
    _: User = Depends(_view),
):
    with service_errors():
        return svc.balance_sheet(db, as_of, currency)


@router.get("/summary")
def summary(
    months: int = 6,
    currency: Optional[str] = None,
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("view_dashboard")),
):
    with service_errors():
        return svc.dashboard_summary(db, months, currency)


# --- exports -----------------------------------------------------------------


def _kind(report: str) -> rx.ReportKind:
    try:
        return rx.ReportKind(report)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown report: {report}") from None


def _statement(db: Session, kind: rx.ReportKind, start, end, as_of, currency) -> dict:
    with service_errors():
        if kind == rx.ReportKind.balance_sheet:
            return svc.balance_sheet(db, as_of, currency)
        if start is None or end is None:
            raise ValueError("start and end are required")
        return svc.income_statement(db, start, end, currency)


def _transactions(db: Session, start, end, ttype, status_) -> list[Transaction]:
    with service_errors():
        q = filtered_query(db, TxnFilters(type=ttype, status=status_, start=start, end=end))
    return (
        q.options(selectinload(Transaction.category))
        .order_by(Transaction.date.asc(), Transaction.id.asc())
        .all()
    )


def _journal(
    db: Session, start, end, ttype, status_, currency
) -> tuple[svc.ReportContext, list[str], list[list]]:
    """Journal rows; converted into ``currency`` only when one is requested."""
    with service_errors():
        ctx = svc.report_context(db, currency)
    rows = _transactions(db, start, end, ttype, status_)
    header, body = rx.transaction_rows(rows, ctx.language, ctx if currency else None)
    return ctx, header, body


def _download(data: bytes, media_type: str, kind: rx.ReportKind, ext: str) -> StreamingResponse:
    filename = f"{kind.value}_{today().isoformat()}.{ext}"
    return StreamingResponse(
        iter([data]),
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/{report}/excel")
def export_excel(
    report: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
    as_of: Optional[date] = Query(default=None, alias="date"),
    currency: Optional[str] = None,
    type: Optional[TransactionType] = None,
    status_: Optional[TransactionStatus] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    _: User = Depends(_export),
):
    kind = _kind(report)
    if kind == rx.ReportKind.transactions:
        ctx, header, body = _journal(db, start, end, type, status_, currency)
        data = rx.build_transactions_excel(ctx.labels["transactions"], header, body)
    else:
        st = _statement(db, kind, start, end, as_of, currency)
        lines = (
            rx.balance_sheet_lines(st)
            if kind == rx.ReportKind.balance_sheet
            else rx.income_statement_lines(st)
        )
        data = rx.build_statement_excel(st["title"], rx.subtitle(kind, st), lines, st["currency"])
    report_exports.labels(report=kind.value, format="excel").inc()
    return _download(data, rx.XLSX_MEDIA_TYPE, kind, "xlsx")


@router.get("/{report}/pdf")
def export_pdf(
    report: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
    as_of: Optional[date] = Query(default=None, alias="date"),
    currency: Optional[str] = None,
    type: Optional[TransactionType] = None,
    status_: Optional[TransactionStatus] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    _: User = Depends(_export),
):
    kind = _kind(report)
    if kind == rx.ReportKind.transactions:
        ctx, header, body = _journal(db, start, end, type, status_, currency)
        sub = f"{ctx.labels['period']}: {start or '...'} - {end or today()} ({len(body)})"
        data = rx.build_transactions_pdf(ctx.labels["transactions"], sub, header, body)
    else:
        st = _statement(db, kind, start, end, as_of, currency)
        lines = (
            rx.balance_sheet_lines(st)
            if kind == rx.ReportKind.balance_sheet
            else rx.income_statement_lines(st)
        )
        data = rx.build_statement_pdf(st["title"], rx.subtitle(kind, st), lines, st["currency"])
    report_exports.labels(report=kind.value, format="pdf").inc()
    return _download(data, rx.PDF_MEDIA_TYPE, kind, "pdf")
