from __future__ import annotations

from datetime import datetime
from enum import Enum
from io import BytesIO
from typing import Iterable, NamedTuple, Optional

from openpyxl import Workbook
from openpyxl.styles import Font
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from contafricax.orm_models import Transaction
from contafricax.services.reports import LABELS, ReportContext
from contafricax.utils.currency import format_currency

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PDF_MEDIA_TYPE = "application/pdf"


class ReportKind(str, Enum):
    balance_sheet = "balance-sheet"
    income_statement = "income-statement"
    transactions = "transactions"


class Line(NamedTuple):
    label: str
    amount: Optional[float]
    style: str  # section | item | total | grand


# --- flatten statements into printable lines ---------------------------------


def _section_lines(section: dict) -> list[Line]:
    lines = [Line(section["label"], None, "section")]
    lines += [Line(f"  {it['label']}", it["amount"], "item") for it in section["items"]]
    lines.append(Line(f"Total {section['label'].lower()}", section["total"], "total"))
    return lines


def income_statement_lines(data: dict) -> list[Line]:
    L = LABELS.get(data.get("language"), LABELS["fr"])
    lines: list[Line] = []
    lines += _section_lines(data["revenues"])
    lines += _section_lines(data["cost_of_sales"])
    lines.append(Line(L["gross_profit"], data["gross_profit"], "grand"))
    lines += _section_lines(data["operating_expenses"])
    lines.append(Line(L["operating_income"], data["operating_income"], "grand"))
    lines += _section_lines(data["non_operating_revenues"])
    lines += _section_lines(data["financial_expenses"])
    lines += _section_lines(data["taxes"])
    lines.append(Line(L["net_income"], data["net_income"], "grand"))
    return lines


def balance_sheet_lines(data: dict) -> list[Line]:
    L = LABELS.get(data.get("language"), LABELS["fr"])
    lines: list[Line] = []
    lines += _section_lines(data["assets"])
    lines.append(Line(L["total_assets"], data["total_assets"], "grand"))
    lines += _section_lines(data["liabilities"])
    lines += _section_lines(data["equity"])
    lines.append(
        Line(L["total_liabilities_and_equity"], data["total_liabilities_and_equity"], "grand")
    )
    lines.append(Line(L["difference"], data["difference"], "grand"))
    return lines


def subtitle(kind: ReportKind, data: dict) -> str:
    L = LABELS.get(data.get("language"), LABELS["fr"])
    if kind == ReportKind.balance_sheet:
        return f"{L['as_of']} {data['as_of']} ({data['currency']})"
    period = data["period"]
    return f"{L['period']}: {period['start']} - {period['end']} ({data['currency']})"


def transaction_rows(
    rows: Iterable[Transaction], language: str, ctx: Optional[ReportContext] = None
) -> tuple[list[str], list[list]]:
    """Journal rows in each transaction's own currency, or in ``ctx.currency`` when given."""
    L = LABELS.get(language, LABELS["fr"])
    header = [
        L["date"],
        L["description"],
        L["category"],
        L["type"],
        L["status"],
        L["amount"],
        L["currency"],
        L["reference"],
    ]
    body = [
        [
            t.date.isoformat(),
            t.description,
            t.category.name if t.category else "",
            t.type,
            t.status,
            ctx.out(ctx.convert(t.amount, t.currency)) if ctx else float(t.amount),
            ctx.currency if ctx else t.currency,
            t.reference or "",
        ]
        for t in rows
    ]
    return header, body


# --- Excel -------------------------------------------------------------------


def build_statement_excel(title: str, sub: str, lines: list[Line], currency: str) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = title[:31]

    ws["A1"] = title
    ws["A1"].font = Font(bold=True, size=14)
    ws["A2"] = sub
    ws["A3"] = datetime.now().strftime("%Y-%m-%d %H:%M")

    ws.append([])
    ws.append(["", currency, ""])
    for cell in ws[ws.max_row]:
        cell.font = Font(bold=True)

    for line in lines:
        formatted = format_currency(line.amount, currency) if line.amount is not None else ""
        ws.append([line.label, line.amount, formatted])
        if line.style != "item":
            for cell in ws[ws.max_row]:
                cell.font = Font(bold=True, size=12 if line.style == "grand" else 11)

    ws.column_dimensions["A"].width = 42
    ws.column_dimensions["B"].width = 18
    ws.column_dimensions["C"].width = 24
    bio = BytesIO()
    wb.save(bio)
    return bio.getvalue()


def build_transactions_excel(title: str, header: list[str], body: list[list]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = title[:31]
    amount_idx, currency_idx = 5, 6
    ws.append(header + [header[amount_idx] + " (format)"])
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for row in body:
        ws.append(row + [format_currency(row[amount_idx], row[currency_idx])])

    widths = [12, 40, 22, 10, 12, 16, 8, 18, 22]
    for i, w in enumerate(widths):
        ws.column_dimensions[chr(ord("A") + i)].width = w
    bio = BytesIO()
    wb.save(bio)
    return bio.getvalue()


# --- PDF ---------------------------------------------------------------------

_TABLE_BASE = [
    ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
    ("ALIGN", (1, 0), (1, -1), "RIGHT"),
]


def _pdf_text(s: str) -> str:
    # standard Type1 fonts have no glyph for the narrow no-break space
    return s.replace("\u202f", "\u00a0")


def build_statement_pdf(title: str, sub: str, lines: list[Line], currency: str) -> bytes:
    buf = BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=A4, title=title)
    styles = getSampleStyleSheet()
    story = [Paragraph(title, styles["Title"]), Paragraph(_pdf_text(sub), styles["Normal"]), Spacer(1, 12)]

    rows = []
    style = list(_TABLE_BASE)
    for i, line in enumerate(lines):
        amount = _pdf_text(format_currency(line.amount, currency)) if line.amount is not None else ""
        rows.append([line.label, amount])
        if line.style == "section":
            style.append(("BACKGROUND", (0, i), (-1, i), colors.HexColor("#F0F0F0")))
        if line.style != "item":
            style.append(("FONTNAME", (0, i), (-1, i), "Helvetica-Bold"))
    if rows:
        t = Table(rows, hAlign="LEFT", colWidths=[300, 160])
        t.setStyle(TableStyle(style))
        story.append(t)

    doc.build(story)
    return buf.getvalue()


def build_transactions_pdf(title: str, sub: str, header: list[str], body: list[list]) -> bytes:
    buf = BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=A4, title=title)
    styles = getSampleStyleSheet()
    story = [Paragraph(title, styles["Title"]), Paragraph(_pdf_text(sub), styles["Normal"]), Spacer(1, 12)]

    cols = [0, 1, 2, 5]  # date, description, category, amount
    rows = [[header[c] for c in cols]]
    for r in body:
        rows.append(
            [r[0], r[1][:45], r[2][:20], _pdf_text(format_currency(r[5], r[6]))]
        )
    t = Table(rows, hAlign="LEFT", colWidths=[65, 220, 100, 110], repeatRows=1)
    t.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#F0F0F0")),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("ALIGN", (3, 1), (3, -1), "RIGHT"),
            ]
        )
    )
    story.append(t)
    doc.build(story)
    return buf.getvalue()
