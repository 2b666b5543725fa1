from io import BytesIO

import pytest
from openpyxl import load_workbook

from contafricax.services import report_export as rx

PERIOD = {"start": "2025-09-01", "end": "2025-09-30"}


@pytest.fixture
def some_txns(add_txn):
    add_txn(type="REVENU", category="Ventes", amount=250000, description="Vente comptoir")
    add_txn(amount=15000, description="Taxi", reference="T-001")
    add_txn(amount=12.5, description="Abonnement logiciel", currency="EUR", date="2025-09-10")


@pytest.mark.parametrize(
    "report, params",
    [
        ("income-statement", PERIOD),
        ("balance-sheet", {"date": "2025-09-30"}),
        ("transactions", PERIOD),
    ],
)
def test_excel_export(client, admin_headers, some_txns, report, params):
    r = client.get(f"/api/reports/{report}/excel", params=params, headers=admin_headers)
    assert r.status_code == 200, r.text
    assert r.headers["content-type"].startswith(rx.XLSX_MEDIA_TYPE)
    assert r.headers["content-disposition"] == f"attachment; filename={report}_2025-09-15.xlsx"
    assert r.content[:2] == b"PK"
    wb = load_workbook(BytesIO(r.content))
    assert wb.active["A1"].value


@pytest.mark.parametrize(
    "report, params",
    [
        ("income-statement", PERIOD),
        ("balance-sheet", {}),
        ("transactions", {}),
    ],
)
def test_pdf_export(client, admin_headers, some_txns, report, params):
    r = client.get(f"/api/reports/{report}/pdf", params=params, headers=admin_headers)
    assert r.status_code == 200, r.text
    assert r.headers["content-type"].startswith("application/pdf")
    assert r.headers["content-disposition"].endswith(".pdf")
    assert r.content.startswith(b"%PDF")


def test_transactions_excel_rows(client, admin_headers, some_txns):
    r = client.get(
        "/api/reports/transactions/excel", params={"type": "DEPENSE"}, headers=admin_headers
    )
    ws = load_workbook(BytesIO(r.content)).active
    values = [c.value for row in ws.iter_rows() for c in row]
    assert "Taxi" in values
    assert "Abonnement logiciel" in values
    assert "Vente comptoir" not in values


def test_export_errors(client, admin_headers, make_user):
    r = client.get("/api/reports/cash-flow/pdf", headers=admin_headers)
    assert r.status_code == 404
    # income statement needs a period
    assert client.get("/api/reports/income-statement/excel", headers=admin_headers).status_code == 400
    r = client.get(
        "/api/reports/transactions/excel",
        params={"start": "2025-09-30", "end": "2025-09-01"},
        headers=admin_headers,
    )
    assert r.status_code == 400

    accountant = make_user("compta@test.local", role="accountant")
    assert client.get("/api/reports/balance-sheet/pdf", headers=accountant).status_code == 403
    manager = make_user("chef@test.local", role="manager")
    assert client.get("/api/reports/balance-sheet/pdf", headers=manager).status_code == 200


def test_statement_lines_follow_sections():
    data = {
        "language": "en",
        "assets": {"label": "Assets", "items": [{"label": "Cash", "amount": 10.0}], "total": 10.0},
        "liabilities": {"label": "Liabilities", "items": [], "total": 0.0},
        "equity": {"label": "Equity", "items": [], "total": 10.0},
        "total_assets": 10.0,
        "total_liabilities_and_equity": 10.0,
        "difference": 0.0,
    }
    lines = rx.balance_sheet_lines(data)
    assert lines[0] == rx.Line("Assets", None, "section")
    assert lines[1] == rx.Line("  Cash", 10.0, "item")
    assert lines[-1] == rx.Line("Difference", 0.0, "grand")
    assert [ln.style for ln in lines].count("grand") == 3


def _journal_rows(client, headers, **params):
    r = client.get("/api/reports/transactions/excel", params=params, headers=headers)
    assert r.status_code == 200, r.text
    ws = load_workbook(BytesIO(r.content)).active
    return {row[1]: row for row in ws.iter_rows(min_row=2, values_only=True)}


def test_transactions_export_keeps_own_currency_by_default(client, admin_headers, some_txns):
    rows = _journal_rows(client, admin_headers)
    assert rows["Abonnement logiciel"][5] == 12.5
    assert rows["Abonnement logiciel"][6] == "EUR"
    assert rows["Taxi"][6] == "XOF"


def test_transactions_export_converts_to_requested_currency(client, admin_headers, some_txns):
    rows = _journal_rows(client, admin_headers, currency="xof")
    # 12.50 EUR at the CFA peg, rounded to whole francs
    assert rows["Abonnement logiciel"][5] == 8199
    assert {row[6] for row in rows.values()} == {"XOF"}
    assert rows["Taxi"][5] == 15000

    rows = _journal_rows(client, admin_headers, currency="EUR")
    assert rows["Taxi"][5] == round(15000 / 655.957, 2)

    r = client.get(
        "/api/reports/transactions/pdf", params={"currency": "ZZZ"}, headers=admin_headers
    )
    assert r.status_code == 400
