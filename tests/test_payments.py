import pytest

from contafricax.orm_models import PaymentCountry, PaymentProvider
from contafricax.services.payments import validate_phone_number


@pytest.fixture
def initiate(client, admin_headers):
    """POST a payment with Orange Money Senegal defaults; returns the response."""

    def _post(**overrides):
        body = {
            "amount": 25000,
            "description": "Paiement facture INV-2025-001",
            "reference": "INV-2025-001",
            "provider": "ORANGE_MONEY",
            "phone_number": "+221771234567",
            "country": "SENEGAL",
        }
        body.update(overrides)
        return client.post("/api/payments", json=body, headers=admin_headers)

    return _post


def _complete(client, headers, pid):
    r = client.post(f"/api/payments/{pid}/callback", json={"status": "COMPLETED"}, headers=headers)
    assert r.status_code == 200, r.text
    return r.json()


def test_initiate_payment(initiate):
    r = initiate(metadata={"invoice": 12})
    assert r.status_code == 201, r.text
    p = r.json()
    assert p["status"] == "INITIATED"
    assert p["direction"] == "INBOUND"
    assert p["currency"] == "XOF"
    assert p["amount"] == 25000.0
    assert p["provider_transaction_id"].startswith("TXN-")
    assert p["provider_reference"].startswith("REF-ORANGE_MONEY-")
    assert p["redirect_url"] == (
        f"https://payment.example.com/orange_money/checkout?ref={p['provider_reference']}"
    )
    assert p["metadata"] == {"invoice": 12}
    assert p["completed_at"] is None


def test_initiate_rejects_unavailable_provider_and_bad_phone(initiate):
    r = initiate(provider="MPESA")
    assert r.status_code == 400
    assert "not available" in r.json()["detail"]

    r = initiate(phone_number="+221701234567")
    assert r.status_code == 400
    assert "Invalid phone number" in r.json()["detail"]

    assert initiate(amount=0).status_code == 400
    assert initiate(currency="ZZZ").status_code == 400
    assert initiate(country="FRANCE").status_code == 400
    assert initiate(client_id=999).status_code == 400


def test_phone_number_spacing_is_normalized(initiate):
    r = initiate(phone_number="+221 77 123 45 67")
    assert r.status_code == 201
    assert r.json()["phone_number"] == "+221771234567"


@pytest.mark.parametrize(
    "phone, provider, country, ok",
    [
        ("+221771234567", PaymentProvider.wave, PaymentCountry.senegal, True),
        ("+221791234567", PaymentProvider.wave, PaymentCountry.senegal, False),
        ("+2250701020304", PaymentProvider.moov_money, PaymentCountry.cote_divoire, True),
        ("+225070102030", PaymentProvider.moov_money, PaymentCountry.cote_divoire, False),
        ("+254712345678", PaymentProvider.mpesa, PaymentCountry.kenya, True),
        ("+254612345678", PaymentProvider.mpesa, PaymentCountry.kenya, False),
        ("+233241234567", PaymentProvider.mtn_mobile_money, PaymentCountry.ghana, True),
        ("0241234567", PaymentProvider.mtn_mobile_money, PaymentCountry.ghana, False),
        ("+254712345678", PaymentProvider.orange_money, PaymentCountry.kenya, False),
    ],
)
def test_validate_phone_number(phone, provider, country, ok):
    assert validate_phone_number(phone, provider, country)[0] is ok


def test_validate_phone_endpoint(client, admin_headers):
    r = client.post(
        "/api/payments/validate-phone",
        json={"phone_number": "+254712345678", "provider": "ORANGE_MONEY", "country": "KENYA"},
        headers=admin_headers,
    )
    assert r.status_code == 200
    assert r.json() == {
        "is_valid": False,
        "message": "Le fournisseur ORANGE_MONEY n'est pas disponible dans KENYA",
    }


def test_countries_and_providers(client, admin_headers):
    countries = client.get("/api/payments/countries", headers=admin_headers).json()
    assert len(countries) == 12
    assert "SENEGAL" in countries
    r = client.get("/api/payments/providers", params={"country": "KENYA"}, headers=admin_headers)
    assert r.json() == ["MPESA"]
    r = client.get("/api/payments/providers", params={"country": "TOGO"}, headers=admin_headers)
    assert r.json() == ["MOOV_MONEY"]


def test_callback_lifecycle(client, admin_headers, initiate):
    pid = initiate().json()["id"]

    r = client.post(f"/api/payments/{pid}/callback", json={"status": "PROCESSING"},
                    headers=admin_headers)
    assert r.json()["status"] == "PROCESSING"
    r = client.get(f"/api/payments/{pid}/status", headers=admin_headers)
    assert r.json()["status"] == "PROCESSING"

    p = _complete(client, admin_headers, pid)
    assert p["status"] == "COMPLETED"
    assert p["completed_at"].startswith("2025-09-15")

    # finished payments no longer accept provider outcomes
    r = client.post(f"/api/payments/{pid}/callback", json={"status": "FAILED"},
                    headers=admin_headers)
    assert r.status_code == 400
    r = client.post(f"/api/payments/{pid}/callback", json={"status": "REFUNDED"},
                    headers=admin_headers)
    assert r.status_code == 400


def test_failed_callback_records_reason(client, admin_headers, initiate):
    pid = initiate().json()["id"]
    r = client.post(
        f"/api/payments/{pid}/callback",
        json={"status": "FAILED", "failure_reason": "Solde insuffisant"},
        headers=admin_headers,
    )
    assert r.json()["status"] == "FAILED"
    assert r.json()["failure_reason"] == "Solde insuffisant"


def test_cancel(client, admin_headers, initiate):
    pid = initiate().json()["id"]
    r = client.post(f"/api/payments/{pid}/cancel", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["status"] == "CANCELLED"
    assert client.post(f"/api/payments/{pid}/cancel", headers=admin_headers).status_code == 400

    done = initiate().json()["id"]
    _complete(client, admin_headers, done)
    assert client.post(f"/api/payments/{done}/cancel", headers=admin_headers).status_code == 400
    assert client.post("/api/payments/999/cancel", headers=admin_headers).status_code == 404


def test_refund(client, admin_headers, initiate):
    pid = initiate().json()["id"]
    assert client.post(f"/api/payments/{pid}/refund", headers=admin_headers).status_code == 400

    _complete(client, admin_headers, pid)
    r = client.post(f"/api/payments/{pid}/refund", json={"amount": 30000}, headers=admin_headers)
    assert r.status_code == 400
    r = client.post(f"/api/payments/{pid}/refund", json={"amount": 10000}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["status"] == "REFUNDED"
    assert r.json()["refunded_amount"] == 10000.0

    full = initiate().json()["id"]
    _complete(client, admin_headers, full)
    r = client.post(f"/api/payments/{full}/refund", headers=admin_headers)
    assert r.json()["refunded_amount"] == 25000.0


def test_list_filters(client, admin_headers, initiate):
    initiate()
    initiate(reference="SUP-2025-001", direction="OUTBOUND", provider="WAVE",
             phone_number="+221781234567", amount=15000)
    initiate(reference="INV-2025-003", provider="MPESA", country="KENYA",
             phone_number="+254712345678", currency="KES", amount=75000)

    def refs(**params):
        r = client.get("/api/payments", params=params, headers=admin_headers)
        assert r.status_code == 200, r.text
        return sorted(p["reference"] for p in r.json())

    assert len(refs()) == 3
    assert refs(direction="OUTBOUND") == ["SUP-2025-001"]
    assert refs(provider="MPESA") == ["INV-2025-003"]
    assert refs(country="SENEGAL") == ["INV-2025-001", "SUP-2025-001"]
    assert refs(reference="inv") == ["INV-2025-001", "INV-2025-003"]
    assert refs(phone_number="78 123") == ["SUP-2025-001"]
    assert refs(min_amount=20000, max_amount=50000) == ["INV-2025-001"]
    assert refs(status="INITIATED") == refs()
    assert refs(start="2025-09-15", end="2025-09-15") == refs()
    assert refs(start="2025-09-16") == []

    r = client.get("/api/payments", params={"min_amount": 10, "max_amount": 1},
                   headers=admin_headers)
    assert r.status_code == 400


def test_stats(client, admin_headers, initiate):
    a = initiate(amount=20000).json()["id"]
    b = initiate(amount=10000).json()["id"]
    initiate(provider="MPESA", country="KENYA", phone_number="+254712345678",
             currency="EUR", amount=10)
    _complete(client, admin_headers, a)
    client.post(f"/api/payments/{b}/callback", json={"status": "FAILED"}, headers=admin_headers)

    r = client.get("/api/payments/stats", headers=admin_headers)
    assert r.status_code == 200
    s = r.json()
    assert s["currency"] == "XOF"
    assert s["total_payments"] == 3
    assert s["successful_payments"] == 1
    assert s["failed_payments"] == 1
    assert s["pending_payments"] == 1
    # 10 EUR at the CFA peg
    assert s["total_amount"] == 30000 + 6560
    assert s["average_amount"] == round((30000 + 6559.57) / 3)
    assert s["by_provider"]["ORANGE_MONEY"] == {"count": 2, "amount": 30000}
    assert s["by_provider"]["WAVE"] == {"count": 0, "amount": 0}
    assert s["by_country"]["KENYA"]["count"] == 1
    assert set(s["by_country"]) == {c.value for c in PaymentCountry}

    s = client.get("/api/payments/stats", params={"provider": "MPESA", "currency": "EUR"},
                   headers=admin_headers).json()
    assert s["total_amount"] == 10.0
    assert client.get("/api/payments/stats", params={"currency": "ZZZ"},
                      headers=admin_headers).status_code == 400


def test_deleting_client_unlinks_payments(client, admin_headers, initiate):
    cid = client.post("/api/clients", json={"name": "Boutique Thiès"}, headers=admin_headers).json()["id"]
    pid = initiate(client_id=cid).json()["id"]
    assert client.delete(f"/api/clients/{cid}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/payments/{pid}", headers=admin_headers).json()["client_id"] is None


def test_payment_permissions(client, make_user, initiate):
    viewer = make_user("lecteur@test.local")
    pid = initiate().json()["id"]
    assert client.get(f"/api/payments/{pid}", headers=viewer).status_code == 200
    assert client.post(f"/api/payments/{pid}/cancel", headers=viewer).status_code == 403
    assert client.get("/api/payments").status_code == 401
