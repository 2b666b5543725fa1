def test_create_transaction_defaults(client, admin_headers, add_txn, category_ids):
    t = add_txn()
    assert t["amount"] == 10000.0
    assert t["type"] == "DEPENSE"
    assert t["status"] == "VALIDEE"
    assert t["currency"] == "XOF"
    assert t["category"]["name"] == "Transport"
    assert t["tags"] == []
    assert t["created_by"] is not None

    r = client.get(f"/api/transactions/{t['id']}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["description"] == "Achat fournitures"


def test_create_rejects_bad_input(client, admin_headers, category_ids):
    base = {
        "amount": 100,
        "type": "DEPENSE",
        "description": "Carburant",
        "date": "2025-09-03",
        "category_id": category_ids["Transport"],
    }

    def post(**over):
        return client.post("/api/transactions", json={**base, **over}, headers=admin_headers)

    assert post(amount=0).status_code == 400
    assert post(amount=-5).status_code == 400
    assert post(description="   ").status_code == 400
    assert post(type="AUTRE").status_code == 400
    assert post(date="15/09/2025").status_code == 400
    assert post(currency="ZZZ").status_code == 400

    r = post(category_id=category_ids["Ventes"])
    assert r.status_code == 400
    assert "cannot be used" in r.json()["detail"]

    assert post(category_id=9999).status_code == 400
    assert post(tag_ids=[9999]).status_code == 400
    assert post(client_id=9999).status_code == 400


def test_list_pagination_and_sort(client, admin_headers, add_txn):
    for day in range(1, 8):
        add_txn(date=f"2025-09-0{day}", amount=day * 1000)

    r = client.get("/api/transactions", params={"limit": 3}, headers=admin_headers)
    page = r.json()
    assert r.status_code == 200
    assert page["total"] == 7
    assert page["limit"] == 3
    assert [t["date"] for t in page["items"]] == ["2025-09-07", "2025-09-06", "2025-09-05"]

    r = client.get("/api/transactions", params={"limit": 3, "offset": 6}, headers=admin_headers)
    assert [t["date"] for t in r.json()["items"]] == ["2025-09-01"]

    r = client.get("/api/transactions", params={"sort": "amount", "limit": 2}, headers=admin_headers)
    assert [t["amount"] for t in r.json()["items"]] == [1000.0, 2000.0]

    for bad in ({"limit": 0}, {"limit": 501}, {"offset": -1}, {"sort": "description"}):
        assert client.get("/api/transactions", params=bad, headers=admin_headers).status_code == 400


def test_list_filters(client, admin_headers, add_txn, category_ids, tag_ids):
    add_txn(description="Vente boutique", type="REVENU", category="Ventes", amount=50000,
            date="2025-08-20", tag_ids=[tag_ids["Professionnel"]])
    add_txn(description="Taxi aéroport", amount=3000, date="2025-09-05", currency="EUR")
    add_txn(description="Loyer", category="Logement", amount=150000, date="2025-09-01",
            status="EN_ATTENTE", reference="BAIL-09")

    def ids(**params):
        r = client.get("/api/transactions", params=params, headers=admin_headers)
        assert r.status_code == 200, r.text
        return sorted(t["description"] for t in r.json()["items"])

    assert ids(type="REVENU") == ["Vente boutique"]
    assert ids(status="EN_ATTENTE") == ["Loyer"]
    assert ids(category_id=category_ids["Transport"]) == ["Taxi aéroport"]
    assert ids(tag_id=tag_ids["Professionnel"]) == ["Vente boutique"]
    assert ids(currency="eur") == ["Taxi aéroport"]
    assert ids(start="2025-09-01", end="2025-09-30") == ["Loyer", "Taxi aéroport"]
    assert ids(min_amount=10000, max_amount=100000) == ["Vente boutique"]
    assert ids(q="bail") == ["Loyer"]
    assert ids(q="taxi") == ["Taxi aéroport"]

    r = client.get(
        "/api/transactions", params={"start": "2025-09-30", "end": "2025-09-01"}, headers=admin_headers
    )
    assert r.status_code == 400
    r = client.get(
        "/api/transactions", params={"min_amount": 10, "max_amount": 1}, headers=admin_headers
    )
    assert r.status_code == 400


def test_update_transaction(client, admin_headers, add_txn, category_ids, tag_ids):
    t = add_txn()
    tid = t["id"]

    r = client.put(
        f"/api/transactions/{tid}",
        json={"amount": 12500.5, "notes": "Facture n°12", "tag_ids": [tag_ids["Urgent"]]},
        headers=admin_headers,
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["amount"] == 12500.5
    assert body["notes"] == "Facture n°12"
    assert [tg["name"] for tg in body["tags"]] == ["Urgent"]
    assert body["description"] == "Achat fournitures"

    # switching type without a matching category is rejected
    r = client.put(f"/api/transactions/{tid}", json={"type": "REVENU"}, headers=admin_headers)
    assert r.status_code == 400
    r = client.put(
        f"/api/transactions/{tid}",
        json={"type": "REVENU", "category_id": category_ids["Ventes"]},
        headers=admin_headers,
    )
    assert r.status_code == 200
    assert r.json()["type"] == "REVENU"

    r = client.put(f"/api/transactions/{tid}", json={"amount": None}, headers=admin_headers)
    assert r.status_code == 400
    assert client.put("/api/transactions/999", json={"notes": "x"}, headers=admin_headers).status_code == 404


def test_status_and_tags(client, admin_headers, add_txn, tag_ids):
    tid = add_txn()["id"]

    r = client.patch(f"/api/transactions/{tid}/status", json={"status": "ANNULEE"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["status"] == "ANNULEE"
    r = client.patch(f"/api/transactions/{tid}/status", json={"status": "DONE"}, headers=admin_headers)
    assert r.status_code == 400

    urgent = tag_ids["Urgent"]
    r = client.post(f"/api/transactions/{tid}/tags/{urgent}", headers=admin_headers)
    assert [t["name"] for t in r.json()["tags"]] == ["Urgent"]
    # attaching twice is a no-op
    r = client.post(f"/api/transactions/{tid}/tags/{urgent}", headers=admin_headers)
    assert len(r.json()["tags"]) == 1
    assert client.post(f"/api/transactions/{tid}/tags/999", headers=admin_headers).status_code == 404

    r = client.delete(f"/api/transactions/{tid}/tags/{urgent}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["tags"] == []


def test_delete_transaction(client, admin_headers, add_txn):
    tid = add_txn()["id"]
    assert client.delete(f"/api/transactions/{tid}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/transactions/{tid}", headers=admin_headers).status_code == 404
    assert client.delete(f"/api/transactions/{tid}", headers=admin_headers).status_code == 404
