def test_default_categories_listed_by_type(client, admin_headers):
    r = client.get("/api/categories", params={"type": "REVENU"}, headers=admin_headers)
    assert r.status_code == 200
    assert sorted(c["name"] for c in r.json()) == ["Investissements", "Salaire", "Ventes"]
    groups = {c["name"]: c["report_group"] for c in r.json()}
    assert groups["Investissements"] == "non-operating"


def test_category_crud(client, admin_headers):
    body = {"name": " Fournitures ", "type": "DEPENSE", "color": "#112233", "icon": "inventory"}
    r = client.post("/api/categories", json=body, headers=admin_headers)
    assert r.status_code == 201, r.text
    cat = r.json()
    assert cat["name"] == "Fournitures"
    assert cat["report_group"] == "operating"

    r = client.post("/api/categories", json={"name": "fournitures", "type": "DEPENSE"}, headers=admin_headers)
    assert r.status_code == 409
    # the same name is allowed on the other side of the ledger
    r = client.post("/api/categories", json={"name": "Fournitures", "type": "REVENU"}, headers=admin_headers)
    assert r.status_code == 201

    r = client.put(
        f"/api/categories/{cat['id']}",
        json={"name": "Fournitures bureau", "report_group": "cost-of-sales"},
        headers=admin_headers,
    )
    assert r.status_code == 200
    assert r.json()["name"] == "Fournitures bureau"
    assert r.json()["report_group"] == "cost-of-sales"

    r = client.put(f"/api/categories/{cat['id']}", json={"name": "Transport"}, headers=admin_headers)
    assert r.status_code == 409
    r = client.put(f"/api/categories/{cat['id']}", json={"report_group": "non-operating"}, headers=admin_headers)
    assert r.status_code == 400

    assert client.delete(f"/api/categories/{cat['id']}", headers=admin_headers).status_code == 204
    assert client.put("/api/categories/999", json={"name": "x"}, headers=admin_headers).status_code == 404


def test_category_validation(client, admin_headers):
    bad = [
        {"name": "  ", "type": "DEPENSE"},
        {"name": "Cadeaux", "type": "AUTRE"},
        {"name": "Cadeaux", "type": "DEPENSE", "color": "red"},
        {"name": "Primes", "type": "REVENU", "report_group": "tax"},
    ]
    for body in bad:
        r = client.post("/api/categories", json=body, headers=admin_headers)
        assert r.status_code == 400, body


def test_category_in_use_cannot_be_deleted(client, admin_headers, add_txn, category_ids):
    add_txn()
    add_txn()
    r = client.delete(f"/api/categories/{category_ids['Transport']}", headers=admin_headers)
    assert r.status_code == 409
    assert r.json()["detail"] == "Category is used by 2 transaction(s)"


def test_tag_crud_and_detach_on_delete(client, admin_headers, add_txn):
    r = client.post("/api/tags", json={"name": "Client VIP", "color": "#00FF00"}, headers=admin_headers)
    assert r.status_code == 201
    tag = r.json()
    assert client.post("/api/tags", json={"name": "client vip"}, headers=admin_headers).status_code == 409

    r = client.put(f"/api/tags/{tag['id']}", json={"name": "VIP"}, headers=admin_headers)
    assert r.json()["name"] == "VIP"
    r = client.put(f"/api/tags/{tag['id']}", json={"name": "Urgent"}, headers=admin_headers)
    assert r.status_code == 409

    tid = add_txn(tag_ids=[tag["id"]])["id"]
    assert client.delete(f"/api/tags/{tag['id']}", headers=admin_headers).status_code == 204
    r = client.get(f"/api/transactions/{tid}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["tags"] == []
    assert client.delete(f"/api/tags/{tag['id']}", headers=admin_headers).status_code == 404


def test_catalog_writes_need_permission(client, make_user):
    headers = make_user("viewer@test.local")
    assert client.get("/api/tags", headers=headers).status_code == 200
    r = client.post("/api/tags", json={"name": "Perso"}, headers=headers)
    assert r.status_code == 403
