import pytest

from contafricax.utils.permissions import (
    effective_role,
    has_permission,
    is_valid_role,
    permissions_for,
    validate_multiple_permissions,
)

from tests.helpers import register


@pytest.mark.parametrize(
    "role, perm, ok",
    [
        ("admin", "manage_users", True),
        ("manager", "export_data", True),
        ("manager", "manage_settings", False),
        ("accountant", "manage_transactions", True),
        ("accountant", "export_data", False),
        ("user", "view_reports", True),
        ("user", "manage_transactions", False),
        (None, "view_dashboard", False),
        ("root", "view_dashboard", False),
    ],
)
def test_role_permission_matrix(role, perm, ok):
    assert has_permission(role, perm) is ok


def test_multiple_permissions_need_all():
    assert validate_multiple_permissions("manager", ["view_reports", "export_data"])
    assert not validate_multiple_permissions("accountant", ["view_reports", "export_data"])
    assert validate_multiple_permissions("user", [])


def test_effective_role_picks_highest():
    assert effective_role(["user", "manager"]) == "manager"
    assert effective_role(["accountant", "admin"]) == "admin"
    assert effective_role(["ghost"]) is None
    assert not is_valid_role("ghost")
    assert permissions_for("user") == ["view_dashboard", "view_reports"]


def test_plain_user_cannot_write(client, admin_headers, make_user, category_ids):
    headers = make_user("reader@test.local")
    body = {
        "amount": 500,
        "type": "DEPENSE",
        "description": "Taxi",
        "date": "2025-09-02",
        "category_id": category_ids["Transport"],
    }
    r = client.post("/api/transactions", json=body, headers=headers)
    assert r.status_code == 403
    assert r.json()["detail"] == "Insufficient permissions"

    assert client.get("/api/transactions", headers=headers).status_code == 200
    assert client.get("/api/users", headers=headers).status_code == 403


def test_accountant_can_write(client, make_user, category_ids):
    headers = make_user("compta@test.local", role="accountant")
    body = {
        "amount": 500,
        "type": "DEPENSE",
        "description": "Taxi",
        "date": "2025-09-02",
        "category_id": category_ids["Transport"],
    }
    assert client.post("/api/transactions", json=body, headers=headers).status_code == 201


def test_admin_lists_and_updates_users(client, admin_headers):
    uid = register(client, "kwame@test.local")["user"]["id"]
    r = client.get("/api/users", headers=admin_headers)
    assert r.status_code == 200
    assert [u["email"] for u in r.json()] == ["admin@test.local", "kwame@test.local"]

    r = client.patch(f"/api/users/{uid}", json={"role": "manager", "name": "Kwame"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["role"] == "manager"
    assert r.json()["name"] == "Kwame"

    r = client.patch(f"/api/users/{uid}", json={"role": "root"}, headers=admin_headers)
    assert r.status_code == 400
    assert client.patch("/api/users/999", json={"name": "x"}, headers=admin_headers).status_code == 404


def test_admin_cannot_lock_themselves_out(client, admin_headers):
    me = client.get("/api/auth/me", headers=admin_headers).json()
    r = client.patch(f"/api/users/{me['id']}", json={"is_active": False}, headers=admin_headers)
    assert r.status_code == 400
    r = client.patch(f"/api/users/{me['id']}", json={"role": "user"}, headers=admin_headers)
    assert r.status_code == 400
    r = client.patch(f"/api/users/{me['id']}", json={"name": "Boss"}, headers=admin_headers)
    assert r.status_code == 200
