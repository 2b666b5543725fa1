ADMIN_EMAIL = "admin@test.local"
PASSWORD = "pass1234"


def register(client, email: str, password: str = PASSWORD, name=None) -> dict:
    body = {"email": email, "password": password}
    if name:
        body["name"] = name
    r = client.post("/api/auth/register", json=body)
    assert r.status_code == 201, r.text
    return r.json()


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
