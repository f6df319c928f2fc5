# tests/helpers.py

from __future__ import annotations

from fastapi.testclient import TestClient


def register(client: TestClient, name: str = "Ann", email: str = "ann@x.com", password: str = "abc123"):
    r = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    assert r.status_code == 201, r.text
    body = r.json()
    return body["token"], body["user"]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
