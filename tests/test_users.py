"""Profile reads, partial profile updates and password changes."""


def test_get_profile(client, ann):
    r = client.get("/api/users/profile", headers=ann["headers"])
    assert r.status_code == 200
    user = r.json()["user"]
    assert user["id"] == ann["user"]["id"]
    assert user["bio"] is None
    assert "password_hash" not in user


def test_update_profile_is_partial(client, ann):
    r = client.put("/api/users/profile", json={"bio": "  likes lists  "}, headers=ann["headers"])
    assert r.status_code == 200
    user = r.json()["user"]
    assert user["bio"] == "likes lists"
    assert user["name"] == "Ann"

    r = client.put("/api/users/profile", json={"name": "Annie"}, headers=ann["headers"])
    user = r.json()["user"]
    assert user["name"] == "Annie"
    assert user["bio"] == "likes lists"


def test_update_profile_validation(client, ann):
    r = client.put("/api/users/profile", json={"name": "A", "bio": "x" * 201}, headers=ann["headers"])
    assert r.status_code == 400
    fields = {e["field"] for e in r.json()["errors"]}
    assert fields == {"name", "bio"}

    r = client.get("/api/users/profile", headers=ann["headers"])
    assert r.json()["user"]["name"] == "Ann"


def test_update_profile_requires_auth(client):
    r = client.put("/api/users/profile", json={"name": "Nobody"})
    assert r.status_code == 401


def test_change_password_wrong_current_keeps_old_password(client, ann):
    r = client.put(
        "/api/users/password",
        json={"currentPassword": "nope123", "newPassword": "fresh456"},
        headers=ann["headers"],
    )
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "Current password is incorrect."}

    r = client.post("/api/auth/login", json={"email": "ann@x.com", "password": "abc123"})
    assert r.status_code == 200


def test_change_password_success(client, ann):
    r = client.put(
        "/api/users/password",
        json={"currentPassword": "abc123", "newPassword": "fresh456"},
        headers=ann["headers"],
    )
    assert r.status_code == 200
    assert r.json()["message"] == "Password updated successfully."

    old = client.post("/api/auth/login", json={"email": "ann@x.com", "password": "abc123"})
    new = client.post("/api/auth/login", json={"email": "ann@x.com", "password": "fresh456"})
    assert old.status_code == 401
    assert new.status_code == 200


def test_change_password_validates_new_password(client, ann):
    r = client.put(
        "/api/users/password",
        json={"currentPassword": "abc123", "newPassword": "short"},
        headers=ann["headers"],
    )
    assert r.status_code == 400
    assert r.json()["errors"][0]["field"] == "newPassword"


def test_change_password_rejects_passwords_the_hasher_cannot_take(client, ann):
    for password in ["a1" * 2500, "abc\x00123"]:
        r = client.put(
            "/api/users/password",
            json={"currentPassword": "abc123", "newPassword": password},
            headers=ann["headers"],
        )
        assert r.status_code == 400
        assert r.json()["errors"][0]["field"] == "newPassword"

    r = client.post("/api/auth/login", json={"email": "ann@x.com", "password": "abc123"})
    assert r.status_code == 200
