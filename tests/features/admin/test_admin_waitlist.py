from datetime import datetime, timedelta, timezone

import jwt

SECRET = "test-secret"


def make_token(is_admin=True, secret=SECRET, expires_in=timedelta(minutes=30)):
    payload = {
        "sub": "admin-1",
        "email": "admin@maxmove.com",
        "is_admin": is_admin,
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def auth(token):
    return {"Authorization": f"Bearer {token}"}


def test_list_requires_token(client):
    response = client.get("/api/v1/admin/waiting-list")
    assert response.status_code in (401, 403)


def test_list_rejects_bad_signature(client):
    response = client.get("/api/v1/admin/waiting-list", headers=auth(make_token(secret="other")))
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token"


def test_list_rejects_expired_token(client):
    token = make_token(expires_in=timedelta(minutes=-5))
    response = client.get("/api/v1/admin/waiting-list", headers=auth(token))
    assert response.status_code == 401
    assert response.json()["message"] == "Token has expired"


def test_list_rejects_non_admin(client):
    response = client.get("/api/v1/admin/waiting-list", headers=auth(make_token(is_admin=False)))
    assert response.status_code == 403


def test_list_entries(client):
    for email in ("a@x.com", "b@x.com", "c@x.com"):
        client.post("/waiting-list", json={"email": email, "source": "footer"})

    response = client.get(
        "/api/v1/admin/waiting-list", params={"page": 1, "per_page": 2}, headers=auth(make_token())
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total"] == 3
    assert data["pages"] == 2
    assert [e["email"] for e in data["entries"]] == ["c@x.com", "b@x.com"]
    assert data["entries"][0]["source"] == "footer"
    assert data["entries"][0]["referral_count"] == 0
