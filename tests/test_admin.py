"""Admin login, tokens and dashboard."""

from datetime import datetime, timedelta, timezone

import jwt

from app.core.config import get_settings
from app.core.security import create_access_token, hash_password, verify_password
from tests.conftest import next_weekday


def test_password_hashing():
    hashed = hash_password("s3cret")

    assert hashed != "s3cret"
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("s3cret", "not-a-bcrypt-hash")


def test_token_claims():
    settings = get_settings()
    token = create_access_token(7, "chef@example.com")

    claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])

    assert claims["id"] == 7
    assert claims["email"] == "chef@example.com"
    assert claims["exp"] - claims["iat"] == settings.jwt_expire_days * 24 * 3600


async def test_login_success(client, seeded):
    settings = get_settings()
    response = await client.post(
        "/admin/login",
        json={"email": settings.admin_email.upper(), "password": settings.admin_password},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["admin"] == {"id": seeded.id, "email": settings.admin_email}

    me = await client.get("/admin/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.json() == {"ok": True, "admin": {"id": seeded.id, "email": settings.admin_email}}


async def test_login_wrong_password(client):
    response = await client.post(
        "/admin/login", json={"email": get_settings().admin_email, "password": "nope"}
    )
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid credentials"


async def test_login_unknown_email(client):
    response = await client.post("/admin/login", json={"email": "who@example.com", "password": "x"})
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid credentials"


async def test_login_missing_fields(client):
    response = await client.post("/admin/login", json={"email": get_settings().admin_email})
    assert response.status_code == 400
    assert response.json()["error"] == "email and password required"


async def test_expired_token_rejected(client, seeded):
    issued = datetime.now(timezone.utc) - timedelta(days=get_settings().jwt_expire_days + 1)
    token = create_access_token(seeded.id, seeded.email, now=issued)

    response = await client.get("/admin/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid token"


async def test_token_signed_with_other_secret_rejected(client, seeded):
    token = jwt.encode({"id": seeded.id, "email": seeded.email}, "other-secret", algorithm="HS256")

    response = await client.get("/admin/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


async def test_dashboard_counts(client, admin_headers):
    day = next_weekday(3).isoformat()
    await client.post("/reservations", json={
        "name": "Jane", "phone": "555", "guests": 3, "date": day, "time": "18:00",
    })
    await client.post("/admin/blogs", json={
        "title": "Hello", "content": "Body", "status": "PUBLISHED",
    }, headers=admin_headers)

    response = await client.get("/admin/dashboard", headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["upcomingReservations"] == 1
    assert body["publishedPosts"] == 1
    assert body["menuItems"] == 0
    assert body["todayReservations"] == 0
    assert body["todayGuests"] == 0


async def test_dashboard_requires_admin(client):
    response = await client.get("/admin/dashboard")
    assert response.status_code == 401
