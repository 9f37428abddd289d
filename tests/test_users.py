"""Tests for registration, login, profile management and user administration."""
import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.database_models import UserRole
from tests.conftest import DEFAULT_PASSWORD, auth_headers, create_user


async def _register(client: AsyncClient, **overrides):
    data = {"username": "newcomer", "email": "Newcomer@Example.com", "password": "pass1234"}
    data.update(overrides)
    return await client.post("/api/users/register", json=data)


@pytest.mark.asyncio
async def test_register_returns_token_and_capabilities(client: AsyncClient):
    resp = await _register(client)
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["token"]
    user = body["user"]
    assert user["email"] == "newcomer@example.com"
    assert user["role"] == "user"
    assert "password_hash" not in user
    assert user["permissions"] == {
        "canCreate": True,
        "canEdit": False,
        "canDelete": False,
        "isGuest": False,
        "isAdmin": False,
    }

    resp = await client.get(
        "/api/users/profile", headers={"Authorization": f"Bearer {body['token']}"}
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["username"] == "newcomer"


@pytest.mark.asyncio
async def test_register_as_guest_allowed_admin_refused(client: AsyncClient):
    resp = await _register(client, role="guest")
    assert resp.status_code == 201
    assert resp.json()["user"]["permissions"]["isGuest"] is True

    resp = await _register(client, username="sneaky", email="sneaky@example.com", role="admin")
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["field"] == "role"


@pytest.mark.asyncio
async def test_register_duplicate(client: AsyncClient):
    assert (await _register(client)).status_code == 201
    resp = await _register(client, email="other@example.com")
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["field"] == "username"

    resp = await _register(client, username="other")
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["field"] == "email"


@pytest.mark.asyncio
async def test_register_validation(client: AsyncClient):
    resp = await _register(client, username="ab", email="not-an-email", password="123")
    assert resp.status_code == 400
    fields = {e["field"] for e in resp.json()["errors"]}
    assert fields == {"username", "email", "password"}


@pytest.mark.asyncio
async def test_login(client: AsyncClient, db_session: AsyncSession):
    user = await create_user(db_session, UserRole.MODERATOR)
    first_access = user.last_access

    resp = await client.post(
        "/api/users/login", json={"email": user.email.upper(), "password": DEFAULT_PASSWORD}
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["user"]["permissions"]["canEdit"] is True
    assert body["user"]["permissions"]["canDelete"] is False
    assert user.last_access >= first_access

    resp = await client.post(
        "/api/users/login", json={"email": user.email, "password": "wrong-password"}
    )
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "Invalid credentials"}

    resp = await client.post(
        "/api/users/login", json={"email": "nobody@example.com", "password": DEFAULT_PASSWORD}
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_password_whitespace_is_significant(client: AsyncClient):
    resp = await _register(client, username="  spacey  ", password="  secret  ")
    assert resp.status_code == 201
    assert resp.json()["user"]["username"] == "spacey"

    credentials = {"email": "newcomer@example.com", "password": "secret"}
    resp = await client.post("/api/users/login", json=credentials)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid credentials"

    credentials["password"] = "  secret  "
    resp = await client.post("/api/users/login", json=credentials)
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_update_profile_ignores_role(client: AsyncClient, db_session: AsyncSession):
    user = await create_user(db_session, UserRole.USER)
    await create_user(db_session, UserRole.GUEST, username="taken")

    resp = await client.put(
        "/api/users/profile",
        json={"username": "renamed", "role": "admin"},
        headers=auth_headers(user),
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["username"] == "renamed"
    assert data["role"] == "user"

    resp = await client.put(
        "/api/users/profile", json={"username": "taken"}, headers=auth_headers(user)
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_change_password(client: AsyncClient, db_session: AsyncSession):
    user = await create_user(db_session, UserRole.USER)
    headers = auth_headers(user)

    resp = await client.put(
        "/api/users/change-password",
        json={"currentPassword": "wrong", "newPassword": "brand-new"},
        headers=headers,
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "Current password is incorrect"

    resp = await client.put(
        "/api/users/change-password",
        json={"currentPassword": DEFAULT_PASSWORD, "newPassword": "brand-new"},
        headers=headers,
    )
    assert resp.status_code == 200

    resp = await client.post("/api/users/login", json={"email": user.email, "password": "brand-new"})
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_list_users_requires_auth(client: AsyncClient, user_headers):
    assert (await client.get("/api/users")).status_code == 401

    resp = await client.get("/api/users", headers=user_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["pagination"]["total"] == 1
    assert "password_hash" not in body["data"][0]


@pytest.mark.asyncio
async def test_list_users_filters(client: AsyncClient, db_session: AsyncSession, admin_headers):
    await create_user(db_session, UserRole.GUEST, username="visitor")
    await create_user(db_session, UserRole.USER, username="editor")

    resp = await client.get("/api/users", params={"role": "guest"}, headers=admin_headers)
    assert [u["username"] for u in resp.json()["data"]] == ["visitor"]

    resp = await client.get("/api/users", params={"search": "EDIT"}, headers=admin_headers)
    assert [u["username"] for u in resp.json()["data"]] == ["editor"]


@pytest.mark.asyncio
async def test_user_stats(client: AsyncClient, db_session: AsyncSession, admin_headers):
    await create_user(db_session, UserRole.GUEST, username="g1")
    await create_user(db_session, UserRole.GUEST, username="g2")

    data = (await client.get("/api/users/stats", headers=admin_headers)).json()["data"]
    assert data["totalUsers"] == 3
    assert {"_id": "guest", "count": 2} in data["roleStats"]
    assert {"_id": "admin", "count": 1} in data["roleStats"]


@pytest.mark.asyncio
async def test_admin_user_management(client: AsyncClient, admin_headers, user_headers):
    new_user = {"username": "staff", "email": "staff@example.com", "password": "pass1234", "role": "moderator"}

    resp = await client.post("/api/users", json=new_user, headers=user_headers)
    assert resp.status_code == 403

    resp = await client.post("/api/users", json=new_user, headers=admin_headers)
    assert resp.status_code == 201
    created = resp.json()["data"]
    assert created["role"] == "moderator"

    resp = await client.put(
        f"/api/users/{created['id']}", json={"role": "guest"}, headers=admin_headers
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["role"] == "guest"

    resp = await client.get(f"/api/users/{created['id']}", headers=user_headers)
    assert resp.status_code == 200

    resp = await client.delete(f"/api/users/{created['id']}", headers=admin_headers)
    assert resp.status_code == 200

    resp = await client.get(f"/api/users/{created['id']}", headers=admin_headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_admin_cannot_delete_self(client: AsyncClient, admin_user, admin_headers):
    resp = await client.delete(f"/api/users/{admin_user.id}", headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "You cannot delete your own account"
