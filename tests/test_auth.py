"""Tests for token verification and role-based authorization.

Reads are public, create/update need a non-guest role, delete needs admin.
"""
import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.database_models import UserRole
from app.utils.security import create_access_token
from tests.conftest import auth_headers, create_user

PUBLICATION = {
    "title": "Gated Paper",
    "authors": "A. Author",
    "type": "journal",
    "publication": "Journal of Tests",
    "year_publication": 2022,
}


@pytest.mark.asyncio
async def test_missing_token_is_401(client: AsyncClient):
    resp = await client.post("/api/publications", json=PUBLICATION)
    assert resp.status_code == 401
    assert resp.json() == {"success": False, "message": "No token, access denied"}


@pytest.mark.asyncio
async def test_garbage_token_is_401(client: AsyncClient):
    resp = await client.post(
        "/api/publications", json=PUBLICATION, headers={"x-auth-token": "not-a-token"}
    )
    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid token"


@pytest.mark.asyncio
async def test_x_auth_token_header_is_accepted(client: AsyncClient, db_session: AsyncSession):
    user = await create_user(db_session, UserRole.USER)
    resp = await client.post(
        "/api/publications",
        json=PUBLICATION,
        headers={"x-auth-token": create_access_token(user.id)},
    )
    assert resp.status_code == 201


@pytest.mark.asyncio
async def test_token_of_deleted_user_is_401(client: AsyncClient):
    token = create_access_token("3f2b8c1e-0000-4000-8000-000000000000")
    resp = await client.get("/api/users/profile", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "User not found"


@pytest.mark.asyncio
async def test_guest_cannot_create(client: AsyncClient, guest_headers):
    resp = await client.post("/api/publications", json=PUBLICATION, headers=guest_headers)
    assert resp.status_code == 403
    assert resp.json()["success"] is False


@pytest.mark.asyncio
@pytest.mark.parametrize("role", [UserRole.USER, UserRole.MODERATOR, UserRole.ADMIN])
async def test_editor_roles_can_create(client: AsyncClient, db_session: AsyncSession, role):
    user = await create_user(db_session, role)
    resp = await client.post("/api/publications", json=PUBLICATION, headers=auth_headers(user))
    assert resp.status_code == 201


@pytest.mark.asyncio
async def test_only_admin_can_delete(
    client: AsyncClient, user_headers, moderator_headers, admin_headers
):
    resp = await client.post("/api/publications", json=PUBLICATION, headers=user_headers)
    pub_id = resp.json()["data"]["id"]

    for headers in (user_headers, moderator_headers):
        resp = await client.delete(f"/api/publications/{pub_id}", headers=headers)
        assert resp.status_code == 403

    resp = await client.delete(f"/api/publications/{pub_id}", headers=admin_headers)
    assert resp.status_code == 200

    resp = await client.get(f"/api/publications/{pub_id}")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_reads_are_public(client: AsyncClient):
    for path in (
        "/api/publications",
        "/api/publications/stats",
        "/api/teaching-classes",
        "/api/projects",
        "/api/teaching-innovation",
        "/api/final-works",
    ):
        resp = await client.get(path)
        assert resp.status_code == 200, path
