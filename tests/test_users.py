"""Tests for the admin user-maintenance endpoints."""

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.core.roles import Role
from app.models.otp_token import OtpToken
from app.repositories.otp_tokens import OtpTokenRepository
from conftest import auth_headers, fetch_user


@pytest.mark.asyncio
async def test_list_users_excludes_caller(async_client: AsyncClient, make_user):
    admin = await make_user("root@x.com", role=Role.ADMIN)
    await make_user("u1@x.com")
    await make_user("u2@x.com", created_by_id=admin.id)

    resp = await async_client.get("/api/v1/users", headers=auth_headers(admin))
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    emails = [u["email"] for u in body["data"]]
    assert sorted(emails) == ["u1@x.com", "u2@x.com"]

    by_email = {u["email"]: u for u in body["data"]}
    assert by_email["u2@x.com"]["createdBy"] == {"firstName": "Test", "lastName": "User"}
    assert by_email["u1@x.com"]["createdBy"] is None


@pytest.mark.asyncio
async def test_get_user(async_client: AsyncClient, make_user):
    manager = await make_user("mgr@x.com", role=Role.MANAGER)
    target = await make_user("lee@x.com", first_name="Lee")
    resp = await async_client.get(f"/api/v1/users/{target.id}", headers=auth_headers(manager))
    assert resp.status_code == 200
    assert resp.json()["data"]["firstName"] == "Lee"


@pytest.mark.asyncio
async def test_get_user_not_found(async_client: AsyncClient, make_user):
    admin = await make_user("root@x.com", role=Role.ADMIN)
    resp = await async_client.get("/api/v1/users/9999", headers=auth_headers(admin))
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "User not found"}


@pytest.mark.asyncio
async def test_update_is_partial(async_client: AsyncClient, make_user, db_session):
    admin = await make_user("root@x.com", role=Role.ADMIN)
    target = await make_user("max@x.com", first_name="Max", last_name="Power")

    resp = await async_client.put(
        f"/api/v1/users/{target.id}",
        json={"firstName": "Maxine"},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["firstName"] == "Maxine"
    assert data["lastName"] == "Power"
    assert data["role"] == "developer"
    assert data["isActive"] is True

    stored = await fetch_user(db_session, "max@x.com")
    assert stored.first_name == "Maxine"
    assert stored.last_name == "Power"


@pytest.mark.asyncio
async def test_update_role(async_client: AsyncClient, make_user):
    manager = await make_user("mgr@x.com", role=Role.MANAGER)
    target = await make_user("ned@x.com")
    resp = await async_client.put(
        f"/api/v1/users/{target.id}",
        json={"role": "project_manager"},
        headers=auth_headers(manager),
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["role"] == "project_manager"


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["isActive", "role", "firstName", "lastName"])
async def test_update_rejects_explicit_null(async_client: AsyncClient, make_user, db_session, field):
    admin = await make_user("root@x.com", role=Role.ADMIN)
    target = await make_user("nul@x.com", first_name="Nora")
    resp = await async_client.put(
        f"/api/v1/users/{target.id}", json={field: None}, headers=auth_headers(admin)
    )
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": f"{field} must not be null"}

    stored = await fetch_user(db_session, "nul@x.com")
    assert stored.is_active is True
    assert stored.first_name == "Nora"


@pytest.mark.asyncio
async def test_update_rejects_unknown_role(async_client: AsyncClient, make_user):
    admin = await make_user("root@x.com", role=Role.ADMIN)
    target = await make_user("oli@x.com")
    resp = await async_client.put(
        f"/api/v1/users/{target.id}", json={"role": "owner"}, headers=auth_headers(admin)
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_update_missing_user(async_client: AsyncClient, make_user):
    admin = await make_user("root@x.com", role=Role.ADMIN)
    resp = await async_client.put(
        "/api/v1/users/9999", json={"firstName": "X"}, headers=auth_headers(admin)
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete_self_forbidden(async_client: AsyncClient, make_user, db_session):
    admin = await make_user("root@x.com", role=Role.ADMIN)
    resp = await async_client.delete(f"/api/v1/users/{admin.id}", headers=auth_headers(admin))
    assert resp.status_code == 403
    assert resp.json()["message"] == "Cannot delete your own account"
    assert await fetch_user(db_session, "root@x.com") is not None


@pytest.mark.asyncio
async def test_delete_user_removes_otps(async_client: AsyncClient, make_user, db_session):
    admin = await make_user("root@x.com", role=Role.ADMIN)
    target = await make_user("pat@x.com", is_active=False)
    child = await make_user("kid@x.com", created_by_id=target.id)
    target_id, child_id = target.id, child.id
    await OtpTokenRepository(db_session).issue(target.id, "123456")
    await db_session.commit()

    resp = await async_client.delete(f"/api/v1/users/{target.id}", headers=auth_headers(admin))
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "User deleted successfully"}

    assert await fetch_user(db_session, "pat@x.com") is None
    remaining = await db_session.execute(select(OtpToken).where(OtpToken.user_id == target_id))
    assert remaining.scalars().all() == []

    # users it created survive, detached from the deleted creator
    survivor = await fetch_user(db_session, "kid@x.com")
    assert survivor.id == child_id
    assert survivor.created_by_id is None


@pytest.mark.asyncio
async def test_delete_missing_user(async_client: AsyncClient, make_user):
    admin = await make_user("root@x.com", role=Role.ADMIN)
    resp = await async_client.delete("/api/v1/users/9999", headers=auth_headers(admin))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_unknown_route_uses_envelope(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/nope")
    assert resp.status_code == 404
    assert resp.json()["success"] is False
