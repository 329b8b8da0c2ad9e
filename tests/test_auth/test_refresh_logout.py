from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import select, update

from app.db.models.token import RefreshToken
from tests.fixtures.app import API
from tests.fixtures.users import bearer


async def _session(client: AsyncClient, create_test_user, username: str = "gina") -> dict:
    await create_test_user(username=username, password="secret123")
    resp = await client.post(f"{API}/login", json={"username": username, "password": "secret123"})
    assert resp.status_code == 200, resp.text
    return resp.json()


# ─────────────────────────────────────────────────────────────
# /refresh
# ─────────────────────────────────────────────────────────────
@pytest.mark.anyio
async def test_refresh_rotates_access_token(async_client: AsyncClient, create_test_user, db_session):
    tokens = await _session(async_client, create_test_user)

    resp = await async_client.post(f"{API}/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["message"] == "Token refreshed successfully"
    assert body["token_type"] == "Bearer"
    assert body["expires_in"] == 900
    assert "refresh_token" not in body
    assert body["access_token"] != tokens["access_token"]

    # previous access token revoked, new one live
    assert (await async_client.get(f"{API}/user", headers=bearer(tokens["access_token"]))).status_code == 401
    assert (await async_client.get(f"{API}/user", headers=bearer(body["access_token"]))).status_code == 200

    # refresh token preserved and touched
    again = await async_client.post(f"{API}/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert again.status_code == 200
    row = (await db_session.execute(select(RefreshToken))).scalars().one()
    assert row.last_used_at is not None


@pytest.mark.anyio
async def test_refresh_unknown_token(async_client: AsyncClient):
    resp = await async_client.post(f"{API}/refresh", json={"refresh_token": "definitely-not-issued"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid or expired refresh token"


@pytest.mark.anyio
async def test_refresh_expired_token(async_client: AsyncClient, create_test_user, db_session):
    tokens = await _session(async_client, create_test_user)
    await db_session.execute(
        update(RefreshToken).values(expires_at=datetime.now(timezone.utc) - timedelta(minutes=1))
    )
    await db_session.commit()

    resp = await async_client.post(f"{API}/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid or expired refresh token"


# ─────────────────────────────────────────────────────────────
# /logout, /logout-all
# ─────────────────────────────────────────────────────────────
@pytest.mark.anyio
async def test_logout_revokes_token_and_refresh(async_client: AsyncClient, create_test_user):
    tokens = await _session(async_client, create_test_user)
    headers = bearer(tokens["access_token"])

    resp = await async_client.post(f"{API}/logout", json={"refresh_token": tokens["refresh_token"]}, headers=headers)
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "Logged out successfully"}

    assert (await async_client.get(f"{API}/user", headers=headers)).status_code == 401
    r = await async_client.post(f"{API}/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert r.status_code == 401


@pytest.mark.anyio
async def test_logout_without_body_keeps_refresh_token(async_client: AsyncClient, create_test_user):
    tokens = await _session(async_client, create_test_user)

    resp = await async_client.post(f"{API}/logout", headers=bearer(tokens["access_token"]))
    assert resp.status_code == 200

    r = await async_client.post(f"{API}/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert r.status_code == 200


@pytest.mark.anyio
async def test_logout_cannot_delete_someone_elses_refresh_token(async_client: AsyncClient, create_test_user):
    victim = await _session(async_client, create_test_user, "victim")
    attacker = await _session(async_client, create_test_user, "attacker")

    resp = await async_client.post(
        f"{API}/logout",
        json={"refresh_token": victim["refresh_token"]},
        headers=bearer(attacker["access_token"]),
    )
    assert resp.status_code == 200

    r = await async_client.post(f"{API}/refresh", json={"refresh_token": victim["refresh_token"]})
    assert r.status_code == 200


@pytest.mark.anyio
async def test_logout_all(async_client: AsyncClient, create_test_user, db_session):
    tokens = await _session(async_client, create_test_user)

    resp = await async_client.post(f"{API}/logout-all", headers=bearer(tokens["access_token"]))
    assert resp.status_code == 200
    assert resp.json()["message"] == "Logged out from all devices"

    assert (await async_client.get(f"{API}/user", headers=bearer(tokens["access_token"]))).status_code == 401
    assert (await db_session.execute(select(RefreshToken))).scalars().all() == []


@pytest.mark.anyio
async def test_logout_requires_token(async_client: AsyncClient):
    assert (await async_client.post(f"{API}/logout")).status_code == 401
    assert (await async_client.post(f"{API}/logout-all")).status_code == 401
