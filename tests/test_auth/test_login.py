import pytest
from httpx import AsyncClient

from tests.fixtures.app import API
from tests.fixtures.users import bearer


def ip_header(octet: int) -> dict:
    # each test uses its own synthetic client IP
    return {"X-Forwarded-For": f"10.0.0.{octet}"}


async def _login(client: AsyncClient, username: str, password: str, **kw):
    return await client.post(f"{API}/login", json={"username": username, "password": password}, **kw)


# ─────────────────────────────────────────────────────────────
# /login
# ─────────────────────────────────────────────────────────────
@pytest.mark.anyio
async def test_login_success(async_client: AsyncClient, create_test_user):
    user = await create_test_user(username="carol", password="hunter22")

    resp = await _login(async_client, "carol", "hunter22", headers=ip_header(10))
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["success"] is True
    assert data["message"] == "Login successful"
    assert data["user"] == {"id": user.id, "username": "carol", "role": "user"}
    assert data["token_type"] == "Bearer"
    assert data["expires_in"] == 900
    assert data["access_token"] and data["refresh_token"]
    assert resp.headers["cache-control"] == "no-store"


@pytest.mark.anyio
async def test_login_wrong_password(async_client: AsyncClient, create_test_user):
    await create_test_user(username="dave", password="Correct1!")

    resp = await _login(async_client, "dave", "nope", headers=ip_header(11))
    assert resp.status_code == 401
    assert resp.json() == {"success": False, "message": "Invalid credentials"}


@pytest.mark.anyio
async def test_login_unknown_user_looks_like_wrong_password(async_client: AsyncClient):
    resp = await _login(async_client, "ghost", "whatever", headers=ip_header(12))
    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid credentials"


@pytest.mark.anyio
async def test_login_missing_fields_is_422(async_client: AsyncClient):
    resp = await async_client.post(f"{API}/login", json={"username": "x"})
    assert resp.status_code == 422
    assert resp.json()["success"] is False


@pytest.mark.anyio
async def test_second_login_revokes_first_session(async_client: AsyncClient, create_test_user):
    await create_test_user(username="erin", password="secret123")

    first = (await _login(async_client, "erin", "secret123")).json()
    second = (await _login(async_client, "erin", "secret123")).json()

    # old access token is no longer on the allow-list
    r = await async_client.get(f"{API}/user", headers=bearer(first["access_token"]))
    assert r.status_code == 401

    # old refresh token row was deleted
    r = await async_client.post(f"{API}/refresh", json={"refresh_token": first["refresh_token"]})
    assert r.status_code == 401

    r = await async_client.get(f"{API}/user", headers=bearer(second["access_token"]))
    assert r.status_code == 200
    assert r.json()["data"]["username"] == "erin"


@pytest.mark.anyio
async def test_login_records_device_and_ip(async_client: AsyncClient, create_test_user, db_session):
    from sqlalchemy import select

    from app.db.models.token import RefreshToken

    user = await create_test_user(username="frank", password="secret123")
    resp = await _login(
        async_client,
        "frank",
        "secret123",
        headers={"User-Agent": "FlixTV/2.1", **ip_header(33)},
    )
    assert resp.status_code == 200

    rows = (await db_session.execute(select(RefreshToken).where(RefreshToken.user_id == user.id))).scalars().all()
    assert len(rows) == 1
    assert rows[0].device_name == "FlixTV/2.1"
    assert rows[0].token_hash != resp.json()["refresh_token"]
    assert len(rows[0].token_hash) == 64


@pytest.mark.anyio
async def test_login_trims_username_like_register(async_client: AsyncClient):
    resp = await async_client.post(f"{API}/register", json={"username": "alice ", "password": "secret123"})
    assert resp.status_code == 201, resp.text

    resp = await _login(async_client, "  alice ", "secret123")
    assert resp.status_code == 200, resp.text
    assert resp.json()["user"]["username"] == "alice"
