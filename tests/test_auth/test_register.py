import pytest
from httpx import AsyncClient

from tests.fixtures.app import API
from tests.fixtures.users import bearer


@pytest.mark.anyio
async def test_register_then_fetch_profile(async_client: AsyncClient):
    resp = await async_client.post(f"{API}/register", json={"username": "alice", "password": "secret123"})
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["message"] == "User registered successfully"
    assert body["user"]["username"] == "alice"
    assert body["user"]["role"] == "user"
    assert body["token_type"] == "Bearer"
    assert body["expires_in"] == 900

    me = await async_client.get(f"{API}/user", headers=bearer(body["access_token"]))
    assert me.status_code == 200
    assert me.json()["data"] == {"id": body["user"]["id"], "username": "alice", "role": "user"}
    assert me.headers["cache-control"] == "no-store"


@pytest.mark.anyio
async def test_register_duplicate_username(async_client: AsyncClient, create_test_user):
    await create_test_user(username="bob")

    resp = await async_client.post(f"{API}/register", json={"username": "bob", "password": "secret123"})
    assert resp.status_code == 422
    body = resp.json()
    assert body["success"] is False
    assert body["errors"] == {"username": ["The username has already been taken."]}


@pytest.mark.anyio
async def test_register_username_is_trimmed(async_client: AsyncClient, create_test_user):
    await create_test_user(username="bob")

    resp = await async_client.post(f"{API}/register", json={"username": "  bob ", "password": "secret123"})
    assert resp.status_code == 422
    assert "username" in resp.json()["errors"]


@pytest.mark.anyio
@pytest.mark.parametrize(
    "payload, field",
    [
        ({"username": "", "password": "secret123"}, "username"),
        ({"username": "x" * 51, "password": "secret123"}, "username"),
        ({"username": "shorty", "password": "12345"}, "password"),
    ],
)
async def test_register_validation(async_client: AsyncClient, payload, field):
    resp = await async_client.post(f"{API}/register", json=payload)
    assert resp.status_code == 422
    assert field in resp.json()["errors"]


@pytest.mark.anyio
async def test_register_cannot_choose_role(async_client: AsyncClient):
    resp = await async_client.post(
        f"{API}/register",
        json={"username": "mallory", "password": "secret123", "role": "admin"},
    )
    assert resp.status_code == 201
    assert resp.json()["user"]["role"] == "user"


@pytest.mark.anyio
async def test_profile_requires_token(async_client: AsyncClient):
    resp = await async_client.get(f"{API}/user")
    assert resp.status_code == 401
    assert resp.json()["success"] is False

    resp = await async_client.get(f"{API}/user", headers=bearer("not-a-jwt"))
    assert resp.status_code == 401
