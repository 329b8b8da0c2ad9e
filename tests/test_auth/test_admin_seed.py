import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.core.security import verify_password
from app.db.models.user import User
from app.schemas.enums import UserRole
from app.services.auth.admin_seed_service import admin_credentials_from_env, upsert_admins
from tests.fixtures.app import API


def test_credentials_from_env_skips_incomplete_slots():
    env = {
        "ADMIN1_USERNAME": "root",
        "ADMIN1_PASSWORD": "toor123",
        "ADMIN2_USERNAME": "half",
        "ADMIN3_PASSWORD": "orphan",
        "ADMIN5_USERNAME": " ops ",
        "ADMIN5_PASSWORD": "opspass",
        "ADMIN6_USERNAME": "ignored",
        "ADMIN6_PASSWORD": "ignored",
    }
    assert admin_credentials_from_env(env) == [("root", "toor123"), ("ops", "opspass")]


@pytest.mark.anyio
async def test_upsert_creates_and_promotes(db_session, create_test_user):
    existing = await create_test_user(username="promoted", password="oldpass1")

    created, updated = await upsert_admins(db_session, [("fresh", "newpass1"), ("promoted", "newpass2")])
    assert (created, updated) == (1, 1)

    rows = {u.username: u for u in (await db_session.execute(select(User))).scalars().all()}
    assert rows["fresh"].role == UserRole.ADMIN
    assert rows["promoted"].id == existing.id
    assert rows["promoted"].role == UserRole.ADMIN
    assert verify_password("newpass2", rows["promoted"].password_hash)


@pytest.mark.anyio
async def test_seeded_admin_can_log_in(async_client: AsyncClient, db_session):
    await upsert_admins(db_session, [("chief", "chiefpass")])

    resp = await async_client.post(f"{API}/login", json={"username": "chief", "password": "chiefpass"})
    assert resp.status_code == 200
    assert resp.json()["user"]["role"] == "admin"
