from datetime import datetime, timezone

import pytest
from httpx import AsyncClient

from tests.fixtures.app import API
from tests.fixtures.storage import FakeObjectStore


@pytest.mark.anyio
async def test_download_requires_auth(async_client: AsyncClient, create_video):
    v = await create_video()
    assert (await async_client.get(f"{API}/videos/{v.id}/download")).status_code == 401


@pytest.mark.anyio
async def test_download_payload(async_client: AsyncClient, create_video, user_headers):
    v = await create_video()

    resp = await async_client.get(f"{API}/videos/{v.id}/download", headers=user_headers)
    assert resp.status_code == 200, resp.text
    assert resp.headers["cache-control"] == "no-store"
    data = resp.json()["data"]

    assert data["video_id"] == v.id
    assert data["expires_in"] == 1800
    assert data["expires_at"].endswith("Z")
    expires_at = datetime.fromisoformat(data["expires_at"].replace("Z", "+00:00"))
    assert expires_at > datetime.now(timezone.utc)

    video = data["video"]
    assert video["filename"] == "big-buck-bunny.mp4"
    assert video["size"] == 2048
    assert video["mime_type"] == "video/mp4"
    assert video["key"] == "videos/bbb.mp4"
    q = FakeObjectStore.query(video["download_url"])
    assert q["response-content-disposition"] == 'attachment; filename="big-buck-bunny.mp4"'
    assert q["X-Amz-Expires"] == "1800"

    thumb = data["thumbnail"]
    assert thumb["filename"] == "big-buck-bunny_thumb.jpg"
    assert thumb["mime_type"] == "image/jpeg"
    assert thumb["key"] == "thumbnails/bbb.jpg"


@pytest.mark.anyio
async def test_download_ttl_and_thumbnail_toggle(async_client: AsyncClient, create_video, user_headers):
    v = await create_video()

    resp = await async_client.get(
        f"{API}/videos/{v.id}/download",
        params={"ttl": 10, "include_thumbnail": "false"},
        headers=user_headers,
    )
    data = resp.json()["data"]
    assert data["expires_in"] == 60
    assert data["thumbnail"] is None


@pytest.mark.anyio
async def test_download_thumbnail_is_best_effort(async_client: AsyncClient, create_video, storage, user_headers):
    v = await create_video()
    storage.fail_keys.add("thumbnails/bbb.jpg")

    resp = await async_client.get(f"{API}/videos/{v.id}/download", headers=user_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["thumbnail"] is None


@pytest.mark.anyio
async def test_download_without_key_is_400(async_client: AsyncClient, create_video, user_headers):
    v = await create_video(video_key=None)

    resp = await async_client.get(f"{API}/videos/{v.id}/download", headers=user_headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid video key"


@pytest.mark.anyio
async def test_download_object_missing_is_404(async_client: AsyncClient, create_video, user_headers):
    v = await create_video(upload=False)

    resp = await async_client.get(f"{API}/videos/{v.id}/download", headers=user_headers)
    assert resp.status_code == 404
    assert resp.json()["message"] == "Video file not found in storage"
