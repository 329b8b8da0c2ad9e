from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.video import Video


# ──────────────────────────────────────────────────────────────
# 🎬 Factory: Create Video row (and optionally its objects)
# ──────────────────────────────────────────────────────────────
@pytest.fixture
def create_video(db_session: AsyncSession, storage) -> Callable[..., Awaitable[Video]]:
    """
    Insert a video row. With `upload=True` the referenced keys are also put
    into the fake object store so HEAD checks succeed.
    """
    async def _create(
        title: str = "Big Buck Bunny",
        genre: str = "Animation",
        duration: int = 596,
        year: int = 2008,
        is_featured: bool = False,
        description: Optional[str] = "A giant rabbit takes revenge.",
        video_key: Optional[str] = "videos/bbb.mp4",
        thumbnail_key: Optional[str] = "thumbnails/bbb.jpg",
        upload: bool = True,
        **extra: Any,
    ) -> Video:
        video = Video(
            title=title,
            genre=genre,
            duration=duration,
            year=year,
            is_featured=is_featured,
            description=description,
            video_key=video_key,
            thumbnail_key=thumbnail_key,
            **extra,
        )
        db_session.add(video)
        await db_session.commit()
        await db_session.refresh(video)
        if upload:
            for key in (video_key, thumbnail_key):
                if key and not key.startswith("http"):
                    storage.add(key, b"x" * 2048)
        return video

    return _create


__all__ = ["create_video"]
