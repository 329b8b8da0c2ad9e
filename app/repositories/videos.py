from __future__ import annotations

"""Video persistence.

Thin async data access around the `videos` table. Rows leave this module as
plain dicts (`to_dict`) so they can be cached and serialized as-is; ORM
instances are only handed out to the write paths that mutate them.
"""

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.video import Video


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def to_dict(video: Video) -> Dict[str, Any]:
    return {
        "id": video.id,
        "title": video.title,
        "genre": video.genre,
        "description": video.description,
        "duration": int(video.duration or 0),
        "year": video.year,
        "is_featured": bool(video.is_featured),
        "video_key": video.video_key,
        "thumbnail_key": video.thumbnail_key,
        "created_at": _iso(video.created_at),
        "updated_at": _iso(video.updated_at),
    }


class VideoRepository:
    """Queries are ordered newest first, ties broken by id (also descending)."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # Reads
    async def list_all(self) -> List[Dict[str, Any]]:
        stmt = select(Video).order_by(Video.created_at.desc(), Video.id.desc())
        rows = (await self.db.execute(stmt)).scalars().all()
        return [to_dict(v) for v in rows]

    async def list_featured(self) -> List[Dict[str, Any]]:
        stmt = (
            select(Video)
            .where(Video.is_featured.is_(True))
            .order_by(Video.created_at.desc(), Video.id.desc())
        )
        rows = (await self.db.execute(stmt)).scalars().all()
        return [to_dict(v) for v in rows]

    async def get(self, video_id: int) -> Optional[Video]:
        return await self.db.get(Video, video_id)

    async def get_dict(self, video_id: int) -> Optional[Dict[str, Any]]:
        video = await self.get(video_id)
        return to_dict(video) if video is not None else None

    # Writes
    async def create(self, values: Mapping[str, Any]) -> Video:
        video = Video(**dict(values))
        self.db.add(video)
        await self.db.commit()
        await self.db.refresh(video)
        return video

    async def apply(self, video: Video, changes: Mapping[str, Any]) -> Video:
        """Apply every change and commit once."""
        for name, value in changes.items():
            setattr(video, name, value)
        await self.db.commit()
        await self.db.refresh(video)
        return video

    async def delete(self, video_id: int) -> bool:
        result = await self.db.execute(delete(Video).where(Video.id == video_id))
        await self.db.commit()
        return bool(result.rowcount)


__all__ = ["VideoRepository", "to_dict"]
