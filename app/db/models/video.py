# app/db/models/video.py
from __future__ import annotations

"""
🎬 FlixCatalog — Video
=====================

Catalog entry pointing at two objects in the media bucket.

• `video_key` / `thumbnail_key` hold canonical object keys. Legacy rows may
  hold full bucket URLs; readers always pass them through `normalize_key`.
• `duration` is in seconds; `year` is bounded to 1900–2030.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    false,
    func,
)

from app.db.base_class import Base, BigIntPK


class Video(Base):
    """A single catalog video with its stored media references."""

    __tablename__ = "videos"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)

    title = Column(String(255), nullable=False)
    genre = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    duration = Column(Integer, nullable=False, default=0, doc="Seconds")
    year = Column(Integer, nullable=False)
    is_featured = Column(Boolean, nullable=False, default=False, server_default=false())

    video_key = Column(String(1024), nullable=True)
    thumbnail_key = Column(String(1024), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        CheckConstraint("duration >= 0", name="duration_non_negative"),
        CheckConstraint("year BETWEEN 1900 AND 2030", name="year_range"),
        Index("ix_videos_featured_created", "is_featured", "created_at"),
        Index("ix_videos_created_at", "created_at"),
    )
