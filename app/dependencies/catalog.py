from __future__ import annotations

"""
Catalog dependencies
--------------------
Resolve the process-wide collaborators built in the app lifespan
(`app.state.storage`, `app.state.metadata_cache`) and assemble a
request-scoped `CatalogService` around the request's DB session.
"""

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.cache.metadata_cache import MetadataCache
from app.core.config import settings
from app.db.session import get_async_db
from app.services.catalog_service import CatalogService
from app.utils.aws import S3Client


def get_storage(request: Request) -> S3Client:
    """Shared object-store client; 503 when storage is not configured."""
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Storage not configured")
    return storage


def get_metadata_cache(request: Request) -> MetadataCache:
    cache = getattr(request.app.state, "metadata_cache", None)
    if cache is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Cache not initialized")
    return cache


def get_catalog_service(
    request: Request,
    db: AsyncSession = Depends(get_async_db),
    storage: S3Client = Depends(get_storage),
    cache: MetadataCache = Depends(get_metadata_cache),
) -> CatalogService:
    base = f"{str(request.base_url).rstrip('/')}{settings.API_PREFIX}"
    return CatalogService(
        db,
        storage,
        cache,
        bucket=getattr(storage, "bucket", None) or settings.AWS_BUCKET_NAME,
        endpoint_base=base,
    )


__all__ = ["get_storage", "get_metadata_cache", "get_catalog_service"]
