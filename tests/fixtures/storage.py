# tests/fixtures/storage.py
"""
🪣 In-memory object store standing in for `S3Client` in HTTP tests.

Same method surface as `app.utils.aws.S3Client` (presigned_get/put,
put_fileobj, head/exists/size, delete). Presigned URLs are deterministic
fake URLs that expose the key, TTL and overrides as query parameters so
tests can assert on them.
"""

from typing import Any, BinaryIO, Dict, List, Optional, Set
from urllib.parse import parse_qs, quote, urlencode, urlsplit

import pytest

from app.core.storage import clamp_read_ttl, clamp_upload_ttl
from app.utils.aws import S3StorageError

FAKE_BUCKET = "flix-test-bucket"


class FakeObjectStore:
    def __init__(self, bucket: str = FAKE_BUCKET) -> None:
        self.bucket = bucket
        self.objects: Dict[str, bytes] = {}
        self.content_types: Dict[str, str] = {}
        self.deleted: List[str] = []
        self.fail_keys: Set[str] = set()
        self.fail_upload_prefixes: Set[str] = set()

    # ── helpers for tests ─────────────────────────────────────
    def add(self, key: str, data: bytes = b"\x00" * 16, content_type: str = "application/octet-stream") -> str:
        self.objects[key] = data
        self.content_types[key] = content_type
        return key

    @staticmethod
    def query(url: str) -> Dict[str, str]:
        return {k: v[0] for k, v in parse_qs(urlsplit(url).query).items()}

    def _check(self, key: str) -> None:
        if key in self.fail_keys:
            raise S3StorageError(f"simulated failure for {key}")

    # ── S3Client surface ──────────────────────────────────────
    def presigned_get(
        self,
        key: str,
        *,
        expires_in: int = 600,
        response_content_type: Optional[str] = None,
        response_content_disposition: Optional[str] = None,
    ) -> str:
        params: Dict[str, Any] = {"X-Amz-Expires": clamp_read_ttl(expires_in)}
        if response_content_type:
            params["response-content-type"] = response_content_type
        if response_content_disposition:
            params["response-content-disposition"] = response_content_disposition
        return f"https://{self.bucket}.s3.test/{quote(key)}?{urlencode(params)}"

    def presigned_put(self, key: str, *, content_type: str, expires_in: int = 1800) -> str:
        params = {"X-Amz-Expires": clamp_upload_ttl(expires_in), "content-type": content_type}
        return f"https://{self.bucket}.s3.test/{quote(key)}?{urlencode(params)}"

    def put_fileobj(self, key: str, fileobj: BinaryIO, *, content_type: str) -> str:
        if any(key.startswith(p) for p in self.fail_upload_prefixes):
            raise S3StorageError(f"simulated upload failure for {key}")
        self.objects[key] = fileobj.read()
        self.content_types[key] = content_type
        return key

    def head(self, key: str) -> Optional[Dict[str, Any]]:
        self._check(key)
        if key not in self.objects:
            return None
        return {"ContentLength": len(self.objects[key]), "ContentType": self.content_types.get(key)}

    def exists(self, key: str) -> bool:
        return self.head(key) is not None

    def size(self, key: str) -> Optional[int]:
        meta = self.head(key)
        return meta["ContentLength"] if meta else None

    def delete(self, key: Optional[str]) -> bool:
        if not key:
            return False
        self._check(key)
        if key not in self.objects:
            return False
        del self.objects[key]
        self.deleted.append(key)
        return True


@pytest.fixture()
def storage() -> FakeObjectStore:
    return FakeObjectStore()


__all__ = ["FakeObjectStore", "FAKE_BUCKET", "storage"]
