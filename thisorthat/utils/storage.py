from __future__ import annotations

import logging
import posixpath
from typing import Dict, Iterable, List, Optional
from urllib.parse import urlparse

from thisorthat.errors import BlobStoreError

logger = logging.getLogger(__name__)


class BlobStore:
    """Minimal object store: write bytes under a name, get a public URL back."""

    def put(self, name: str, data: bytes, content_type: str) -> str:
        raise NotImplementedError

    def delete(self, names: Iterable[str]) -> None:
        raise NotImplementedError


class SupabaseBlobStore(BlobStore):
    def __init__(self, client, bucket: str = "images"):
        self.client = client
        self.bucket = bucket

    @classmethod
    def from_config(cls, config) -> Optional["SupabaseBlobStore"]:
        url = config.get("SUPABASE_PROJECT_URL")
        key = config.get("SUPABASE_SERVICE_ROLE_KEY")
        if not url or not key:
            logger.warning("[storage] Supabase credentials missing; image uploads disabled")
            return None
        from supabase import create_client

        return cls(create_client(url, key), config.get("SUPABASE_BUCKET") or "images")

    def _bucket(self):
        return self.client.storage.from_(self.bucket)

    def put(self, name: str, data: bytes, content_type: str) -> str:
        try:
            self._bucket().upload(
                name,
                data,
                file_options={"content-type": content_type, "upsert": "true"},
            )
            return self._bucket().get_public_url(name)
        except Exception as exc:  # supabase raises StorageException, httpx errors, ...
            raise BlobStoreError(f"upload of {name} failed: {exc}") from exc

    def delete(self, names: Iterable[str]) -> None:
        names = [n for n in names if n]
        if not names:
            return
        try:
            self._bucket().remove(names)
        except Exception as exc:
            raise BlobStoreError(f"removal of {len(names)} blob(s) failed: {exc}") from exc


class MemoryBlobStore(BlobStore):
    """Dict-backed store used when running locally without Supabase, and in tests."""

    def __init__(self, base_url: str = "memory://images"):
        self.base_url = base_url.rstrip("/")
        self.objects: Dict[str, bytes] = {}
        self.content_types: Dict[str, str] = {}

    def put(self, name: str, data: bytes, content_type: str) -> str:
        self.objects[name] = data
        self.content_types[name] = content_type
        return f"{self.base_url}/{name}"

    def delete(self, names: Iterable[str]) -> None:
        for name in names:
            self.objects.pop(name, None)
            self.content_types.pop(name, None)


def filename_from_url(url: Optional[str]) -> Optional[str]:
    """Blob name for a public URL we issued: the last path segment."""
    if not url or url.startswith("data:"):
        return None
    name = posixpath.basename(urlparse(url).path)
    return name or None


def remove_blobs(store: Optional[BlobStore], names: List[str]) -> bool:
    """Best-effort removal. Failures are logged and reported, never raised."""
    if store is None or not names:
        return True
    try:
        store.delete(names)
        return True
    except BlobStoreError as exc:
        logger.warning("[storage] %s", exc)
        return False
