from __future__ import annotations

import threading
from collections import deque
from typing import Any, Mapping, Optional

from thisorthat.utils.broadcast import Broadcaster
from thisorthat.utils.storage import BlobStore, MemoryBlobStore, SupabaseBlobStore


class RecentPairWindow:
    """Bounded history of pair ids recently served by random selection."""

    def __init__(self, size: int = 10):
        self._ids: deque = deque(maxlen=max(int(size), 1))
        self._lock = threading.Lock()

    def __contains__(self, pair_id: int) -> bool:
        with self._lock:
            return pair_id in self._ids

    def __len__(self) -> int:
        with self._lock:
            return len(self._ids)

    def push(self, pair_id: int) -> None:
        with self._lock:
            self._ids.append(pair_id)

    def snapshot(self) -> list:
        with self._lock:
            return list(self._ids)


class ServiceContext:
    """
    Everything the pipeline needs that is not a request argument: config,
    collaborators and the little process-wide state the service keeps.
    """

    def __init__(
        self,
        config: Mapping[str, Any],
        blob_store: Optional[BlobStore] = None,
        broadcaster: Optional[Broadcaster] = None,
        generator: Any = None,
        recent_pairs: Optional[RecentPairWindow] = None,
        spotify_token: Optional[str] = None,
    ):
        self.config = config
        self.blob_store = blob_store
        self.broadcaster = broadcaster or Broadcaster()
        self.generator = generator
        self.recent_pairs = recent_pairs or RecentPairWindow(config.get("RECENT_PAIRS_SIZE", 10))
        self._spotify_token = spotify_token
        self._token_lock = threading.Lock()

    @property
    def spotify_token(self) -> Optional[str]:
        with self._token_lock:
            return self._spotify_token

    @spotify_token.setter
    def spotify_token(self, value: Optional[str]) -> None:
        with self._token_lock:
            self._spotify_token = value

    @property
    def image_size(self) -> int:
        return int(self.config.get("IMAGE_SIZE", 768))

    @property
    def fetch_timeout(self) -> float:
        return float(self.config.get("IMAGE_FETCH_TIMEOUT", 10))


def build_services(config: Mapping[str, Any]) -> ServiceContext:
    from thisorthat.pairs.generator import OpenAIPairClient

    blob_store = SupabaseBlobStore.from_config(config)
    if blob_store is None and config.get("DEBUG"):
        blob_store = MemoryBlobStore()

    generator = None
    if config.get("OPENAI_API_KEY"):
        generator = OpenAIPairClient(config["OPENAI_API_KEY"], config.get("OPENAI_MODEL"))

    return ServiceContext(config, blob_store=blob_store, generator=generator)
