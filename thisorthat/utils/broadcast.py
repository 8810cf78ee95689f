"""
In-process vote fan-out over Server-Sent Events.

Every subscriber owns a bounded queue. Publishing never blocks: a slow
client whose queue is full simply misses events.
"""

from __future__ import annotations

import json
import logging
import queue
import threading
from typing import Any, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 100
HEARTBEAT_SECONDS = 15.0


def _sse(event: str, data: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


class Broadcaster:
    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE):
        self.queue_size = queue_size
        self._lock = threading.Lock()
        self._subscribers: List[queue.Queue] = []

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self) -> queue.Queue:
        q: queue.Queue = queue.Queue(maxsize=self.queue_size)
        with self._lock:
            self._subscribers.append(q)
        return q

    def unsubscribe(self, q: queue.Queue) -> None:
        with self._lock:
            if q in self._subscribers:
                self._subscribers.remove(q)

    def publish(self, event: Dict[str, Any]) -> int:
        """Queue `event` for every subscriber; returns how many received it."""
        with self._lock:
            targets = list(self._subscribers)
        delivered = 0
        for q in targets:
            try:
                q.put_nowait(event)
                delivered += 1
            except queue.Full:
                logger.warning("[stream] subscriber queue full, dropping %s event", event.get("type"))
        return delivered

    def stream(self, heartbeat: float = HEARTBEAT_SECONDS, q: Optional[queue.Queue] = None) -> Iterator[str]:
        """
        Generator of SSE frames for one client. Yields a `connection` event
        first, then every published event, with a comment line as heartbeat
        when nothing happened for `heartbeat` seconds.
        """
        q = q or self.subscribe()
        try:
            yield _sse("connection", {"type": "connection", "message": "Connected to vote stream"})
            while True:
                try:
                    event = q.get(timeout=heartbeat)
                except queue.Empty:
                    yield ": heartbeat\n\n"
                    continue
                yield _sse(event.get("type", "message"), event)
        finally:
            self.unsubscribe(q)
