"""In-memory accumulator of fetched images, shared by all fetch workers."""

from __future__ import annotations

import threading
from pathlib import Path

from .storage import save_artifact


class ImageStore:
    """URL → bytes map guarded by a single lock.

    Only map reads and writes happen under the lock; callers do their
    network I/O before calling ``insert``.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._images: dict[str, bytes] = {}

    def insert(self, url: str, payload: bytes) -> None:
        """Insert or overwrite the entry for ``url`` (last write wins)."""
        data = bytes(payload)
        with self._lock:
            self._images[url] = data

    def get(self, url: str) -> bytes | None:
        with self._lock:
            return self._images.get(url)

    def snapshot(self) -> dict[str, bytes]:
        """Return a consistent copy of the current mapping."""
        with self._lock:
            return dict(self._images)

    def export(self, path: Path) -> int:
        """Serialize the whole store to ``path``; returns bytes written."""
        return save_artifact(self.snapshot(), path)

    def __len__(self) -> int:
        with self._lock:
            return len(self._images)

    def __contains__(self, url: object) -> bool:
        with self._lock:
            return url in self._images
