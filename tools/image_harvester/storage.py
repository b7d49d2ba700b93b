"""Artifact storage layer – encode, atomically write, load and inspect.

Artifact layout (all integers little-endian)::

    u64 entry_count
    repeated entry_count times:
        u64 url_len, url bytes (UTF-8)
        u64 payload_len, payload bytes
"""

from __future__ import annotations

import logging
import os
import struct
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .errors import ArtifactError

logger = logging.getLogger("harvester.storage")

SAMPLE_BYTES = 10

_U64 = struct.Struct("<Q")


def _file_mode() -> int:
    # mkstemp creates 0600; artifacts get the usual umask-derived mode instead.
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


# ── codec ────────────────────────────────────────────────────────

def encode_images(images: Mapping[str, bytes]) -> bytes:
    """Encode a URL → bytes mapping into the artifact format."""
    parts = [_U64.pack(len(images))]
    for url, payload in images.items():
        try:
            key = url.encode("utf-8")
        except (AttributeError, UnicodeEncodeError) as exc:
            raise ArtifactError(f"cannot encode key {url!r}: {exc}") from exc
        if not isinstance(payload, (bytes, bytearray, memoryview)):
            raise ArtifactError(f"payload for {url} is {type(payload).__name__}, not bytes")
        parts.append(_U64.pack(len(key)))
        parts.append(key)
        parts.append(_U64.pack(len(payload)))
        parts.append(bytes(payload))
    return b"".join(parts)


def decode_images(data: bytes) -> dict[str, bytes]:
    """Decode artifact bytes back into a mapping.  Exact inverse of encode_images."""
    view = memoryview(data)
    offset = 0

    def take(n: int) -> memoryview:
        nonlocal offset
        if n > len(view) - offset:
            raise ArtifactError(
                f"artifact truncated: need {n} bytes at offset {offset}, "
                f"{len(view) - offset} left"
            )
        chunk = view[offset:offset + n]
        offset += n
        return chunk

    def take_u64() -> int:
        return _U64.unpack(take(_U64.size))[0]

    count = take_u64()
    images: dict[str, bytes] = {}
    for _ in range(count):
        raw_key = take(take_u64())
        try:
            url = bytes(raw_key).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ArtifactError(f"invalid UTF-8 key at offset {offset}: {exc}") from exc
        images[url] = bytes(take(take_u64()))

    if offset != len(view):
        raise ArtifactError(f"{len(view) - offset} trailing bytes after {count} entries")
    return images


# ── persistence ──────────────────────────────────────────────────

def save_artifact(images: Mapping[str, bytes], path: Path) -> int:
    """Write ``images`` to ``path`` via a temp file + atomic rename.

    Returns the number of bytes written.  On failure the temp file is
    removed and nothing is left at ``path``.
    """
    path = Path(path)
    encoded = encode_images(images)
    tmp_name: str | None = None
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        with os.fdopen(fd, "wb") as fh:
            os.chmod(tmp_name, _file_mode())
            fh.write(encoded)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except OSError as exc:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise ArtifactError(f"failed to write artifact {path}: {exc}") from exc

    logger.info("Saved %d images (%d bytes) to %s", len(images), len(encoded), path)
    return len(encoded)


def load_artifact(path: Path) -> dict[str, bytes]:
    """Read and decode the artifact at ``path``."""
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise ArtifactError(f"cannot read artifact {path}: {exc}") from exc
    images = decode_images(data)
    logger.debug("Loaded %d images from %s", len(images), path)
    return images


# ── inspection ───────────────────────────────────────────────────

@dataclass(frozen=True)
class ArtifactSummary:
    """One-entry description of an artifact, for the inspect path."""

    path: Path
    count: int
    url: str | None = None
    size: int = 0
    sample: bytes = b""

    @property
    def empty(self) -> bool:
        return self.count == 0


def inspect_artifact(path: Path) -> ArtifactSummary:
    """Load the artifact and describe its first entry."""
    images = load_artifact(path)
    if not images:
        return ArtifactSummary(path=Path(path), count=0)
    url, data = next(iter(images.items()))
    return ArtifactSummary(
        path=Path(path),
        count=len(images),
        url=url,
        size=len(data),
        sample=data[:SAMPLE_BYTES],
    )
