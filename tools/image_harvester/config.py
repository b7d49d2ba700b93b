"""Configuration and environment settings for the harvester."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def _default_workers() -> int:
    # Same sizing as ThreadPoolExecutor's own default.
    return min(32, (os.cpu_count() or 1) + 4)


@dataclass(frozen=True)
class FetchConfig:
    """HTTP fetch settings.  No retries: a failed image is simply skipped."""
    timeout: float = 30.0  # seconds per request
    max_workers: int = field(default_factory=_default_workers)
    user_agent: str = "image-harvester/1.0"
    follow_redirects: bool = True

    @classmethod
    def from_env(cls) -> FetchConfig:
        return cls(
            timeout=float(os.getenv("HARVESTER_TIMEOUT", "30")),
            max_workers=int(os.getenv("HARVESTER_WORKERS", str(_default_workers()))),
            user_agent=os.getenv("HARVESTER_USER_AGENT", "image-harvester/1.0"),
        )


@dataclass
class HarvesterConfig:
    input_path: Path = Path("backup.json")
    artifact_path: Path = Path("images.bin")
    fetch: FetchConfig = field(default_factory=FetchConfig.from_env)
    show_progress: bool = True

    def __post_init__(self) -> None:
        if self.fetch.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.fetch.max_workers}")
        if self.fetch.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.fetch.timeout}")
