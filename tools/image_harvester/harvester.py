"""Core harvesting logic – fans image downloads out over a worker pool."""

from __future__ import annotations

import enum
import logging
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Sequence

import httpx
from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from .client import ImageClient
from .config import HarvesterConfig
from .posts import Post, load_posts
from .store import ImageStore

logger = logging.getLogger("harvester.core")


class RunMode(enum.Enum):
    FETCH = "fetch"
    INSPECT = "inspect"


def select_mode(artifact_path: Path) -> RunMode:
    """Pre-flight check: an existing artifact means inspect, never re-fetch."""
    return RunMode.INSPECT if Path(artifact_path).exists() else RunMode.FETCH


@dataclass
class FetchReport:
    posts: int = 0
    images: int = 0
    failures: list[tuple[str, str]] = field(default_factory=list)

    @property
    def stats(self) -> dict[str, int]:
        return {"posts": self.posts, "images": self.images, "errors": len(self.failures)}


class Harvester:
    """Orchestrates the posts → HTTP → store → artifact pipeline."""

    def __init__(
        self,
        cfg: HarvesterConfig | None = None,
        *,
        client: ImageClient | None = None,
        console: Console | None = None,
    ) -> None:
        self.cfg = cfg or HarvesterConfig()
        self.client = client or ImageClient(self.cfg.fetch)
        self.console = console
        self.store = ImageStore()
        self.report = FetchReport()

    # ── single image ─────────────────────────────────────────────

    def _fetch_one(self, url: str) -> str | None:
        """Download ``url`` into the store.  Returns the failure cause, or None.

        Errors never escape: a failed image is logged and left out.
        """
        try:
            data = self.client.download(url)
        except httpx.HTTPStatusError as exc:
            cause = f"HTTP {exc.response.status_code}"
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeError) as exc:
            cause = f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__
        else:
            self.store.insert(url, data)
            return None
        logger.error("Failed to download %s: %s", url, cause)
        return cause

    # ── fan-out ──────────────────────────────────────────────────

    def fetch_all(
        self,
        posts: Sequence[Post],
        on_post_done: Callable[[Post], None] | None = None,
    ) -> ImageStore:
        """Fetch every image of every post, returning once all tasks finish.

        One task per image URL is queued on a bounded pool.  A post counts
        as processed when the last of its images completes, whatever the
        outcome; posts without images count immediately.
        """
        remaining = [len(p.images) for p in posts]
        total_images = sum(remaining)
        logger.info(
            "Fetching %d images from %d posts with %d workers",
            total_images, len(posts), self.cfg.fetch.max_workers,
        )

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self.console,
            disable=not self.cfg.show_progress,
        ) as progress:
            task = progress.add_task("Downloading images", total=len(posts))

            def post_done(post: Post) -> None:
                self.report.posts += 1
                progress.update(task, advance=1, description=f"Downloaded images for: {escape(post.title)}")
                if on_post_done is not None:
                    on_post_done(post)

            for post in posts:
                if not post.images:
                    post_done(post)

            executor = ThreadPoolExecutor(
                max_workers=self.cfg.fetch.max_workers, thread_name_prefix="harvester"
            )
            pending: dict[Future[str | None], tuple[int, str]] = {}
            try:
                for idx, post in enumerate(posts):
                    for url in post.images:
                        pending[executor.submit(self._fetch_one, url)] = (idx, url)

                while pending:
                    done, _ = wait(pending, return_when=FIRST_COMPLETED)
                    for fut in done:
                        idx, url = pending.pop(fut)
                        cause = fut.result()
                        if cause is None:
                            self.report.images += 1
                        else:
                            self.report.failures.append((url, cause))
                        remaining[idx] -= 1
                        if remaining[idx] == 0:
                            post_done(posts[idx])
            except BaseException:
                executor.shutdown(wait=True, cancel_futures=True)
                raise
            executor.shutdown(wait=True)

            progress.update(task, description="Image downloads complete!")

        logger.info(
            "Fetched %d/%d images (%d failed)",
            self.report.images, total_images, len(self.report.failures),
        )
        return self.store

    # ── fetch mode ───────────────────────────────────────────────

    def run_fetch(self, on_post_done: Callable[[Post], None] | None = None) -> FetchReport:
        """Load input, fetch everything, then export the artifact."""
        posts = load_posts(self.cfg.input_path)
        self.fetch_all(posts, on_post_done=on_post_done)
        self.store.export(self.cfg.artifact_path)
        return self.report

    # ── lifecycle ────────────────────────────────────────────────

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> Harvester:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
