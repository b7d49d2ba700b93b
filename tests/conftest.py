"""Shared fixtures: a fake HTTP layer and posts-file helpers."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Callable

import httpx
import pytest

from image_harvester.client import ImageClient
from image_harvester.config import FetchConfig, HarvesterConfig
from image_harvester.harvester import Harvester


class FakeImageServer:
    """Serves canned responses keyed by URL; unknown URLs get a 404."""

    def __init__(self) -> None:
        self.routes: dict[str, Callable[[httpx.Request], httpx.Response] | httpx.Response] = {}
        self.requests: list[str] = []
        self._lock = threading.Lock()

    def add(self, url: str, body: bytes = b"", status: int = 200) -> None:
        self.routes[url] = httpx.Response(status, content=body)

    def add_handler(self, url: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[url] = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        with self._lock:
            self.requests.append(url)
        route = self.routes.get(url)
        if route is None:
            return httpx.Response(404, content=b"not found")
        if callable(route) and not isinstance(route, httpx.Response):
            return route(request)
        # httpx.Response objects are single-use once read; hand out a copy.
        return httpx.Response(route.status_code, content=route.content)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def server() -> FakeImageServer:
    return FakeImageServer()


@pytest.fixture
def write_posts(tmp_path: Path) -> Callable[[object], Path]:
    def _write(data: object, name: str = "backup.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def make_harvester(tmp_path: Path, server: FakeImageServer):
    created: list[Harvester] = []

    def _make(workers: int = 4, **overrides: object) -> Harvester:
        fetch = FetchConfig(timeout=5.0, max_workers=workers)
        cfg = HarvesterConfig(
            input_path=overrides.pop("input_path", tmp_path / "backup.json"),  # type: ignore[arg-type]
            artifact_path=overrides.pop("artifact_path", tmp_path / "images.bin"),  # type: ignore[arg-type]
            fetch=fetch,
            show_progress=False,
        )
        h = Harvester(cfg, client=ImageClient(fetch, transport=server.transport))
        created.append(h)
        return h

    yield _make
    for h in created:
        h.close()
