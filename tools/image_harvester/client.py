"""Image HTTP client – single-shot, timeout-bounded fetcher."""

from __future__ import annotations

import logging

import httpx

from .config import FetchConfig

logger = logging.getLogger("harvester.client")


class ImageClient:
    """Thin wrapper around ``httpx.Client`` for downloading image bytes.

    The underlying client is shared by every worker thread; its pool is
    sized to the worker count so each worker can hold a connection.
    """

    def __init__(
        self,
        cfg: FetchConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.cfg = cfg or FetchConfig()
        self._client = httpx.Client(
            timeout=self.cfg.timeout,
            headers={"User-Agent": self.cfg.user_agent},
            follow_redirects=self.cfg.follow_redirects,
            limits=httpx.Limits(
                max_connections=self.cfg.max_workers,
                max_keepalive_connections=self.cfg.max_workers,
            ),
            transport=transport,
        )

    def download(self, url: str) -> bytes:
        """GET ``url`` and return the full body.

        Raises ``httpx.HTTPStatusError`` for non-2xx responses and
        ``httpx.TransportError`` (timeouts included) for network failures.
        Malformed URLs surface as ``httpx.InvalidURL`` or
        ``httpx.UnsupportedProtocol``.
        """
        resp = self._client.get(url)
        resp.raise_for_status()
        logger.debug("GET %s -> %d (%d bytes)", url, resp.status_code, len(resp.content))
        return resp.content

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> ImageClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
