"""HTTP fetching over a shared keep-alive client."""

from __future__ import annotations

from dataclasses import dataclass

import httpx
import structlog

from ..config import GlobalConfig, SiteProfile
from ..errors import FetchFailure


@dataclass(slots=True)
class FetchResponse:
    """Final URL, status and raw body of a successful GET."""

    url: str
    status_code: int
    content: bytes

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


class Fetcher:
    """Issue GET requests with a fixed timeout and identifying User-Agent.

    One client is shared by every worker thread; ``httpx.Client`` pools
    connections and is safe for concurrent use.
    """

    def __init__(
        self,
        global_config: GlobalConfig,
        profile: SiteProfile | None = None,
        logger: structlog.BoundLogger | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.global_config = global_config
        self.logger = logger or structlog.get_logger("refscrape.fetcher")
        timeout = global_config.request_timeout
        if profile is not None and profile.request_timeout:
            timeout = profile.request_timeout
        self.timeout = timeout
        self._client = httpx.Client(
            follow_redirects=True,
            timeout=timeout,
            headers={"User-Agent": global_config.user_agent},
            limits=httpx.Limits(max_connections=None, max_keepalive_connections=100),
            transport=transport,
        )

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, *_exc) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def fetch(self, url: str) -> FetchResponse:
        """Return the page body or raise :class:`FetchFailure`."""

        try:
            response = self._client.request("GET", url, timeout=self.timeout)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            self.logger.debug("fetch_error", url=url, error=str(exc))
            raise FetchFailure(url, f"failed to fetch URL: {exc}") from exc
        if self._is_failure(response):
            reason = f"bad status: {response.status_code} {response.reason_phrase}".rstrip()
            raise FetchFailure(url, reason, status_code=response.status_code)
        return FetchResponse(
            url=str(response.url),
            status_code=response.status_code,
            content=response.content,
        )

    @staticmethod
    def _is_failure(response: httpx.Response) -> bool:
        status_code = getattr(response, "status_code", 0)
        return not 200 <= status_code < 300


__all__ = ["FetchResponse", "Fetcher"]
