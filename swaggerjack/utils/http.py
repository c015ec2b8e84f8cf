"""Async HTTP client — shared connection pool, proxy and TLS settings."""

from __future__ import annotations

import logging
import random
import ssl
from dataclasses import dataclass
from typing import Any

import aiohttp

from swaggerjack.config import HttpSettings

logger = logging.getLogger(__name__)

USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_4) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.4 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64; rv:125.0) Gecko/20100101 Firefox/125.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36 Edg/124.0",
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_4 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.4 Mobile/15E148 Safari/604.1",
]


def random_user_agent() -> str:
    return random.choice(USER_AGENTS)


@dataclass
class FetchResult:
    """Body and metadata of a completed GET."""

    url: str
    status: int
    body: bytes
    content_type: str = ""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class AsyncHttpClient:
    """Shared async HTTP client with connection pooling.

    Usage:
        async with AsyncHttpClient() as http:
            resp = await http.get("https://example.com")
    """

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str = "",
        verify_ssl: bool = False,
        proxy: str | None = None,
        random_agent: bool = False,
        follow_redirects: bool = True,
        max_redirects: int = 5,
    ):
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.user_agent = user_agent or USER_AGENTS[0]
        self.verify_ssl = verify_ssl
        self.proxy = proxy
        self.random_agent = random_agent
        self.follow_redirects = follow_redirects
        self.max_redirects = max_redirects

        self._ssl_ctx: ssl.SSLContext | None = None
        if not verify_ssl:
            self._ssl_ctx = ssl.create_default_context()
            self._ssl_ctx.check_hostname = False
            self._ssl_ctx.verify_mode = ssl.CERT_NONE
        self._session: aiohttp.ClientSession | None = None

    @classmethod
    def from_settings(cls, settings: HttpSettings) -> AsyncHttpClient:
        return cls(
            timeout=settings.timeout,
            user_agent=settings.user_agent,
            verify_ssl=settings.verify_ssl,
            proxy=settings.proxy,
            random_agent=settings.random_user_agent,
        )

    def agent(self) -> str:
        return random_user_agent() if self.random_agent else self.user_agent

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(ssl=self._ssl_ctx if self._ssl_ctx else True)
            self._session = aiohttp.ClientSession(connector=connector, timeout=self.timeout)
        return self._session

    async def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> aiohttp.ClientResponse:
        session = await self._ensure_session()
        kw: dict[str, Any] = {
            "allow_redirects": self.follow_redirects,
            "max_redirects": self.max_redirects,
            **kwargs,
        }
        merged = {"User-Agent": self.agent()}
        if headers:
            merged.update(headers)
        kw["headers"] = merged
        if timeout:
            kw["timeout"] = aiohttp.ClientTimeout(total=timeout)
        if self.proxy:
            kw["proxy"] = self.proxy
        return await session.request(method, url, **kw)

    async def get(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> aiohttp.ClientResponse:
        return await self.request("GET", url, headers=headers, timeout=timeout, **kwargs)

    async def fetch(self, url: str, timeout: float | None = None) -> FetchResult:
        """GET and read the whole body. Network errors propagate."""
        resp = await self.get(url, timeout=timeout)
        async with resp:
            body = await resp.read()
            return FetchResult(
                url=str(resp.url),
                status=resp.status,
                body=body,
                content_type=resp.headers.get("Content-Type", ""),
            )

    async def content_type(self, url: str, timeout: float | None = None) -> str:
        """Content-Type of a GET, without reading the body."""
        resp = await self.get(url, timeout=timeout)
        async with resp:
            return resp.headers.get("Content-Type", "")

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> AsyncHttpClient:
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()
