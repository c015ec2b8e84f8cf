"""Request execution under the shared rate limiter."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from urllib.parse import urljoin

import aiohttp

from swaggerjack.core.builder import RequestDescriptor
from swaggerjack.core.encoding import CONTENT_TYPE, JSON, get_header
from swaggerjack.core.safety import SafetyGate
from swaggerjack.models.result import STATUS_NETWORK_ERROR, STATUS_SKIPPED
from swaggerjack.utils.http import AsyncHttpClient
from swaggerjack.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

DEFAULT_ACCEPT = "application/json, text/html, */*"
_REDIRECT_STATUSES = (301, 302)


@dataclass
class ExecutionResult:
    status: int
    body: bytes = b""
    url: str = ""
    error: str = ""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def preview(self, length: int = 50) -> str:
        text = self.text.replace("\n", " ").replace("\r", " ")
        return text[:length]


class Executor:
    """Sends requests; never raises for network trouble.

    A response is the literal HTTP status, ``0`` when the network failed or
    timed out, ``1`` when the safety gate skipped it.
    """

    def __init__(
        self,
        http: AsyncHttpClient,
        rate: RateLimiter | None = None,
        safety: SafetyGate | None = None,
        timeout: float = 30.0,
        max_redirect_hops: int = 1,
    ):
        self.http = http
        self.rate = rate
        self.safety = safety
        self.timeout = timeout
        self.max_redirect_hops = max_redirect_hops

    async def execute(self, request: RequestDescriptor, timeout: float | None = None) -> ExecutionResult:
        return await self.send(request.method, request.url, request.headers, request.body, timeout)

    async def send(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
        timeout: float | None = None,
    ) -> ExecutionResult:
        if self.safety is not None and not self.safety.allow(url):
            return ExecutionResult(status=STATUS_SKIPPED, url=url, error="dangerous keyword")

        merged = dict(headers or {})
        if get_header(merged, "Accept") is None:
            merged["Accept"] = DEFAULT_ACCEPT
        if method.upper() == "POST" and get_header(merged, CONTENT_TYPE) is None:
            merged[CONTENT_TYPE] = JSON
        return await self._dispatch(method.upper(), url, merged, body, timeout or self.timeout, 0)

    async def _dispatch(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None,
        timeout: float,
        hops: int,
    ) -> ExecutionResult:
        if self.rate is not None:
            await self.rate.acquire()
        try:
            resp = await self.http.request(
                method, url, headers=headers, timeout=timeout, data=body, allow_redirects=False,
            )
            async with resp:
                data = await resp.read()
                status = resp.status
                location = resp.headers.get("Location", "")
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.debug("%s %s failed: %s", method, url, e)
            return ExecutionResult(status=STATUS_NETWORK_ERROR, url=url, error=str(e) or type(e).__name__)

        if status in _REDIRECT_STATUSES and location and b"<html>" in data.lower():
            if hops < self.max_redirect_hops:
                target = urljoin(url, location)
                logger.debug("Following HTML redirect %s -> %s", url, target)
                return await self._dispatch(method, target, headers, body, timeout, hops + 1)
            logger.debug("Redirect hop limit reached at %s", url)
        return ExecutionResult(status=status, body=data, url=url)


def is_ambiguous_response(status: int) -> bool:
    """4xx/5xx other than 401/403/404 — worth another try with edits."""
    return 400 <= status < 600 and status not in (401, 403, 404)
