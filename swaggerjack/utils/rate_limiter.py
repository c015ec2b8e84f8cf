"""Rate limiter — single shared token bucket using aiolimiter."""

from __future__ import annotations

from aiolimiter import AsyncLimiter


class RateLimiter:
    """Token bucket consulted before every outbound request.

    A rate of zero or less disables limiting: ``acquire`` returns at once.

    Usage:
        async with limiter:
            await do_request()
    """

    def __init__(self, rate: float = 15.0, burst: int = 1):
        self.rate = rate
        self.burst = max(burst, 1)
        self._limiter: AsyncLimiter | None = None
        if rate > 0:
            self._limiter = AsyncLimiter(self.burst, self.burst / rate)

    @property
    def enabled(self) -> bool:
        return self._limiter is not None

    async def acquire(self) -> None:
        if self._limiter is not None:
            await self._limiter.acquire()

    async def __aenter__(self) -> RateLimiter:
        await self.acquire()
        return self

    async def __aexit__(self, *_) -> None:
        pass
