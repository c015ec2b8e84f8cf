"""Deduplicating collector for discovered definitions."""

from __future__ import annotations

import inspect
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Literal
from urllib.parse import urlsplit, urlunsplit

from swaggerjack.config import DiscoverySettings
from swaggerjack.models.result import DiscoveredSpec, DiscoveryPhase
from swaggerjack.spec.loader import canonical_hash

logger = logging.getLogger(__name__)

OnDiscovered = Callable[[DiscoveredSpec], Awaitable[None] | None]


def dedupe_key(url: str) -> str:
    """Lower-case scheme and host, no trailing slash on the path."""
    parts = urlsplit(url.strip())
    return urlunsplit(
        (parts.scheme.lower(), parts.netloc.lower(), parts.path.rstrip("/"), parts.query, parts.fragment),
    )


@dataclass
class DiscoveryOptions:
    continue_search: bool = False
    max_found: int = 0
    dedupe: Literal["url_and_hash", "url"] = "url_and_hash"
    on_discovered: OnDiscovered | None = None

    def __post_init__(self) -> None:
        self.max_found = max(self.max_found, 0)

    @classmethod
    def from_settings(cls, settings: DiscoverySettings, on_discovered: OnDiscovered | None = None) -> DiscoveryOptions:
        return cls(
            continue_search=settings.continue_search,
            max_found=settings.max_found,
            dedupe=settings.dedupe,
            on_discovered=on_discovered,
        )


class DiscoveryCollector:
    """Keeps one entry per URL and, in ``url_and_hash`` mode, per document content."""

    def __init__(self, options: DiscoveryOptions | None = None):
        self.options = options or DiscoveryOptions()
        self.results: list[DiscoveredSpec] = []
        self._seen_urls: set[str] = set()
        self._seen_hashes: set[str] = set()

    def should_stop(self) -> bool:
        if not self.results:
            return False
        if not self.options.continue_search:
            return True
        return 0 < self.options.max_found <= len(self.results)

    async def add(self, url: str, phase: DiscoveryPhase, spec: dict[str, Any]) -> bool:
        """Record a find. False for duplicates."""
        canonical_url = url.strip()
        url_key = dedupe_key(canonical_url)
        if not canonical_url or url_key in self._seen_urls:
            return False

        content_hash = canonical_hash(spec)
        if self.options.dedupe == "url_and_hash":
            if content_hash in self._seen_hashes:
                logger.debug("Duplicate definition at %s, already recorded", canonical_url)
                return False
            self._seen_hashes.add(content_hash)
        self._seen_urls.add(url_key)

        found = DiscoveredSpec(
            url=canonical_url,
            phase=phase,
            spec_bytes=json.dumps(spec, separators=(",", ":"), default=str).encode("utf-8"),
            content_hash=content_hash,
            parsed_spec=spec,
        )
        self.results.append(found)
        logger.info("Found definition via %s: %s", phase, canonical_url)

        if self.options.on_discovered is not None:
            outcome = self.options.on_discovered(found)
            if inspect.isawaitable(outcome):
                await outcome
        return True
