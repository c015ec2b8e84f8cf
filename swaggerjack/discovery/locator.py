"""Multi-phase definition discovery: direct fetch, Swagger-UI pages, brute force."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any
from urllib.parse import urljoin

import aiohttp

from swaggerjack.discovery.candidates import SWAGGER_UI_PATHS, brute_candidates, wordlist_candidates
from swaggerjack.discovery.collector import DiscoveryCollector, DiscoveryOptions
from swaggerjack.discovery.html import (
    extract_spec_url_from_html,
    inline_scripts,
    looks_like_docs_page,
    same_host_script_sources,
)
from swaggerjack.discovery.javascript import (
    extract_embedded_spec,
    extract_spec_url_from_js,
    extract_swashbuckle_config,
)
from swaggerjack.errors import NoSpecFoundError, SpecParseError
from swaggerjack.models.result import DiscoveredSpec
from swaggerjack.spec.loader import validate_spec_response
from swaggerjack.utils.http import AsyncHttpClient, FetchResult
from swaggerjack.utils.rate_limiter import RateLimiter
from swaggerjack.utils.targets import normalize_target_input, scheme_host_only

logger = logging.getLogger(__name__)

_SPEC_CONTENT_TYPES = (
    "application/json", "text/json", "application/yaml",
    "application/x-yaml", "text/yaml", "text/yml",
)
_JS_CONTENT_TYPES = ("application/javascript", "text/javascript")

Found = tuple[str, dict[str, Any]]


class SpecLocator:
    """Finds definitions exposed by a host.

    Usage:
        locator = SpecLocator(http, rate)
        specs = await locator.discover("example.com")
    """

    def __init__(self, http: AsyncHttpClient, rate: RateLimiter | None = None, timeout: float = 30.0):
        self.http = http
        self.rate = rate or RateLimiter(rate=0)
        self.timeout = timeout

    async def discover(
        self,
        seed: str,
        wordlist: Path | str | None = None,
        options: DiscoveryOptions | None = None,
    ) -> list[DiscoveredSpec]:
        """Run the phases in order; raises NoSpecFoundError when nothing turns up."""
        normalized = normalize_target_input(seed)
        base = scheme_host_only(normalized)
        collector = DiscoveryCollector(options)

        logger.debug("Discovery phase direct: %s", normalized)
        spec = await self.fetch_and_validate(normalized)
        if spec is not None:
            await collector.add(normalized, "direct", spec)
            if collector.should_stop():
                return collector.results

        logger.debug("Discovery phase swagger_ui: %d pages", len(SWAGGER_UI_PATHS))
        for path in SWAGGER_UI_PATHS:
            found = await self.search_docs_page(urljoin(base, path))
            if found is not None:
                await collector.add(found[0], "swagger_ui", found[1])
                if collector.should_stop():
                    return collector.results

        if wordlist:
            candidates = await wordlist_candidates(base, wordlist)
        else:
            candidates = brute_candidates(base)
        logger.debug("Discovery phase brute: %d candidates", len(candidates))
        for url in candidates:
            found = await self.find_spec_at_candidate(url)
            if found is not None:
                await collector.add(found[0], "brute", found[1])
                if collector.should_stop():
                    break

        if not collector.results:
            raise NoSpecFoundError(seed)
        return collector.results

    # ------------------------------------------------------------------
    # Fetch helpers
    # ------------------------------------------------------------------

    async def _get(self, url: str) -> FetchResult | None:
        try:
            async with self.rate:
                return await self.http.fetch(url, timeout=self.timeout)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.debug("GET %s failed: %s", url, e)
            return None

    async def _content_type(self, url: str) -> str:
        try:
            async with self.rate:
                return (await self.http.content_type(url, timeout=self.timeout)).lower()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.debug("Content-type check %s failed: %s", url, e)
            return ""

    async def fetch_and_validate(self, url: str) -> dict[str, Any] | None:
        result = await self._get(url)
        if result is None:
            return None
        return self._validate(url, result)

    @staticmethod
    def _validate(url: str, result: FetchResult) -> dict[str, Any] | None:
        try:
            return validate_spec_response(result.body, result.status)
        except SpecParseError as e:
            logger.debug("Rejected %s: %s", url, e)
            return None

    async def _follow_reference(self, base_url: str, ref: str | None) -> Found | None:
        if not ref:
            return None
        spec_url = urljoin(base_url, ref)
        spec = await self.fetch_and_validate(spec_url)
        return (spec_url, spec) if spec is not None else None

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    async def search_docs_page(self, page_url: str) -> Found | None:
        """Look for a definition behind a Swagger-UI / documentation page."""
        page = await self._get(page_url)
        if page is None or page.status != 200:
            return None
        html = page.text
        if not looks_like_docs_page(html):
            return None

        found = await self._follow_reference(page_url, extract_swashbuckle_config(html))
        if found is None:
            found = await self._follow_reference(page_url, extract_spec_url_from_html(html))
        if found is not None:
            return found

        for script in inline_scripts(html):
            embedded = extract_embedded_spec(script)
            if embedded is not None:
                logger.info("Found embedded definition in inline script at %s", page_url)
                return page_url, embedded

        for src in same_host_script_sources(html, page_url):
            found = await self.search_javascript(urljoin(page_url, src))
            if found is not None:
                return found
        return None

    async def search_javascript(self, js_url: str, body: str | None = None) -> Found | None:
        """Swashbuckle config, then a referenced URL, then an embedded object."""
        if body is None:
            script = await self._get(js_url)
            if script is None or script.status != 200:
                return None
            body = script.text

        found = await self._follow_reference(js_url, extract_swashbuckle_config(body))
        if found is None:
            found = await self._follow_reference(js_url, extract_spec_url_from_js(body))
        if found is not None:
            return found

        embedded = extract_embedded_spec(body)
        if embedded is not None:
            logger.info("Extracted embedded definition from %s", js_url)
            return js_url, embedded
        return None

    async def find_spec_at_candidate(self, url: str) -> Found | None:
        content_type = await self._content_type(url)

        if any(t in content_type for t in _SPEC_CONTENT_TYPES):
            spec = await self.fetch_and_validate(url)
            return (url, spec) if spec is not None else None

        if any(t in content_type for t in _JS_CONTENT_TYPES):
            script = await self._get(url)
            if script is None or script.status != 200:
                return None
            found = await self.search_javascript(url, script.text)
            if found is not None:
                return found
            spec = self._validate(url, script)
            return (url, spec) if spec is not None else None

        if "text/html" in content_type:
            return None

        spec = await self.fetch_and_validate(url)
        return (url, spec) if spec is not None else None
