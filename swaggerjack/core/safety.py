"""Dangerous-keyword gate applied before executing synthesized requests."""

from __future__ import annotations

import logging
from urllib.parse import urlparse

from swaggerjack.config import DANGEROUS_KEYWORDS, SafetySettings
from swaggerjack.core.prompt import PromptPort, confirm

logger = logging.getLogger(__name__)


def endpoint_for_dangerous_check(url: str) -> str:
    """Path (``/`` when empty) plus ``?query`` — the part keywords are matched in."""
    parsed = urlparse(url)
    endpoint = parsed.path or "/"
    if parsed.query:
        endpoint += "?" + parsed.query
    return endpoint


class SafetyGate:
    """Decides whether a request whose path/query looks destructive may be sent.

    One gate lives for one target run: the "avoid all" answer is asked at
    most once and then applies to every later match.
    """

    def __init__(
        self,
        prompt: PromptPort | None = None,
        keywords: list[str] | None = None,
        safe_words: list[str] | None = None,
        quiet: bool = False,
    ):
        self.prompt = prompt
        self.keywords = list(keywords if keywords is not None else DANGEROUS_KEYWORDS)
        self.safe_words = set(safe_words or [])
        self.avoid_all = quiet or prompt is None
        self.risk_surveyed = False

    @classmethod
    def from_settings(cls, settings: SafetySettings, prompt: PromptPort | None = None) -> SafetyGate:
        return cls(
            prompt=prompt,
            keywords=settings.dangerous_keywords,
            safe_words=settings.safe_words,
            quiet=settings.quiet,
        )

    def matched_keyword(self, url: str) -> str | None:
        endpoint = endpoint_for_dangerous_check(url).lower()
        for keyword in self.keywords:
            if keyword in self.safe_words:
                continue
            if keyword.lower() in endpoint:
                return keyword
        return None

    def allow(self, url: str) -> bool:
        """True to send the request, False to skip it."""
        keyword = self.matched_keyword(url)
        if keyword is None:
            return True
        if self.avoid_all or self.prompt is None:
            logger.info("Skipping %s (dangerous keyword '%s')", url, keyword)
            return False

        if confirm(
            self.prompt,
            f"Dangerous keyword '{keyword}' detected in URL ({url}). "
            "Do you still want to test this endpoint? (y/N)",
            default=False,
        ):
            return True

        if not self.risk_surveyed:
            self.avoid_all = confirm(self.prompt, "Do you want to avoid all dangerous requests? (Y/n)", default=True)
            self.risk_surveyed = True
        return False
