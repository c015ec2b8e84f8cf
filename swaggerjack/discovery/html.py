"""Spec URL extraction from Swagger-UI / documentation HTML pages."""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import urlparse

from swaggerjack.discovery.javascript import URL_DIRECT_RE, extract_spec_url_from_js

_SCRIPT_RE = re.compile(r"<script\b([^>]*)>([\s\S]*?)</script\s*>", re.IGNORECASE)
_LINK_RE = re.compile(r"<link\b([^>]*)>", re.IGNORECASE)
_ATTR_RE = re.compile(r"""([\w-]+)\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s>]+))""")

_SWAGGER_UI_BUNDLE_RE = re.compile(r"""SwaggerUIBundle\s*\(\s*{\s*url:\s*["']([^"']+)["']""")

# Whole-page fallbacks
_URL_WITH_EXTENSION_RE = re.compile(r"""url:\s*["']([^"']+\.(?:json|yaml|yml))["']""")
_SPEC_URL_RE = re.compile(r"""spec(?:Url)?:\s*["']([^"']+\.(?:json|yaml|yml))["']""")
_CONFIG_URL_RE = re.compile(r"""configUrl:\s*["']([^"']+\.(?:json|yaml|yml))["']""")

_FALLBACK_PATTERNS = [
    _URL_WITH_EXTENSION_RE,
    _SWAGGER_UI_BUNDLE_RE,
    _SPEC_URL_RE,
    _CONFIG_URL_RE,
]

_SPEC_LINK_RELS = frozenset({"spec", "openapi", "swagger"})
_SPEC_EXTENSIONS = (".json", ".yaml", ".yml")


@dataclass
class Script:
    src: str | None
    content: str


def _attrs(raw: str) -> dict[str, str]:
    attrs = {}
    for m in _ATTR_RE.finditer(raw):
        attrs[m.group(1).lower()] = next((g for g in m.groups()[1:] if g is not None), "")
    return attrs


def scripts(html: str) -> list[Script]:
    return [
        Script(src=_attrs(m.group(1)).get("src"), content=m.group(2))
        for m in _SCRIPT_RE.finditer(html)
    ]


def looks_like_docs_page(html: str) -> bool:
    lowered = html.lower()
    return "<html" in lowered or "swagger" in lowered


def extract_spec_url_from_html(html: str) -> str | None:
    """First spec URL referenced by the page, possibly relative."""
    page_scripts = scripts(html)

    for script in page_scripts:
        for pattern in (URL_DIRECT_RE, _SWAGGER_UI_BUNDLE_RE):
            match = pattern.search(script.content)
            if match:
                return match.group(1)
        url = extract_spec_url_from_js(script.content)
        if url:
            return url

    for script in page_scripts:
        src = script.src or ""
        if ("swagger" in src or "openapi" in src) and src.endswith(_SPEC_EXTENSIONS):
            return src

    for m in _LINK_RE.finditer(html):
        attrs = _attrs(m.group(1))
        if attrs.get("rel", "").lower() in _SPEC_LINK_RELS and attrs.get("href"):
            return attrs["href"]

    for pattern in _FALLBACK_PATTERNS:
        match = pattern.search(html)
        if match:
            return match.group(1)
    return None


def inline_scripts(html: str) -> list[str]:
    return [s.content for s in scripts(html) if s.src is None and s.content.strip()]


def same_host_script_sources(html: str, base_url: str) -> list[str]:
    """``<script src>`` values that look like Swagger-UI init/config code on the same host."""
    base_host = urlparse(base_url).netloc
    sources = []
    for script in scripts(html):
        src = script.src
        if not src:
            continue
        if src.startswith(("http://", "https://")) and urlparse(src).netloc != base_host:
            continue
        if "swagger" in src or "init" in src or "config" in src:
            sources.append(src)
    return sources
