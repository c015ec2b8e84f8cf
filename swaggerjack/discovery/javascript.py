"""Spec extraction from JavaScript: referenced URLs, Swashbuckle config, embedded objects."""

from __future__ import annotations

import json
import re
from typing import Any

from swaggerjack.spec.loader import is_swagger_spec

# Spec URL references, tried in order
URL_DIRECT_RE = re.compile(r"""url:\s*["']([^"']+)["']""")
_URLS_ARRAY_RE = re.compile(r"""urls:\s*\[\s*{\s*url:\s*["']([^"']+)["']""")
_CONST_SPEC_FILE_RE = re.compile(r"""const\s+\w+\s*=\s*["']([^"']+\.(?:json|yaml|yml))["']""")
_DEFAULT_DEFINITION_RE = re.compile(r"""defaultDefinitionUrl\s*=\s*["']([^"']+)["']""")
_DEFINITION_URL_RE = re.compile(r"""definitionURL\s*=\s*["']([^"']+)["']""")

_JS_URL_PATTERNS = [
    URL_DIRECT_RE,
    _URLS_ARRAY_RE,
    _CONST_SPEC_FILE_RE,
    _DEFAULT_DEFINITION_RE,
    _DEFINITION_URL_RE,
]

# ASP.NET Swashbuckle: window.swashbuckleConfig = { discoveryPaths: ["..."] };
_SWASHBUCKLE_RE = re.compile(r"window\.swashbuckleConfig\s*=\s*{([\s\S]*?)};")
_DISCOVERY_PATHS_RE = re.compile(r"""discoveryPaths\s*:\s*\[\s*["']([^"']+)["']""")

_UNQUOTED_KEY_RE = re.compile(r"([{,]\s*)(\w+)\s*:")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")

_VAR_ASSIGNMENT_RE = re.compile(r"(?:var|let|const)\s+(\w+)\s*=\s*({[\s\S]*?});")
_SIMPLE_ASSIGNMENT_RE = re.compile(r"(\w+)\s*=\s*({[\s\S]*?});")


def extract_spec_url_from_js(js: str) -> str | None:
    for pattern in _JS_URL_PATTERNS:
        match = pattern.search(js)
        if match:
            return match.group(1)
    return None


def extract_swashbuckle_config(content: str) -> str | None:
    """First ``discoveryPaths`` entry of a Swashbuckle config block."""
    block = _SWASHBUCKLE_RE.search(content)
    if not block:
        return None
    path = _DISCOVERY_PATHS_RE.search(block.group(1))
    return path.group(1) if path else None


def strip_js_comments(js: str) -> str:
    """Remove ``//`` and ``/* */`` comments, leaving string literals untouched."""
    out: list[str] = []
    quote: str | None = None
    escaped = False
    i, n = 0, len(js)
    while i < n:
        c = js[i]
        if quote is not None:
            out.append(c)
            if escaped:
                escaped = False
            elif c == "\\":
                escaped = True
            elif c == quote:
                quote = None
            i += 1
            continue

        if c == "/" and i + 1 < n:
            nxt = js[i + 1]
            if nxt == "/":
                end = i + 2
                while end < n and js[end] not in "\r\n":
                    end += 1
                i = end
                continue
            if nxt == "*":
                end = js.find("*/", i + 2)
                i = n if end == -1 else end + 2
                continue

        if c in "'\"`":
            quote = c
        out.append(c)
        i += 1
    return "".join(out)


def js_object_to_json(obj: str) -> str:
    """Best-effort JS object literal → JSON text."""
    cleaned = obj.strip().replace("'", '"')
    cleaned = _UNQUOTED_KEY_RE.sub(r'\1"\2":', cleaned)
    return _TRAILING_COMMA_RE.sub(r"\1", cleaned)


def extract_embedded_spec(js: str) -> dict[str, Any] | None:
    """A definition assigned to a variable in *js*, if any."""
    cleaned = strip_js_comments(js)
    for pattern in (_VAR_ASSIGNMENT_RE, _SIMPLE_ASSIGNMENT_RE):
        for match in pattern.finditer(cleaned):
            try:
                doc = json.loads(js_object_to_json(match.group(2)))
            except ValueError:
                continue
            if is_swagger_spec(doc) and isinstance(doc.get("paths"), dict):
                return doc
    return None
