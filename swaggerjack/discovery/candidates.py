"""Candidate locations tried during discovery."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from pathlib import Path

import aiofiles

from swaggerjack.errors import ConfigError

logger = logging.getLogger(__name__)

# Documentation pages that usually embed Swagger UI.
SWAGGER_UI_PATHS = [
    "/swagger-ui.html",
    "/swagger-ui/",
    "/swagger/",
    "/swagger/ui/",
    "/swagger/index.html",
    "/api/docs",
    "/api/docs/",
    "/api/swagger-ui.html",
    "/api/swagger/",
    "/api/swagger/ui/",
    "/api-docs",
    "/api-docs/",
    "/docs",
    "/docs/",
    "/apidocs",
    "/apidocs/",
    "/swagger-ui/index.html",
    "/api/swagger-ui/",
    "/api/swagger/index.html",
    "/documentation",
    "/documentation/",
]

# ---------------------------------------------------------------------------
# Known definition locations, tried before the generated combinations.
# Covers Spring Boot, ASP.NET, Django REST, FastAPI, NestJS and friends.
# ---------------------------------------------------------------------------
KNOWN_LOCATIONS = [
    # Standard OpenAPI / Swagger locations
    "/swagger.json",
    "/openapi.json",
    "/api-docs.json",
    # Versioned Swagger (ASP.NET)
    "/swagger/v1/swagger.json",
    "/swagger/v2/swagger.json",
    "/swagger/v3/swagger.json",
    "/swagger/doc.json",
    "/swagger/docs/v1",
    "/swagger/docs/v2",
    # Under /api prefix
    "/api/swagger.json",
    "/api/openapi.json",
    "/api/v1/openapi.json",
    "/api/v2/openapi.json",
    "/api/v1/swagger.json",
    "/api/api-docs",
    # Under /rest prefix
    "/rest/api-docs",
    "/rest/swagger.json",
    # Spring Boot
    "/v1/api-docs",
    "/v2/api-docs",
    "/v3/api-docs",
    "/swagger-resources",
    "/swagger-resources/configuration/ui",
    # Well-known
    "/.well-known/openapi",
    "/.well-known/openapi.json",
    "/.well-known/openapi.yaml",
    # YAML variants
    "/openapi.yaml",
    "/openapi.yml",
    "/swagger.yaml",
    "/swagger.yml",
    "/api/openapi.yaml",
    # FastAPI / NestJS
    "/docs/openapi.json",
    "/api/docs-json",
    # Less common
    "/api/schema",
    "/api/spec",
]

PREFIX_DIRS = [
    "", "/swagger", "/swagger/docs", "/swagger/latest", "/swagger/v1",
    "/swagger/v2", "/swagger/v3", "/swagger/static", "/swagger/ui",
    "/swagger-ui", "/api-docs", "/api-docs/v1", "/api-docs/v2", "/apidocs",
    "/api", "/api/v1", "/api/v2", "/api/v3", "/v1", "/v2", "/v3", "/doc",
    "/docs", "/docs/swagger", "/docs/swagger/v1", "/docs/swagger/v2",
    "/docs/swagger-ui", "/docs/swagger-ui/v1", "/docs/swagger-ui/v2",
    "/docs/v1", "/docs/v2", "/docs/v3", "/public", "/redoc",
]

JSON_ENDPOINTS = [
    "", "/index", "/swagger", "/swagger-ui", "/swagger-resources",
    "/swagger-config", "/openapi", "/api", "/api-docs", "/apidocs", "/v1",
    "/v2", "/v3", "/doc", "/docs", "/apispec", "/apispec_1", "/api-merged",
]

JAVASCRIPT_ENDPOINTS = [
    "/swagger-ui-init", "/swagger-ui-bundle", "/swagger-ui-standalone-preset",
    "/swagger-ui", "/swagger-ui.min", "/swagger-ui-es-bundle-core",
    "/swagger-ui-es-bundle", "/swagger-ui-layout", "/swagger-ui-plugins",
]


def make_urls(target: str, endpoints: list[str], extension: str = "") -> list[str]:
    """Every prefix directory × endpoint, skipping the bare target."""
    urls = []
    for directory in PREFIX_DIRS:
        for endpoint in endpoints:
            if not directory and not endpoint:
                continue
            urls.append(f"{target}{directory}{endpoint}{extension}")
    return urls


def brute_candidates(target: str) -> list[str]:
    """Built-in candidate list, known locations first, duplicates removed."""
    urls = [target + path for path in KNOWN_LOCATIONS]
    urls += make_urls(target, JSON_ENDPOINTS)
    urls += make_urls(target, JAVASCRIPT_ENDPOINTS, ".js")
    urls += make_urls(target, JSON_ENDPOINTS, ".json")
    urls += make_urls(target, JSON_ENDPOINTS, "/")
    return list(dict.fromkeys(urls))


async def read_wordlist(path: Path | str) -> AsyncIterator[str]:
    """Yield entries of a wordlist, skipping blank lines and ``#`` comments."""
    try:
        async with aiofiles.open(path, encoding="utf-8", errors="ignore") as f:
            async for line in f:
                stripped = line.strip()
                if stripped and not stripped.startswith("#"):
                    yield stripped
    except OSError as e:
        msg = f"cannot read wordlist {path}: {e}"
        raise ConfigError(msg) from e


async def wordlist_candidates(target: str, path: Path | str) -> list[str]:
    urls = [
        target + (entry if entry.startswith("/") else "/" + entry)
        async for entry in read_wordlist(path)
    ]
    urls = list(dict.fromkeys(urls))
    logger.debug("Loaded %d candidates from %s", len(urls), path)
    return urls
