"""Shared test fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from swaggerjack.config import Settings
from swaggerjack.core.prompt import ScriptedPrompt
from swaggerjack.spec.loader import SpecDocument
from swaggerjack.spec.resolver import SchemaResolver
from swaggerjack.spec.synthesis import ExampleSynthesizer
from swaggerjack.utils.http import FetchResult


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def quiet_settings():
    return Settings(safety={"quiet": True})


@pytest.fixture
def scripted_prompt():
    return ScriptedPrompt()


@pytest.fixture
def swagger2_spec():
    return {
        "swagger": "2.0",
        "info": {"title": "Pet Store", "description": "Sample v2 API"},
        "host": "api.example.com",
        "basePath": "/v1",
        "schemes": ["https"],
        "paths": {
            "/users": {
                "get": {
                    "parameters": [
                        {"name": "limit", "in": "query", "type": "integer"},
                    ],
                },
                "delete": {"parameters": []},
            },
            "/users/{id}": {
                "parameters": [
                    {"name": "id", "in": "path", "type": "integer", "required": True},
                ],
                "get": {},
                "patch": {},
            },
            "/pets": {
                "post": {
                    "consumes": ["application/json"],
                    "parameters": [
                        {"name": "body", "in": "body", "schema": {"$ref": "#/definitions/Pet"}},
                    ],
                },
            },
        },
        "definitions": {
            "Pet": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "age": {"type": "integer"},
                },
            },
        },
    }


@pytest.fixture
def openapi3_spec():
    return {
        "openapi": "3.0.1",
        "info": {"title": "Orders", "description": "Sample v3 API"},
        "servers": [
            {"url": "https://api.example.com/api"},
            {"url": "https://{region}.example.com/v2", "variables": {"region": {"default": "eu"}}},
        ],
        "paths": {
            "/orders": {
                "get": {
                    "parameters": [
                        {"name": "status", "in": "query", "schema": {"type": "string", "enum": ["open", "closed"]}},
                        {"name": "X-Trace", "in": "header", "schema": {"type": "string"}},
                    ],
                },
                "post": {
                    "requestBody": {
                        "content": {
                            "application/json": {"schema": {"$ref": "#/components/schemas/Order"}},
                        },
                    },
                },
            },
            "/orders/{orderId}": {
                "get": {
                    "parameters": [
                        {"name": "orderId", "in": "path", "required": True, "schema": {"type": "integer"}},
                    ],
                },
            },
        },
        "components": {
            "schemas": {
                "Order": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "integer"},
                        "createdDate": {"type": "string"},
                        "callbackUrl": {"type": "string"},
                    },
                },
            },
        },
    }


@pytest.fixture
def make_synthesizer(settings):
    """Build a synthesizer for an in-memory document."""

    def _make(data, path=None):
        doc = SpecDocument(data=data, path=path)
        return ExampleSynthesizer(SchemaResolver(doc), settings.synthesis)

    return _make


def _response(status=200, body=b"", headers=None):
    resp = MagicMock()
    resp.status = status
    resp.headers = headers or {}
    resp.read = AsyncMock(return_value=body)
    resp.__aenter__ = AsyncMock(return_value=resp)
    resp.__aexit__ = AsyncMock(return_value=False)
    return resp


@pytest.fixture
def make_response():
    """aiohttp-style response usable with ``async with``."""
    return _response


@pytest.fixture
def mock_http():
    """AsyncHttpClient with fetch/content_type/request mocked."""
    http = AsyncMock()
    http.fetch = AsyncMock(return_value=FetchResult(url="", status=404, body=b"not found"))
    http.content_type = AsyncMock(return_value="text/html")
    http.request = AsyncMock(return_value=_response(200, b"{}"))
    return http


@pytest.fixture
def mock_rate():
    rate = AsyncMock()
    rate.__aenter__ = AsyncMock(return_value=rate)
    rate.__aexit__ = AsyncMock(return_value=False)
    return rate
