"""Tests for request synthesis."""

import pytest

from swaggerjack.config import Settings
from swaggerjack.core.builder import (
    RequestBuilder,
    ServerTarget,
    build_url,
    server_targets,
    substitute_path,
)
from swaggerjack.spec.loader import SpecDocument
from swaggerjack.spec.resolver import SchemaResolver
from swaggerjack.spec.synthesis import ExampleSynthesizer


def _builder(data, settings=None, **kwargs):
    settings = settings or Settings()
    doc = SpecDocument(data=data)
    synth = ExampleSynthesizer(SchemaResolver(doc), settings.synthesis)
    return doc, RequestBuilder(doc, synth, settings, **kwargs)


def _v3(paths, **extra):
    return {"openapi": "3.0.0", "info": {"title": "t"}, "paths": paths, **extra}


class TestServerTargets:
    def test_swagger2_host_and_base_path(self, swagger2_spec):
        targets = server_targets(SpecDocument(data=swagger2_spec), "https://docs.example.com/swagger.json")
        assert targets == [ServerTarget("https://api.example.com", "/v1")]

    def test_swagger2_target_override_keeps_base_path(self, swagger2_spec):
        targets = server_targets(SpecDocument(data=swagger2_spec), "", "https://staging.example.com/")
        assert targets == [ServerTarget("https://staging.example.com", "/v1")]

    def test_swagger2_without_host_uses_spec_url(self):
        doc = SpecDocument(data={"swagger": "2.0", "basePath": "/", "paths": {}})
        targets = server_targets(doc, "http://internal.example.com:8080/v2/api-docs")
        assert targets == [ServerTarget("http://internal.example.com:8080", "")]

    def test_swagger2_scheme_from_spec_url(self):
        doc = SpecDocument(data={"swagger": "2.0", "host": "api.example.com", "paths": {}})
        targets = server_targets(doc, "http://api.example.com/swagger.json")
        assert targets[0].api_target == "http://api.example.com"

    def test_v3_every_server(self, openapi3_spec):
        targets = server_targets(SpecDocument(data=openapi3_spec))
        assert targets == [
            ServerTarget("https://api.example.com", "/api"),
            ServerTarget("https://eu.example.com", "/v2"),
        ]

    def test_v3_override_uses_first_server_base_path(self, openapi3_spec):
        targets = server_targets(SpecDocument(data=openapi3_spec), "", "https://test.local")
        assert targets == [ServerTarget("https://test.local", "/api")]

    def test_v3_relative_server(self):
        doc = SpecDocument(data=_v3({}, servers=[{"url": "/api/v3"}]))
        targets = server_targets(doc, "https://petstore.example.com/api/v3/openapi.json")
        assert targets == [ServerTarget("https://petstore.example.com", "/api/v3")]

    def test_v3_no_servers(self):
        targets = server_targets(SpecDocument(data=_v3({})), "https://example.com/openapi.json")
        assert targets == [ServerTarget("https://example.com", "")]

    def test_base_path_override(self, openapi3_spec):
        targets = server_targets(SpecDocument(data=openapi3_spec), "", None, "custom/")
        assert {t.base_path for t in targets} == {"/custom"}

    def test_localhost_warning(self, caplog):
        doc = SpecDocument(data=_v3({}, servers=[{"url": "http://localhost:3000"}]))
        with caplog.at_level("WARNING"):
            server_targets(doc)
        assert "localhost" in caplog.text

    def test_duplicates_removed(self):
        doc = SpecDocument(data=_v3({}, servers=[{"url": "https://a.example.com"}, {"url": "https://a.example.com/"}]))
        assert len(server_targets(doc)) == 1


class TestUrls:
    def test_substitute_path_encodes(self):
        assert substitute_path("/users/{id}/files/{name}", {"id": "1", "name": "a b/c"}) == "/users/1/files/a%20b%2Fc"

    def test_build_url_with_query(self):
        url = build_url(ServerTarget("https://x.example.com", "/v1"), "/items", {}, {"q": "a b", "tag": ["1", "2"]})
        assert url == "https://x.example.com/v1/items?q=a+b&tag=1&tag=2"


class TestRequestBuilder:
    def test_swagger2_end_to_end(self, swagger2_spec):
        doc, builder = _builder(swagger2_spec)
        target = server_targets(doc, "", "https://staging.example.com")[0]
        requests = list(builder.build_all(target))
        assert [(r.method, r.url) for r in requests] == [
            ("GET", "https://staging.example.com/v1/users?limit=1"),
            ("GET", "https://staging.example.com/v1/users/1"),
            ("POST", "https://staging.example.com/v1/pets"),
        ]

    def test_delete_and_patch_excluded(self, swagger2_spec):
        doc, builder = _builder(swagger2_spec)
        methods = {r.method for r in builder.build_all(ServerTarget("https://a.example.com"))}
        assert "DELETE" not in methods
        assert "PATCH" not in methods

    def test_swagger2_body_param(self, swagger2_spec):
        doc, builder = _builder(swagger2_spec)
        post = [r for r in builder.build_all(ServerTarget("https://a.example.com")) if r.method == "POST"][0]
        assert post.body == b'{"name":"bishopfox","age":1}'
        assert post.headers["Content-Type"] == "application/json"
        assert post.content_type == "application/json"

    def test_request_body_v3(self, openapi3_spec):
        doc, builder = _builder(openapi3_spec)
        op = openapi3_spec["paths"]["/orders"]["post"]
        req = builder.build(ServerTarget("https://a.example.com"), "/orders", "post", op)
        assert req.body_value == {"id": 1, "createdDate": "2024-01-01", "callbackUrl": "https://example.com"}

    def test_query_enum_and_header(self, openapi3_spec):
        doc, builder = _builder(openapi3_spec)
        op = openapi3_spec["paths"]["/orders"]["get"]
        req = builder.build(ServerTarget("https://a.example.com"), "/orders", "get", op)
        assert req.url == "https://a.example.com/orders?status=open"
        assert req.headers == {"X-Trace": "bishopfox"}
        assert req.body is None

    def test_query_object_expanded(self):
        paths = {
            "/search": {
                "get": {
                    "parameters": [{
                        "name": "filter",
                        "in": "query",
                        "schema": {"type": "object", "properties": {"page": {"type": "integer"}, "q": {"type": "string"}}},
                    }],
                },
            },
        }
        doc, builder = _builder(_v3(paths))
        req = next(builder.build_all(ServerTarget("https://a.example.com")))
        assert req.query_params == {"page": "1", "q": "bishopfox"}

    def test_parameter_precedence(self):
        paths = {
            "/p": {
                "get": {
                    "parameters": [
                        {"name": "a", "in": "query", "default": "pd", "schema": {"type": "string", "default": "sd"}},
                        {"name": "b", "in": "query", "example": "pe", "schema": {"type": "string", "default": "sd"}},
                        {"name": "c", "in": "query", "example": "pe", "schema": {"type": "string"}},
                        {"name": "d", "in": "query", "examples": {"one": {"value": "ex"}}, "schema": {"type": "string"}},
                        {"name": "api-version", "in": "query", "schema": {"type": "string"}},
                    ],
                },
            },
        }
        doc, builder = _builder(_v3(paths))
        req = next(builder.build_all(ServerTarget("https://a.example.com")))
        assert req.query_params == {"a": "pd", "b": "sd", "c": "pe", "d": "ex", "api-version": "v1"}

    def test_operation_overrides_path_item_params(self):
        paths = {
            "/things/{id}": {
                "parameters": [{"name": "id", "in": "path", "schema": {"type": "integer"}}],
                "get": {"parameters": [{"name": "id", "in": "path", "schema": {"type": "string"}}]},
            },
        }
        doc, builder = _builder(_v3(paths))
        req = next(builder.build_all(ServerTarget("https://a.example.com")))
        assert req.url == "https://a.example.com/things/bishopfox"

    def test_parameter_ref(self):
        data = _v3(
            {"/x": {"get": {"parameters": [{"$ref": "#/components/parameters/Limit"}]}}},
            components={"parameters": {"Limit": {"name": "limit", "in": "query", "schema": {"type": "integer"}}}},
        )
        doc, builder = _builder(data)
        req = next(builder.build_all(ServerTarget("https://a.example.com")))
        assert req.url == "https://a.example.com/x?limit=1"

    def test_cookie_and_ignored_headers(self):
        paths = {
            "/c": {
                "get": {
                    "parameters": [
                        {"name": "session", "in": "cookie", "schema": {"type": "string"}},
                        {"name": "Accept", "in": "header", "schema": {"type": "string"}},
                    ],
                },
            },
        }
        doc, builder = _builder(_v3(paths))
        req = next(builder.build_all(ServerTarget("https://a.example.com")))
        assert req.headers == {"Cookie": "session=bishopfox"}

    def test_form_data(self):
        data = {
            "swagger": "2.0",
            "paths": {
                "/upload": {
                    "post": {
                        "consumes": ["application/x-www-form-urlencoded"],
                        "parameters": [{"name": "full name", "in": "formData", "type": "string", "default": "John Doe"}],
                    },
                },
            },
        }
        doc, builder = _builder(data)
        req = next(builder.build_all(ServerTarget("https://a.example.com")))
        assert req.body == b"full+name=John+Doe"
        assert req.content_type == "application/x-www-form-urlencoded"

    def test_global_headers_fill_missing_only(self, openapi3_spec):
        settings = Settings(http={"headers": ["x-trace: global", "X-Extra: 1"]})
        doc, builder = _builder(openapi3_spec, settings)
        op = openapi3_spec["paths"]["/orders"]["get"]
        req = builder.build(ServerTarget("https://a.example.com"), "/orders", "get", op)
        assert req.headers == {"X-Trace": "bishopfox", "X-Extra": "1"}

    def test_auth_headers_and_query(self, openapi3_spec):
        doc, builder = _builder(
            openapi3_spec, extra_headers={"Authorization": "Bearer t"}, extra_query={"api_key": "k"},
        )
        op = openapi3_spec["paths"]["/orders"]["get"]
        req = builder.build(ServerTarget("https://a.example.com"), "/orders", "get", op)
        assert req.headers["Authorization"] == "Bearer t"
        assert req.url.endswith("status=open&api_key=k")

    def test_forced_content_type(self, openapi3_spec):
        settings = Settings(synthesis={"content_type": "application/xml"})
        doc, builder = _builder(openapi3_spec, settings)
        op = openapi3_spec["paths"]["/orders"]["post"]
        req = builder.build(ServerTarget("https://a.example.com"), "/orders", "post", op)
        assert req.content_type == "application/xml"
        assert req.body.startswith(b"<root><id>1</id>")
        assert req.headers == {"Content-Type": "application/xml"}

    def test_media_example_used(self):
        paths = {
            "/e": {
                "put": {
                    "requestBody": {"content": {"application/json": {"example": {"given": True}}}},
                },
            },
        }
        doc, builder = _builder(_v3(paths))
        req = next(builder.build_all(ServerTarget("https://a.example.com")))
        assert req.body == b'{"given":true}'


class TestCommandStrings:
    @pytest.fixture
    def post_request(self, swagger2_spec):
        doc, builder = _builder(swagger2_spec)
        return [r for r in builder.build_all(ServerTarget("https://a.example.com", "/v1")) if r.method == "POST"][0]

    def test_curl(self, post_request):
        assert post_request.to_curl() == (
            "curl -sk -X POST 'https://a.example.com/v1/pets' "
            "-d '{\"name\":\"bishopfox\",\"age\":1}' -H 'Content-Type: application/json'"
        )

    def test_curl_quotes_single_quotes(self, swagger2_spec):
        doc, builder = _builder(swagger2_spec, extra_headers={"X-Note": "it's"})
        req = next(builder.build_all(ServerTarget("https://a.example.com")))
        assert "-H 'X-Note: it'\"'\"'s'" in req.to_curl()

    def test_sqlmap(self, post_request):
        assert post_request.to_sqlmap() == (
            "sqlmap -u 'https://a.example.com/v1/pets' "
            "--data='{\"name\":\"bishopfox\",\"age\":1}' -H 'Content-Type: application/json'"
        )
