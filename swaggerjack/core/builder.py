"""Request synthesis — one concrete request per (path, method) of a definition."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote, urlencode, urlparse

from swaggerjack.config import Settings
from swaggerjack.core.encoding import (
    CONTENT_TYPE,
    FORM,
    JSON,
    MULTIPART,
    encode_body,
    enforce_single_content_type,
    get_header,
    parse_header_line,
)
from swaggerjack.spec.loader import SpecDocument, get_list, get_map, get_str
from swaggerjack.spec.synthesis import ExampleSynthesizer, SchemaNode
from swaggerjack.utils.targets import scheme_host_only

logger = logging.getLogger(__name__)

# Left out to keep generated traffic non-destructive.
EXCLUDED_METHODS = frozenset({"delete", "patch"})
BUILD_METHODS = ("get", "head", "options", "post", "put", "trace")

# Header parameters OpenAPI tells clients to ignore.
_IGNORED_HEADER_PARAMS = frozenset({"accept", "content-type", "authorization"})
_LOCAL_HOSTS = frozenset({"localhost", "127.0.0.1", "0.0.0.0", "::1"})
_MAX_REF_HOPS = 16


def _sq(value: str) -> str:
    return "'" + value.replace("'", "'\"'\"'") + "'"


def stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def _normalize_base_path(path: str) -> str:
    path = path.strip()
    if path in ("", "/"):
        return ""
    return "/" + path.strip("/")


@dataclass(frozen=True)
class ServerTarget:
    """Where requests go: ``api_target`` (scheme://host) plus ``base_path``."""

    api_target: str
    base_path: str = ""

    def url_for(self, path: str) -> str:
        if path and not path.startswith("/"):
            path = "/" + path
        return f"{self.api_target}{self.base_path}{path}"


def _server_url(server: dict[str, Any]) -> str:
    url = get_str(server, "url")
    for name, var in get_map(server, "variables").items():
        default = get_str(var, "default")
        url = url.replace("{" + name + "}", default)
    return url


def server_targets(
    doc: SpecDocument,
    spec_url: str = "",
    target_override: str | None = None,
    base_path_override: str | None = None,
) -> list[ServerTarget]:
    """Every server to test.

    An operator-supplied target replaces the host but keeps the base path
    declared by the definition.
    """
    fallback = scheme_host_only(spec_url)
    override = target_override.rstrip("/") if target_override else ""
    targets: list[ServerTarget] = []

    if doc.is_swagger2:
        base_path = _normalize_base_path(get_str(doc.data, "basePath"))
        host = get_str(doc.data, "host")
        if override:
            api_target = override
        elif host:
            schemes = [s for s in get_list(doc.data, "schemes") if isinstance(s, str)]
            scheme = schemes[0] if schemes else (urlparse(spec_url).scheme or "https")
            api_target = f"{scheme}://{host}"
        else:
            api_target = fallback
        targets.append(ServerTarget(api_target, base_path))
    else:
        servers = [s for s in get_list(doc.data, "servers") if get_str(s, "url")]
        for server in servers:
            url = _server_url(server)
            if "://" in url:
                parsed = urlparse(url)
                api_target = f"{parsed.scheme}://{parsed.netloc}"
                base_path = _normalize_base_path(parsed.path)
                if parsed.hostname in _LOCAL_HOSTS and not override:
                    logger.warning("Server URL %s points to localhost; pass a target to override it", url)
            else:
                api_target = fallback
                base_path = _normalize_base_path(url)
            targets.append(ServerTarget(override or api_target, base_path))
            if override:
                break
        if not targets:
            targets.append(ServerTarget(override or fallback, ""))

    if base_path_override is not None:
        targets = [ServerTarget(t.api_target, _normalize_base_path(base_path_override)) for t in targets]

    unique: list[ServerTarget] = []
    for t in targets:
        if t not in unique:
            unique.append(t)
    return unique


@dataclass
class RequestDescriptor:
    """A synthesized request plus the pieces it was assembled from."""

    method: str
    url: str
    headers: dict[str, str]
    body: bytes | None
    content_type: str
    path_template: str = ""
    path_params: dict[str, str] = field(default_factory=dict)
    query_params: dict[str, Any] = field(default_factory=dict)
    body_value: Any = None
    operation: dict[str, Any] = field(default_factory=dict, repr=False)
    path_item: dict[str, Any] = field(default_factory=dict, repr=False)
    target: ServerTarget = field(default_factory=lambda: ServerTarget(""))

    def to_curl(self) -> str:
        parts = [f"curl -sk -X {self.method} {_sq(self.url)}"]
        if self.body:
            parts.append(f"-d {_sq(self.body.decode('utf-8', errors='replace'))}")
        parts.extend(f"-H {_sq(f'{k}: {v}')}" for k, v in self.headers.items())
        return " ".join(parts)

    def to_sqlmap(self) -> str:
        parts = [f"sqlmap -u {_sq(self.url)}"]
        if self.method not in ("GET", "POST"):
            parts.append(f"--method={self.method}")
        if self.body:
            parts.append(f"--data={_sq(self.body.decode('utf-8', errors='replace'))}")
        parts.extend(f"-H {_sq(f'{k}: {v}')}" for k, v in self.headers.items())
        return " ".join(parts)


class RequestBuilder:
    """Turns each operation of a definition into a RequestDescriptor."""

    def __init__(
        self,
        doc: SpecDocument,
        synthesizer: ExampleSynthesizer,
        settings: Settings | None = None,
        extra_headers: dict[str, str] | None = None,
        extra_query: dict[str, str] | None = None,
    ):
        self.doc = doc
        self.synthesizer = synthesizer
        self.resolver = synthesizer.resolver
        self.settings = settings or Settings()
        self.extra_headers = extra_headers or {}
        self.extra_query = extra_query or {}

    def build_all(self, target: ServerTarget) -> Iterator[RequestDescriptor]:
        for path, method, operation in self.doc.operations(BUILD_METHODS):
            yield self.build(target, path, method, operation)

    def build(self, target: ServerTarget, path: str, method: str, operation: dict[str, Any]) -> RequestDescriptor:
        path_item = get_map(self.doc.paths, path)
        path_params: dict[str, str] = {}
        query: dict[str, Any] = {}
        headers: dict[str, str] = {}
        cookies: dict[str, str] = {}
        body_value: Any = None
        form_fields: dict[str, Any] = {}
        content_type = ""

        for param, ctx in self._parameters(path_item, operation):
            name = get_str(param, "name")
            location = get_str(param, "in")
            if location == "body":
                body_value = self._body_param_value(param, ctx)
                content_type = self._v2_content_type(operation, JSON)
                continue
            if not name:
                continue
            node = self.param_node(param, ctx)
            value = self.parameter_value(param, node)
            if location == "path":
                path_params[name] = stringify(value)
            elif location == "query":
                self._add_query(query, name, param, node, value)
            elif location == "header":
                if name.lower() not in _IGNORED_HEADER_PARAMS and get_header(headers, name) is None:
                    headers[name] = stringify(value)
            elif location == "cookie":
                cookies[name] = stringify(value)
            elif location == "formData":
                form_fields[name] = value

        if form_fields:
            if isinstance(body_value, dict):
                body_value.update(form_fields)
            else:
                body_value = form_fields
            consumes = self._consumes(operation)
            content_type = MULTIPART if any(MULTIPART in c for c in consumes) else FORM

        if "requestBody" in operation:
            rb_type, rb_value = self._request_body(operation)
            if rb_type:
                content_type, body_value = rb_type, rb_value

        if cookies and get_header(headers, "Cookie") is None:
            headers["Cookie"] = "; ".join(f"{k}={v}" for k, v in cookies.items())
        for name, value in self.extra_headers.items():
            headers[name] = value
        for line in self.settings.http.headers:
            parsed = parse_header_line(line)
            if parsed and get_header(headers, parsed[0]) is None:
                headers[parsed[0]] = parsed[1]
        query.update(self.extra_query)

        body: bytes | None = None
        if body_value is not None:
            forced = self.settings.synthesis.content_type
            content_type = forced or get_header(headers, CONTENT_TYPE) or content_type or JSON
            body, content_type = encode_body(body_value, content_type)
            enforce_single_content_type(headers, content_type)

        return RequestDescriptor(
            method=method.upper(),
            url=build_url(target, path, path_params, query),
            headers=headers,
            body=body,
            content_type=content_type if body is not None else "",
            path_template=path,
            path_params=path_params,
            query_params=query,
            body_value=body_value,
            operation=operation,
            path_item=path_item,
            target=target,
        )

    # ------------------------------------------------------------------

    def deref(self, raw: Any, context: SpecDocument | None = None) -> tuple[Any, SpecDocument]:
        """Follow ``$ref`` chains on parameters/request bodies."""
        ctx = context or self.doc
        for _ in range(_MAX_REF_HOPS):
            if not isinstance(raw, dict) or not isinstance(raw.get("$ref"), str):
                break
            raw, ctx = self.resolver.resolve(ctx, raw["$ref"])
        return raw, ctx

    def _parameters(
        self, path_item: dict[str, Any], operation: dict[str, Any],
    ) -> list[tuple[dict[str, Any], SpecDocument]]:
        merged: dict[tuple[str, str], tuple[dict[str, Any], SpecDocument]] = {}
        for raw in get_list(path_item, "parameters") + get_list(operation, "parameters"):
            param, ctx = self.deref(raw)
            if not isinstance(param, dict):
                continue
            merged[(get_str(param, "name"), get_str(param, "in"))] = (param, ctx)
        return list(merged.values())

    def param_node(self, param: dict[str, Any], ctx: SpecDocument) -> SchemaNode:
        """Expanded schema of a parameter; v2 parameters carry it inline."""
        schema = param.get("schema") if "schema" in param else param
        return self.synthesizer.expand(schema, ctx)

    def parameter_value(self, param: dict[str, Any], node: SchemaNode) -> Any:
        """Declared default, then example, then a synthesized value."""
        if "default" in param:
            return param["default"]
        if node.has_default:
            return node.default
        if "example" in param:
            return param["example"]
        for example in get_map(param, "examples").values():
            if isinstance(example, dict) and "value" in example:
                return example["value"]
        value = self.synthesizer.generate(node)
        if value == self.synthesizer.settings.test_string and "version" in get_str(param, "name").lower():
            return self.settings.synthesis.version_value
        return value

    def _add_query(
        self, query: dict[str, Any], name: str, param: dict[str, Any], node: SchemaNode, value: Any,
    ) -> None:
        explode = param.get("explode", True) is not False
        if node.is_object and node.properties and isinstance(value, dict) and explode:
            for key, v in value.items():
                query[key] = stringify(v) if not isinstance(v, list) else [stringify(i) for i in v]
        elif isinstance(value, list):
            query[name] = [stringify(v) for v in value]
        else:
            query[name] = stringify(value)

    def _body_param_value(self, param: dict[str, Any], ctx: SpecDocument) -> Any:
        if "example" in param:
            return param["example"]
        return self.synthesizer.example_for(param.get("schema"), ctx)

    def _consumes(self, operation: dict[str, Any]) -> list[str]:
        consumes = get_list(operation, "consumes") or get_list(self.doc.data, "consumes")
        return [c for c in consumes if isinstance(c, str)]

    def _v2_content_type(self, operation: dict[str, Any], default: str) -> str:
        consumes = self._consumes(operation)
        return consumes[0] if consumes else default

    def _request_body(self, operation: dict[str, Any]) -> tuple[str, Any]:
        body, ctx = self.deref(operation.get("requestBody"))
        content = get_map(body, "content")
        if not content:
            return "", None
        forced = self.settings.synthesis.content_type
        if forced and forced in content:
            content_type, media = forced, content[forced]
        else:
            content_type, media = next(iter(content.items()))
            if forced:
                content_type = forced
        if not isinstance(media, dict):
            media = {}
        if "example" in media:
            return content_type, media["example"]
        for example in get_map(media, "examples").values():
            example, _ = self.deref(example, ctx)
            if isinstance(example, dict) and "value" in example:
                return content_type, example["value"]
        return content_type, self.synthesizer.example_for(media.get("schema"), ctx)


def substitute_path(template: str, path_params: dict[str, Any]) -> str:
    path = template
    for name, value in path_params.items():
        encoded = quote(stringify(value), safe="")
        path = path.replace("{" + name + "}", encoded)
        path = path.replace("{" + name.lower() + "}", encoded)
    return path


def build_url(target: ServerTarget, template: str, path_params: dict[str, Any], query: dict[str, Any]) -> str:
    url = target.url_for(substitute_path(template, path_params))
    if query:
        url += "?" + urlencode(query, doseq=True)
    return url
