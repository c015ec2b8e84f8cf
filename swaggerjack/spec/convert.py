"""Swagger 2.0 → OpenAPI 3.0 conversion.

Covers what the request builder and most consumers need: servers, component
sections, request bodies, response content and security schemes. Vendor
extensions (``x-*``) are carried over as-is.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from swaggerjack.spec.loader import get_list, get_map, get_str

logger = logging.getLogger(__name__)

OPENAPI_VERSION = "3.0.3"

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

# Keys of a v2 non-body parameter that belong in its v3 ``schema``.
_SCHEMA_KEYS = (
    "type", "format", "items", "enum", "default", "maximum", "exclusiveMaximum",
    "minimum", "exclusiveMinimum", "maxLength", "minLength", "pattern",
    "maxItems", "minItems", "uniqueItems", "multipleOf",
)

_COLLECTION_STYLES = {
    "csv": ("form", False),
    "ssv": ("spaceDelimited", False),
    "pipes": ("pipeDelimited", False),
    "multi": ("form", True),
}

_REF_PREFIXES = (
    ("#/definitions/", "#/components/schemas/"),
    ("#/responses/", "#/components/responses/"),
)

_DEFAULT_MEDIA = "application/json"
_FORM = "application/x-www-form-urlencoded"
_MULTIPART = "multipart/form-data"


def _extensions(source: dict[str, Any]) -> dict[str, Any]:
    return {k: copy.deepcopy(v) for k, v in source.items() if isinstance(k, str) and k.startswith("x-")}


class SwaggerConverter:
    """Converts one Swagger 2.0 document.

    Usage:
        v3 = SwaggerConverter(v2).convert()
    """

    def __init__(self, data: dict[str, Any]):
        self.data = data
        self.global_consumes = [c for c in get_list(data, "consumes") if isinstance(c, str)]
        self.global_produces = [p for p in get_list(data, "produces") if isinstance(p, str)]
        self.global_parameters = get_map(data, "parameters")
        # Global body/formData parameters become request bodies, not parameters.
        self.body_parameters = {
            name for name, param in self.global_parameters.items()
            if isinstance(param, dict) and param.get("in") in ("body", "formData")
        }

    def convert(self) -> dict[str, Any]:
        out: dict[str, Any] = {"openapi": OPENAPI_VERSION, "info": copy.deepcopy(get_map(self.data, "info"))}
        servers = self.servers()
        if servers:
            out["servers"] = servers
        for key in ("tags", "security", "externalDocs"):
            if key in self.data:
                out[key] = copy.deepcopy(self.data[key])
        out.update(_extensions(self.data))

        out["paths"] = {
            path: self.path_item(item)
            for path, item in get_map(self.data, "paths").items()
            if isinstance(item, dict)
        }

        components = self.components()
        if components:
            out["components"] = components
        return self.rewrite_refs(out)

    # ------------------------------------------------------------------
    # Top level
    # ------------------------------------------------------------------

    def servers(self) -> list[dict[str, str]]:
        host = get_str(self.data, "host")
        base_path = get_str(self.data, "basePath")
        if base_path == "/":
            base_path = ""
        if not host:
            return [{"url": base_path}] if base_path else []
        schemes = [s for s in get_list(self.data, "schemes") if isinstance(s, str)] or ["https"]
        return [{"url": f"{scheme}://{host}{base_path}"} for scheme in schemes]

    def components(self) -> dict[str, Any]:
        components: dict[str, Any] = {}
        schemas = get_map(self.data, "definitions")
        if schemas:
            components["schemas"] = copy.deepcopy(schemas)

        parameters = {}
        request_bodies = {}
        for name, param in self.global_parameters.items():
            if not isinstance(param, dict):
                continue
            if name in self.body_parameters:
                request_bodies[name] = self.request_body([param], self.global_consumes)
            else:
                parameters[name] = self.parameter(param)
        if parameters:
            components["parameters"] = parameters
        if request_bodies:
            components["requestBodies"] = request_bodies

        responses = {
            name: self.response(resp, self.global_produces)
            for name, resp in get_map(self.data, "responses").items()
            if isinstance(resp, dict)
        }
        if responses:
            components["responses"] = responses

        schemes = {
            name: self.security_scheme(scheme)
            for name, scheme in get_map(self.data, "securityDefinitions").items()
            if isinstance(scheme, dict)
        }
        if schemes:
            components["securitySchemes"] = schemes
        return components

    # ------------------------------------------------------------------
    # Paths and operations
    # ------------------------------------------------------------------

    def path_item(self, item: dict[str, Any]) -> dict[str, Any]:
        out = _extensions(item)
        for key in ("summary", "description"):
            if key in item:
                out[key] = item[key]

        shared = get_list(item, "parameters")
        plain, _ = self._split_parameters(shared)
        if plain:
            out["parameters"] = plain

        for method in HTTP_METHODS:
            operation = item.get(method)
            if isinstance(operation, dict):
                out[method] = self.operation(operation, shared)
        return out

    def operation(self, operation: dict[str, Any], shared: list[Any]) -> dict[str, Any]:
        out = {
            k: copy.deepcopy(v) for k, v in operation.items()
            if k not in ("parameters", "responses", "consumes", "produces", "schemes")
        }
        consumes = [c for c in get_list(operation, "consumes") if isinstance(c, str)] or self.global_consumes
        produces = [p for p in get_list(operation, "produces") if isinstance(p, str)] or self.global_produces

        plain, body = self._split_parameters(get_list(operation, "parameters"))
        if plain:
            out["parameters"] = plain

        # A body declared only at path level still applies to the operation.
        if not body:
            _, body = self._split_parameters(shared)
        if body:
            out["requestBody"] = self._body_or_ref(body, consumes)

        out["responses"] = {
            str(code): self.response(resp, produces)
            for code, resp in get_map(operation, "responses").items()
            if isinstance(resp, dict)
        } or {"default": {"description": ""}}
        return out

    def _split_parameters(self, params: list[Any]) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
        """``(parameters, body_and_form_parameters)``, converted where plain."""
        plain: list[dict[str, Any]] = []
        body: list[dict[str, Any]] = []
        for param in params:
            if not isinstance(param, dict):
                continue
            ref = param.get("$ref")
            if isinstance(ref, str):
                name = ref.rpartition("/")[2]
                if ref.startswith("#/parameters/") and name in self.body_parameters:
                    body.append(param)
                else:
                    plain.append(copy.deepcopy(param))
            elif param.get("in") in ("body", "formData"):
                body.append(param)
            else:
                plain.append(self.parameter(param))
        return plain, body

    def _body_or_ref(self, params: list[dict[str, Any]], consumes: list[str]) -> dict[str, Any]:
        if len(params) == 1 and isinstance(params[0].get("$ref"), str):
            name = params[0]["$ref"].rpartition("/")[2]
            return {"$ref": f"#/components/requestBodies/{name}"}
        resolved = []
        for param in params:
            ref = param.get("$ref")
            if isinstance(ref, str):
                param = get_map(self.global_parameters, ref.rpartition("/")[2])
            resolved.append(param)
        return self.request_body(resolved, consumes)

    # ------------------------------------------------------------------
    # Pieces
    # ------------------------------------------------------------------

    @staticmethod
    def parameter(param: dict[str, Any]) -> dict[str, Any]:
        out = {
            k: copy.deepcopy(v) for k, v in param.items()
            if k not in _SCHEMA_KEYS and k not in ("collectionFormat", "allowEmptyValue")
        }
        if "schema" not in param:
            out["schema"] = _schema_from_parameter(param)
        fmt = param.get("collectionFormat")
        if param.get("type") == "array" and fmt in _COLLECTION_STYLES:
            style, explode = _COLLECTION_STYLES[fmt]
            if param.get("in") in ("path", "header"):
                style = "simple"
            out["style"], out["explode"] = style, explode
        if param.get("in") == "query" and param.get("allowEmptyValue"):
            out["allowEmptyValue"] = True
        return out

    @staticmethod
    def request_body(params: list[dict[str, Any]], consumes: list[str]) -> dict[str, Any]:
        body = next((p for p in params if p.get("in") == "body"), None)
        if body is not None:
            media_types = consumes or [_DEFAULT_MEDIA]
            out: dict[str, Any] = {
                "content": {mt: {"schema": copy.deepcopy(body.get("schema") or {})} for mt in media_types},
            }
            if body.get("description"):
                out["description"] = body["description"]
            if body.get("required"):
                out["required"] = True
            return out

        properties: dict[str, Any] = {}
        required: list[str] = []
        has_file = False
        for param in params:
            name = get_str(param, "name")
            if not name:
                continue
            if param.get("type") == "file":
                has_file = True
                properties[name] = {"type": "string", "format": "binary"}
            else:
                properties[name] = _schema_from_parameter(param)
            if param.get("description"):
                properties[name]["description"] = param["description"]
            if param.get("required"):
                required.append(name)

        schema: dict[str, Any] = {"type": "object", "properties": properties}
        if required:
            schema["required"] = required
        form_types = [c for c in consumes if c in (_FORM, _MULTIPART)]
        if not form_types:
            form_types = [_MULTIPART if has_file else _FORM]
        out = {"content": {mt: {"schema": copy.deepcopy(schema)} for mt in form_types}}
        if required:
            out["required"] = True
        return out

    @staticmethod
    def response(resp: dict[str, Any], produces: list[str]) -> dict[str, Any]:
        if isinstance(resp.get("$ref"), str):
            return copy.deepcopy(resp)
        out = {"description": get_str(resp, "description")}
        out.update(_extensions(resp))
        schema = resp.get("schema")
        if isinstance(schema, dict):
            examples = get_map(resp, "examples")
            content = {}
            for media_type in produces or [_DEFAULT_MEDIA]:
                media: dict[str, Any] = {"schema": copy.deepcopy(schema)}
                if media_type in examples:
                    media["example"] = copy.deepcopy(examples[media_type])
                content[media_type] = media
            out["content"] = content
        headers = get_map(resp, "headers")
        if headers:
            out["headers"] = {
                name: {
                    **({"description": header["description"]} if "description" in header else {}),
                    "schema": _schema_from_parameter(header),
                }
                for name, header in headers.items()
                if isinstance(header, dict)
            }
        return out

    @staticmethod
    def security_scheme(scheme: dict[str, Any]) -> dict[str, Any]:
        kind = get_str(scheme, "type")
        out: dict[str, Any]
        if kind == "basic":
            out = {"type": "http", "scheme": "basic"}
        elif kind == "apiKey":
            out = {"type": "apiKey", "name": get_str(scheme, "name"), "in": get_str(scheme, "in")}
        elif kind == "oauth2":
            flow: dict[str, Any] = {"scopes": copy.deepcopy(get_map(scheme, "scopes"))}
            if "authorizationUrl" in scheme:
                flow["authorizationUrl"] = scheme["authorizationUrl"]
            if "tokenUrl" in scheme:
                flow["tokenUrl"] = scheme["tokenUrl"]
            flow_name = {
                "implicit": "implicit",
                "password": "password",
                "application": "clientCredentials",
                "accessCode": "authorizationCode",
            }.get(get_str(scheme, "flow"), "implicit")
            out = {"type": "oauth2", "flows": {flow_name: flow}}
        else:
            logger.warning("Unknown security scheme type %r copied unchanged", kind)
            out = copy.deepcopy(scheme)
        if scheme.get("description"):
            out["description"] = scheme["description"]
        return out

    # ------------------------------------------------------------------
    # References
    # ------------------------------------------------------------------

    def rewrite_ref(self, ref: str) -> str:
        for old, new in _REF_PREFIXES:
            if ref.startswith(old):
                return new + ref[len(old):]
        if ref.startswith("#/parameters/"):
            name = ref[len("#/parameters/"):]
            section = "requestBodies" if name in self.body_parameters else "parameters"
            return f"#/components/{section}/{name}"
        return ref

    def rewrite_refs(self, node: Any) -> Any:
        if isinstance(node, dict):
            return {
                k: self.rewrite_ref(v) if k == "$ref" and isinstance(v, str) else self.rewrite_refs(v)
                for k, v in node.items()
            }
        if isinstance(node, list):
            return [self.rewrite_refs(v) for v in node]
        return node


def _schema_from_parameter(param: dict[str, Any]) -> dict[str, Any]:
    schema = {k: copy.deepcopy(param[k]) for k in _SCHEMA_KEYS if k in param}
    if schema.get("type") == "file":
        schema = {"type": "string", "format": "binary"}
    return schema


def convert_to_v3(data: dict[str, Any]) -> dict[str, Any]:
    """Swagger 2.0 document as OpenAPI 3.0. The input is left untouched."""
    return SwaggerConverter(data).convert()
