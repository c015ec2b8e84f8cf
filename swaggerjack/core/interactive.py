"""Interactive mutation loop for ambiguous responses.

When a request comes back with a 4xx/5xx that is not an auth or not-found
error, the operator can edit the request and resend it until it works, the
retry budget runs out, or they move on.

Input grammar (one line per attempt):

    n | next                  go to the next endpoint
    q | quit                  stop the whole run
    method:<VERB>             change the HTTP method
    body:<json>               replace the body
    path:<key>=<value>        set a path parameter
    query:<key>=<value>       set a query parameter
    header:<key>=<value>      set a header (``headers:`` also accepted)
    {...} | [...]             replace the body with raw JSON
    <key>=<value>             path, query or body key, whichever already exists

An empty value deletes the key.
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any
from urllib.parse import quote, urlencode

from swaggerjack.core.builder import RequestBuilder, RequestDescriptor, ServerTarget
from swaggerjack.core.encoding import (
    CONTENT_TYPE,
    JSON,
    encode_body,
    enforce_single_content_type,
    parse_header_line,
)
from swaggerjack.core.executor import ExecutionResult, Executor, is_ambiguous_response
from swaggerjack.core.prompt import PromptPort, confirm
from swaggerjack.errors import MutationError
from swaggerjack.spec.loader import get_list, get_str

logger = logging.getLogger(__name__)

STANDARD_HEADERS = frozenset(
    h.lower()
    for h in (
        "Accept", "Content-Type", "User-Agent", "Authorization",
        "Accept-Encoding", "Accept-Language", "Cache-Control",
        "Connection", "Cookie", "Host", "Referer",
    )
)

_BODY_PREVIEW_LIMIT = 500


class InputAction(Enum):
    NONE = "none"
    MODIFIED = "modified"
    NEXT = "next"
    QUIT = "quit"


@dataclass
class RequestState:
    """Editable copy of one request. Edits persist across resends."""

    method: str
    path_template: str
    path_params: dict[str, str] = field(default_factory=dict)
    query_params: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = None
    content_type: str = ""
    attempt_number: int = 1

    @classmethod
    def from_descriptor(cls, request: RequestDescriptor) -> RequestState:
        return cls(
            method=request.method,
            path_template=request.path_template,
            path_params=dict(request.path_params),
            query_params=dict(request.query_params),
            headers=dict(request.headers),
            body=copy.deepcopy(request.body_value),
            content_type=request.content_type,
        )

    def build_url(self, api_target: str, base_path: str = "") -> str:
        path = self.path_template
        for key, value in self.path_params.items():
            path = path.replace("{" + key + "}", quote(str(value), safe=""))
        url = api_target + base_path + path
        if self.query_params:
            url += "?" + urlencode(self.query_params, doseq=True)
        return url

    def encoded_body(self) -> bytes | None:
        if self.body is None:
            return None
        body, content_type = encode_body(self.body, self.content_type or JSON)
        if content_type != self.content_type:
            self.content_type = content_type
            enforce_single_content_type(self.headers, content_type)
        return body

    def to_descriptor(self, request: RequestDescriptor) -> RequestDescriptor:
        """*request* with this state's edits applied."""
        body = self.encoded_body()
        return replace(
            request,
            method=self.method,
            url=self.build_url(request.target.api_target, request.target.base_path),
            headers=dict(self.headers),
            body=body,
            content_type=self.content_type,
            path_params=dict(self.path_params),
            query_params=dict(self.query_params),
            body_value=copy.deepcopy(self.body),
        )


@dataclass
class MutationOutcome:
    """Last response of the loop and the request that produced it."""

    result: ExecutionResult
    request: RequestDescriptor
    quit_requested: bool = False


# ----------------------------------------------------------------------
# Rendering
# ----------------------------------------------------------------------

def _status_text(status: int) -> str:
    if 200 <= status < 300:
        return "OK"
    if 300 <= status < 400:
        return "Redirect"
    named = {400: "Bad Request", 401: "Unauthorized", 403: "Forbidden", 404: "Not Found", 422: "Unprocessable Entity"}
    if status in named:
        return named[status]
    if 500 <= status < 600:
        return "Server Error"
    return "Unknown"


def format_structured_request(state: RequestState, target: ServerTarget, max_retries: int) -> str:
    lines = [
        "",
        f"=== REQUEST (Attempt {state.attempt_number}/{max_retries}) ===",
        f"Method: {state.method}",
        f"URL: {state.build_url(target.api_target, target.base_path)}",
    ]
    if state.path_params:
        lines.append("Path: " + ", ".join(f"{k}={v}" for k, v in state.path_params.items()))
    if state.query_params:
        lines.append("Query: " + ", ".join(f"{k}={v}" for k, v in state.query_params.items()))
    if state.headers:
        shown = []
        for key, value in state.headers.items():
            if key.lower() == "authorization" and len(value) > 20:
                value = value[:15] + "..."
            shown.append(f"{key}={value}")
        lines.append("Headers: " + ", ".join(shown))
    if state.body is not None:
        lines.append("Body: " + json.dumps(state.body, indent=2, default=str))
    return "\n".join(lines) + "\n"


def format_structured_response(status: int, body: str) -> str:
    lines = ["", "=== RESPONSE ===", f"Status: {status} {_status_text(status)}"]
    try:
        lines.append("Body: " + json.dumps(json.loads(body), indent=2))
    except ValueError:
        if len(body) > _BODY_PREVIEW_LIMIT:
            lines.append(f"Body: {body[:_BODY_PREVIEW_LIMIT]}...")
            lines.append(f"[truncated, {len(body)} chars total]")
        else:
            lines.append(f"Body: {body}")
    return "\n".join(lines) + "\n"


# ----------------------------------------------------------------------
# Input parsing
# ----------------------------------------------------------------------

def parse_value(value: str) -> Any:
    """Coerce an edited body value: JSON, int, float, bool, else the string."""
    try:
        return json.loads(value)
    except ValueError:
        pass
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        pass
    lowered = value.lower()
    if lowered in ("true", "t"):
        return True
    if lowered in ("false", "f"):
        return False
    return value


def determine_field_target(key: str, state: RequestState) -> str:
    if key in state.path_params:
        return "path"
    if key in state.query_params:
        return "query"
    if isinstance(state.body, dict) and key in state.body:
        return "body"
    return "query"


def _set_nested_field(body: dict[str, Any], dotted: str, value: str) -> None:
    parts = dotted.split(".")
    current = body
    for part in parts[:-1]:
        nxt = current.get(part)
        if not isinstance(nxt, dict):
            nxt = {}
            current[part] = nxt
        current = nxt
    if value == "":
        current.pop(parts[-1], None)
    else:
        current[parts[-1]] = parse_value(value)


def apply_modification(target: str, key: str, value: str, state: RequestState) -> None:
    if target == "path":
        if value == "":
            state.path_params.pop(key, None)
        else:
            state.path_params[key] = value
    elif target == "query":
        if value == "":
            state.query_params.pop(key, None)
        else:
            state.query_params[key] = value
    elif target == "header":
        existing = [k for k in state.headers if k.lower() == key.lower()]
        for k in existing:
            del state.headers[k]
        if value == "":
            if key.lower() == CONTENT_TYPE.lower() and existing:
                state.content_type = ""
        else:
            state.headers[key] = value
            if key.lower() == CONTENT_TYPE.lower():
                state.content_type = value
    elif target == "body":
        if not isinstance(state.body, dict):
            msg = f"body is not a JSON object, cannot set field {key}"
            raise MutationError(msg)
        _set_nested_field(state.body, key, value)
    else:
        msg = f"unknown target: {target}"
        raise MutationError(msg)


def _apply_key_value(text: str, target: str, state: RequestState) -> None:
    key, _, value = text.partition("=")
    key = key.strip()
    if not key:
        msg = "expected key=value"
        raise MutationError(msg)
    apply_modification(target or determine_field_target(key, state), key, value.strip(), state)


def _parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError as e:
        msg = f"invalid JSON: {e}"
        raise MutationError(msg) from e


def parse_user_input(text: str, state: RequestState) -> InputAction:
    """Apply one line of operator input to *state*. Raises MutationError on bad edits."""
    text = text.strip()
    lowered = text.lower()

    if lowered in ("n", "next"):
        return InputAction.NEXT
    if lowered in ("q", "quit"):
        return InputAction.QUIT

    prefix, sep, rest = text.partition(":")
    prefix = prefix.strip().lower() if sep else ""
    rest = rest.strip()

    if prefix == "method":
        if not rest:
            return InputAction.NONE
        state.method = rest.upper()
    elif prefix == "body":
        state.body = _parse_json(rest)
    elif prefix in ("path", "query"):
        _apply_key_value(rest, prefix, state)
    elif prefix in ("header", "headers"):
        if "=" not in rest:
            return InputAction.NONE
        _apply_key_value(rest, "header", state)
    elif text.startswith(("{", "[")):
        state.body = _parse_json(text)
    elif "=" in text:
        _apply_key_value(text, "", state)
    else:
        return InputAction.NONE
    return InputAction.MODIFIED


# ----------------------------------------------------------------------
# Validation against the declared operation
# ----------------------------------------------------------------------

def validate_mutation(state: RequestState, request: RequestDescriptor, builder: RequestBuilder) -> list[str]:
    """Warnings for parameters and headers the operation does not declare."""
    declared: set[tuple[str, str]] = set()
    for raw in get_list(request.path_item, "parameters") + get_list(request.operation, "parameters"):
        param, _ = builder.deref(raw)
        if isinstance(param, dict):
            declared.add((get_str(param, "name").lower(), get_str(param, "in")))

    # Auth credentials and global headers are added by the tool, not the operator.
    supplied_headers = {name.lower() for name in builder.extra_headers}
    for line in builder.settings.http.headers:
        parsed = parse_header_line(line)
        if parsed is not None:
            supplied_headers.add(parsed[0].lower())
    supplied_query = {name.lower() for name in builder.extra_query}

    warnings = []
    for key in state.path_params:
        if (key.lower(), "path") not in declared:
            warnings.append(f"WARNING: Path parameter '{key}' not defined in spec")
    for key in state.query_params:
        if key.lower() in supplied_query:
            continue
        if (key.lower(), "query") not in declared:
            warnings.append(f"WARNING: Query parameter '{key}' not defined in spec")
    for key in state.headers:
        if key.lower() in STANDARD_HEADERS or key.lower() in supplied_headers:
            continue
        if (key.lower(), "header") not in declared:
            warnings.append(f"WARNING: Header '{key}' not defined in spec")
    return warnings


# ----------------------------------------------------------------------
# Loop
# ----------------------------------------------------------------------

class InteractiveMutator:
    """Read-modify-resend loop over a single endpoint."""

    def __init__(
        self,
        prompt: PromptPort,
        executor: Executor,
        builder: RequestBuilder,
        max_retries: int = 5,
    ):
        self.prompt = prompt
        self.executor = executor
        self.builder = builder
        self.max_retries = max_retries

    def modify_loop(
        self,
        state: RequestState,
        request: RequestDescriptor,
        status: int,
        body: str,
    ) -> tuple[bool, bool]:
        """Prompt until the operator edits, skips or quits.

        Returns ``(should_resend, should_quit)``.
        """
        while True:
            if state.attempt_number > self.max_retries:
                self.prompt.write(f"\n=== MAX RETRIES REACHED ({self.max_retries}/{self.max_retries}) ===")
                self.prompt.write("Auto-advancing to next endpoint.")
                logger.info("Max retries reached for %s %s", state.method, state.path_template)
                return False, False

            self.prompt.write(format_structured_request(state, request.target, self.max_retries))
            self.prompt.write(format_structured_response(status, body))

            line = self.prompt.read_line("\n[Modify request or N for next]: ")
            if line is None:
                return False, False

            try:
                action = parse_user_input(line, state)
            except MutationError as e:
                self.prompt.write(f"Error applying modification: {e}")
                continue

            if action is InputAction.QUIT:
                return False, True
            if action is InputAction.NEXT:
                return False, False
            if action is InputAction.NONE:
                self.prompt.write("No modification detected. Enter a modification or 'N' to continue.")
                continue

            warnings = validate_mutation(state, request, self.builder)
            if warnings:
                self.prompt.write("\n" + "=" * 50)
                for warning in warnings:
                    self.prompt.write(warning)
                self.prompt.write("=" * 50)
                if not confirm(self.prompt, "Continue outside spec? [Y/n]:", default=True):
                    continue

            state.attempt_number += 1
            return True, False

    async def run(self, request: RequestDescriptor, result: ExecutionResult) -> MutationOutcome:
        """Drive the loop while responses stay ambiguous.

        The outcome carries the last request actually sent, so records and
        curl commands describe what produced the final status.
        """
        state = RequestState.from_descriptor(request)
        sent = request
        while is_ambiguous_response(result.status):
            resend, quit_run = self.modify_loop(state, request, result.status, result.text)
            if quit_run:
                return MutationOutcome(result, sent, quit_requested=True)
            if not resend:
                break
            sent = state.to_descriptor(request)
            result = await self.executor.send(sent.method, sent.url, sent.headers, sent.body)
        return MutationOutcome(result, sent)
