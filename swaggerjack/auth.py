"""Security-scheme prompting.

Lists the schemes a definition declares and, for each one the operator wants
to use, collects credentials and turns them into headers or query parameters.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field

from swaggerjack.core.encoding import get_header, parse_header_line
from swaggerjack.core.prompt import PromptPort, confirm
from swaggerjack.spec.loader import SpecDocument, get_map, get_str

logger = logging.getLogger(__name__)


@dataclass
class SecurityScheme:
    name: str
    type: str
    scheme: str = ""
    location: str = ""
    param_name: str = ""

    @property
    def is_basic(self) -> bool:
        return self.type == "http" and self.scheme.lower() == "basic"

    @property
    def is_bearer(self) -> bool:
        if self.type == "http" and self.scheme.lower() == "bearer":
            return True
        if self.type in ("oauth2", "openIdConnect"):
            return True
        return self.type == "apiKey" and self.location == "header" and self.name.lower() == "bearer"


@dataclass
class AuthOutcome:
    headers: dict[str, str] = field(default_factory=dict)
    query: dict[str, str] = field(default_factory=dict)


def security_schemes(doc: SpecDocument) -> list[SecurityScheme]:
    """Schemes from ``components.securitySchemes`` (v3) or ``securityDefinitions`` (v2)."""
    if doc.is_swagger2:
        raw = get_map(doc.data, "securityDefinitions")
    else:
        raw = get_map(get_map(doc.data, "components"), "securitySchemes")

    schemes = []
    for name, definition in raw.items():
        if not isinstance(definition, dict):
            logger.warning("Unsupported security scheme structure for %s", name)
            continue
        kind = get_str(definition, "type")
        scheme = get_str(definition, "scheme")
        if kind == "basic":
            kind, scheme = "http", "basic"
        schemes.append(SecurityScheme(
            name=name,
            type=kind,
            scheme=scheme,
            location=get_str(definition, "in"),
            param_name=get_str(definition, "name"),
        ))
    return schemes


def prompt_for_credentials(
    doc: SpecDocument,
    prompt: PromptPort | None,
    quiet: bool = False,
    supplied_headers: list[str] | None = None,
) -> AuthOutcome:
    outcome = AuthOutcome()
    schemes = security_schemes(doc)
    if not schemes or quiet or prompt is None:
        return outcome

    supplied: dict[str, str] = {}
    for line in supplied_headers or []:
        parsed = parse_header_line(line)
        if parsed:
            supplied[parsed[0]] = parsed[1]

    prompt.write("Available authentication mechanisms:")
    for s in schemes:
        prompt.write(f"    - {s.name} ({s.scheme})" if s.scheme else f"    - {s.name}")

    for s in schemes:
        authorized = get_header(supplied, "Authorization") or get_header(outcome.headers, "Authorization")
        if s.is_basic:
            if authorized:
                continue
            if confirm(prompt, "Basic Authentication is accepted. Supply a username and password? (y/N)", default=False):
                user = prompt.read_line("Enter a username: ") or ""
                password = prompt.read_line("Enter a password: ") or ""
                token = base64.b64encode(f"{user}:{password}".encode()).decode()
                outcome.headers["Authorization"] = f"Basic {token}"
            else:
                logger.warning("Basic authentication is accepted; supply a header manually with -H")
        elif s.is_bearer:
            if authorized:
                continue
            if confirm(prompt, "A bearer token is accepted. Would you like to provide one? (y/N)", default=False):
                token = prompt.read_line("What value would you like to use for the Bearer Token? ") or ""
                outcome.headers["Authorization"] = f"Bearer {token}"
            else:
                logger.warning("A bearer token is accepted; supply a header manually with -H")
        elif s.type == "apiKey" and s.location == "query" and s.param_name:
            if confirm(prompt, "An API key can be provided via a parameter string. Would you like to apply one? (y/N)", default=False):
                value = prompt.read_line(f"What value would you like to use for the API key ({s.param_name})? ") or ""
                outcome.query[s.param_name] = value
                logger.info("Using %s=%s as the API key in all requests", s.param_name, value)
        elif s.type == "apiKey" and s.location == "header" and s.param_name:
            if get_header(supplied, s.param_name) is not None:
                continue
            if confirm(prompt, f"An API key can be provided via the header {s.param_name}. Would you like to apply one? (y/N)", default=False):
                value = prompt.read_line(f"What value would you like to use for the API key ({s.param_name})? ") or ""
                outcome.headers[s.param_name] = value
        else:
            logger.info("Security scheme %s (%s) must be supplied manually", s.name, s.type)
    return outcome
