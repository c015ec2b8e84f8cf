"""Header helpers and body encoders (JSON, XML, form, multipart)."""

from __future__ import annotations

import json
import secrets
from typing import Any
from urllib.parse import urlencode
from xml.sax.saxutils import escape

CONTENT_TYPE = "Content-Type"

JSON = "application/json"
FORM = "application/x-www-form-urlencoded"
MULTIPART = "multipart/form-data"


def get_header(headers: dict[str, str], name: str) -> str | None:
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


def delete_header(headers: dict[str, str], name: str) -> None:
    lowered = name.lower()
    for key in [k for k in headers if k.lower() == lowered]:
        del headers[key]


def set_header_value(headers: dict[str, str], name: str, value: str) -> dict[str, str]:
    """Set *name*, dropping every case variant first."""
    delete_header(headers, name)
    headers[name] = value
    return headers


def enforce_single_content_type(headers: dict[str, str], content_type: str) -> dict[str, str]:
    return set_header_value(headers, CONTENT_TYPE, content_type)


def parse_header_line(line: str) -> tuple[str, str] | None:
    """``"Name: value"`` → ``("Name", "value")``; None when there is no colon."""
    name, sep, value = line.partition(":")
    if not sep or not name.strip():
        return None
    return name.strip(), value.strip()


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def xml_from_object(obj: dict[str, Any]) -> str:
    """One element per key; list values repeat the element."""
    parts = []
    for key, value in obj.items():
        values = value if isinstance(value, list) else [value]
        for v in values:
            parts.append(f"<{key}>{xml_from_value(v, wrap_lists=False)}</{key}>")
    return "".join(parts)


def xml_from_value(value: Any, wrap_lists: bool = True) -> str:
    if isinstance(value, dict):
        return xml_from_object(value)
    if isinstance(value, list):
        inner = "".join(f"<item>{xml_from_value(v)}</item>" for v in value)
        return f"<items>{inner}</items>" if wrap_lists else inner
    return escape(_scalar_text(value))


def _form_pairs(value: Any) -> list[tuple[str, str]]:
    if not isinstance(value, dict):
        return [("value", _scalar_text(value))]
    pairs = []
    for key, v in value.items():
        if isinstance(v, list) and all(not isinstance(i, (dict, list)) for i in v):
            pairs.extend((key, _scalar_text(i)) for i in v)
        else:
            pairs.append((key, _scalar_text(v)))
    return pairs


def encode_form_body(value: Any) -> str:
    return urlencode(_form_pairs(value))


def encode_multipart(value: Any, boundary: str | None = None) -> tuple[bytes, str]:
    """Return ``(body, content_type)`` with the boundary in the content type."""
    boundary = boundary or secrets.token_hex(16)
    chunks = []
    for name, text in _form_pairs(value):
        chunks.append(
            f"--{boundary}\r\n"
            f'Content-Disposition: form-data; name="{name}"\r\n\r\n'
            f"{text}\r\n"
        )
    chunks.append(f"--{boundary}--\r\n")
    return "".join(chunks).encode("utf-8"), f"{MULTIPART}; boundary={boundary}"


def encode_body(value: Any, content_type: str) -> tuple[bytes | None, str]:
    """Serialize *value* for *content_type*.

    Returns the body and the content type to send, which only differs from
    the input for multipart (boundary parameter added).
    """
    if value is None:
        return None, content_type
    ct = content_type.lower()
    if "json" in ct:
        return json.dumps(value, separators=(",", ":")).encode("utf-8"), content_type
    if "xml" in ct:
        inner = xml_from_value(value)
        xml = f"<root>{inner}</root>" if isinstance(value, dict) else inner
        return xml.encode("utf-8"), content_type
    if ct.startswith(FORM):
        return encode_form_body(value).encode("utf-8"), content_type
    if ct.startswith(MULTIPART):
        _, _, given = content_type.partition("boundary=")
        return encode_multipart(value, given.strip().strip('"') or None)
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":")).encode("utf-8"), content_type
    return _scalar_text(value).encode("utf-8"), content_type
