"""Target input normalization and URL-file loading."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import urlparse

from swaggerjack.errors import ConfigError


def normalize_target_input(raw: str) -> str:
    """Trim and add ``https://`` when no scheme is given.

    Raises ValueError for empty input, comment lines and unparseable URLs.
    """
    trimmed = raw.strip()
    if not trimmed:
        msg = "target is empty"
        raise ValueError(msg)
    if trimmed.startswith("#"):
        msg = "target is a comment"
        raise ValueError(msg)
    if "://" not in trimmed:
        trimmed = "https://" + trimmed
    parsed = urlparse(trimmed)
    if not parsed.scheme or not parsed.netloc:
        msg = f"invalid target URL: {raw.strip()}"
        raise ValueError(msg)
    return trimmed


def scheme_host_only(url: str) -> str:
    """``scheme://host[:port]`` of *url*; empty when either part is missing."""
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        return ""
    return f"{parsed.scheme}://{parsed.netloc}"


def load_url_file(path: Path | str) -> tuple[list[str], list[str]]:
    """Read one target per line.

    Returns ``(targets, invalid)``; blank and ``#`` lines are neither.
    """
    try:
        lines = Path(path).read_text(encoding="utf-8", errors="ignore").splitlines()
    except OSError as e:
        msg = f"cannot read URL file {path}: {e}"
        raise ConfigError(msg) from e

    targets: list[str] = []
    invalid: list[str] = []
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        try:
            targets.append(normalize_target_input(stripped))
        except ValueError:
            invalid.append(stripped)
    return targets, invalid
