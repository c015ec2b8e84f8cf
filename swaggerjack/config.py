"""Configuration — Pydantic Settings + YAML loading."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

from swaggerjack.errors import ConfigError

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "default.yaml"

DATE_FORMAT = "%Y-%m-%d"

DANGEROUS_KEYWORDS = [
    "block", "change", "clear", "delete", "destroy", "drop", "erase",
    "overwrite", "pause", "rebuild", "remove", "replace", "reset",
    "restart", "revoke", "set", "stop", "write",
]


class HttpSettings(BaseSettings):
    timeout: float = 30.0
    user_agent: str = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    random_user_agent: bool = False
    verify_ssl: bool = False
    proxy: str | None = None
    max_redirect_hops: int = 1
    headers: list[str] = Field(default_factory=list)


class RateLimitSettings(BaseSettings):
    requests_per_second: float = 15.0
    burst: int = 1


class SynthesisSettings(BaseSettings):
    test_string: str = "bishopfox"
    date_value: str = "2024-01-01"
    url_value: str = "https://example.com"
    email_value: str = "test@example.com"
    version_value: str = "v1"
    content_type: str | None = None
    base_path: str | None = None
    max_depth: int = 32
    max_ref_expansions: int = 1000

    @field_validator("date_value")
    @classmethod
    def _check_date(cls, v: str) -> str:
        try:
            datetime.strptime(v, DATE_FORMAT)
        except ValueError as e:
            msg = f"invalid date {v!r}, expected YYYY-MM-DD"
            raise ValueError(msg) from e
        return v


class SafetySettings(BaseSettings):
    dangerous_keywords: list[str] = Field(default_factory=lambda: list(DANGEROUS_KEYWORDS))
    safe_words: list[str] = Field(default_factory=list)
    quiet: bool = False


class InteractiveSettings(BaseSettings):
    enhanced: bool = False
    max_retries: int = 5


class DiscoverySettings(BaseSettings):
    continue_search: bool = False
    max_found: int = 0
    dedupe: Literal["url_and_hash", "url"] = "url_and_hash"

    @field_validator("max_found")
    @classmethod
    def _clamp_max_found(cls, v: int) -> int:
        return max(v, 0)


class OutputSettings(BaseSettings):
    verbose: bool = False
    preview_length: int = 50


class Settings(BaseSettings):
    """Root settings — merges defaults, YAML config, and env vars."""

    http: HttpSettings = Field(default_factory=HttpSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    synthesis: SynthesisSettings = Field(default_factory=SynthesisSettings)
    safety: SafetySettings = Field(default_factory=SafetySettings)
    interactive: InteractiveSettings = Field(default_factory=InteractiveSettings)
    discovery: DiscoverySettings = Field(default_factory=DiscoverySettings)
    output: OutputSettings = Field(default_factory=OutputSettings)
    log_level: str = "INFO"

    def check(self) -> None:
        """Raise ConfigError for option combinations that cannot run together."""
        if self.interactive.enhanced and self.safety.quiet:
            msg = "enhanced mode is interactive and cannot be combined with quiet mode"
            raise ConfigError(msg)
        if self.interactive.enhanced and self.interactive.max_retries < 1:
            msg = "max retries must be at least 1 in enhanced mode"
            raise ConfigError(msg)

    @classmethod
    def load(
        cls,
        config_path: Path | str | None = None,
        overrides: dict[str, Any] | None = None,
    ) -> Settings:
        """Load settings from YAML file, falling back to defaults.

        *overrides* is merged section by section on top of the file, which is
        how command-line flags reach the settings.
        """
        data: dict[str, Any] = {}

        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH

        path = Path(config_path)
        if path.exists():
            try:
                with open(path, encoding="utf-8") as f:
                    raw = yaml.safe_load(f)
            except (OSError, yaml.YAMLError) as e:
                msg = f"cannot read config {path}: {e}"
                raise ConfigError(msg) from e
            if isinstance(raw, dict):
                data = raw

        for section, values in (overrides or {}).items():
            if isinstance(values, dict):
                merged = dict(data.get(section) or {})
                merged.update(values)
                data[section] = merged
            else:
                data[section] = values

        try:
            settings = cls(**data)
        except ValidationError as e:
            raise ConfigError(str(e)) from e
        settings.check()
        return settings
