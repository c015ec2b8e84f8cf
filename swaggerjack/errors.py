"""Exception taxonomy.

Only ``ConfigError`` is fatal: it is raised before any request is sent and
the CLI turns it into a non-zero exit. Everything else is recovered close to
where it is raised.
"""

from __future__ import annotations


class SwaggerJackError(Exception):
    """Base class for all errors raised by the package."""


class ConfigError(SwaggerJackError):
    """Conflicting options, unreadable inputs or invalid settings."""


class SpecParseError(SwaggerJackError):
    """A body is not JSON/YAML or not a recognizable OpenAPI/Swagger document."""


class NoSpecFoundError(SwaggerJackError):
    """Discovery exhausted every phase without finding a definition."""

    def __init__(self, seed: str):
        self.seed = seed
        super().__init__(f"no definition file found for {seed}")


class RefTraversalError(SwaggerJackError):
    """An external ``$ref`` points outside the definition's base directory."""


class MutationError(SwaggerJackError):
    """Operator input that cannot be applied to the current request."""
