"""Tests for package metadata and the error taxonomy."""

from swaggerjack import __version__
from swaggerjack.errors import (
    ConfigError,
    MutationError,
    NoSpecFoundError,
    RefTraversalError,
    SpecParseError,
    SwaggerJackError,
)


def test_version():
    assert __version__ == "1.0.0"


def test_errors_share_base():
    for cls in (ConfigError, MutationError, RefTraversalError, SpecParseError):
        assert issubclass(cls, SwaggerJackError)


def test_no_spec_found_carries_seed():
    err = NoSpecFoundError("example.com")
    assert err.seed == "example.com"
    assert "example.com" in str(err)
    assert isinstance(err, SwaggerJackError)
