"""OpenAPI/Swagger document handling: loading, $ref resolution, example synthesis."""

from swaggerjack.spec.loader import SpecDocument, is_swagger_spec, load_spec_file, parse_spec_bytes
from swaggerjack.spec.resolver import SchemaResolver
from swaggerjack.spec.synthesis import ExampleSynthesizer, SchemaNode

__all__ = [
    "ExampleSynthesizer",
    "SchemaNode",
    "SchemaResolver",
    "SpecDocument",
    "is_swagger_spec",
    "load_spec_file",
    "parse_spec_bytes",
]
