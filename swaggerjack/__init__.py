"""SwaggerJack — find exposed API definitions and exercise every declared operation."""

from __future__ import annotations

__version__ = "1.0.0"
