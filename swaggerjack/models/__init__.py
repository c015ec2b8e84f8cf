"""Data models."""

from swaggerjack.models.result import BulkReport, DiscoveredSpec, EndpointResult, RunReport

__all__ = ["BulkReport", "DiscoveredSpec", "EndpointResult", "RunReport"]
