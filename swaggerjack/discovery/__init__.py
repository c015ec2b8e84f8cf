"""Locating exposed OpenAPI/Swagger definitions."""

from swaggerjack.discovery.collector import DiscoveryCollector, DiscoveryOptions
from swaggerjack.discovery.locator import SpecLocator

__all__ = ["DiscoveryCollector", "DiscoveryOptions", "SpecLocator"]
