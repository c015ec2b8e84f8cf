"""Report rendering: rich console tables and JSON files."""

from swaggerjack.reporting.console import ConsoleReporter
from swaggerjack.reporting.json import JsonReportWriter

__all__ = ["ConsoleReporter", "JsonReportWriter"]
