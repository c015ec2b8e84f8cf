"""Result models — discovered definitions and per-endpoint outcomes."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# Synthetic status codes; real HTTP statuses start at 100.
STATUS_NETWORK_ERROR = 0
STATUS_SKIPPED = 1

DiscoveryPhase = Literal["direct", "swagger_ui", "brute", "local"]


class DiscoveredSpec(BaseModel):
    """A definition found by discovery. Immutable once produced."""

    model_config = ConfigDict(frozen=True)

    url: str
    phase: DiscoveryPhase
    spec_bytes: bytes
    content_hash: str
    parsed_spec: dict[str, Any]


class EndpointResult(BaseModel):
    """Outcome of one synthesized request."""

    method: str
    status: int
    target: str
    preview: str | None = None
    curl: str | None = None

    @property
    def skipped(self) -> bool:
        return self.status == STATUS_SKIPPED

    @property
    def failed(self) -> bool:
        return self.status == STATUS_NETWORK_ERROR

    def record(self, verbose: bool = False) -> dict[str, Any]:
        """Serializable form; preview and curl only in verbose output."""
        exclude = None if verbose else {"preview", "curl"}
        return self.model_dump(exclude=exclude, exclude_none=True)


class RunReport(BaseModel):
    """One target's run: how the definition was found and what came back."""

    input: str
    spec_url: str = ""
    discovery_used: bool = False
    discovery_phase: str = ""
    api_title: str = ""
    description: str = ""
    results: list[EndpointResult] = Field(default_factory=list)
    error: str | None = None

    def record(self, verbose: bool = False) -> dict[str, Any]:
        data = self.model_dump(exclude={"results"}, exclude_none=True)
        data["results"] = [r.record(verbose) for r in self.results]
        return data


class BulkReport(BaseModel):
    """Aggregate of runs over a URL file."""

    mode: str = "bulk_automate"
    runs: list[RunReport] = Field(default_factory=list)

    @property
    def run_count(self) -> int:
        return len(self.runs)

    def record(self, verbose: bool = False) -> dict[str, Any]:
        return {
            "mode": self.mode,
            "run_count": self.run_count,
            "runs": [r.record(verbose) for r in self.runs],
        }
