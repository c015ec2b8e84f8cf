"""Per-target orchestration: locate a definition, then run a workflow over it."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from swaggerjack.auth import prompt_for_credentials
from swaggerjack.config import Settings
from swaggerjack.core.prompt import PromptPort
from swaggerjack.core.workflow import SynthesisRun, Workflow, WorkflowKind, WorkflowOutput
from swaggerjack.discovery.collector import DiscoveryOptions, OnDiscovered
from swaggerjack.discovery.locator import SpecLocator
from swaggerjack.errors import ConfigError, NoSpecFoundError
from swaggerjack.models.result import BulkReport, DiscoveredSpec, RunReport
from swaggerjack.spec.loader import SpecDocument, load_spec_file
from swaggerjack.utils.targets import normalize_target_input

logger = logging.getLogger(__name__)

Outcome = tuple[RunReport, WorkflowOutput]


class TargetRunner:
    """Feeds definitions from local files, URLs or discovery into one workflow."""

    def __init__(
        self,
        locator: SpecLocator,
        workflow: Workflow,
        settings: Settings | None = None,
        prompt: PromptPort | None = None,
        on_start: Callable[[RunReport], None] | None = None,
    ):
        self.locator = locator
        self.workflow = workflow
        self.settings = settings or Settings()
        self.prompt = prompt
        self.on_start = on_start
        self.quit_requested = False

    def _synthesis_run(
        self, document: SpecDocument, spec_url: str, target_override: str | None,
    ) -> SynthesisRun:
        auth = None
        if self.workflow.kind is WorkflowKind.AUTOMATE:
            auth = prompt_for_credentials(
                document,
                self.prompt,
                quiet=self.settings.safety.quiet,
                supplied_headers=self.settings.http.headers,
            )
        return SynthesisRun(document, self.settings, spec_url, target_override, auth)

    async def run_document(
        self,
        document: SpecDocument,
        source: str,
        spec_url: str = "",
        phase: str = "",
        discovery_used: bool = False,
        target_override: str | None = None,
    ) -> Outcome:
        report = RunReport(
            input=source,
            spec_url=spec_url,
            discovery_used=discovery_used,
            discovery_phase=phase,
            api_title=document.title,
            description=document.description,
        )
        if self.on_start is not None:
            self.on_start(report)
        try:
            output = await self.workflow.run(self._synthesis_run(document, spec_url, target_override))
        except ConfigError as e:
            report.error = str(e)
            return report, WorkflowOutput()
        report.results = output.results
        if output.quit_requested:
            self.quit_requested = True
        return report, output

    async def run_file(self, path: Path | str, target_override: str | None = None) -> Outcome:
        """Local definition. Unreadable or invalid files raise."""
        document = load_spec_file(path)
        return await self.run_document(document, source=str(path), phase="local", target_override=target_override)

    async def run_discovered(self, found: DiscoveredSpec, source: str, target_override: str | None = None) -> Outcome:
        document = SpecDocument(data=found.parsed_spec, source_url=found.url, raw=found.spec_bytes)
        return await self.run_document(
            document,
            source=source,
            spec_url=found.url,
            phase=found.phase,
            discovery_used=True,
            target_override=target_override,
        )

    async def run_url(
        self,
        seed: str,
        target_override: str | None = None,
        fallback_brute: bool = False,
        wordlist: Path | str | None = None,
    ) -> list[Outcome]:
        """The seed itself, or whatever discovery finds behind it.

        Failures are returned as reports carrying an error, never raised.
        """
        try:
            normalized = normalize_target_input(seed)
        except ValueError as e:
            return [(RunReport(input=seed, error=str(e)), WorkflowOutput())]

        spec = await self.locator.fetch_and_validate(normalized)
        if spec is not None:
            document = SpecDocument(data=spec, source_url=normalized)
            return [await self.run_document(
                document, source=seed, spec_url=normalized, phase="direct", target_override=target_override,
            )]

        if not fallback_brute:
            return [(RunReport(input=seed, error=f"no definition file found at {normalized}"), WorkflowOutput())]
        return await self.run_discovery(seed, wordlist, target_override)

    async def run_discovery(
        self,
        seed: str,
        wordlist: Path | str | None = None,
        target_override: str | None = None,
    ) -> list[Outcome]:
        """Discover definitions behind *seed* and run the workflow on each as it is found."""
        outcomes: list[Outcome] = []

        async def on_found(found: DiscoveredSpec) -> None:
            if not self.quit_requested:
                outcomes.append(await self.run_discovered(found, seed, target_override))

        try:
            await self.discover(seed, wordlist, on_found)
        except NoSpecFoundError as e:
            return [(RunReport(input=seed, discovery_used=True, error=str(e)), WorkflowOutput())]
        except ValueError as e:
            return [(RunReport(input=seed, error=str(e)), WorkflowOutput())]
        return outcomes

    async def discover(
        self,
        seed: str,
        wordlist: Path | str | None = None,
        on_discovered: OnDiscovered | None = None,
    ) -> list[DiscoveredSpec]:
        options = DiscoveryOptions.from_settings(self.settings.discovery, on_discovered)
        return await self.locator.discover(seed, wordlist, options)

    async def run_bulk(
        self,
        targets: list[str],
        invalid: list[str] | None = None,
        target_override: str | None = None,
        fallback_brute: bool = False,
        wordlist: Path | str | None = None,
    ) -> BulkReport:
        """Every target in turn; one target's failure does not stop the batch."""
        bulk = BulkReport()
        for entry in invalid or []:
            bulk.runs.append(RunReport(input=entry, error="invalid target URL"))
        for seed in targets:
            if self.quit_requested:
                logger.info("Skipping remaining targets after quit")
                break
            for report, _ in await self.run_url(seed, target_override, fallback_brute, wordlist):
                bulk.runs.append(report)
        return bulk
