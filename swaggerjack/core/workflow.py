"""Workflows over a synthesized definition: automate, prepare, endpoints.

Each workflow consumes the same ``SynthesisRun`` and decides what to do
with the generated requests.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar

from swaggerjack.auth import AuthOutcome
from swaggerjack.config import Settings
from swaggerjack.core.builder import RequestBuilder, RequestDescriptor, server_targets
from swaggerjack.core.executor import Executor, is_ambiguous_response
from swaggerjack.core.interactive import InteractiveMutator
from swaggerjack.core.prompt import PromptPort
from swaggerjack.core.safety import SafetyGate
from swaggerjack.errors import ConfigError
from swaggerjack.models.result import EndpointResult
from swaggerjack.spec.loader import SpecDocument
from swaggerjack.spec.resolver import SchemaResolver
from swaggerjack.spec.synthesis import ExampleSynthesizer
from swaggerjack.utils.http import AsyncHttpClient
from swaggerjack.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class WorkflowKind(str, Enum):
    AUTOMATE = "automate"
    PREPARE = "prepare"
    ENDPOINTS = "endpoints"


class SynthesisRun:
    """Everything needed to synthesize requests for one definition.

    Owns the external-ref cache (through its resolver) for the lifetime of
    the run; nothing is shared between runs.
    """

    def __init__(
        self,
        document: SpecDocument,
        settings: Settings | None = None,
        spec_url: str = "",
        target_override: str | None = None,
        auth: AuthOutcome | None = None,
    ):
        self.document = document
        self.settings = settings or Settings()
        self.spec_url = spec_url or document.source_url
        self.resolver = SchemaResolver(document)
        self.synthesizer = ExampleSynthesizer(self.resolver, self.settings.synthesis)
        auth = auth or AuthOutcome()
        self.builder = RequestBuilder(
            document,
            self.synthesizer,
            self.settings,
            extra_headers=auth.headers,
            extra_query=auth.query,
        )
        self.targets = server_targets(
            document, self.spec_url, target_override, self.settings.synthesis.base_path,
        )

    @property
    def title(self) -> str:
        return self.document.title

    @property
    def description(self) -> str:
        return self.document.description

    def requests(self) -> Iterator[RequestDescriptor]:
        for target in self.targets:
            yield from self.builder.build_all(target)


@dataclass
class WorkflowOutput:
    results: list[EndpointResult] = field(default_factory=list)
    lines: list[str] = field(default_factory=list)
    quit_requested: bool = False


class Workflow(ABC):
    kind: ClassVar[WorkflowKind]

    @abstractmethod
    async def run(self, run: SynthesisRun) -> WorkflowOutput: ...


class AutomateWorkflow(Workflow):
    """Send every request and record the outcome.

    The only workflow that consults the safety gate and, in enhanced mode,
    hands ambiguous responses to the interactive mutator.
    """

    kind = WorkflowKind.AUTOMATE

    def __init__(
        self,
        http: AsyncHttpClient,
        rate: RateLimiter | None = None,
        prompt: PromptPort | None = None,
        settings: Settings | None = None,
        on_result: Callable[[EndpointResult], None] | None = None,
    ):
        self.http = http
        self.rate = rate
        self.prompt = prompt
        self.settings = settings or Settings()
        self.on_result = on_result

    async def run(self, run: SynthesisRun) -> WorkflowOutput:
        missing = [t for t in run.targets if not t.api_target]
        if missing:
            msg = "definition declares no usable host; supply a target URL"
            raise ConfigError(msg)

        gate = SafetyGate.from_settings(self.settings.safety, self.prompt)
        executor = Executor(
            self.http,
            self.rate,
            gate,
            timeout=self.settings.http.timeout,
            max_redirect_hops=self.settings.http.max_redirect_hops,
        )
        mutator = None
        if self.settings.interactive.enhanced and self.prompt is not None:
            mutator = InteractiveMutator(
                self.prompt, executor, run.builder, self.settings.interactive.max_retries,
            )

        output = WorkflowOutput()
        for request in run.requests():
            result = await executor.execute(request)
            sent, quit_run = request, False
            if mutator is not None and is_ambiguous_response(result.status):
                outcome = await mutator.run(request, result)
                sent, result, quit_run = outcome.request, outcome.result, outcome.quit_requested

            record = EndpointResult(
                method=sent.method,
                status=result.status,
                target=sent.url,
                preview=result.preview(self.settings.output.preview_length),
                curl=sent.to_curl(),
            )
            output.results.append(record)
            if self.on_result is not None:
                self.on_result(record)
            if quit_run:
                logger.info("Run stopped by operator")
                output.quit_requested = True
                break
        return output


class PrepareWorkflow(Workflow):
    """Command strings for an external tool; nothing is sent."""

    kind = WorkflowKind.PREPARE
    TOOLS = ("curl", "sqlmap")

    def __init__(self, tool: str = "curl"):
        if tool not in self.TOOLS:
            msg = f"unsupported tool {tool!r}, expected one of {', '.join(self.TOOLS)}"
            raise ConfigError(msg)
        self.tool = tool

    async def run(self, run: SynthesisRun) -> WorkflowOutput:
        output = WorkflowOutput()
        for request in run.requests():
            output.lines.append(request.to_sqlmap() if self.tool == "sqlmap" else request.to_curl())
        return output


class EndpointsWorkflow(Workflow):
    """Every declared path, prefixed with its base path."""

    kind = WorkflowKind.ENDPOINTS

    async def run(self, run: SynthesisRun) -> WorkflowOutput:
        output = WorkflowOutput()
        seen: set[str] = set()
        for target in run.targets:
            for path in run.document.paths:
                endpoint = f"{target.base_path}{path}"
                if endpoint not in seen:
                    seen.add(endpoint)
                    output.lines.append(endpoint)
        return output
