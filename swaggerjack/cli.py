"""Typer CLI — discovery, request synthesis and execution against API definitions."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import typer
import yaml
from rich.console import Console

from swaggerjack import __version__
from swaggerjack.config import Settings
from swaggerjack.core.prompt import ConsolePrompt
from swaggerjack.core.runner import TargetRunner
from swaggerjack.core.workflow import AutomateWorkflow, EndpointsWorkflow, PrepareWorkflow, Workflow
from swaggerjack.discovery.locator import SpecLocator
from swaggerjack.errors import ConfigError, NoSpecFoundError, SpecParseError, SwaggerJackError
from swaggerjack.models.result import BulkReport, RunReport
from swaggerjack.reporting.console import ConsoleReporter
from swaggerjack.reporting.json import JsonReportWriter
from swaggerjack.spec.convert import convert_to_v3
from swaggerjack.spec.loader import get_str, load_spec_file
from swaggerjack.utils.http import AsyncHttpClient
from swaggerjack.utils.rate_limiter import RateLimiter
from swaggerjack.utils.targets import load_url_file

app = typer.Typer(
    name="swaggerjack",
    help="SwaggerJack — OpenAPI/Swagger discovery and request synthesis",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool = False, config_level: str | None = None) -> None:
    if verbose:
        level = logging.DEBUG
    elif config_level:
        level = getattr(logging, config_level.upper(), logging.INFO)
    else:
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def validate_automate_options(
    url: str | None,
    url_file: str | None,
    local_file: str | None,
    fallback_brute: bool = False,
) -> None:
    """Reject target-source combinations that cannot run together."""
    if url and url_file:
        msg = "--url and --url-file cannot be used together"
        raise ConfigError(msg)
    if local_file and url_file:
        msg = "--local-file and --url-file cannot be used together"
        raise ConfigError(msg)
    if local_file and url:
        msg = "--local-file and --url cannot be used together"
        raise ConfigError(msg)
    if fallback_brute and local_file:
        msg = "--fallback-brute requires a URL target, not --local-file"
        raise ConfigError(msg)
    if not (url or url_file or local_file):
        msg = "a target is required: --url, --url-file or --local-file"
        raise ConfigError(msg)


def validate_brute_options(
    run_automate: bool,
    endpoint_only: bool,
    max_found: int,
    continue_search: bool,
) -> None:
    if run_automate and endpoint_only:
        msg = "--run-automate and --endpoint-only cannot be used together"
        raise ConfigError(msg)
    if max_found > 0 and not continue_search:
        msg = "--max-found requires --continue"
        raise ConfigError(msg)


def _section(**values: Any) -> dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None and v != []}


def _load_settings(config: str | None, overrides: dict[str, dict[str, Any]]) -> Settings:
    settings = Settings.load(config, {k: v for k, v in overrides.items() if v})
    _setup_logging(settings.output.verbose, config_level=settings.log_level)
    return settings


def _fail(error: Exception) -> typer.Exit:
    console.print(f"[red]Error:[/] {error}")
    return typer.Exit(1)


async def _run_targets(
    settings: Settings,
    workflow_factory,
    reporter: ConsoleReporter,
    url: str | None = None,
    url_file: str | None = None,
    local_file: str | None = None,
    target: str | None = None,
    fallback_brute: bool = False,
    wordlist: str | None = None,
) -> tuple[list[RunReport] | BulkReport, list[str]]:
    """Drive one workflow over the chosen target source.

    Returns the reports plus any command/endpoint lines the workflow produced.
    """
    lines: list[str] = []
    async with AsyncHttpClient.from_settings(settings.http) as http:
        rate = RateLimiter(settings.rate_limit.requests_per_second, settings.rate_limit.burst)
        prompt = ConsolePrompt(console)
        workflow: Workflow = workflow_factory(http, rate, prompt)
        runner = TargetRunner(
            SpecLocator(http, rate, settings.http.timeout),
            workflow,
            settings,
            prompt,
            on_start=reporter.run_header if isinstance(workflow, AutomateWorkflow) else None,
        )

        if local_file:
            report, output = await runner.run_file(local_file, target)
            return [report], output.lines

        if url_file:
            targets, invalid = load_url_file(url_file)
            for entry in invalid:
                logger.warning("Skipping invalid target: %s", entry)
            bulk = await runner.run_bulk(targets, invalid, target, fallback_brute, wordlist)
            return bulk, lines

        outcomes = await runner.run_url(url or "", target, fallback_brute, wordlist)
        for _, output in outcomes:
            lines.extend(output.lines)
        return [report for report, _ in outcomes], lines


def _finish(
    reports: list[RunReport] | BulkReport,
    reporter: ConsoleReporter,
    outfile: str | None,
    verbose: bool,
    show_summary: bool = True,
) -> None:
    runs = reports.runs if isinstance(reports, BulkReport) else reports
    if show_summary:
        reporter.summary(runs)
    else:
        for run in runs:
            if run.error:
                console.print(f"[red]{run.input}:[/] {run.error}")
    if outfile:
        payload = reports if isinstance(reports, BulkReport) or len(reports) != 1 else reports[0]
        path = JsonReportWriter(verbose).write(payload, outfile)
        console.print(f"  Report: {path}")


@app.command()
def automate(
    url: str | None = typer.Option(None, "--url", "-u", help="URL of the definition file"),
    url_file: str | None = typer.Option(None, "--url-file", "-F", help="File with one target URL per line"),
    local_file: str | None = typer.Option(None, "--local-file", "-l", help="Local definition file"),
    target: str | None = typer.Option(None, "--target", "-T", help="Override the API host from the definition"),
    base_path: str | None = typer.Option(None, "--base-path", "-b", help="Override the API base path"),
    headers: list[str] | None = typer.Option(None, "--header", "-H", help="Extra header, 'Name: Value'"),
    content_type: str | None = typer.Option(None, "--content-type", help="Force the request body content type"),
    rate: float | None = typer.Option(None, "--rate", "-r", help="Requests per second (0 disables limiting)"),
    timeout: float | None = typer.Option(None, "--timeout", "-t", help="Request timeout in seconds"),
    proxy: str | None = typer.Option(None, "--proxy", "-p", help="Proxy URL"),
    user_agent: str | None = typer.Option(None, "--user-agent", "-A", help="User-Agent header"),
    random_user_agent: bool = typer.Option(False, "--random-user-agent", help="Random browser User-Agent per request"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Skip dangerous requests without asking"),
    safe_words: list[str] | None = typer.Option(None, "--safe-word", help="Dangerous keyword to allow"),
    enhanced: bool = typer.Option(False, "--enhanced", "-e", help="Modify ambiguous requests interactively"),
    max_retries: int | None = typer.Option(None, "--max-retries", help="Attempts per endpoint in enhanced mode"),
    fallback_brute: bool = typer.Option(False, "--fallback-brute", help="Search the host when the URL is not a definition"),
    wordlist: str | None = typer.Option(None, "--wordlist", "-w", help="Wordlist for fallback brute force"),
    date: str | None = typer.Option(None, "--date", help="Date literal used in synthesized values (YYYY-MM-DD)"),
    outfile: str | None = typer.Option(None, "--outfile", "-o", help="Write a JSON report"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Include previews and curl commands"),
    config: str | None = typer.Option(None, help="Path to config YAML"),
):
    """Send a request to every endpoint in the definition and report the status codes."""
    try:
        validate_automate_options(url, url_file, local_file, fallback_brute)
        settings = _load_settings(config, {
            "http": _section(
                headers=headers, timeout=timeout, proxy=proxy, user_agent=user_agent,
                random_user_agent=random_user_agent or None,
            ),
            "rate_limit": _section(requests_per_second=rate),
            "synthesis": _section(content_type=content_type, base_path=base_path, date_value=date),
            "safety": _section(quiet=quiet or None, safe_words=safe_words),
            "interactive": _section(enhanced=enhanced or None, max_retries=max_retries),
            "output": _section(verbose=verbose or None),
        })
    except ConfigError as e:
        raise _fail(e) from e

    console.print(f"[bold blue]SwaggerJack v{__version__}[/] — automate")
    reporter = ConsoleReporter(console, settings.output.verbose)

    def factory(http, limiter, prompt):
        return AutomateWorkflow(http, limiter, prompt, settings, on_result=reporter.result)

    try:
        reports, _ = asyncio.run(_run_targets(
            settings, factory, reporter,
            url=url, url_file=url_file, local_file=local_file, target=target,
            fallback_brute=fallback_brute, wordlist=wordlist,
        ))
    except SwaggerJackError as e:
        raise _fail(e) from e
    _finish(reports, reporter, outfile, settings.output.verbose)


@app.command()
def prepare(
    url: str | None = typer.Option(None, "--url", "-u", help="URL of the definition file"),
    local_file: str | None = typer.Option(None, "--local-file", "-l", help="Local definition file"),
    target: str | None = typer.Option(None, "--target", "-T", help="Override the API host from the definition"),
    base_path: str | None = typer.Option(None, "--base-path", "-b", help="Override the API base path"),
    headers: list[str] | None = typer.Option(None, "--header", "-H", help="Extra header, 'Name: Value'"),
    content_type: str | None = typer.Option(None, "--content-type", help="Force the request body content type"),
    tool: str = typer.Option("curl", "--tool", help="Command format: curl or sqlmap"),
    config: str | None = typer.Option(None, help="Path to config YAML"),
):
    """Print a command for every endpoint instead of sending it."""
    try:
        validate_automate_options(url, None, local_file)
        settings = _load_settings(config, {
            "http": _section(headers=headers),
            "synthesis": _section(content_type=content_type, base_path=base_path),
        })
        workflow = PrepareWorkflow(tool)
        reporter = ConsoleReporter(console)
        reports, lines = asyncio.run(_run_targets(
            settings, lambda *_: workflow, reporter,
            url=url, local_file=local_file, target=target,
        ))
    except SwaggerJackError as e:
        raise _fail(e) from e
    reporter.lines(lines)
    _finish(reports, reporter, None, False, show_summary=False)


@app.command()
def endpoints(
    url: str | None = typer.Option(None, "--url", "-u", help="URL of the definition file"),
    local_file: str | None = typer.Option(None, "--local-file", "-l", help="Local definition file"),
    target: str | None = typer.Option(None, "--target", "-T", help="Override the API host from the definition"),
    base_path: str | None = typer.Option(None, "--base-path", "-b", help="Override the API base path"),
    config: str | None = typer.Option(None, help="Path to config YAML"),
):
    """List every endpoint path the definition declares."""
    try:
        validate_automate_options(url, None, local_file)
        settings = _load_settings(config, {"synthesis": _section(base_path=base_path)})
        reporter = ConsoleReporter(console)
        reports, lines = asyncio.run(_run_targets(
            settings, lambda *_: EndpointsWorkflow(), reporter,
            url=url, local_file=local_file, target=target,
        ))
    except SwaggerJackError as e:
        raise _fail(e) from e
    reporter.lines(lines)
    _finish(reports, reporter, None, False, show_summary=False)


async def _brute(
    settings: Settings,
    seed: str,
    wordlist: str | None,
    reporter: ConsoleReporter,
    run_automate: bool,
    endpoint_only: bool,
    target: str | None,
) -> list[RunReport]:
    async with AsyncHttpClient.from_settings(settings.http) as http:
        rate = RateLimiter(settings.rate_limit.requests_per_second, settings.rate_limit.burst)
        prompt = ConsolePrompt(console)
        locator = SpecLocator(http, rate, settings.http.timeout)

        if run_automate or endpoint_only:
            if run_automate:
                workflow: Workflow = AutomateWorkflow(http, rate, prompt, settings, on_result=reporter.result)
            else:
                workflow = EndpointsWorkflow()
            runner = TargetRunner(locator, workflow, settings, prompt, on_start=reporter.run_header)
            outcomes = await runner.run_discovery(seed, wordlist, target)
            for _, output in outcomes:
                reporter.lines(output.lines)
            return [report for report, _ in outcomes]

        runner = TargetRunner(locator, EndpointsWorkflow(), settings, prompt)
        found = await runner.discover(seed, wordlist)
        for spec in found:
            console.print(f"[green]{spec.phase:>10}[/] {spec.url}")
        return [
            RunReport(input=seed, spec_url=spec.url, discovery_used=True, discovery_phase=spec.phase)
            for spec in found
        ]


@app.command()
def brute(
    url: str = typer.Option(..., "--url", "-u", help="Host or URL to search"),
    wordlist: str | None = typer.Option(None, "--wordlist", "-w", help="Wordlist of candidate paths"),
    continue_search: bool = typer.Option(False, "--continue", "-c", help="Keep searching after the first hit"),
    max_found: int = typer.Option(0, "--max-found", help="Stop after this many definitions (needs --continue)"),
    dedupe: str | None = typer.Option(None, "--dedupe", help="url_and_hash or url"),
    run_automate: bool = typer.Option(False, "--run-automate", help="Run automate on every definition found"),
    endpoint_only: bool = typer.Option(False, "--endpoint-only", help="List the endpoints of every definition found"),
    target: str | None = typer.Option(None, "--target", "-T", help="Override the API host from the definition"),
    headers: list[str] | None = typer.Option(None, "--header", "-H", help="Extra header, 'Name: Value'"),
    rate: float | None = typer.Option(None, "--rate", "-r", help="Requests per second (0 disables limiting)"),
    timeout: float | None = typer.Option(None, "--timeout", "-t", help="Request timeout in seconds"),
    proxy: str | None = typer.Option(None, "--proxy", "-p", help="Proxy URL"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Skip dangerous requests without asking"),
    outfile: str | None = typer.Option(None, "--outfile", "-o", help="Write a JSON report"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Include previews and curl commands"),
    config: str | None = typer.Option(None, help="Path to config YAML"),
):
    """Search a host for exposed definition files."""
    try:
        validate_brute_options(run_automate, endpoint_only, max_found, continue_search)
        settings = _load_settings(config, {
            "http": _section(headers=headers, timeout=timeout, proxy=proxy),
            "rate_limit": _section(requests_per_second=rate),
            "safety": _section(quiet=quiet or None),
            "discovery": _section(
                continue_search=continue_search or None,
                max_found=max_found or None,
                dedupe=dedupe,
            ),
            "output": _section(verbose=verbose or None),
        })
    except ConfigError as e:
        raise _fail(e) from e

    console.print(f"[bold blue]SwaggerJack v{__version__}[/] — searching [bold]{url}[/]")
    reporter = ConsoleReporter(console, settings.output.verbose)
    try:
        reports = asyncio.run(_brute(settings, url, wordlist, reporter, run_automate, endpoint_only, target))
    except NoSpecFoundError as e:
        console.print(f"[yellow]{e}[/]")
        raise typer.Exit(1) from e
    except (SwaggerJackError, ValueError) as e:
        raise _fail(e) from e
    _finish(reports, reporter, outfile, settings.output.verbose, show_summary=run_automate)


def render_document(data: dict[str, Any], fmt: str) -> str:
    if fmt == "yaml":
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


async def _fetch_definition(settings: Settings, url: str) -> dict[str, Any]:
    async with AsyncHttpClient.from_settings(settings.http) as http:
        rate = RateLimiter(settings.rate_limit.requests_per_second, settings.rate_limit.burst)
        data = await SpecLocator(http, rate, settings.http.timeout).fetch_and_validate(url)
    if data is None:
        msg = f"no definition file at {url}"
        raise NoSpecFoundError(msg)
    return data


@app.command()
def convert(
    url: str | None = typer.Option(None, "--url", "-u", help="URL of the definition file"),
    local_file: str | None = typer.Option(None, "--local-file", "-l", help="Local definition file"),
    fmt: str = typer.Option("json", "--format", "-f", help="Output format: json or yaml"),
    outfile: str | None = typer.Option(None, "--outfile", "-o", help="Write the converted definition here"),
    headers: list[str] | None = typer.Option(None, "--header", "-H", help="Extra header, 'Name: Value'"),
    proxy: str | None = typer.Option(None, "--proxy", "-p", help="Proxy URL"),
    config: str | None = typer.Option(None, help="Path to config YAML"),
):
    """Convert a Swagger 2.0 definition to OpenAPI 3.0."""
    fmt = fmt.lower()
    try:
        validate_automate_options(url, None, local_file)
        if fmt not in ("json", "yaml"):
            msg = f"unknown format {fmt!r}: expected json or yaml"
            raise ConfigError(msg)
        settings = _load_settings(config, {"http": _section(headers=headers, proxy=proxy)})
        data = load_spec_file(local_file).data if local_file else asyncio.run(_fetch_definition(settings, url or ""))
    except SwaggerJackError as e:
        raise _fail(e) from e

    if outfile and fmt == "json" and Path(outfile).suffix.lower() in (".yaml", ".yml"):
        err_console.print("[yellow]Warning:[/] output file has a YAML extension but --format is json")

    if get_str(data, "openapi"):
        err_console.print("[yellow]Warning:[/] definition is already OpenAPI 3; writing it unchanged")
        converted = data
    elif get_str(data, "swagger").startswith("2"):
        converted = convert_to_v3(data)
    else:
        raise _fail(SpecParseError("not a Swagger 2.0 or OpenAPI 3 definition"))

    text = render_document(converted, fmt)
    if not outfile:
        typer.echo(text, nl=False)
        return
    path = Path(outfile).resolve()
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise _fail(ConfigError(f"cannot write {path}: {e}")) from e
    console.print(f"Wrote {path}")


@app.command()
def version():
    """Show version."""
    console.print(f"SwaggerJack v{__version__}")


if __name__ == "__main__":
    app()
