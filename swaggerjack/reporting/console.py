"""Console output: per-endpoint lines as they arrive, then a summary table."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from swaggerjack.models.result import STATUS_NETWORK_ERROR, STATUS_SKIPPED, EndpointResult, RunReport


def status_style(status: int) -> str:
    if status == STATUS_NETWORK_ERROR:
        return "red"
    if status == STATUS_SKIPPED:
        return "magenta"
    if 200 <= status < 300:
        return "green"
    if 300 <= status < 400:
        return "cyan"
    if status in (401, 403):
        return "yellow"
    if 400 <= status < 500:
        return "dim"
    return "bold red"


def status_label(status: int) -> str:
    if status == STATUS_NETWORK_ERROR:
        return "ERR"
    if status == STATUS_SKIPPED:
        return "SKIP"
    return str(status)


class ConsoleReporter:
    """Prints results to a rich console."""

    def __init__(self, console: Console | None = None, verbose: bool = False):
        self.console = console or Console()
        self.verbose = verbose

    def result(self, result: EndpointResult) -> None:
        style = status_style(result.status)
        self.console.print(
            f"[{style}]{status_label(result.status):>4}[/{style}] "
            f"{result.method:<7} {escape(result.target)}"
        )
        if self.verbose:
            if result.preview:
                self.console.print(f"       [dim]{escape(result.preview)}[/]")
            if result.curl:
                self.console.print(f"       [dim]{escape(result.curl)}[/]")

    def run_header(self, report: RunReport) -> None:
        title = report.api_title or "untitled API"
        self.console.print(f"\n[bold blue]{escape(title)}[/]")
        if report.description:
            self.console.print(f"  [dim]{escape(report.description)}[/]")
        if report.spec_url:
            via = f" (found via {report.discovery_phase})" if report.discovery_used else ""
            self.console.print(f"  Definition: {escape(report.spec_url)}{via}")

    def lines(self, lines: list[str]) -> None:
        for line in lines:
            self.console.print(line, markup=False, highlight=False)

    def summary(self, reports: list[RunReport]) -> None:
        table = Table(title="Summary")
        table.add_column("Input", style="cyan")
        table.add_column("Definition")
        table.add_column("Requests", justify="right")
        table.add_column("2xx", style="green", justify="right")
        table.add_column("Skipped", style="magenta", justify="right")
        table.add_column("Errors", style="red", justify="right")
        for report in reports:
            if report.error:
                table.add_row(report.input, f"[red]{escape(report.error)}[/]", "0", "0", "0", "0")
                continue
            ok = sum(1 for r in report.results if 200 <= r.status < 300)
            skipped = sum(1 for r in report.results if r.skipped)
            failed = sum(1 for r in report.results if r.failed)
            table.add_row(
                report.input,
                report.spec_url,
                str(len(report.results)),
                str(ok),
                str(skipped),
                str(failed),
            )
        self.console.print(table)
