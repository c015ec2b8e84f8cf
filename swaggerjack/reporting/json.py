"""JSON report writer."""

from __future__ import annotations

import json
from pathlib import Path

from swaggerjack.models.result import BulkReport, RunReport


class JsonReportWriter:
    """Renders a run or bulk report as JSON."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def render(self, report: RunReport | BulkReport | list[RunReport]) -> str:
        if isinstance(report, list):
            data = [r.record(self.verbose) for r in report]
        else:
            data = report.record(self.verbose)
        return json.dumps(data, indent=2, ensure_ascii=False)

    def write(self, report: RunReport | BulkReport | list[RunReport], output_path: Path | str) -> Path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.render(report) + "\n", encoding="utf-8")
        return output_path
