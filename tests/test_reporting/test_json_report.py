"""Tests for JSON report output."""

import json

from swaggerjack.models.result import BulkReport, EndpointResult, RunReport
from swaggerjack.reporting.json import JsonReportWriter


def _report(**kwargs):
    return RunReport(
        input="example.com",
        spec_url="https://example.com/swagger.json",
        discovery_used=True,
        discovery_phase="brute",
        api_title="Pet Store",
        results=[
            EndpointResult(
                method="GET",
                status=200,
                target="https://example.com/v1/pets",
                preview="[]",
                curl="curl -sk -X GET 'https://example.com/v1/pets'",
            ),
            EndpointResult(method="DELETE", status=1, target="https://example.com/v1/pets/1"),
        ],
        **kwargs,
    )


class TestRecords:
    def test_endpoint_record_hides_detail(self):
        record = _report().results[0].record()
        assert record == {"method": "GET", "status": 200, "target": "https://example.com/v1/pets"}

    def test_endpoint_record_verbose(self):
        record = _report().results[0].record(verbose=True)
        assert record["preview"] == "[]"
        assert record["curl"].startswith("curl")

    def test_run_record(self):
        record = _report().record()
        assert record["discovery_phase"] == "brute"
        assert "error" not in record
        assert len(record["results"]) == 2

    def test_flags(self):
        skipped = _report().results[1]
        assert skipped.skipped
        assert not skipped.failed
        assert EndpointResult(method="GET", status=0, target="x").failed

    def test_bulk_record(self):
        bulk = BulkReport(runs=[_report(), RunReport(input="bad", error="invalid target URL")])
        record = bulk.record()
        assert record["mode"] == "bulk_automate"
        assert record["run_count"] == 2
        assert record["runs"][1]["error"] == "invalid target URL"


class TestJsonReportWriter:
    def test_write_single(self, tmp_path):
        path = JsonReportWriter().write(_report(), tmp_path / "out" / "report.json")
        assert path.exists()
        data = json.loads(path.read_text())
        assert data["api_title"] == "Pet Store"
        assert "curl" not in data["results"][0]

    def test_write_verbose(self, tmp_path):
        path = JsonReportWriter(verbose=True).write(_report(), tmp_path / "report.json")
        data = json.loads(path.read_text())
        assert data["results"][0]["preview"] == "[]"

    def test_render_list(self):
        data = json.loads(JsonReportWriter().render([_report(), _report()]))
        assert isinstance(data, list)
        assert len(data) == 2

    def test_non_ascii_kept(self):
        text = JsonReportWriter().render(RunReport(input="x", api_title="Café"))
        assert "Café" in text
