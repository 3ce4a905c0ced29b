"""Tests for report tables and CSV export."""

import csv
import io

import pytest

from esgdash.db.repository import ApprovedData, Submission
from esgdash.output.report import (
    export_report_csv,
    report_headers,
    report_rows,
    write_report_csv,
)


@pytest.fixture
def data():
    return ApprovedData(
        submissions=[
            Submission(
                id=1,
                site_id=1,
                period_start="2024-01-01",
                period_end="2024-01-31",
                status="approved",
                submitted_by="Admin User",
                site_name="Plant A",
            ),
            Submission(
                id=2,
                site_id=None,
                period_start="2024-02-01",
                period_end="2024-02-29",
                status="approved",
                submitted_by="Admin User",
                site_name=None,
            ),
        ],
        environmental_data=[
            {"submission_id": 1, "total_electricity": 1500.0, "nox": 1.25},
        ],
        social_data=[
            {"submission_id": 1, "total_employees": 120, "injuries_employees": 1,
             "injuries_workers": 2, "ehs_training": 10, "gmp_training": 5},
            {"submission_id": 2, "total_employees": 30},
        ],
    )


class TestReportTables:
    """Tests for report_headers and report_rows."""

    def test_headers(self):
        headers = report_headers("governance")
        assert headers[:2] == ["Site", "Period"]
        assert "Board Members" in headers

    def test_unknown_kind(self, data):
        with pytest.raises(ValueError):
            report_headers("financial")
        with pytest.raises(ValueError):
            report_rows("financial", data)

    def test_rows_skip_missing_details(self, data):
        rows = report_rows("environmental", data)

        assert len(rows) == 1
        assert rows[0][:2] == ["Plant A", "2024-01-01 to 2024-01-31"]
        headers = report_headers("environmental")
        assert rows[0][headers.index("NOx")] == pytest.approx(1.25)
        assert rows[0][headers.index("SOx")] == 0

    def test_social_sums(self, data):
        rows = report_rows("social", data)
        headers = report_headers("social")

        assert rows[0][headers.index("Injuries")] == pytest.approx(3)
        assert rows[0][headers.index("Training Hours")] == pytest.approx(15)
        assert rows[1][0] == "Unknown Site"


class TestCsvExport:
    """Tests for CSV output."""

    def test_write_to_stream(self, data):
        output = io.StringIO()

        count = write_report_csv("environmental", data, output)

        output.seek(0)
        rows = list(csv.reader(output))
        assert count == 1
        assert rows[0] == report_headers("environmental")
        assert rows[1][2] == "1500"
        assert "1.25" in rows[1]

    def test_export_to_path(self, data, tmp_path):
        path = export_report_csv("social", data, output_path=tmp_path / "social.csv")

        with open(path, newline="") as f:
            rows = list(csv.reader(f))
        assert len(rows) == 3

    def test_export_auto_named(self, data, tmp_path):
        path = export_report_csv("governance", data, output_dir=tmp_path / "reports")

        assert path.parent == tmp_path / "reports"
        assert path.name.startswith("governance_report_")

    def test_export_unknown_kind_writes_nothing(self, data, tmp_path):
        with pytest.raises(ValueError):
            export_report_csv("financial", data, output_path=tmp_path / "x.csv")
        assert not (tmp_path / "x.csv").exists()
