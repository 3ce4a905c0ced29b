"""Report tables and CSV export over approved submissions."""

import csv
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import TextIO

from ..db.repository import ApprovedData, Submission
from ..mapper import coerce_number
from ..periods import format_period_label

REPORT_KINDS = ("environmental", "social", "governance")


def _col(name: str) -> Callable[[dict], float]:
    return lambda row: coerce_number(row.get(name))


def _sum(*names: str) -> Callable[[dict], float]:
    return lambda row: sum(coerce_number(row.get(n)) for n in names)


# Header -> value extractor, per report tab
REPORT_COLUMNS: dict[str, list[tuple[str, Callable[[dict], float]]]] = {
    "environmental": [
        ("Total Electricity", _col("total_electricity")),
        ("Renewable PPA", _col("renewable_ppa")),
        ("Renewable Rooftop", _col("renewable_rooftop")),
        ("Total Emissions", _col("total_emissions")),
        ("NOx", _col("nox")),
        ("SOx", _col("sox")),
        ("PM", _col("pm")),
        ("Water Withdrawal", _col("water_withdrawal")),
        ("Water Discharged", _col("water_discharged")),
    ],
    "social": [
        ("Total Employees", _col("total_employees")),
        ("Male Employees", _col("male_employees")),
        ("Female Employees", _col("female_employees")),
        ("Injuries", _sum("injuries_employees", "injuries_workers")),
        ("Fatalities", _sum("fatalities_employees", "fatalities_workers")),
        ("Training Hours", _sum("ehs_training", "gmp_training", "other_training")),
        ("Workplace Complaints", _col("workplace_complaints")),
        ("Consumer Complaints", _col("consumer_complaints")),
    ],
    "governance": [
        ("Board Members", _col("board_members")),
        ("Women Percentage", _col("women_percentage")),
        ("Legal Fines", _col("legal_fines")),
        ("Cybersecurity Incidents", _col("cybersecurity_incidents")),
        ("Corruption Incidents", _col("corruption_incidents")),
    ],
}


def _rows_for_kind(kind: str, data: ApprovedData) -> list[dict]:
    if kind not in REPORT_KINDS:
        raise ValueError(f"Unknown report kind: {kind}")
    return getattr(data, f"{kind}_data")


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def report_headers(kind: str) -> list[str]:
    """Column headers of a report table."""
    if kind not in REPORT_COLUMNS:
        raise ValueError(f"Unknown report kind: {kind}")
    return ["Site", "Period"] + [header for header, _ in REPORT_COLUMNS[kind]]


def report_rows(kind: str, data: ApprovedData) -> list[list]:
    """One row per approved submission that has a detail row of this kind.

    Rows follow the submission order of ``data``. Missing values are 0.
    """
    submissions: dict[int, Submission] = {s.id: s for s in data.submissions}
    detail_by_submission = {
        row.get("submission_id"): row for row in _rows_for_kind(kind, data)
    }

    rows = []
    for submission_id, submission in submissions.items():
        detail = detail_by_submission.get(submission_id)
        if detail is None:
            continue
        rows.append(
            [
                submission.site_name or "Unknown Site",
                format_period_label(submission.period_start, submission.period_end),
            ]
            + [extract(detail) for _, extract in REPORT_COLUMNS[kind]]
        )
    return rows


def write_report_csv(kind: str, data: ApprovedData, stream: TextIO) -> int:
    """Write one report table as CSV to an open text stream.

    Returns the number of data rows written.
    """
    rows = report_rows(kind, data)
    writer = csv.writer(stream, lineterminator="\r\n")
    writer.writerow(report_headers(kind))
    for row in rows:
        writer.writerow(row[:2] + [_format_number(value) for value in row[2:]])
    return len(rows)


def export_report_csv(
    kind: str,
    data: ApprovedData,
    output_dir: Path | None = None,
    output_path: Path | None = None,
) -> Path:
    """Write one report table as CSV.

    Args:
        kind: environmental, social or governance.
        data: Approved submissions with detail rows.
        output_dir: Directory for an auto-named file (default: current dir).
        output_path: Explicit output file path; overrides output_dir.

    Returns:
        Path to the written CSV file.

    Raises:
        ValueError: If kind is unknown.
    """
    if kind not in REPORT_COLUMNS:
        raise ValueError(f"Unknown report kind: {kind}")

    if output_path is None:
        directory = output_dir or Path(".")
        directory.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_path = directory / f"{kind}_report_{timestamp}.csv"

    with open(output_path, "w", newline="") as f:
        write_report_csv(kind, data, f)

    return output_path
