"""Aggregation of approved submissions into dashboard figures and chart series.

Everything here is a pure function over rows that were already fetched;
detail rows are plain dicts keyed by column name.
"""

from dataclasses import dataclass, field
from datetime import date

from ..db.repository import ApprovedData, Submission
from ..mapper import coerce_number
from ..periods import format_display_date, format_period_label, parse_date

# Global warming potential per kg of refrigerant; divide by 1000 for tCO2e
GWP_FACTORS = {
    "r22": 1810,
    "r32": 675,
    "r410": 2088,
    "r134a": 1430,
    "r514a": 2,
    "co2_refilled": 1,
}

REFRIGERANT_COLUMNS = {
    "r22": "r22_refrigerant",
    "r32": "r32_refrigerant",
    "r410": "r410_refrigerant",
    "r134a": "r134a_refrigerant",
    "r514a": "r514a_refrigerant",
    "co2_refilled": "co2_refilled",
}


def _num(row: dict, column: str) -> float:
    return coerce_number(row.get(column))


def _total(rows: list[dict], *columns: str) -> float:
    return sum(_num(row, column) for row in rows for column in columns)


def renewable_percentage(environmental_rows: list[dict]) -> float:
    """Share of electricity from PPA and rooftop renewables, in percent.

    Returns 0 when no electricity was reported at all.
    """
    total_electricity = _total(environmental_rows, "total_electricity")
    if total_electricity == 0:
        return 0.0
    renewable = _total(environmental_rows, "renewable_ppa", "renewable_rooftop")
    return renewable / total_electricity * 100


@dataclass
class FugitiveEmissions:
    """Refrigerant top-ups in kg, summed over rows."""

    r22: float = 0.0
    r32: float = 0.0
    r410: float = 0.0
    r134a: float = 0.0
    r514a: float = 0.0
    co2_refilled: float = 0.0
    total: float = 0.0

    def components(self) -> dict[str, float]:
        return {name: getattr(self, name) for name in REFRIGERANT_COLUMNS}


def fugitive_emissions(environmental_rows: list[dict]) -> FugitiveEmissions:
    """Sum the six refrigerant columns; ``total`` is their unweighted sum."""
    result = FugitiveEmissions()
    for name, column in REFRIGERANT_COLUMNS.items():
        setattr(result, name, _total(environmental_rows, column))
    result.total = sum(result.components().values())
    return result


def gwp_weighted(fugitive: FugitiveEmissions) -> dict[str, float]:
    """Convert refrigerant masses to tCO2e for display. Not persisted."""
    weighted = {
        name: value * GWP_FACTORS[name] / 1000
        for name, value in fugitive.components().items()
    }
    weighted["total"] = sum(weighted.values())
    return weighted


@dataclass
class ChartSeries:
    """Flat per-submission records, one list per chart."""

    energy: list[dict] = field(default_factory=list)
    emissions: list[dict] = field(default_factory=list)
    water: list[dict] = field(default_factory=list)
    waste: list[dict] = field(default_factory=list)
    carbon: list[dict] = field(default_factory=list)


def build_chart_series(
    submissions: list[Submission],
    environmental_rows: list[dict],
) -> ChartSeries:
    """Build chart input from submissions and their environmental rows.

    Submissions are ordered by period start; those without an
    environmental row are skipped. Periods are not resampled or filled.
    """
    by_submission = {row.get("submission_id"): row for row in environmental_rows}
    series = ChartSeries()

    for submission in sorted(submissions, key=lambda s: s.period_start):
        env = by_submission.get(submission.id)
        if env is None:
            continue

        base = {
            "name": submission.site_name or "Unknown",
            "date": submission.period_start,
            "display_date": format_display_date(submission.period_start),
            "period": format_period_label(submission.period_start, submission.period_end),
        }
        total_electricity = _num(env, "total_electricity")
        ppa = _num(env, "renewable_ppa")
        rooftop = _num(env, "renewable_rooftop")

        series.energy.append({
            **base,
            "Total": total_electricity,
            "Grid": total_electricity - (ppa + rooftop),
            "Renewable PPA": ppa,
            "Renewable Rooftop": rooftop,
        })
        series.emissions.append({
            **base,
            "NOx": _num(env, "nox"),
            "SOx": _num(env, "sox"),
            "PM": _num(env, "pm"),
            "Others": _num(env, "voc") + _num(env, "hap") + _num(env, "pop"),
        })
        series.water.append({
            **base,
            "Withdrawal": _num(env, "water_withdrawal"),
            "ThirdParty": _num(env, "third_party_water"),
            "Rainwater": _num(env, "rainwater"),
            "Recycled": _num(env, "recycled_wastewater"),
            "Discharged": _num(env, "water_discharged"),
        })
        series.waste.append({
            **base,
            "Hazardous": _num(env, "total_hazardous"),
            "NonHazardous": _num(env, "non_hazardous"),
            "Plastic": _num(env, "plastic_waste"),
            "EWaste": _num(env, "e_waste"),
            "BioMedical": _num(env, "bio_medical"),
            "WasteOil": _num(env, "waste_oil"),
        })
        series.carbon.append({
            **base,
            "Electricity": _num(env, "electricity_emissions"),
            "Coal": _num(env, "coal_emissions"),
            "HSD": _num(env, "hsd_emissions"),
            "Furnace Oil": _num(env, "furnace_oil_emissions"),
            "Petrol": _num(env, "petrol_emissions"),
        })

    return series


@dataclass
class SiteStats:
    """Per-site totals over approved submissions."""

    site_id: int | None
    site_name: str
    total_emissions: float = 0.0
    water_consumption: float = 0.0
    total_employees: float = 0.0
    submission_count: int = 0


@dataclass
class DashboardSummary:
    """Headline figures for the dashboard."""

    total_submissions: int
    total_emissions: float
    renewable_percentage: float
    fugitive: FugitiveEmissions
    site_stats: list[SiteStats] = field(default_factory=list)


def site_stats(data: ApprovedData) -> list[SiteStats]:
    """Totals per site, ordered by site name.

    Emissions and water withdrawal are summed across periods. Headcount
    is taken from the site's most recent period.
    """
    env_by_submission = {row.get("submission_id"): row for row in data.environmental_data}
    social_by_submission = {row.get("submission_id"): row for row in data.social_data}
    stats: dict[int | None, SiteStats] = {}

    for submission in sorted(data.submissions, key=lambda s: s.period_start):
        entry = stats.get(submission.site_id)
        if entry is None:
            entry = SiteStats(
                site_id=submission.site_id,
                site_name=submission.site_name or "Unknown Site",
            )
            stats[submission.site_id] = entry

        entry.submission_count += 1
        env = env_by_submission.get(submission.id, {})
        entry.total_emissions += _num(env, "total_emissions")
        entry.water_consumption += _num(env, "water_withdrawal")
        social = social_by_submission.get(submission.id)
        if social:
            entry.total_employees = _num(social, "total_employees")

    return sorted(stats.values(), key=lambda s: s.site_name)


def dashboard_summary(data: ApprovedData) -> DashboardSummary:
    """Compute dashboard headline figures from approved data."""
    return DashboardSummary(
        total_submissions=len(data.submissions),
        total_emissions=_total(data.environmental_data, "total_emissions"),
        renewable_percentage=renewable_percentage(data.environmental_data),
        fugitive=fugitive_emissions(data.environmental_data),
        site_stats=site_stats(data),
    )


def filter_by_period(data: ApprovedData, start: date, end: date) -> ApprovedData:
    """Keep submissions whose period starts within [start, end]."""
    kept = [s for s in data.submissions if start <= parse_date(s.period_start) <= end]
    ids = {s.id for s in kept}
    return ApprovedData(
        submissions=kept,
        environmental_data=[r for r in data.environmental_data if r.get("submission_id") in ids],
        social_data=[r for r in data.social_data if r.get("submission_id") in ids],
        governance_data=[r for r in data.governance_data if r.get("submission_id") in ids],
    )
