"""Tests for dashboard aggregation and chart series."""

from datetime import date

import pytest

from esgdash.db.repository import ApprovedData, Submission
from esgdash.processing.aggregator import (
    FugitiveEmissions,
    build_chart_series,
    dashboard_summary,
    filter_by_period,
    fugitive_emissions,
    gwp_weighted,
    renewable_percentage,
    site_stats,
)


def make_submission(id, site_id=1, site_name="Plant A", start="2024-01-01", end="2024-01-31"):
    return Submission(
        id=id,
        site_id=site_id,
        period_start=start,
        period_end=end,
        status="approved",
        submitted_by="Admin User",
        site_name=site_name,
    )


class TestRenewablePercentage:
    """Tests for renewable_percentage."""

    def test_zero_denominator(self):
        assert renewable_percentage([]) == 0
        assert renewable_percentage([{"renewable_ppa": 10}]) == 0

    def test_ratio_across_rows(self):
        rows = [
            {"total_electricity": 1000, "renewable_ppa": 200, "renewable_rooftop": 50},
            {"total_electricity": 1000, "renewable_ppa": 150},
        ]
        assert renewable_percentage(rows) == pytest.approx(20.0)

    def test_string_values_coerced(self):
        rows = [{"total_electricity": "400", "renewable_rooftop": "100", "renewable_ppa": None}]
        assert renewable_percentage(rows) == pytest.approx(25.0)


class TestFugitiveEmissions:
    """Tests for refrigerant totals."""

    def test_empty(self):
        result = fugitive_emissions([])

        assert result == FugitiveEmissions()
        assert result.total == 0

    def test_total_is_component_sum(self):
        rows = [
            {"r22_refrigerant": 2, "r32_refrigerant": 1.5, "co2_refilled": 10},
            {"r22_refrigerant": 1, "r410_refrigerant": 4, "r134a_refrigerant": 0.5},
            {"r514a_refrigerant": 3},
        ]

        result = fugitive_emissions(rows)

        assert result.r22 == pytest.approx(3)
        assert result.r410 == pytest.approx(4)
        assert result.total == pytest.approx(sum(result.components().values()))
        assert result.total == pytest.approx(22)

    def test_gwp_weighted(self):
        fugitive = FugitiveEmissions(r22=1000, r514a=500, total=1500)

        weighted = gwp_weighted(fugitive)

        assert weighted["r22"] == pytest.approx(1810)
        assert weighted["r514a"] == pytest.approx(1)
        assert weighted["total"] == pytest.approx(1811)


class TestBuildChartSeries:
    """Tests for chart series records."""

    def test_sorted_by_period_and_skips_missing(self):
        submissions = [
            make_submission(1, start="2024-03-01", end="2024-03-31"),
            make_submission(2, start="2024-01-01", end="2024-01-31"),
            make_submission(3, start="2024-02-01", end="2024-02-29"),
        ]
        env_rows = [
            {"submission_id": 1, "total_electricity": 100, "renewable_ppa": 10},
            {"submission_id": 2, "total_electricity": 200, "renewable_rooftop": 20},
        ]

        series = build_chart_series(submissions, env_rows)

        assert [r["date"] for r in series.energy] == ["2024-01-01", "2024-03-01"]
        assert series.energy[0]["display_date"] == "Jan'24"
        assert series.energy[0]["period"] == "2024-01-01 to 2024-01-31"
        assert series.energy[0]["Grid"] == pytest.approx(180)
        assert series.energy[1]["Renewable PPA"] == pytest.approx(10)
        assert len(series.emissions) == len(series.water) == len(series.waste) == 2
        assert len(series.carbon) == 2

    def test_series_fields(self):
        env = {
            "submission_id": 1,
            "nox": 1,
            "voc": 0.5,
            "hap": 0.25,
            "pop": 0.25,
            "water_withdrawal": 50,
            "e_waste": 3,
            "coal_emissions": 7,
        }

        series = build_chart_series([make_submission(1)], [env])

        assert series.emissions[0]["Others"] == pytest.approx(1.0)
        assert series.emissions[0]["NOx"] == pytest.approx(1.0)
        assert series.water[0]["Withdrawal"] == pytest.approx(50)
        assert series.waste[0]["EWaste"] == pytest.approx(3)
        assert series.carbon[0]["Coal"] == pytest.approx(7)
        assert series.carbon[0]["name"] == "Plant A"

    def test_empty(self):
        series = build_chart_series([], [])
        assert series.energy == []


class TestSiteStatsAndSummary:
    """Tests for per-site stats and the dashboard summary."""

    @pytest.fixture
    def data(self):
        return ApprovedData(
            submissions=[
                make_submission(1, start="2024-02-01", end="2024-02-29"),
                make_submission(2, start="2024-01-01"),
                make_submission(3, site_id=2, site_name="Office B"),
                make_submission(4, site_id=None, site_name="Unknown Site"),
            ],
            environmental_data=[
                {"submission_id": 1, "total_emissions": 10, "water_withdrawal": 5,
                 "total_electricity": 100, "renewable_ppa": 50, "r22_refrigerant": 1},
                {"submission_id": 2, "total_emissions": 5, "water_withdrawal": 5,
                 "total_electricity": 100},
                {"submission_id": 3, "total_emissions": 1},
            ],
            social_data=[
                {"submission_id": 1, "total_employees": 110},
                {"submission_id": 2, "total_employees": 100},
                {"submission_id": 3, "total_employees": 12},
            ],
        )

    def test_site_stats(self, data):
        stats = site_stats(data)

        assert [s.site_name for s in stats] == ["Office B", "Plant A", "Unknown Site"]
        plant = stats[1]
        assert plant.submission_count == 2
        assert plant.total_emissions == pytest.approx(15)
        assert plant.water_consumption == pytest.approx(10)
        # Most recent period's headcount, not the sum
        assert plant.total_employees == pytest.approx(110)
        assert stats[2].total_employees == 0

    def test_dashboard_summary(self, data):
        summary = dashboard_summary(data)

        assert summary.total_submissions == 4
        assert summary.total_emissions == pytest.approx(16)
        assert summary.renewable_percentage == pytest.approx(25)
        assert summary.fugitive.r22 == pytest.approx(1)
        assert len(summary.site_stats) == 3

    def test_empty_summary(self):
        summary = dashboard_summary(ApprovedData())

        assert summary.total_submissions == 0
        assert summary.renewable_percentage == 0
        assert summary.site_stats == []

    def test_filter_by_period(self, data):
        filtered = filter_by_period(data, date(2024, 2, 1), date(2024, 12, 31))

        assert [s.id for s in filtered.submissions] == [1]
        assert [r["submission_id"] for r in filtered.environmental_data] == [1]
        assert [r["submission_id"] for r in filtered.social_data] == [1]
        assert filtered.governance_data == []
