"""Dashboard figures and chart series."""

from fastapi import APIRouter, Depends, HTTPException, Query

from ...db import Database
from ...periods import calculate_date_range
from ...processing.aggregator import (
    build_chart_series,
    dashboard_summary,
    filter_by_period,
    gwp_weighted,
)
from ..deps import get_db

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])

TIMEFRAMES = ("quarter", "year", "custom")


@router.get("")
async def dashboard(
    timeframe: str | None = Query(None, description="quarter, year or custom"),
    db: Database = Depends(get_db),
):
    """Headline figures and chart series over approved submissions."""
    data = db.fetch_approved_submissions_data()
    if timeframe is not None:
        if timeframe not in TIMEFRAMES:
            raise HTTPException(status_code=422, detail=f"Unknown timeframe '{timeframe}'")
        start, end = calculate_date_range(timeframe)
        data = filter_by_period(data, start, end)

    summary = dashboard_summary(data)
    return {
        "summary": summary,
        "fugitive_tco2e": gwp_weighted(summary.fugitive),
        "charts": build_chart_series(data.submissions, data.environmental_data),
    }
