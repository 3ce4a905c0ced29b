"""Report tables over approved submissions, as JSON or CSV."""

import io

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse

from ...db import Database
from ...output.report import REPORT_KINDS, report_headers, report_rows, write_report_csv
from ..deps import get_db

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/{kind}")
async def get_report(
    kind: str,
    format: str = Query("json", description="json or csv"),
    db: Database = Depends(get_db),
):
    if kind not in REPORT_KINDS:
        raise HTTPException(status_code=404, detail=f"Unknown report '{kind}'")

    data = db.fetch_approved_submissions_data()

    if format == "csv":
        output = io.StringIO()
        write_report_csv(kind, data, output)
        output.seek(0)
        return StreamingResponse(
            iter([output.getvalue()]),
            media_type="text/csv",
            headers={"Content-Disposition": f"attachment; filename={kind}_report.csv"},
        )

    return {"headers": report_headers(kind), "rows": report_rows(kind, data)}
