"""Submission entry and approval routes."""

from fastapi import APIRouter, Depends, Query

from ...catalog import ParameterCatalog
from ...lifecycle import SubmissionLifecycle
from ...mapper import map_form_data_to_parameters, map_form_to_records
from ...periods import month_period
from ..deps import get_catalog, get_current_user, get_lifecycle
from ..schemas import RejectRequest, ReviewRequest, SubmissionCreate

router = APIRouter(prefix="/api/submissions", tags=["submissions"])


@router.get("")
async def list_submissions(
    status: str | None = Query(None, description="Filter by status"),
    lifecycle: SubmissionLifecycle = Depends(get_lifecycle),
):
    """Approval queue, most recently updated first."""
    return lifecycle.approval_queue(status)


@router.post("", status_code=201)
async def create_submission(
    body: SubmissionCreate,
    lifecycle: SubmissionLifecycle = Depends(get_lifecycle),
    catalog: ParameterCatalog = Depends(get_catalog),
):
    """Create a pending or draft submission from catalog form values."""
    period_start, period_end = body.period_start, body.period_end
    if body.month is not None:
        period_start, period_end = month_period(body.month, body.year)

    structure = catalog.build_structure()
    values = body.values
    if body.by_name:
        values = map_form_data_to_parameters(values, structure)
    payload = map_form_to_records(values, structure)

    submission_id = lifecycle.create(
        site_id=body.site_id,
        period_start=period_start,
        period_end=period_end,
        payload=payload,
        initial_status=body.status,
        submitted_by=body.submitted_by,
    )
    return {"id": submission_id, "status": body.status}


@router.get("/{submission_id}")
async def get_submission(
    submission_id: int,
    lifecycle: SubmissionLifecycle = Depends(get_lifecycle),
):
    return lifecycle.get_details(submission_id)


@router.post("/{submission_id}/approve")
async def approve_submission(
    submission_id: int,
    body: ReviewRequest | None = None,
    user: str = Depends(get_current_user),
    lifecycle: SubmissionLifecycle = Depends(get_lifecycle),
):
    reviewer = (body.reviewer if body else None) or user
    return lifecycle.approve(submission_id, reviewer=reviewer)


@router.post("/{submission_id}/reject")
async def reject_submission(
    submission_id: int,
    body: RejectRequest,
    user: str = Depends(get_current_user),
    lifecycle: SubmissionLifecycle = Depends(get_lifecycle),
):
    return lifecycle.reject(submission_id, body.comment, reviewer=body.reviewer or user)
