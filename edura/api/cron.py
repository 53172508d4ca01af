"""Scheduled job endpoints, called by the platform scheduler."""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from edura.core.deps import CurrentClock, DbSession, verify_cron_secret
from edura.schemas.cron import CronErrorResponse, GenerateBillsResponse, MarkMissedSessionsResponse
from edura.services import attendance as attendance_service
from edura.services import billing as billing_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Cron"], dependencies=[Depends(verify_cron_secret)])

ERROR_RESPONSES = {status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": CronErrorResponse}}


def _error(message: str, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=CronErrorResponse(error=message, details=str(exc)).model_dump(),
    )


@router.get(
    "/generate-bills",
    response_model=GenerateBillsResponse,
    response_model_by_alias=True,
    responses=ERROR_RESPONSES,
)
async def generate_bills(db: DbSession, clock: CurrentClock):
    """Monthly: create this month's pending bill for every billable enrollment."""
    now = clock.now()
    try:
        result = await billing_service.generate_monthly_bills(db, now)
    except Exception as exc:
        await db.rollback()
        logger.exception("Error generating bills")
        return _error("Failed to generate bills", exc)

    return GenerateBillsResponse(
        billing_month=result.billing_month,
        created=result.created,
        skipped=result.skipped,
        timestamp=now,
    )


@router.get(
    "/mark-missed-sessions",
    response_model=MarkMissedSessionsResponse,
    response_model_by_alias=True,
    responses=ERROR_RESPONSES,
)
async def mark_missed_sessions(db: DbSession, clock: CurrentClock):
    """Daily: log a `missed` session for every class of today that ended unattended."""
    now = clock.now()
    try:
        result = await attendance_service.mark_missed_sessions(db, now)
    except Exception as exc:
        await db.rollback()
        logger.exception("Error marking missed sessions")
        return _error("Failed to mark missed sessions", exc)

    return MarkMissedSessionsResponse(
        date=result.session_date,
        marked_count=result.marked,
        total_schedules_checked=result.checked,
        failed_count=result.failed,
        timestamp=now,
    )
