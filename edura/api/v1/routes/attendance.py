"""Teacher attendance API routes."""

from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from edura.core.clock import day_of_week, minutes_since_midnight
from edura.core.deps import CurrentClock, DbSession, Manager, Teacher
from edura.models.attendance import AttendanceStatus
from edura.schemas.attendance import (
    ActiveSchedule,
    AttendanceLogDetail,
    AttendanceLogResponse,
    CheckInRequest,
    CheckOutRequest,
    MissedSessionsResponse,
)
from edura.services import attendance as attendance_service
from edura.services import classroom as classroom_service

router = APIRouter(prefix="/attendance", tags=["Attendance"])

MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


def _detail(log, schedule, class_name: str, teacher_name: str | None = None) -> AttendanceLogDetail:
    return AttendanceLogDetail(
        **AttendanceLogResponse.model_validate(log).model_dump(),
        class_name=class_name,
        title=schedule.title,
        start_time=schedule.start_time,
        end_time=schedule.end_time,
        teacher_name=teacher_name,
    )


@router.get("", response_model=list[AttendanceLogDetail])
async def list_center_attendance(
    db: DbSession,
    current_user: Manager,
    month: str | None = Query(None, pattern=MONTH_PATTERN, description="YYYY-MM"),
    teacher_id: UUID | None = None,
    status: AttendanceStatus | None = None,
):
    """List attendance logs of the center's teachers."""
    rows = await attendance_service.get_logs(
        db,
        manager_id=current_user.id,
        teacher_id=teacher_id,
        month=month,
        status=status,
    )
    return [_detail(*row) for row in rows]


@router.get("/active", response_model=list[ActiveSchedule])
async def list_active_schedules(
    db: DbSession,
    current_user: Teacher,
    clock: CurrentClock,
):
    """Today's sessions open for check-in/out, plus those already logged."""
    return await attendance_service.get_active_schedules(db, current_user.id, clock.now())


@router.post(
    "/check-in",
    response_model=AttendanceLogResponse,
    status_code=status.HTTP_201_CREATED,
)
async def check_in(
    request: CheckInRequest,
    db: DbSession,
    current_user: Teacher,
    clock: CurrentClock,
):
    """Check in to a session within 15 minutes of its start."""
    now = clock.now()

    schedule = await classroom_service.get_teacher_schedule(
        db, request.schedule_id, current_user.id
    )
    if not schedule:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Schedule not found",
        )

    if schedule.day_of_week != day_of_week(now.date()):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This schedule is not for today",
        )

    if not attendance_service.within_window(minutes_since_midnight(now), schedule.start_time):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Check-in is only allowed within 15 minutes of the scheduled start time",
        )

    existing = await attendance_service.get_log_for_session(
        db, schedule.id, now.date().isoformat()
    )
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Already checked in for this session today",
        )

    return await attendance_service.check_in(db, schedule, current_user.id, now)


@router.post("/check-out", response_model=AttendanceLogResponse)
async def check_out(
    request: CheckOutRequest,
    db: DbSession,
    current_user: Teacher,
    clock: CurrentClock,
):
    """Check out of a session within 15 minutes of its end."""
    now = clock.now()

    log = await attendance_service.get_teacher_log(db, request.log_id, current_user.id)
    if not log:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Attendance log not found",
        )

    if log.status != AttendanceStatus.CHECKED_IN:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Session is not in checked-in status",
        )

    if not attendance_service.within_window(minutes_since_midnight(now), log.schedule.end_time):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Check-out is only allowed within 15 minutes of the scheduled end time",
        )

    return await attendance_service.check_out(db, log, now)


@router.get("/logs", response_model=list[AttendanceLogDetail])
async def list_my_logs(
    db: DbSession,
    current_user: Teacher,
    month: str | None = Query(None, pattern=MONTH_PATTERN, description="YYYY-MM"),
):
    """Attendance history of the current teacher."""
    rows = await attendance_service.get_logs(db, teacher_id=current_user.id, month=month)
    return [_detail(*row) for row in rows]


@router.post("/mark-missed", response_model=MissedSessionsResponse)
async def mark_missed_sessions(
    db: DbSession,
    current_user: Manager,
    clock: CurrentClock,
):
    """Mark today's ended sessions of the center's teachers as missed."""
    result = await attendance_service.mark_missed_sessions(
        db, clock.now(), manager_id=current_user.id
    )
    return MissedSessionsResponse(
        session_date=result.session_date,
        marked_count=result.marked,
        total_schedules_checked=result.checked,
        failed_count=result.failed,
    )
