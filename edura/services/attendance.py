"""Attendance service - teacher check-in/out and missed-session reconciliation."""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from edura.core.clock import day_of_week, minutes_since_midnight, parse_hhmm
from edura.core.config import settings
from edura.core.database import insert_ignoring_conflicts
from edura.models.attendance import AttendanceLog, AttendanceStatus
from edura.models.classroom import ClassSchedule, Classroom
from edura.models.user import User

logger = logging.getLogger(__name__)


@dataclass
class MissedSessionsResult:
    """Outcome of one missed-session run."""

    session_date: str
    marked: int
    checked: int
    failed: int


def within_window(current_minutes: int, target: str) -> bool:
    """True when ``current_minutes`` is within the check window around ``target``."""
    target_minutes = parse_hhmm(target)
    window = settings.CHECK_IN_WINDOW_MINUTES
    return target_minutes - window <= current_minutes <= target_minutes + window


async def mark_missed_sessions(
    db: AsyncSession,
    now: datetime,
    manager_id: UUID | None = None,
) -> MissedSessionsResult:
    """
    Record a `missed` log for every session of today that ended without one.

    A session counts as ended once its end time plus the grace period has
    passed. Each schedule is committed on its own: a database failure is
    rolled back, logged and counted, and the run moves on. A schedule whose
    end time cannot be parsed is counted as failed too. With ``manager_id``
    only the classes of that manager's teachers are considered.
    """
    session_date = now.date().isoformat()
    current_minutes = minutes_since_midnight(now)

    query = (
        select(
            ClassSchedule.id,
            ClassSchedule.class_id,
            ClassSchedule.end_time,
            Classroom.teacher_id,
        )
        .join(Classroom, Classroom.id == ClassSchedule.class_id)
        .where(ClassSchedule.day_of_week == day_of_week(now.date()))
    )
    if manager_id is not None:
        query = query.join(User, User.id == Classroom.teacher_id).where(
            User.manager_id == manager_id
        )
    schedules = (await db.execute(query)).all()

    marked = 0
    failed = 0
    for schedule in schedules:
        try:
            end_minutes = parse_hhmm(schedule.end_time)
        except ValueError:
            failed += 1
            logger.exception(
                "Invalid end time %r for schedule %s", schedule.end_time, schedule.id
            )
            continue

        if current_minutes < end_minutes + settings.MISSED_SESSION_GRACE_MINUTES:
            continue

        stmt = (
            insert_ignoring_conflicts(db, AttendanceLog, "schedule_id", "session_date")
            .values(
                id=uuid.uuid4(),
                schedule_id=schedule.id,
                class_id=schedule.class_id,
                teacher_id=schedule.teacher_id,
                session_date=session_date,
                status=AttendanceStatus.MISSED.value,
            )
            .returning(AttendanceLog.id)
        )
        try:
            result = await db.execute(stmt)
            inserted = result.scalar_one_or_none()
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            failed += 1
            logger.exception("Failed to mark missed session for schedule %s", schedule.id)
            continue

        if inserted is not None:
            marked += 1

    logger.info("Marked %d missed sessions for %s", marked, session_date)
    return MissedSessionsResult(
        session_date=session_date,
        marked=marked,
        checked=len(schedules),
        failed=failed,
    )


async def get_log_for_session(
    db: AsyncSession, schedule_id: UUID, session_date: str
) -> AttendanceLog | None:
    result = await db.execute(
        select(AttendanceLog).where(
            AttendanceLog.schedule_id == schedule_id,
            AttendanceLog.session_date == session_date,
        )
    )
    return result.scalar_one_or_none()


async def get_active_schedules(
    db: AsyncSession, teacher_id: UUID, now: datetime
) -> list[dict]:
    """
    Today's sessions of the teacher that can be checked into or out of now,
    or that already have a log.
    """
    session_date = now.date().isoformat()
    current_minutes = minutes_since_midnight(now)

    result = await db.execute(
        select(ClassSchedule, Classroom.class_name)
        .join(Classroom, Classroom.id == ClassSchedule.class_id)
        .where(
            Classroom.teacher_id == teacher_id,
            ClassSchedule.day_of_week == day_of_week(now.date()),
        )
        .order_by(ClassSchedule.start_time)
    )
    schedules = result.all()

    logs_result = await db.execute(
        select(AttendanceLog).where(
            AttendanceLog.teacher_id == teacher_id,
            AttendanceLog.session_date == session_date,
        )
    )
    logs_by_schedule = {log.schedule_id: log for log in logs_result.scalars().all()}

    active = []
    for schedule, class_name in schedules:
        log = logs_by_schedule.get(schedule.id)
        can_check_in = log is None and within_window(current_minutes, schedule.start_time)
        can_check_out = (
            log is not None
            and log.status == AttendanceStatus.CHECKED_IN
            and within_window(current_minutes, schedule.end_time)
        )
        if not (can_check_in or can_check_out or log):
            continue
        active.append(
            {
                "schedule_id": schedule.id,
                "class_id": schedule.class_id,
                "class_name": class_name,
                "title": schedule.title,
                "start_time": schedule.start_time,
                "end_time": schedule.end_time,
                "location": schedule.location,
                "color": schedule.color,
                "can_check_in": can_check_in,
                "can_check_out": can_check_out,
                "existing_log": log,
            }
        )
    return active


async def check_in(
    db: AsyncSession,
    schedule: ClassSchedule,
    teacher_id: UUID,
    now: datetime,
) -> AttendanceLog:
    log = AttendanceLog(
        schedule_id=schedule.id,
        class_id=schedule.class_id,
        teacher_id=teacher_id,
        session_date=now.date().isoformat(),
        check_in_time=now,
        status=AttendanceStatus.CHECKED_IN,
    )
    db.add(log)
    await db.commit()
    await db.refresh(log)
    return log


async def get_teacher_log(
    db: AsyncSession, log_id: UUID, teacher_id: UUID
) -> AttendanceLog | None:
    """Get a teacher's own log with its schedule loaded."""
    result = await db.execute(
        select(AttendanceLog)
        .where(AttendanceLog.id == log_id, AttendanceLog.teacher_id == teacher_id)
        .options(selectinload(AttendanceLog.schedule))
    )
    return result.scalar_one_or_none()


async def check_out(db: AsyncSession, log: AttendanceLog, now: datetime) -> AttendanceLog:
    """Complete a checked-in session and store its rounded duration."""
    check_in_time = log.check_in_time
    if check_in_time.tzinfo is None:
        # Some backends hand back naive datetimes
        check_in_time = check_in_time.replace(tzinfo=now.tzinfo)

    log.check_out_time = now
    log.actual_duration_minutes = round((now - check_in_time).total_seconds() / 60)
    log.status = AttendanceStatus.COMPLETED
    await db.commit()
    await db.refresh(log)
    return log


def _detailed_logs_query():
    return (
        select(AttendanceLog, ClassSchedule, Classroom.class_name, User.name)
        .join(ClassSchedule, ClassSchedule.id == AttendanceLog.schedule_id)
        .join(Classroom, Classroom.id == AttendanceLog.class_id)
        .join(User, User.id == AttendanceLog.teacher_id)
        .order_by(AttendanceLog.session_date.desc())
    )


async def get_logs(
    db: AsyncSession,
    *,
    teacher_id: UUID | None = None,
    manager_id: UUID | None = None,
    month: str | None = None,
    status: AttendanceStatus | None = None,
) -> list[tuple[AttendanceLog, ClassSchedule, str, str]]:
    """Attendance logs with schedule, class name and teacher name."""
    query = _detailed_logs_query()
    if teacher_id:
        query = query.where(AttendanceLog.teacher_id == teacher_id)
    if manager_id:
        query = query.where(User.manager_id == manager_id)
    if month:
        query = query.where(AttendanceLog.session_date.like(f"{month}-%"))
    if status:
        query = query.where(AttendanceLog.status == status)

    result = await db.execute(query)
    return [(row[0], row[1], row[2], row[3]) for row in result.all()]
