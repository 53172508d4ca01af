"""Payroll service - teacher rates and monthly tutor payments."""

import logging
import uuid
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from edura.core.config import settings
from edura.core.database import insert_ignoring_conflicts
from edura.core.permissions import Role
from edura.models.attendance import AttendanceLog, AttendanceStatus
from edura.models.billing import BillingStatus, PaymentMethod
from edura.models.classroom import ClassSchedule, Classroom, Enrollment
from edura.models.payroll import TeacherRate, TeacherRateType, TutorPayment
from edura.models.user import User
from edura.schemas.payroll import TeacherRateCreate, TeacherRateUpdate, TutorPaymentStatusUpdate

logger = logging.getLogger(__name__)


def _center_teachers(query, manager_id: UUID, teacher_column):
    return query.join(User, User.id == teacher_column).where(
        User.role == Role.TEACHER, User.manager_id == manager_id
    )


# ============== Teacher rates ==============


async def get_teacher_rates(
    db: AsyncSession,
    manager_id: UUID,
    teacher_id: UUID | None = None,
    active_only: bool = True,
) -> list[TeacherRate]:
    """Rates of the center's teachers, most recent first."""
    query = _center_teachers(select(TeacherRate), manager_id, TeacherRate.teacher_id)
    if teacher_id:
        query = query.where(TeacherRate.teacher_id == teacher_id)
    if active_only:
        query = query.where(TeacherRate.is_active.is_(True))

    result = await db.execute(
        query.options(selectinload(TeacherRate.teacher)).order_by(
            TeacherRate.effective_date.desc()
        )
    )
    return list(result.scalars().all())


async def get_rate_by_id(
    db: AsyncSession, rate_id: UUID, manager_id: UUID
) -> TeacherRate | None:
    query = _center_teachers(
        select(TeacherRate).where(TeacherRate.id == rate_id), manager_id, TeacherRate.teacher_id
    )
    result = await db.execute(query.options(selectinload(TeacherRate.teacher)))
    return result.scalar_one_or_none()


async def create_teacher_rate(
    db: AsyncSession,
    rate_data: TeacherRateCreate,
    manager_id: UUID,
    now: datetime,
) -> TeacherRate:
    """Add a rate; the teacher's active rate of the same type is deactivated."""
    await db.execute(
        update(TeacherRate)
        .where(
            TeacherRate.teacher_id == rate_data.teacher_id,
            TeacherRate.rate_type == rate_data.rate_type,
            TeacherRate.is_active.is_(True),
        )
        .values(is_active=False)
    )

    rate = TeacherRate(
        teacher_id=rate_data.teacher_id,
        rate_type=rate_data.rate_type,
        amount=rate_data.amount,
        effective_date=rate_data.effective_date or now,
        is_active=True,
    )
    db.add(rate)
    await db.commit()

    logger.info(
        "Set %s rate %d for teacher %s",
        rate_data.rate_type.value,
        rate.amount,
        rate.teacher_id,
    )
    return await get_rate_by_id(db, rate.id, manager_id)


async def rate_in_use(db: AsyncSession, rate_id: UUID) -> bool:
    result = await db.execute(
        select(TutorPayment.id).where(TutorPayment.rate_id == rate_id).limit(1)
    )
    return result.scalar_one_or_none() is not None


async def update_teacher_rate(
    db: AsyncSession,
    rate: TeacherRate,
    rate_data: TeacherRateUpdate,
    manager_id: UUID,
) -> TeacherRate:
    update_data = rate_data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in update_data.items():
        setattr(rate, field, value)

    await db.commit()
    return await get_rate_by_id(db, rate.id, manager_id)


async def deactivate_teacher_rate(
    db: AsyncSession, rate: TeacherRate, manager_id: UUID
) -> TeacherRate:
    rate.is_active = False
    await db.commit()
    return await get_rate_by_id(db, rate.id, manager_id)


# ============== Tutor payments ==============


def calculate_pay(
    rate_type: TeacherRateType, rate_amount: int, total_minutes: int, students_count: int
) -> int:
    """Pay for a month under one rate, rounded to the currency unit."""
    if rate_type == TeacherRateType.HOURLY:
        return round(rate_amount * total_minutes / 60)
    if rate_type == TeacherRateType.PER_STUDENT:
        return rate_amount * students_count
    return rate_amount


async def _teacher_month_activity(
    db: AsyncSession, teacher_id: UUID, class_ids: list[UUID], payment_month: str
) -> tuple[int, int, int]:
    """
    (sessions, minutes, students) taught in the month.

    Sessions and minutes come from completed attendance logs. Without any,
    they are estimated from the weekly schedules.
    """
    result = await db.execute(
        select(
            func.count(AttendanceLog.id).label("sessions"),
            func.coalesce(func.sum(AttendanceLog.actual_duration_minutes), 0).label("minutes"),
        ).where(
            AttendanceLog.teacher_id == teacher_id,
            AttendanceLog.status == AttendanceStatus.COMPLETED,
            AttendanceLog.session_date.like(f"{payment_month}-%"),
        )
    )
    row = result.one()
    sessions, minutes = row.sessions, row.minutes

    if sessions == 0:
        schedule_result = await db.execute(
            select(func.count(ClassSchedule.id)).where(ClassSchedule.class_id.in_(class_ids))
        )
        sessions = (schedule_result.scalar() or 0) * settings.TUTOR_PAY_SESSIONS_PER_SCHEDULE
        minutes = sessions * settings.TUTOR_PAY_SESSION_MINUTES

    student_result = await db.execute(
        select(func.count(func.distinct(Enrollment.student_id))).where(
            Enrollment.class_id.in_(class_ids)
        )
    )
    students = student_result.scalar() or 0

    return sessions, minutes, students


async def calculate_monthly_tutor_pay(
    db: AsyncSession, manager_id: UUID, payment_month: str
) -> tuple[int, int] | None:
    """
    Create a pending payment per active rate of the center's teachers.

    Teachers already paid for the month and teachers without classes are
    skipped. Returns (created, skipped), or None when no teacher of the
    center has an active rate.
    """
    rates_result = await db.execute(
        _center_teachers(
            select(TeacherRate).where(TeacherRate.is_active.is_(True)),
            manager_id,
            TeacherRate.teacher_id,
        )
    )
    rates = list(rates_result.scalars().all())
    if not rates:
        return None

    existing_result = await db.execute(
        select(TutorPayment.teacher_id).where(TutorPayment.payment_month == payment_month)
    )
    already_paid = set(existing_result.scalars().all())

    rows = []
    for rate in rates:
        if rate.teacher_id in already_paid:
            continue

        class_result = await db.execute(
            select(Classroom.id).where(Classroom.teacher_id == rate.teacher_id)
        )
        class_ids = list(class_result.scalars().all())
        if not class_ids:
            continue

        sessions, minutes, students = await _teacher_month_activity(
            db, rate.teacher_id, class_ids, payment_month
        )
        rows.append(
            {
                "id": uuid.uuid4(),
                "teacher_id": rate.teacher_id,
                "amount": calculate_pay(rate.rate_type, rate.amount, minutes, students),
                "payment_month": payment_month,
                "sessions_count": sessions,
                "students_count": students,
                "rate_id": rate.id,
                "status": BillingStatus.PENDING.value,
            }
        )

    created = 0
    if rows:
        stmt = (
            insert_ignoring_conflicts(db, TutorPayment, "teacher_id", "rate_id", "payment_month")
            .values(rows)
            .returning(TutorPayment.id)
        )
        result = await db.execute(stmt)
        created = len(result.scalars().all())
    await db.commit()

    logger.info("Created %d tutor payments for %s", created, payment_month)
    return created, len(rates) - created


def _payment_with_relations(query):
    return query.options(
        selectinload(TutorPayment.teacher),
        selectinload(TutorPayment.rate),
    )


async def get_tutor_payments(
    db: AsyncSession,
    manager_id: UUID,
    status: BillingStatus | None = None,
    payment_month: str | None = None,
    teacher_id: UUID | None = None,
) -> list[TutorPayment]:
    """Payments of the center's teachers, newest first."""
    query = _center_teachers(select(TutorPayment), manager_id, TutorPayment.teacher_id)
    if status:
        query = query.where(TutorPayment.status == status)
    if payment_month:
        query = query.where(TutorPayment.payment_month == payment_month)
    if teacher_id:
        query = query.where(TutorPayment.teacher_id == teacher_id)

    result = await db.execute(
        _payment_with_relations(query).order_by(TutorPayment.created_at.desc())
    )
    return list(result.scalars().all())


async def get_tutor_payment_by_id(
    db: AsyncSession, payment_id: UUID, manager_id: UUID
) -> TutorPayment | None:
    query = _center_teachers(
        select(TutorPayment).where(TutorPayment.id == payment_id),
        manager_id,
        TutorPayment.teacher_id,
    )
    result = await db.execute(_payment_with_relations(query))
    return result.scalar_one_or_none()


async def update_tutor_payment_status(
    db: AsyncSession,
    payment: TutorPayment,
    update_data: TutorPaymentStatusUpdate,
    manager_id: UUID,
    now: datetime,
) -> TutorPayment:
    """
    Change a tutor payment's status.

    Marking paid stamps ``paid_at`` and keeps the payment method; any other
    status clears both.
    """
    payment.status = update_data.status
    if update_data.status == BillingStatus.PAID:
        payment.paid_at = now
        if update_data.payment_method:
            payment.payment_method = PaymentMethod(update_data.payment_method)
    else:
        payment.paid_at = None
        payment.payment_method = None

    if update_data.notes is not None:
        payment.notes = update_data.notes

    await db.commit()
    return await get_tutor_payment_by_id(db, payment.id, manager_id)
