"""Billing service - monthly tuition generation and bill management."""

import calendar
import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from edura.core.clock import billing_month_of
from edura.core.config import settings
from edura.core.database import insert_ignoring_conflicts
from edura.models.billing import BillingStatus, PaymentMethod, TuitionBilling
from edura.models.classroom import Classroom, Enrollment
from edura.schemas.billing import BillingStatusUpdate

logger = logging.getLogger(__name__)

# (upper bound in days, label); the last bucket is open-ended
AGING_BUCKETS = (
    (30, "1-30"),
    (60, "31-60"),
    (90, "61-90"),
    (None, "90+"),
)

AGING_BUCKET_NAMES = tuple(name for _, name in AGING_BUCKETS)


@dataclass
class BillingRunResult:
    """Outcome of one bill generation run."""

    billing_month: str
    created: int
    skipped: int


@dataclass
class EnrollmentBillingResult:
    enrolled: int  # Enrollments considered
    billable: int  # Of those, with a positive tuition rate
    created: int


def make_invoice_number(billing_month: str) -> str:
    """Invoice number like INV-202406-1A2B3C4D."""
    return f"INV-{billing_month.replace('-', '')}-{uuid.uuid4().hex[:8].upper()}"


def aging_bucket(days_overdue: int) -> str:
    for limit, bucket in AGING_BUCKETS[:-1]:
        if days_overdue <= limit:
            return bucket
    return AGING_BUCKETS[-1][1]


def due_date_in_month(day: date, due_day: int) -> date:
    """Day ``due_day`` of the month of ``day``, clamped to the month's last day."""
    last_day = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=min(due_day, last_day))


async def _bill_enrollments(
    db: AsyncSession,
    billing_month: str,
    due_date: date,
    class_ids: list[UUID] | None = None,
) -> EnrollmentBillingResult:
    """
    Insert one pending bill per billable enrollment not yet billed for the month.

    Every enrollment is considered; only those in classes with a positive
    tuition rate get a bill. Rows already present for the month are dropped
    by the unique constraint, so concurrent runs never double bill.
    Does not commit.
    """
    query = select(Enrollment.student_id, Enrollment.class_id, Classroom.tuition_rate).join(
        Classroom, Classroom.id == Enrollment.class_id
    )
    if class_ids is not None:
        query = query.where(Enrollment.class_id.in_(class_ids))
    enrollments = (await db.execute(query)).all()
    billable = [e for e in enrollments if e.tuition_rate is not None and e.tuition_rate > 0]

    existing_result = await db.execute(
        select(TuitionBilling.student_id, TuitionBilling.class_id).where(
            TuitionBilling.billing_month == billing_month
        )
    )
    existing = {(row.student_id, row.class_id) for row in existing_result.all()}

    rows = [
        {
            "id": uuid.uuid4(),
            "student_id": e.student_id,
            "class_id": e.class_id,
            "amount": e.tuition_rate,
            "billing_month": billing_month,
            "due_date": due_date,
            "status": BillingStatus.PENDING.value,
            "invoice_number": make_invoice_number(billing_month),
        }
        for e in billable
        if (e.student_id, e.class_id) not in existing
    ]

    created = 0
    if rows:
        stmt = (
            insert_ignoring_conflicts(db, TuitionBilling, "student_id", "class_id", "billing_month")
            .values(rows)
            .returning(TuitionBilling.id)
        )
        result = await db.execute(stmt)
        created = len(result.scalars().all())

    return EnrollmentBillingResult(
        enrolled=len(enrollments), billable=len(billable), created=created
    )


async def generate_monthly_bills(db: AsyncSession, now: datetime) -> BillingRunResult:
    """
    Scheduled job: bill every enrollment for the month of ``now``.

    The due date is day ``BILLING_DUE_DAY`` of that month. Enrollments that
    get no bill (no rate, or already billed) count as skipped.
    """
    billing_month = billing_month_of(now.date())
    due_date = due_date_in_month(now.date(), settings.BILLING_DUE_DAY)

    result = await _bill_enrollments(db, billing_month, due_date)
    await db.commit()

    logger.info("Generated %d bills for %s", result.created, billing_month)
    return BillingRunResult(
        billing_month=billing_month,
        created=result.created,
        skipped=result.enrolled - result.created,
    )


async def create_monthly_billing(
    db: AsyncSession,
    billing_month: str,
    due_date: date,
    class_ids: list[UUID],
) -> tuple[int, int] | None:
    """
    Manager-triggered generation restricted to ``class_ids``.

    Returns (created, skipped) over the enrollments with a tuition rate, or
    None when there are none.
    """
    result = await _bill_enrollments(db, billing_month, due_date, class_ids)
    if result.billable == 0:
        await db.rollback()
        return None
    await db.commit()

    logger.info("Generated %d bills for %s", result.created, billing_month)
    return result.created, result.billable - result.created


def _with_relations(query):
    return query.options(
        selectinload(TuitionBilling.student),
        selectinload(TuitionBilling.classroom),
    )


async def get_billing_by_id(
    db: AsyncSession,
    billing_id: UUID,
    student_ids: list[UUID] | None = None,
) -> TuitionBilling | None:
    """Get billing by ID, optionally restricted to a set of students."""
    query = select(TuitionBilling).where(TuitionBilling.id == billing_id)
    if student_ids is not None:
        query = query.where(TuitionBilling.student_id.in_(student_ids))
    result = await db.execute(_with_relations(query))
    return result.scalar_one_or_none()


async def get_billings(
    db: AsyncSession,
    student_ids: list[UUID],
    status: BillingStatus | None = None,
    billing_month: str | None = None,
    class_id: UUID | None = None,
    skip: int = 0,
    limit: int = 100,
) -> tuple[list[TuitionBilling], int]:
    """Get billings of the given students with filters."""
    query = select(TuitionBilling).where(TuitionBilling.student_id.in_(student_ids))

    if status:
        query = query.where(TuitionBilling.status == status)
    if billing_month:
        query = query.where(TuitionBilling.billing_month == billing_month)
    if class_id:
        query = query.where(TuitionBilling.class_id == class_id)

    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    query = _with_relations(query).order_by(
        TuitionBilling.billing_month.desc(), TuitionBilling.created_at.desc()
    )
    query = query.offset(skip).limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all()), total


async def get_student_billings(db: AsyncSession, student_id: UUID) -> list[TuitionBilling]:
    result = await db.execute(
        _with_relations(
            select(TuitionBilling)
            .where(TuitionBilling.student_id == student_id)
            .order_by(TuitionBilling.billing_month.desc())
        )
    )
    return list(result.scalars().all())


async def get_overdue_billings(
    db: AsyncSession, student_ids: list[UUID], today: date
) -> list[tuple[TuitionBilling, int, str]]:
    """Overdue bills, oldest due date first, with days overdue and aging bucket."""
    if not student_ids:
        return []

    result = await db.execute(
        _with_relations(
            select(TuitionBilling)
            .where(
                TuitionBilling.student_id.in_(student_ids),
                TuitionBilling.status == BillingStatus.OVERDUE,
            )
            .order_by(TuitionBilling.due_date)
        )
    )

    overdue = []
    for billing in result.scalars().all():
        days = (today - billing.due_date).days
        overdue.append((billing, days, aging_bucket(days)))
    return overdue


async def update_billing_status(
    db: AsyncSession,
    billing: TuitionBilling,
    update: BillingStatusUpdate,
    now: datetime,
) -> TuitionBilling:
    """
    Change a bill's status.

    Marking paid stamps ``paid_at`` and keeps the payment method; any other
    status clears both.
    """
    billing.status = update.status
    if update.status == BillingStatus.PAID:
        billing.paid_at = now
        if update.payment_method:
            billing.payment_method = PaymentMethod(update.payment_method)
    else:
        billing.paid_at = None
        billing.payment_method = None

    if update.notes is not None:
        billing.notes = update.notes

    await db.commit()
    return await get_billing_by_id(db, billing.id)
