"""Report service - collection metrics and financial summary."""

from uuid import UUID

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from edura.models.billing import BillingStatus, TuitionBilling
from edura.models.payroll import TutorPayment

OUTSTANDING_STATUSES = (BillingStatus.PENDING, BillingStatus.OVERDUE)


async def get_collection_metrics(
    db: AsyncSession,
    student_ids: list[UUID],
    start_month: str | None = None,
    end_month: str | None = None,
) -> dict:
    """How much of what was billed to the students got paid, and how."""
    if not student_ids:
        return {
            "total_billed": 0,
            "total_collected": 0,
            "collection_rate": 0,
            "payment_method_distribution": [],
        }

    conditions = [TuitionBilling.student_id.in_(student_ids)]
    if start_month:
        conditions.append(TuitionBilling.billing_month >= start_month)
    if end_month:
        conditions.append(TuitionBilling.billing_month <= end_month)

    totals_query = select(
        func.coalesce(func.sum(TuitionBilling.amount), 0).label("billed"),
        func.coalesce(
            func.sum(
                case((TuitionBilling.status == BillingStatus.PAID, TuitionBilling.amount), else_=0)
            ),
            0,
        ).label("collected"),
    ).where(*conditions)
    totals = (await db.execute(totals_query)).one()
    total_billed = int(totals.billed)
    total_collected = int(totals.collected)

    method_query = (
        select(
            TuitionBilling.payment_method,
            func.count(TuitionBilling.id).label("count"),
            func.coalesce(func.sum(TuitionBilling.amount), 0).label("amount"),
        )
        .where(*conditions, TuitionBilling.status == BillingStatus.PAID)
        .group_by(TuitionBilling.payment_method)
    )
    method_result = await db.execute(method_query)
    distribution = []
    for row in method_result:
        method = row.payment_method
        if hasattr(method, "value"):
            method = method.value
        distribution.append(
            {"method": method or "unknown", "count": row.count, "amount": int(row.amount)}
        )

    return {
        "total_billed": total_billed,
        "total_collected": total_collected,
        "collection_rate": round(total_collected / total_billed * 100) if total_billed else 0,
        "payment_method_distribution": distribution,
    }


async def get_financial_summary(
    db: AsyncSession,
    student_ids: list[UUID],
    teacher_ids: list[UUID],
    current_month: str,
) -> dict:
    """Revenue, outstanding tuition and pending tutor pay of a center."""
    paid_amount = case(
        (TuitionBilling.status == BillingStatus.PAID, TuitionBilling.amount), else_=0
    )
    outstanding_amount = case(
        (TuitionBilling.status.in_(OUTSTANDING_STATUSES), TuitionBilling.amount), else_=0
    )
    outstanding_count = case((TuitionBilling.status.in_(OUTSTANDING_STATUSES), 1), else_=0)
    month_paid_amount = case(
        (
            (TuitionBilling.status == BillingStatus.PAID)
            & (TuitionBilling.billing_month == current_month),
            TuitionBilling.amount,
        ),
        else_=0,
    )

    # Tuition totals
    billing_query = select(
        func.coalesce(func.sum(paid_amount), 0).label("revenue"),
        func.coalesce(func.sum(outstanding_amount), 0).label("outstanding"),
        func.coalesce(func.sum(outstanding_count), 0).label("outstanding_count"),
        func.coalesce(func.sum(month_paid_amount), 0).label("month_revenue"),
    ).where(TuitionBilling.student_id.in_(student_ids))
    billing_row = (await db.execute(billing_query)).one()

    # Pending tutor payments
    tutor_query = select(
        func.count(TutorPayment.id).label("count"),
        func.coalesce(func.sum(TutorPayment.amount), 0).label("total"),
    ).where(
        TutorPayment.teacher_id.in_(teacher_ids),
        TutorPayment.status == BillingStatus.PENDING,
    )
    tutor_row = (await db.execute(tutor_query)).one()

    # Revenue and outstanding per billing month
    trend_query = (
        select(
            TuitionBilling.billing_month,
            func.coalesce(func.sum(paid_amount), 0).label("revenue"),
            func.coalesce(func.sum(outstanding_amount), 0).label("outstanding"),
        )
        .where(TuitionBilling.student_id.in_(student_ids))
        .group_by(TuitionBilling.billing_month)
        .order_by(TuitionBilling.billing_month)
    )
    trend_result = await db.execute(trend_query)
    monthly_trend = [
        {
            "month": row.billing_month,
            "revenue": int(row.revenue),
            "outstanding": int(row.outstanding),
        }
        for row in trend_result
    ]

    return {
        "total_revenue": int(billing_row.revenue),
        "outstanding_amount": int(billing_row.outstanding),
        "outstanding_count": int(billing_row.outstanding_count),
        "month_revenue": int(billing_row.month_revenue),
        "pending_tutor_payments": int(tutor_row.total),
        "pending_tutor_count": tutor_row.count,
        "monthly_trend": monthly_trend,
    }
