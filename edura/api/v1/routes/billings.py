"""Tuition billing API routes."""

from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from edura.core.clock import billing_month_of
from edura.core.deps import CurrentClock, DbSession, Manager, Student
from edura.core.permissions import Role
from edura.models.billing import BillingStatus
from edura.schemas.billing import (
    BillingGenerateRequest,
    BillingGenerateResponse,
    BillingListResponse,
    BillingResponse,
    BillingStatusUpdate,
    OverdueBilling,
    OverdueBillingsResponse,
)
from edura.schemas.report import CollectionMetricsResponse, FinancialSummaryResponse
from edura.services import billing as billing_service
from edura.services import report as report_service
from edura.services.tenancy import get_manager_class_ids, get_manager_member_ids

router = APIRouter(prefix="/billings", tags=["Billings"])


@router.get("", response_model=BillingListResponse)
async def list_billings(
    db: DbSession,
    current_user: Manager,
    status: BillingStatus | None = None,
    billing_month: str | None = Query(None, pattern=r"^\d{4}-(0[1-9]|1[0-2])$"),
    class_id: UUID | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=100),
):
    """List bills of the center's students with optional filters."""
    student_ids = await get_manager_member_ids(db, current_user.id, Role.STUDENT)
    billings, total = await billing_service.get_billings(
        db,
        student_ids=student_ids,
        status=status,
        billing_month=billing_month,
        class_id=class_id,
        skip=skip,
        limit=limit,
    )
    return BillingListResponse(
        items=[BillingResponse.model_validate(b) for b in billings],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.post("/generate", response_model=BillingGenerateResponse)
async def generate_billings(
    request: BillingGenerateRequest,
    db: DbSession,
    current_user: Manager,
):
    """
    Generate bills for a month.

    One pending bill per enrollment in a class with a tuition rate;
    enrollments already billed for the month are skipped.
    """
    center_class_ids = await get_manager_class_ids(db, current_user.id)
    if request.class_ids is not None:
        class_ids = [c for c in request.class_ids if c in center_class_ids]
    else:
        class_ids = center_class_ids

    result = await billing_service.create_monthly_billing(
        db, request.billing_month, request.due_date, class_ids
    )
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No valid enrollments found with tuition rates set",
        )

    created, skipped = result
    return BillingGenerateResponse(created=created, skipped=skipped)


@router.get("/overdue", response_model=OverdueBillingsResponse)
async def list_overdue_billings(
    db: DbSession,
    current_user: Manager,
    clock: CurrentClock,
):
    """Overdue bills with days overdue and aging bucket."""
    student_ids = await get_manager_member_ids(db, current_user.id, Role.STUDENT)
    rows = await billing_service.get_overdue_billings(db, student_ids, clock.now().date())

    items = []
    bucket_totals = {bucket: 0 for bucket in billing_service.AGING_BUCKET_NAMES}
    for billing, days_overdue, bucket in rows:
        items.append(
            OverdueBilling(
                **BillingResponse.model_validate(billing).model_dump(),
                days_overdue=days_overdue,
                aging_bucket=bucket,
            )
        )
        bucket_totals[bucket] += billing.amount

    return OverdueBillingsResponse(
        items=items,
        total_amount=sum(bucket_totals.values()),
        bucket_totals=bucket_totals,
    )


@router.get("/collection-metrics", response_model=CollectionMetricsResponse)
async def get_collection_metrics(
    db: DbSession,
    current_user: Manager,
    start_month: str | None = Query(None, pattern=r"^\d{4}-(0[1-9]|1[0-2])$"),
    end_month: str | None = Query(None, pattern=r"^\d{4}-(0[1-9]|1[0-2])$"),
):
    """Collection rate and payment methods over a range of billing months."""
    student_ids = await get_manager_member_ids(db, current_user.id, Role.STUDENT)
    return await report_service.get_collection_metrics(db, student_ids, start_month, end_month)


@router.get("/summary", response_model=FinancialSummaryResponse)
async def get_financial_summary(
    db: DbSession,
    current_user: Manager,
    clock: CurrentClock,
):
    """Revenue, outstanding bills and pending tutor pay of the center."""
    student_ids = await get_manager_member_ids(db, current_user.id, Role.STUDENT)
    teacher_ids = await get_manager_member_ids(db, current_user.id, Role.TEACHER)
    return await report_service.get_financial_summary(
        db, student_ids, teacher_ids, billing_month_of(clock.now().date())
    )


@router.get("/me", response_model=list[BillingResponse])
async def list_my_billings(
    db: DbSession,
    current_user: Student,
):
    """Bills of the current student."""
    return await billing_service.get_student_billings(db, current_user.id)


@router.get("/{billing_id}", response_model=BillingResponse)
async def get_billing(
    billing_id: UUID,
    db: DbSession,
    current_user: Manager,
):
    """Get a bill (invoice view)."""
    student_ids = await get_manager_member_ids(db, current_user.id, Role.STUDENT)
    billing = await billing_service.get_billing_by_id(db, billing_id, student_ids)
    if not billing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Billing not found",
        )
    return billing


@router.patch("/{billing_id}/status", response_model=BillingResponse)
async def update_billing_status(
    billing_id: UUID,
    update: BillingStatusUpdate,
    db: DbSession,
    current_user: Manager,
    clock: CurrentClock,
):
    """Change a bill's status; marking paid records the payment time."""
    student_ids = await get_manager_member_ids(db, current_user.id, Role.STUDENT)
    billing = await billing_service.get_billing_by_id(db, billing_id, student_ids)
    if not billing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Billing not found",
        )
    return await billing_service.update_billing_status(db, billing, update, clock.now())
