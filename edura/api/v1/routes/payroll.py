"""Teacher rate and tutor payment routes."""

from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from edura.core.deps import CurrentClock, DbSession, Manager
from edura.core.permissions import Role
from edura.models.billing import BillingStatus
from edura.schemas.payroll import (
    TeacherRateCreate,
    TeacherRateResponse,
    TeacherRateUpdate,
    TutorPayCalculateRequest,
    TutorPayCalculateResponse,
    TutorPaymentResponse,
    TutorPaymentStatusUpdate,
)
from edura.services import payroll as payroll_service
from edura.services.tenancy import user_belongs_to_manager

router = APIRouter(tags=["Payroll"])


# ============== Teacher rates ==============


@router.get("/teacher-rates", response_model=list[TeacherRateResponse])
async def list_teacher_rates(
    db: DbSession,
    current_user: Manager,
    teacher_id: UUID | None = None,
    active_only: bool = True,
):
    """Rates of the center's teachers."""
    return await payroll_service.get_teacher_rates(
        db, current_user.id, teacher_id=teacher_id, active_only=active_only
    )


@router.post(
    "/teacher-rates",
    response_model=TeacherRateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_teacher_rate(
    rate_data: TeacherRateCreate,
    db: DbSession,
    current_user: Manager,
    clock: CurrentClock,
):
    """Set a teacher's rate; the previous rate of the same type stops applying."""
    if not await user_belongs_to_manager(db, rate_data.teacher_id, current_user.id, Role.TEACHER):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Teacher not found",
        )
    return await payroll_service.create_teacher_rate(db, rate_data, current_user.id, clock.now())


@router.patch("/teacher-rates/{rate_id}", response_model=TeacherRateResponse)
async def update_teacher_rate(
    rate_id: UUID,
    rate_data: TeacherRateUpdate,
    db: DbSession,
    current_user: Manager,
):
    """Correct a rate. Rates already used in payments are locked."""
    rate = await payroll_service.get_rate_by_id(db, rate_id, current_user.id)
    if not rate:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Rate not found",
        )

    if await payroll_service.rate_in_use(db, rate_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Rate is used in existing payments, create a new rate instead",
        )

    return await payroll_service.update_teacher_rate(db, rate, rate_data, current_user.id)


@router.post("/teacher-rates/{rate_id}/deactivate", response_model=TeacherRateResponse)
async def deactivate_teacher_rate(
    rate_id: UUID,
    db: DbSession,
    current_user: Manager,
):
    rate = await payroll_service.get_rate_by_id(db, rate_id, current_user.id)
    if not rate:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Rate not found",
        )
    return await payroll_service.deactivate_teacher_rate(db, rate, current_user.id)


# ============== Tutor payments ==============


@router.get("/tutor-payments", response_model=list[TutorPaymentResponse])
async def list_tutor_payments(
    db: DbSession,
    current_user: Manager,
    status: BillingStatus | None = None,
    payment_month: str | None = Query(None, pattern=r"^\d{4}-(0[1-9]|1[0-2])$"),
    teacher_id: UUID | None = None,
):
    """Payments owed to the center's teachers."""
    return await payroll_service.get_tutor_payments(
        db,
        current_user.id,
        status=status,
        payment_month=payment_month,
        teacher_id=teacher_id,
    )


@router.post("/tutor-payments/calculate", response_model=TutorPayCalculateResponse)
async def calculate_tutor_payments(
    request: TutorPayCalculateRequest,
    db: DbSession,
    current_user: Manager,
):
    """
    Calculate the month's tutor payments.

    One pending payment per active rate: hourly rates use the hours of
    completed sessions, per-student rates the distinct students enrolled,
    and fixed rates the rate itself. Teachers already paid for the month
    are skipped.
    """
    result = await payroll_service.calculate_monthly_tutor_pay(
        db, current_user.id, request.payment_month
    )
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No teachers with active rates found",
        )

    created, skipped = result
    return TutorPayCalculateResponse(created=created, skipped=skipped)


@router.patch("/tutor-payments/{payment_id}/status", response_model=TutorPaymentResponse)
async def update_tutor_payment_status(
    payment_id: UUID,
    update: TutorPaymentStatusUpdate,
    db: DbSession,
    current_user: Manager,
    clock: CurrentClock,
):
    """Change a tutor payment's status; marking paid records the payment time."""
    payment = await payroll_service.get_tutor_payment_by_id(db, payment_id, current_user.id)
    if not payment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Payment not found",
        )
    return await payroll_service.update_tutor_payment_status(
        db, payment, update, current_user.id, clock.now()
    )
