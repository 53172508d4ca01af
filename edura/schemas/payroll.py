"""Teacher rate and tutor payment schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from edura.models.billing import BillingStatus, PaymentMethod
from edura.models.payroll import TeacherRateType


class TeacherRateCreate(BaseModel):
    """Schema for setting a teacher's rate; replaces the active rate of the same type."""

    teacher_id: UUID
    rate_type: TeacherRateType
    amount: int = Field(..., ge=0)
    effective_date: datetime | None = None  # Defaults to now


class TeacherRateUpdate(BaseModel):
    """Schema for correcting a rate not yet used in any payment."""

    amount: int | None = Field(None, ge=0)
    effective_date: datetime | None = None


class TeacherInfo(BaseModel):
    """Nested teacher info for rate and payment responses."""

    id: UUID
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class TeacherRateResponse(BaseModel):
    id: UUID
    teacher_id: UUID
    teacher: TeacherInfo | None = None
    rate_type: TeacherRateType
    amount: int
    effective_date: datetime
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class TutorPayCalculateRequest(BaseModel):
    """Schema for calculating the month's tutor payments."""

    payment_month: str = Field(..., pattern=r"^\d{4}-(0[1-9]|1[0-2])$", examples=["2024-06"])


class TutorPayCalculateResponse(BaseModel):
    created: int
    skipped: int  # Active rates that produced no payment


class TutorPaymentStatusUpdate(BaseModel):
    """Schema for changing a tutor payment's status."""

    status: BillingStatus
    payment_method: PaymentMethod | None = None  # Only kept when status is paid
    notes: str | None = None


class TutorPaymentResponse(BaseModel):
    id: UUID
    teacher_id: UUID
    teacher: TeacherInfo | None = None
    amount: int
    payment_month: str
    sessions_count: int
    students_count: int
    rate_id: UUID | None
    rate_type: TeacherRateType | None = None
    status: BillingStatus
    paid_at: datetime | None
    payment_method: PaymentMethod | None
    notes: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
