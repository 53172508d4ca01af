"""Tuition billing schemas."""

from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from edura.models.billing import BillingStatus, PaymentMethod

AgingBucket = Literal["1-30", "31-60", "61-90", "90+"]


class BillingGenerateRequest(BaseModel):
    """Schema for a manager generating bills for a month."""

    billing_month: str = Field(..., pattern=r"^\d{4}-(0[1-9]|1[0-2])$", examples=["2024-06"])
    due_date: date
    class_ids: list[UUID] | None = None  # If None, bill every class of the center


class BillingGenerateResponse(BaseModel):
    """Response for bill generation."""

    created: int
    skipped: int  # Enrollments already billed for the month


class BillingStatusUpdate(BaseModel):
    """Schema for changing a bill's status."""

    status: BillingStatus
    payment_method: PaymentMethod | None = None  # Only kept when status is paid
    notes: str | None = None


class StudentInfo(BaseModel):
    """Nested student info for billing response."""

    id: UUID
    name: str
    email: str
    parent_email: str | None = None
    parent_phone: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ClassInfo(BaseModel):
    """Nested class info for billing response."""

    id: UUID
    class_name: str
    subject: str | None = None

    model_config = ConfigDict(from_attributes=True)


class BillingResponse(BaseModel):
    """Schema for billing response."""

    id: UUID
    student_id: UUID
    class_id: UUID | None
    student: StudentInfo | None = None
    classroom: ClassInfo | None = None
    amount: int
    billing_month: str
    due_date: date
    status: BillingStatus
    paid_at: datetime | None
    payment_method: PaymentMethod | None
    invoice_number: str | None
    notes: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BillingListResponse(BaseModel):
    """Schema for paginated billing list."""

    items: list[BillingResponse]
    total: int
    skip: int
    limit: int


class OverdueBilling(BillingResponse):
    """Overdue bill with its age."""

    days_overdue: int
    aging_bucket: AgingBucket


class OverdueBillingsResponse(BaseModel):
    """Overdue bills with per-bucket totals."""

    items: list[OverdueBilling]
    total_amount: int
    bucket_totals: dict[str, int]
