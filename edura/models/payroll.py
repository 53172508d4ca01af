"""Teacher pay rates and monthly tutor payments."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from edura.core.database import BaseModel
from edura.models.billing import BillingStatus, PaymentMethod


class TeacherRateType(str, Enum):
    """How a rate turns a month of teaching into pay."""

    HOURLY = "hourly"  # Per hour taught
    PER_STUDENT = "per_student"  # Per distinct student enrolled
    MONTHLY_FIXED = "monthly_fixed"


class TeacherRate(BaseModel):
    """Pay rate of a teacher; one active rate per type."""

    __tablename__ = "teacher_rates"

    teacher_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    rate_type: Mapped[TeacherRateType] = mapped_column(String(20), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)  # Smallest currency unit
    effective_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true")

    # Relationships
    teacher: Mapped["User"] = relationship("User")

    def __repr__(self) -> str:
        return f"<TeacherRate(teacher={self.teacher_id}, {self.rate_type}={self.amount})>"


class TutorPayment(BaseModel):
    """What the center owes a teacher for one month under one rate."""

    __tablename__ = "tutor_payments"
    __table_args__ = (
        UniqueConstraint(
            "teacher_id", "rate_id", "payment_month", name="uq_tutor_payment_teacher_rate_month"
        ),
    )

    teacher_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    payment_month: Mapped[str] = mapped_column(String(7), nullable=False, index=True)  # "YYYY-MM"
    sessions_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    students_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    rate_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("teacher_rates.id", ondelete="SET NULL"),
        nullable=True,
    )
    status: Mapped[BillingStatus] = mapped_column(
        String(20),
        nullable=False,
        default=BillingStatus.PENDING,
        server_default="pending",
    )
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    payment_method: Mapped[PaymentMethod | None] = mapped_column(String(20))
    notes: Mapped[str | None] = mapped_column(Text)

    # Relationships
    teacher: Mapped["User"] = relationship("User")
    rate: Mapped["TeacherRate | None"] = relationship("TeacherRate")

    @property
    def rate_type(self) -> TeacherRateType | None:
        return self.rate.rate_type if self.rate else None

    def __repr__(self) -> str:
        return (
            f"<TutorPayment(teacher={self.teacher_id}, month={self.payment_month}, "
            f"status={self.status})>"
        )


from edura.models.user import User
