"""Tuition billing model."""

from datetime import date, datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from edura.core.database import BaseModel


class BillingStatus(str, Enum):
    """Billing payment status."""

    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    """How a bill was paid."""

    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    MOMO = "momo"
    VNPAY = "vnpay"


class TuitionBilling(BaseModel):
    """Monthly tuition bill for one student in one class."""

    __tablename__ = "tuition_billing"
    __table_args__ = (
        UniqueConstraint(
            "student_id", "class_id", "billing_month", name="uq_billing_student_class_month"
        ),
    )

    student_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    class_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("classes.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)  # Smallest currency unit
    billing_month: Mapped[str] = mapped_column(String(7), nullable=False, index=True)  # "YYYY-MM"
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[BillingStatus] = mapped_column(
        String(20),
        nullable=False,
        default=BillingStatus.PENDING,
        server_default="pending",
    )
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    payment_method: Mapped[PaymentMethod | None] = mapped_column(String(20))
    invoice_number: Mapped[str | None] = mapped_column(String(50))
    notes: Mapped[str | None] = mapped_column(Text)

    # Relationships
    student: Mapped["User"] = relationship("User")
    classroom: Mapped["Classroom | None"] = relationship("Classroom")

    def __repr__(self) -> str:
        return (
            f"<TuitionBilling(student={self.student_id}, class={self.class_id}, "
            f"month={self.billing_month}, status={self.status})>"
        )


from edura.models.classroom import Classroom
from edura.models.user import User
