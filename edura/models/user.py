"""User model."""

from uuid import UUID

from sqlalchemy import Boolean, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from edura.core.database import BaseModel
from edura.core.permissions import Role


class User(BaseModel):
    """User model for authentication, authorization and tenancy."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    role: Mapped[Role] = mapped_column(
        String(20),
        nullable=False,
        default=Role.STUDENT,
    )
    # Tenant link: teachers/students point to their manager, managers to themselves
    manager_id: Mapped[UUID | None] = mapped_column(Uuid, nullable=True, index=True)
    generated_password: Mapped[str | None] = mapped_column(String(100), nullable=True)
    has_changed_password: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default="false",
    )

    # Student profile
    grade: Mapped[str | None] = mapped_column(String(50))
    school_name: Mapped[str | None] = mapped_column(String(200))
    parent_email: Mapped[str | None] = mapped_column(String(255))
    parent_phone: Mapped[str | None] = mapped_column(String(50))

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default="true",
    )

    # Relationships
    taught_classes: Mapped[list["Classroom"]] = relationship(
        "Classroom", back_populates="teacher"
    )

    @property
    def is_manager(self) -> bool:
        return self.role == Role.MANAGER

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"


from edura.models.classroom import Classroom
