"""Shared resource model."""

from uuid import UUID

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from edura.core.database import BaseModel


class Resource(BaseModel):
    """File a manager shares with the teachers of the learning center."""

    __tablename__ = "resources"

    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_url: Mapped[str] = mapped_column(Text, nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)  # Bytes
    file_type: Mapped[str | None] = mapped_column(String(100))
    description: Mapped[str | None] = mapped_column(Text)
    uploaded_by: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    uploader: Mapped["User"] = relationship("User")

    def __repr__(self) -> str:
        return f"<Resource(id={self.id}, file={self.file_name})>"


from edura.models.user import User
