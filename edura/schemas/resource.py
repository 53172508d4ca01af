"""Shared resource schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ResourceResponse(BaseModel):
    """Schema for resource response."""

    id: UUID
    file_name: str
    file_url: str
    file_size: int
    file_type: str | None
    description: str | None
    uploaded_by: UUID
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
