"""Scheduled job response schemas (camelCase on the wire)."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CronResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    timestamp: datetime


class GenerateBillsResponse(CronResponse):
    billing_month: str
    created: int
    skipped: int


class MarkMissedSessionsResponse(CronResponse):
    date: str
    marked_count: int
    total_schedules_checked: int
    failed_count: int


class CronErrorResponse(BaseModel):
    error: str
    details: str
