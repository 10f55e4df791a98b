from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import Field

from app.schemas.common import ApiModel


class ScheduleGenerateRequest(ApiModel):
    site_id: UUID
    year: int = Field(ge=2000, le=2100)
    month: int = Field(ge=1, le=12)
    overwrite: bool = False


class ScheduleGenerateResponse(ApiModel):
    created_count: int
    generated_count: int
    overwrite: bool
    message: Optional[str] = None


class ScheduleSlotOut(ApiModel):
    schedule_slot_id: UUID
    site_id: UUID
    position_template_id: UUID
    position_name: Optional[str] = None
    slot_number: int
    slot_date: date
    assigned_worker_id: Optional[UUID] = None
    shift_code: Optional[str] = None
    status: str


class MonthScheduleOut(ApiModel):
    site_id: UUID
    year: int
    month: int
    slots: list[ScheduleSlotOut]


class PpcDayOut(ApiModel):
    slot_date: date
    uncovered: int


class PpcOut(ApiModel):
    site_id: UUID
    year: int
    month: int
    total_uncovered: int
    by_date: list[PpcDayOut]
    slots: list[ScheduleSlotOut]
