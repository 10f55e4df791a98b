from datetime import date, datetime
from typing import Annotated, Optional
from uuid import UUID

from pydantic import AfterValidator, Field, field_validator, model_validator

from app.schemas.common import ApiModel
from app.scheduling.weekdays import normalize_weekdays
from app.services.validators import parse_hhmm, validate_active_window, validate_time_range

HHMM_PATTERN = r"^\d{2}:\d{2}$"


def _weekdays(values):
    if values is None:
        return values
    normalized = normalize_weekdays(values)
    if not normalized:
        raise ValueError("weekdays must contain at least one day")
    return normalized


# Accepts "Mon", "lunes", "MIÉRCOLES", 0..6; stored as canonical English names
WeekdayList = Annotated[list[str | int], AfterValidator(_weekdays)]


class PositionTemplateCreate(ApiModel):
    site_id: UUID
    name: str = Field(min_length=1, max_length=200)
    shift_start: str = Field(pattern=HHMM_PATTERN)
    shift_end: str = Field(pattern=HHMM_PATTERN)
    weekdays: WeekdayList
    required_headcount: int = Field(ge=1, le=50)
    active_from: Optional[date] = None
    active_until: Optional[date] = None
    is_active: bool = True

    @model_validator(mode="after")
    def check_ranges(self):
        validate_time_range(self.shift_start, self.shift_end)
        validate_active_window(self.active_from, self.active_until)
        return self


class PositionTemplateUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    shift_start: Optional[str] = Field(default=None, pattern=HHMM_PATTERN)
    shift_end: Optional[str] = Field(default=None, pattern=HHMM_PATTERN)
    weekdays: Optional[WeekdayList] = None
    required_headcount: Optional[int] = Field(default=None, ge=1, le=50)
    active_from: Optional[date] = None
    active_until: Optional[date] = None
    is_active: Optional[bool] = None

    @field_validator("shift_start", "shift_end")
    @classmethod
    def check_time(cls, v):
        if v is not None:
            parse_hhmm(v)
        return v


class PositionTemplateOut(ApiModel):
    position_template_id: UUID
    site_id: UUID
    name: str
    shift_start: str
    shift_end: str
    weekdays: list[str]
    required_headcount: int
    active_from: Optional[date] = None
    active_until: Optional[date] = None
    is_active: bool
    created_at: Optional[datetime] = None
