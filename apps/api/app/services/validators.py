from datetime import date, time
from typing import Optional


def parse_hhmm(value: str) -> time:
    try:
        return time.fromisoformat(value)
    except ValueError:
        raise ValueError("Invalid time format. Use HH:MM")


def validate_time_range(start: str, end: str) -> None:
    # Overnight shifts (22:00 -> 06:00) are allowed; only a zero-length shift is rejected
    if parse_hhmm(start) == parse_hhmm(end):
        raise ValueError("shift_end must differ from shift_start")


def validate_active_window(active_from: Optional[date], active_until: Optional[date]) -> None:
    # active_until is exclusive, so it must be strictly after active_from
    if active_from and active_until and active_until <= active_from:
        raise ValueError("active_until must be after active_from")
