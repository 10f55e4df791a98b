from __future__ import annotations

import calendar
import unicodedata
from datetime import date, timedelta
from typing import Iterable

# Canonical labels, indexed like date.weekday() (0=Mon ... 6=Sun)
WEEKDAYS = [
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
]

_ALIASES = {
    "monday": ["mon", "mo", "lunes", "lun", "lu"],
    "tuesday": ["tue", "tues", "tu", "martes", "mar", "ma"],
    "wednesday": ["wed", "we", "miercoles", "mie", "mi"],
    "thursday": ["thu", "thur", "thurs", "th", "jueves", "jue", "ju"],
    "friday": ["fri", "fr", "viernes", "vie", "vi"],
    "saturday": ["sat", "sa", "sabado", "sab"],
    "sunday": ["sun", "su", "domingo", "dom", "do"],
}

_LOOKUP = {}
for _canonical, _names in _ALIASES.items():
    _LOOKUP[_canonical] = _canonical
    for _name in _names:
        _LOOKUP[_name] = _canonical


def _fold(value: str) -> str:
    # "Miércoles " -> "miercoles"
    decomposed = unicodedata.normalize("NFKD", value.strip().lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).rstrip(".")


def normalize_weekday(value) -> str:
    """Map any accepted representation to its canonical label.

    Accepts English and Spanish names and abbreviations in any case, with or
    without accents, and ints following date.weekday() (0=Mon).
    """
    if isinstance(value, int) and not isinstance(value, bool):
        if 0 <= value <= 6:
            return WEEKDAYS[value]
        raise ValueError(f"Weekday index out of range: {value}")

    if not isinstance(value, str):
        raise ValueError(f"Unrecognized weekday: {value!r}")

    label = _LOOKUP.get(_fold(value))
    if label is None:
        raise ValueError(f"Unrecognized weekday: {value!r}")
    return label


def normalize_weekdays(values: Iterable) -> list[str]:
    """Canonical, de-duplicated, Monday-first list."""
    found = {normalize_weekday(v) for v in values}
    return [d for d in WEEKDAYS if d in found]


def weekday_key(d: date) -> str:
    return WEEKDAYS[d.weekday()]


def weekday_matches(mask: Iterable, weekday: str) -> bool:
    """True if `weekday` is in `mask`; unrecognized mask entries never match."""
    for value in mask or []:
        try:
            if normalize_weekday(value) == weekday:
                return True
        except ValueError:
            continue
    return False


def month_date_range(year: int, month: int) -> tuple[date, date]:
    """Inclusive [first, last] day of the month."""
    if not 1 <= month <= 12:
        raise ValueError(f"month must be 1-12, got {month}")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def daterange(start: date, end: date):
    cur = start
    while cur <= end:
        yield cur
        cur += timedelta(days=1)
