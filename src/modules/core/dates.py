"""Calendar-date value type with explicit local-midnight semantics.

Clients send date-only strings (``"2024-01-15"``) for delivery dates,
payment dates and installment due dates.  Parsing them as UTC midnight
shifts the day backwards in ``America/Sao_Paulo``, so every date-only
value is turned into a ``LocalCalendarDate`` at the API boundary and
only converted to an aware datetime (local midnight in ``TIME_ZONE``)
when it reaches the model.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional, Union

from django.utils import timezone
from django.utils.dateparse import parse_datetime

_DATE_ONLY = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

DAY = timedelta(days=1)


@dataclass(frozen=True, order=True)
class LocalCalendarDate:
    """A year/month/day triple interpreted in the configured local time zone."""

    year: int
    month: int
    day: int

    def __post_init__(self) -> None:
        # Raises ValueError for impossible dates such as 2024-02-30.
        date(self.year, self.month, self.day)

    @classmethod
    def parse(cls, value: str) -> LocalCalendarDate:
        """Build from ``YYYY-MM-DD`` by splitting components (never via UTC)."""
        match = _DATE_ONLY.match(value.strip())
        if not match:
            raise ValueError(f"Invalid date {value!r}; expected YYYY-MM-DD.")
        year, month, day = (int(part) for part in match.groups())
        return cls(year, month, day)

    @classmethod
    def from_date(cls, value: date) -> LocalCalendarDate:
        return cls(value.year, value.month, value.day)

    @classmethod
    def today(cls) -> LocalCalendarDate:
        return cls.from_date(timezone.localdate())

    def to_date(self) -> date:
        return date(self.year, self.month, self.day)

    def to_local_midnight(self) -> datetime:
        """Aware datetime at 00:00 of this day in ``settings.TIME_ZONE``."""
        return timezone.make_aware(datetime.combine(self.to_date(), time.min))

    def end_of_day(self) -> datetime:
        """Last instant of this day in ``settings.TIME_ZONE``."""
        return timezone.make_aware(datetime.combine(self.to_date(), time.max))

    def __str__(self) -> str:
        return self.to_date().isoformat()


def parse_timestamp(value: Union[str, datetime, date, LocalCalendarDate]) -> datetime:
    """Convert a boundary value into an aware datetime.

    Date-only input maps to local midnight; full ISO timestamps keep their
    own offset (naive ones are read as local time).
    """
    if isinstance(value, LocalCalendarDate):
        return value.to_local_midnight()
    if isinstance(value, datetime):
        return value if timezone.is_aware(value) else timezone.make_aware(value)
    if isinstance(value, date):
        return LocalCalendarDate.from_date(value).to_local_midnight()

    text = value.strip()
    if _DATE_ONLY.match(text):
        return LocalCalendarDate.parse(text).to_local_midnight()
    parsed = parse_datetime(text)
    if parsed is None:
        raise ValueError(f"Invalid date/time {value!r}.")
    return parsed if timezone.is_aware(parsed) else timezone.make_aware(parsed)


def parse_optional_timestamp(
    value: Optional[Union[str, datetime, date, LocalCalendarDate]],
) -> Optional[datetime]:
    """Like ``parse_timestamp`` but empty values clear the field."""
    if value is None or value == "":
        return None
    return parse_timestamp(value)
