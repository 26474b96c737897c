from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date {value!r}, expected YYYY-MM-DD") from None


def now_utc() -> datetime:
    """Current instant, timezone-aware.

    Note: Only the controller layer calls this; services receive ``now`` explicitly.
    """
    return datetime.now(timezone.utc)


def require_aware(value: datetime, field_name: str = "now") -> datetime:
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValidationError(f"{field_name} must be timezone-aware")
    return value


@dataclass(frozen=True)
class DayBoundary:
    """Rule mapping an instant to the calendar day that keys attendance records.

    ``DayBoundary()`` splits days at UTC midnight; ``DayBoundary.from_name("Asia/Kolkata")``
    splits them at local midnight in that zone.
    """

    tz: tzinfo = field(default=timezone.utc)

    @classmethod
    def from_name(cls, name: str | None) -> "DayBoundary":
        if not name or name.upper() == "UTC":
            return cls()
        try:
            return cls(ZoneInfo(name))
        except (ZoneInfoNotFoundError, ValueError):
            raise ValidationError(f"Unknown time zone {name!r}") from None

    def work_date(self, now: datetime) -> date:
        return require_aware(now).astimezone(self.tz).date()
