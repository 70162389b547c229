"""Calendar-month helpers.

Month keys use the ``YYYY-MM`` format. A month key that cannot be read is
returned as ``None`` so callers can treat it as matching no record.
"""

import re
from datetime import date
from typing import NamedTuple, Optional

_MONTH_KEY = re.compile(r"^(\d{4})-(\d{2})$")


class MonthKey(NamedTuple):
    """A parsed ``YYYY-MM`` month."""

    year: int
    month: int

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


def parse_month_key(month_key) -> Optional[MonthKey]:
    """Parse ``YYYY-MM``; return None for anything else."""
    if not isinstance(month_key, str):
        return None
    match = _MONTH_KEY.match(month_key.strip())
    if not match:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        return None
    return MonthKey(year, month)


def month_key_for(day: date) -> str:
    """Return the ``YYYY-MM`` key of a date."""
    return str(MonthKey(day.year, day.month))


def months_between(start: date, target: MonthKey) -> int:
    """Whole calendar months from ``start``'s month to ``target`` (may be negative)."""
    return (target.year - start.year) * 12 + (target.month - start.month)


__all__ = ["MonthKey", "parse_month_key", "month_key_for", "months_between"]
