from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable, Iterator

_DATE_FORMATS: Iterable[str] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d-%b-%Y",
)


def parse_date(value: str | date) -> date:
    """Parse a CLI/env date into a :class:`date`.

    Accepts ISO dates, a few common variants and the literal ``today``.
    Raises ``ValueError`` when nothing matches.
    """

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    candidate = (value or "").strip()
    if not candidate:
        raise ValueError("empty date")
    if candidate.lower() == "today":
        return date.today()

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(candidate, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Unrecognised date: {value!r}")


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Yield every date in the inclusive range ``[start, end]``."""

    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def iso(day: date) -> str:
    return day.strftime("%Y-%m-%d")
