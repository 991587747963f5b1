from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Iterator, Mapping
from urllib.parse import urlencode

from .date_utils import iso, iter_dates


@dataclass(frozen=True)
class ScrapeTarget:
    """One (county, date) unit of work.

    Equality and hashing use ``(county_slug, date)`` only; the display name
    rides along for the URL and directory layout.
    """

    county_display_name: str = field(compare=False)
    county_slug: str
    date: date

    @property
    def date_str(self) -> str:
        return iso(self.date)

    def __str__(self) -> str:
        return f"{self.county_display_name} {self.date_str}"


def iter_targets(counties: Mapping[str, str], start: date, end: date) -> Iterator[ScrapeTarget]:
    """Lazily yield targets county-major, then date-minor."""

    for display_name, slug in counties.items():
        for day in iter_dates(start, end):
            yield ScrapeTarget(county_display_name=display_name, county_slug=slug, date=day)


def count_targets(counties: Mapping[str, str], start: date, end: date) -> int:
    days = (end - start).days + 1
    return len(counties) * max(0, days)


def target_directory(output_root: Path, target: ScrapeTarget) -> Path:
    """``output_root/{display name lowercased}/{YYYY-MM-DD}``."""

    return Path(output_root) / target.county_display_name.lower() / target.date_str


def build_target_url(roster_url: str, target: ScrapeTarget, *, state: str = "OK") -> str:
    query = urlencode(
        {"state": state, "jail": target.county_display_name, "date": target.date_str}
    )
    return f"{roster_url}?{query}"


__all__ = [
    "ScrapeTarget",
    "iter_targets",
    "count_targets",
    "target_directory",
    "build_target_url",
]
