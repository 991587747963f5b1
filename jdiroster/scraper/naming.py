"""Canonical names for extracted roster CSVs."""
from __future__ import annotations

from datetime import date
from pathlib import Path, PurePosixPath

from . import config
from .date_utils import iso


def entry_base_name(entry_name: str) -> str:
    """Return the entry's basename without directories or its last extension."""

    name = PurePosixPath(entry_name.replace("\\", "/")).name
    stem, dot, _ext = name.rpartition(".")
    # Dotfiles such as ".csv" keep their whole name as the stem.
    return stem if dot and stem else name


def artifact_name(entry_name: str, county_slug: str, day: date) -> str:
    """Map an archive entry to ``{entry}-{county}-{YYYY-MM-DD}.csv``.

    >>> artifact_name("Roster.CSV", "tulsa", date(2025, 6, 1))
    'roster-tulsa-2025-06-01.csv'
    """

    base = entry_base_name(entry_name).lower()
    return f"{base}-{county_slug.lower()}-{iso(day)}{config.ARTIFACT_SUFFIX}"


def artifact_path(target_directory: Path, entry_name: str, county_slug: str, day: date) -> Path:
    return Path(target_directory) / artifact_name(entry_name, county_slug, day)


__all__ = ["entry_base_name", "artifact_name", "artifact_path"]
