from __future__ import annotations

from pathlib import Path

from . import config


def existing_artifacts(target_directory: Path) -> list[Path]:
    """Top-level CSV files in ``target_directory`` (sorted, non-recursive)."""

    directory = Path(target_directory)
    if not directory.is_dir():
        return []
    return sorted(
        p
        for p in directory.iterdir()
        if p.is_file() and p.name.lower().endswith(config.ARTIFACT_SUFFIX)
    )


def is_satisfied(target_directory: Path) -> bool:
    """Return ``True`` when the target already has at least one CSV artifact.

    Directory existence alone, or a stray archive without extracted CSVs,
    does not count.
    """

    return bool(existing_artifacts(target_directory))


__all__ = ["existing_artifacts", "is_satisfied"]
