"""Aggregate statistics over the scraped output tree."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import pandas as pd

from . import config
from .date_utils import parse_date

TREE_COLUMNS = ["county", "date", "artifacts", "archives", "pending", "bytes", "satisfied"]


def _target_dirs(root: Path):
    for county_dir in sorted(p for p in root.iterdir() if p.is_dir()):
        for date_dir in sorted(p for p in county_dir.iterdir() if p.is_dir()):
            try:
                parse_date(date_dir.name)
            except ValueError:
                continue
            yield county_dir.name, date_dir


def summarise_output_tree(root: Optional[Path] = None) -> pd.DataFrame:
    """One row per ``county/date`` directory under ``root``.

    Only directories whose name parses as a date are counted, which keeps
    ``logs/``, ``runs/`` and ``exports/`` out of the table.
    """

    root = Path(root or config.DATA_DIR)
    rows = []
    if root.is_dir():
        for county, date_dir in _target_dirs(root):
            files = [p for p in date_dir.iterdir() if p.is_file()]
            csvs = [p for p in files if p.name.lower().endswith(config.ARTIFACT_SUFFIX)]
            rows.append(
                {
                    "county": county,
                    "date": date_dir.name,
                    "artifacts": len(csvs),
                    "archives": sum(1 for p in files if p.name.lower().endswith(config.ARCHIVE_SUFFIX)),
                    "pending": sum(
                        1 for p in files if p.name.lower().endswith(config.IN_PROGRESS_SUFFIX)
                    ),
                    "bytes": sum(p.stat().st_size for p in csvs),
                    "satisfied": bool(csvs),
                }
            )
    return pd.DataFrame(rows, columns=TREE_COLUMNS)


def county_totals(tree: pd.DataFrame) -> pd.DataFrame:
    """Collapse a tree table to per-county totals, most dates first."""

    if tree.empty:
        return pd.DataFrame(columns=["county", "dates", "satisfied_dates", "artifacts", "bytes"])
    grouped = tree.groupby("county").agg(
        dates=("date", "count"),
        satisfied_dates=("satisfied", "sum"),
        artifacts=("artifacts", "sum"),
        bytes=("bytes", "sum"),
    )
    grouped["satisfied_dates"] = grouped["satisfied_dates"].astype(int)
    return grouped.reset_index().sort_values(["dates", "county"], ascending=[False, True])


__all__ = ["summarise_output_tree", "county_totals", "TREE_COLUMNS"]
