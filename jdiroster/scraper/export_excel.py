"""Excel export helpers for run telemetry."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import pandas as pd

from . import config
from .telemetry import latest_run_path, prune_old_exports
from .tree_stats import county_totals, summarise_output_tree
from .utils import load_json_file


def export_latest_run_to_excel(
    dest_path: Optional[Path] = None,
    *,
    run_path: Optional[Path] = None,
    output_root: Optional[Path] = None,
) -> Path:
    """Create an Excel workbook from a run telemetry payload plus tree stats."""

    run_path = run_path or latest_run_path()
    if not run_path:
        raise FileNotFoundError("No run telemetry available to export")

    payload = load_json_file(run_path)

    df = pd.DataFrame(payload.get("entries", []))
    if df.empty:
        df = pd.DataFrame([{"info": "No entries in run"}])
    if "artifacts" in df.columns:
        # openpyxl cannot write list cells.
        df["artifacts"] = df["artifacts"].apply(
            lambda value: ", ".join(value) if isinstance(value, list) else value
        )

    def by_status(status: str) -> pd.DataFrame:
        if "status" not in df.columns:
            return pd.DataFrame()
        return df[df["status"] == status].copy()

    if "status" in df.columns:
        summary_status = df.groupby("status").size().reset_index(name="count")
    else:
        summary_status = pd.DataFrame()
    if "error_code" in df.columns and df["error_code"].notna().any():
        summary_errors = (
            df.dropna(subset=["error_code"])
            .groupby(["county", "error_code"])
            .size()
            .reset_index(name="count")
            .sort_values("count", ascending=False)
        )
    else:
        summary_errors = pd.DataFrame()

    tree = summarise_output_tree(output_root)

    prune = dest_path is None
    if dest_path is None:
        config.EXPORTS_DIR.mkdir(parents=True, exist_ok=True)
        dest_path = config.EXPORTS_DIR / f"rosters_{payload['run_id']}.xlsx"
    dest_path = Path(dest_path)
    dest_path.parent.mkdir(parents=True, exist_ok=True)

    with pd.ExcelWriter(dest_path, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="All")
        by_status("success").to_excel(writer, index=False, sheet_name="Success")
        by_status("skipped").to_excel(writer, index=False, sheet_name="Skipped")
        by_status("failed").to_excel(writer, index=False, sheet_name="Failed")
        by_status("timed_out").to_excel(writer, index=False, sheet_name="Timed_Out")
        summary_status.to_excel(writer, index=False, sheet_name="Summary_Status")
        if not summary_errors.empty:
            summary_errors.to_excel(writer, index=False, sheet_name="Summary_Errors")
        tree.to_excel(writer, index=False, sheet_name="Tree")
        county_totals(tree).to_excel(writer, index=False, sheet_name="Tree_Counties")

    if prune:
        prune_old_exports(dest_path.parent)
    return dest_path


__all__ = ["export_latest_run_to_excel"]
