from __future__ import annotations

"""CLI helper for printing run-level scrape summaries."""

import argparse
from pathlib import Path
from typing import Sequence

from . import telemetry
from .export_excel import export_latest_run_to_excel
from .tree_stats import county_totals, summarise_output_tree
from .utils import load_json_file


def _build_parser() -> argparse.ArgumentParser:
    """Return an argument parser for the run summary CLI."""

    parser = argparse.ArgumentParser(
        description="Show outcome summary for a roster scrape run.",
    )
    parser.add_argument(
        "--run-file",
        type=Path,
        help="Run telemetry JSON to summarise (default: most recent).",
    )
    parser.add_argument(
        "--tree",
        action="store_true",
        help="Also print per-county totals for the output tree.",
    )
    parser.add_argument("--output-dir", type=Path, default=None)
    parser.add_argument(
        "--excel",
        type=Path,
        default=None,
        help="Write an Excel workbook to this path.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the run summary CLI."""

    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    run_path = args.run_file or telemetry.latest_run_path()
    if run_path is None:
        parser.error("No run telemetry found; pass --run-file")
    if not Path(run_path).is_file():
        parser.error(f"Run file {run_path} does not exist")

    payload = load_json_file(run_path)
    print(f"Run {payload.get('run_id')}")
    for status, count in sorted((payload.get("summary") or {}).items()):
        print(f"  {status}: {count}")

    if payload.get("fail_reasons"):
        print("\nFail reasons:")
        for code, count in sorted(payload["fail_reasons"].items()):
            print(f"  {code}: {count}")

    if args.tree:
        totals = county_totals(summarise_output_tree(args.output_dir))
        print("\nOutput tree:")
        if totals.empty:
            print("  (empty)")
        for row in totals.itertuples(index=False):
            print(
                f"  {row.county}: {row.satisfied_dates}/{row.dates} dates, "
                f"{row.artifacts} files, {row.bytes} bytes"
            )

    if args.excel is not None:
        dest = export_latest_run_to_excel(
            args.excel, run_path=Path(run_path), output_root=args.output_dir
        )
        print(f"\nWrote {dest}")

    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry
    raise SystemExit(main())
