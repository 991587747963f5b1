"""Run telemetry written as one JSON document per scrape run."""

from __future__ import annotations

import os
import time
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import config
from .observers import ScrapeObserver
from .outcomes import RunSummary, TargetOutcome
from .utils import save_json_file

MAX_EXPORTS = int(os.environ.get("JDI_EXPORTS_KEEP_MAX", "5"))


def _ts() -> str:
    return time.strftime("%Y%m%d_%H%M%S")


class RunTelemetry(ScrapeObserver):
    """Collect per-target outcomes and persist them when the run ends."""

    def __init__(self, runs_dir: Optional[Path] = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self.run_id = f"{_ts()}_{uuid.uuid4().hex[:8]}"
        self.runs_dir = Path(runs_dir or config.RUNS_DIR)
        self.extra = dict(extra or {})
        self.entries: List[Dict[str, Any]] = []
        self.path: Optional[Path] = None

    def on_outcome(self, outcome: TargetOutcome) -> None:
        self.entries.append(outcome.to_dict())

    def on_run_end(self, summary: RunSummary) -> None:
        self.finalize(summary)

    def finalize(self, summary: RunSummary) -> Path:
        payload = {
            "run_id": self.run_id,
            "started_at": summary.started_at,
            "ended_at": summary.ended_at or time.time(),
            "summary": summary.counts,
            "fail_reasons": summary.fail_reasons,
            "entries": self.entries,
            **self.extra,
        }
        path = self.runs_dir / f"run_{self.run_id}.json"
        save_json_file(path, payload)
        self.path = path
        return path


def latest_run_path(runs_dir: Optional[Path] = None) -> Optional[Path]:
    """Return the most recent run telemetry JSON path, if any."""

    directory = Path(runs_dir or config.RUNS_DIR)
    if not directory.is_dir():
        return None
    runs = sorted(directory.glob("run_*.json"))
    return runs[-1] if runs else None


def prune_old_exports(exports_dir: Optional[Path] = None) -> None:
    directory = Path(exports_dir or config.EXPORTS_DIR)
    files = sorted(directory.glob("*.xlsx"))
    while len(files) > MAX_EXPORTS:
        old = files.pop(0)
        try:
            old.unlink()
        except OSError:
            continue


__all__ = [
    "RunTelemetry",
    "latest_run_path",
    "prune_old_exports",
]
