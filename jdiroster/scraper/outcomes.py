from __future__ import annotations

import time
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from .targets import ScrapeTarget


class OutcomeStatus(str, Enum):
    """Final state of one target.

    ``TIMED_OUT`` covers both bounded waits: the download button never showing
    up (``no_download_trigger``) and the archive never settling
    (``download_timed_out``). ``error_code`` tells them apart.
    """

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class TargetOutcome:
    target: ScrapeTarget
    status: OutcomeStatus
    directory: Path
    artifacts: tuple[Path, ...] = ()
    error_code: Optional[str] = None
    reason: Optional[str] = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status in (OutcomeStatus.SUCCESS, OutcomeStatus.SKIPPED)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "county": self.target.county_display_name,
            "county_slug": self.target.county_slug,
            "date": self.target.date_str,
            "status": self.status.value,
            "directory": str(self.directory),
            "artifacts": [p.name for p in self.artifacts],
            "error_code": self.error_code,
            "reason": self.reason,
            "elapsed": round(self.elapsed, 3),
        }


@dataclass
class RunSummary:
    """Aggregated per-target outcomes for one orchestrator run."""

    started_at: float = field(default_factory=time.time)
    ended_at: Optional[float] = None
    outcomes: List[TargetOutcome] = field(default_factory=list)

    def add(self, outcome: TargetOutcome) -> None:
        self.outcomes.append(outcome)

    def finish(self) -> None:
        self.ended_at = time.time()

    @property
    def elapsed(self) -> float:
        return (self.ended_at or time.time()) - self.started_at

    @property
    def counts(self) -> Dict[str, int]:
        counter = Counter(o.status.value for o in self.outcomes)
        return {status.value: counter.get(status.value, 0) for status in OutcomeStatus}

    @property
    def fail_reasons(self) -> Dict[str, int]:
        return dict(Counter(o.error_code for o in self.outcomes if o.error_code))

    @property
    def attempted(self) -> int:
        """Targets that reached the browser (everything not skipped)."""

        return sum(1 for o in self.outcomes if o.status != OutcomeStatus.SKIPPED)


__all__ = ["OutcomeStatus", "TargetOutcome", "RunSummary"]
