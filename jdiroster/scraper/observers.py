"""Pluggable listeners for per-target orchestrator events.

Console output, progress bars and run telemetry all hang off these hooks so
there is a single scrape code path regardless of how progress is shown.
"""
from __future__ import annotations

from typing import Iterable, List, Optional

from tqdm import tqdm

from .outcomes import OutcomeStatus, RunSummary, TargetOutcome
from .targets import ScrapeTarget
from .utils import format_elapsed, log_line

_RULE = "=" * 54


class ScrapeObserver:
    """No-op base; subclasses override the hooks they care about."""

    def on_run_start(self, total: int) -> None:
        pass

    def on_target_start(self, target: ScrapeTarget) -> None:
        pass

    def on_outcome(self, outcome: TargetOutcome) -> None:
        pass

    def on_run_end(self, summary: RunSummary) -> None:
        pass


class LoggingObserver(ScrapeObserver):
    """Human-readable progress lines through the shared logger."""

    def on_run_start(self, total: int) -> None:
        log_line(f"{_RULE}\nBeginning new scrape ({total} targets)\n{_RULE}")

    def on_target_start(self, target: ScrapeTarget) -> None:
        log_line(
            f"Checking roster for county: {target.county_display_name} and date: {target.date_str}..."
        )

    def on_outcome(self, outcome: TargetOutcome) -> None:
        target = outcome.target
        if outcome.status == OutcomeStatus.SKIPPED:
            log_line(f" --- Skipping {target}: Files already exist.")
        elif outcome.status == OutcomeStatus.SUCCESS:
            log_line(f"Saved {len(outcome.artifacts)} file(s) for {target}")
        elif outcome.status == OutcomeStatus.TIMED_OUT:
            log_line(f"Error: {target} timed out ({outcome.reason})")
        else:
            log_line(f"Error: {target} failed [{outcome.error_code}] {outcome.reason}")

    def on_run_end(self, summary: RunSummary) -> None:
        counts = ", ".join(f"{k}={v}" for k, v in summary.counts.items())
        log_line(
            f"{_RULE}\nScrape Completed! Total time: {format_elapsed(summary.elapsed)}\n"
            f"{counts}\n{_RULE}"
        )


class ProgressBarObserver(ScrapeObserver):
    """tqdm bar advanced once per target outcome."""

    def __init__(self, **tqdm_kwargs) -> None:
        self._kwargs = {"desc": "Rosters", "unit": "target", **tqdm_kwargs}
        self._bar: Optional[tqdm] = None

    def on_run_start(self, total: int) -> None:
        self._bar = tqdm(total=total, **self._kwargs)

    def on_target_start(self, target: ScrapeTarget) -> None:
        if self._bar is not None:
            self._bar.set_postfix_str(str(target), refresh=False)

    def on_outcome(self, outcome: TargetOutcome) -> None:
        if self._bar is not None:
            self._bar.update(1)

    def on_run_end(self, summary: RunSummary) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None


class CompositeObserver(ScrapeObserver):
    """Fan events out to several observers in order."""

    def __init__(self, observers: Iterable[ScrapeObserver]) -> None:
        self.observers: List[ScrapeObserver] = list(observers)

    def on_run_start(self, total: int) -> None:
        for observer in self.observers:
            observer.on_run_start(total)

    def on_target_start(self, target: ScrapeTarget) -> None:
        for observer in self.observers:
            observer.on_target_start(target)

    def on_outcome(self, outcome: TargetOutcome) -> None:
        for observer in self.observers:
            observer.on_outcome(outcome)

    def on_run_end(self, summary: RunSummary) -> None:
        for observer in self.observers:
            observer.on_run_end(summary)


__all__ = [
    "ScrapeObserver",
    "LoggingObserver",
    "ProgressBarObserver",
    "CompositeObserver",
]
