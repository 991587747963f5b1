"""Sequential (county, date) roster scrape.

For each target: skip when a CSV artifact already exists, otherwise point the
browser's download sink at the target directory, open the roster page, fire
the "Original CSV" button, wait for the archive to land and unpack it. One
target failing never stops the run.
"""
from __future__ import annotations

import time
from datetime import date
from typing import Mapping, Optional

from .archive import discard_archive, extract
from .browser import BrowserSession
from .completion import DownloadCompletionDetector, snapshot_archives
from .config import ScrapeConfig
from .error_codes import DownloadTimedOut, ErrorCode, NoDownloadTrigger, ScrapeError
from .logging_utils import _scraper_event
from .observers import ScrapeObserver
from .outcomes import OutcomeStatus, RunSummary, TargetOutcome
from .resolver import is_satisfied
from .targets import ScrapeTarget, build_target_url, count_targets, iter_targets, target_directory
from .utils import log_line


def _short_error_message(exc: BaseException, max_length: int = 200) -> str:
    message = str(exc) or type(exc).__name__
    if len(message) > max_length:
        return message[: max_length - 3] + "..."
    return message


class ScrapeOrchestrator:
    def __init__(
        self,
        session: BrowserSession,
        config: ScrapeConfig,
        *,
        detector: Optional[DownloadCompletionDetector] = None,
        observer: Optional[ScrapeObserver] = None,
        clock=time.monotonic,
    ) -> None:
        self.session = session
        self.config = config
        self.detector = detector or DownloadCompletionDetector(config.poll_interval)
        self.observer = observer or ScrapeObserver()
        self._clock = clock

    def run(self, counties: Mapping[str, str], start_date: date, end_date: date) -> RunSummary:
        """Process every target in ``counties`` × ``[start_date, end_date]``."""

        summary = RunSummary()
        total = count_targets(counties, start_date, end_date)
        _scraper_event(
            "plan",
            counties=len(counties),
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat(),
            targets=total,
        )
        self.observer.on_run_start(total)

        for target in iter_targets(counties, start_date, end_date):
            self.observer.on_target_start(target)
            outcome = self.process_target(target)
            summary.add(outcome)
            self.observer.on_outcome(outcome)

        summary.finish()
        _scraper_event("summary", **summary.counts)
        self.observer.on_run_end(summary)
        return summary

    def process_target(self, target: ScrapeTarget) -> TargetOutcome:
        """Run the per-target workflow and convert failures into an outcome."""

        directory = target_directory(self.config.output_root, target)
        if is_satisfied(directory):
            return TargetOutcome(target=target, status=OutcomeStatus.SKIPPED, directory=directory)

        started = self._clock()
        try:
            artifacts = self._fetch(target, directory)
        except (DownloadTimedOut, NoDownloadTrigger) as exc:
            status, code, reason = OutcomeStatus.TIMED_OUT, exc.error_code, _short_error_message(exc)
        except ScrapeError as exc:
            status, code, reason = OutcomeStatus.FAILED, exc.error_code, _short_error_message(exc)
        except Exception as exc:  # noqa: BLE001
            status, code, reason = (
                OutcomeStatus.FAILED,
                ErrorCode.BROWSER_ERROR,
                f"{type(exc).__name__}: {_short_error_message(exc)}",
            )
        else:
            _scraper_event(
                "state",
                phase="target",
                county=target.county_slug,
                date=target.date_str,
                status=OutcomeStatus.SUCCESS.value,
                artifacts=len(artifacts),
            )
            return TargetOutcome(
                target=target,
                status=OutcomeStatus.SUCCESS,
                directory=directory,
                artifacts=tuple(artifacts),
                elapsed=self._clock() - started,
            )

        _scraper_event(
            "error",
            phase="target",
            county=target.county_slug,
            date=target.date_str,
            status=status.value,
            error_code=code,
            error=reason,
        )
        return TargetOutcome(
            target=target,
            status=status,
            directory=directory,
            error_code=code,
            reason=reason,
            elapsed=self._clock() - started,
        )

    def _fetch(self, target: ScrapeTarget, directory):
        cfg = self.config
        directory.mkdir(parents=True, exist_ok=True)
        self.session.configure_download_sink(directory)

        url = build_target_url(cfg.roster_url, target, state=cfg.state)
        log_line(f"Opening {url}")
        self.session.navigate(url)

        try:
            trigger = self.session.find_element(cfg.download_trigger_locator, cfg.trigger_timeout)
        except TimeoutError as exc:
            raise NoDownloadTrigger(
                f"No data found (timeout looking for button after {cfg.trigger_timeout:g}s)"
            ) from exc

        baseline = snapshot_archives(directory)
        try:
            self.session.invoke(trigger)
        except TimeoutError as exc:
            raise DownloadTimedOut(str(exc)) from exc

        archive = self.detector.await_completion(
            directory, cfg.download_timeout, baseline=baseline
        )
        artifacts = extract(archive, directory, target.county_slug, target.date)
        if cfg.cleanup_archives and discard_archive(archive):
            log_line(f"Removed {archive.name}")
        return artifacts


__all__ = ["ScrapeOrchestrator"]
