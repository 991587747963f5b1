"""Command-line entry point for a full roster scrape.

Workflow:

- Load credentials (.env / environment) and the county/date selection.
- Open a browser session (Selenium Chrome by default, Playwright optional).
- Log in once; a failed login aborts before any target is attempted.
- Hand every (county, date) target to :class:`ScrapeOrchestrator`.
- Write run telemetry to ``DATA_DIR/runs`` and close the browser.
"""

from __future__ import annotations

import argparse
from datetime import date
from pathlib import Path
from typing import List, Mapping, Optional

from . import auth, config
from .browser import BrowserSession, SeleniumBrowserSession
from .config import Credentials, ScrapeConfig
from .config_validation import validate_runtime_config
from .counties import COUNTIES, select_counties
from .date_utils import parse_date
from .error_codes import AuthenticationFailure
from .logging_utils import _scraper_event
from .observers import CompositeObserver, LoggingObserver, ProgressBarObserver, ScrapeObserver
from .orchestrator import ScrapeOrchestrator
from .outcomes import RunSummary
from .telemetry import RunTelemetry
from .utils import ensure_dirs, log_line, setup_run_logger


def open_session(
    backend: str,
    *,
    headless: bool = config.HEADLESS,
    download_timeout: float = config.DOWNLOAD_TIMEOUT_SECONDS,
) -> BrowserSession:
    """Launch a browser session for ``backend``."""

    if backend == "playwright":
        from .playwright_session import PlaywrightBrowserSession

        return PlaywrightBrowserSession.launch(headless=headless, download_timeout=download_timeout)
    if backend == "selenium":
        return SeleniumBrowserSession.launch(headless=headless)
    raise ValueError(f"Unknown browser backend {backend!r}")


def build_observer(*, progress: bool, telemetry: Optional[RunTelemetry] = None) -> ScrapeObserver:
    observers: List[ScrapeObserver] = [LoggingObserver()]
    if progress:
        observers.append(ProgressBarObserver())
    if telemetry is not None:
        observers.append(telemetry)
    return CompositeObserver(observers)


def run_scrape(
    *,
    session: BrowserSession,
    credentials: Optional[Credentials],
    counties: Mapping[str, str],
    start_date: date,
    end_date: date,
    scrape_config: ScrapeConfig,
    observer: Optional[ScrapeObserver] = None,
    settle_seconds: Optional[float] = None,
) -> RunSummary:
    """Authenticate ``session`` and scrape every target.

    Raises:
        AuthenticationFailure: login failed; no target was attempted.
    """

    try:
        auth.login(
            session,
            credentials,
            settle_seconds=config.POST_LOGIN_SETTLE_SECONDS if settle_seconds is None else settle_seconds,
        )
    except AuthenticationFailure as exc:
        _scraper_event("error", phase="run", error_code=exc.error_code, error=str(exc))
        log_line(f"Login failed: {exc}")
        raise

    orchestrator = ScrapeOrchestrator(session, scrape_config, observer=observer)
    return orchestrator.run(counties, start_date, end_date)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Download JDI jail rosters per county and date")
    parser.add_argument("--start-date", default=config.DEFAULT_START_DATE)
    parser.add_argument(
        "--end-date",
        default=config.DEFAULT_END_DATE,
        help="Inclusive end date (default: today).",
    )
    parser.add_argument(
        "--county",
        dest="counties",
        action="append",
        default=None,
        help="County display name or slug; repeat to scrape several. Default: all.",
    )
    parser.add_argument("--backend", choices=config.BROWSER_BACKENDS, default=config.BROWSER_BACKEND)
    parser.add_argument("--headless", action="store_true", default=config.HEADLESS)
    parser.add_argument("--output-dir", type=Path, default=None)
    parser.add_argument("--trigger-timeout", type=float, default=None)
    parser.add_argument("--download-timeout", type=float, default=None)
    parser.add_argument(
        "--cleanup-archives",
        action="store_true",
        default=config.CLEANUP_ARCHIVES,
        help="Delete each downloaded zip after its CSVs are extracted.",
    )
    parser.add_argument("--no-progress", action="store_true", help="Disable the progress bar.")
    return parser


def _cli_entrypoint(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        start_date = parse_date(args.start_date)
        end_date = parse_date(args.end_date) if args.end_date else config.today()
    except ValueError as exc:
        parser.error(str(exc))

    scrape_config = ScrapeConfig.from_env()
    if args.output_dir is not None:
        scrape_config = scrape_config.rooted_at(args.output_dir)
    scrape_config = scrape_config.with_overrides(
        trigger_timeout=args.trigger_timeout,
        download_timeout=args.download_timeout,
        cleanup_archives=args.cleanup_archives,
    )
    credentials = Credentials.from_env()
    counties = select_counties(args.counties, COUNTIES)
    if not counties:
        parser.error("No known counties selected")

    ensure_dirs(scrape_config.output_root, scrape_config.log_dir, scrape_config.runs_dir)
    setup_run_logger(scrape_config.log_dir)
    validate_runtime_config(
        "cli",
        scrape_config,
        start_date=start_date,
        end_date=end_date,
        backend=args.backend,
        credentials=credentials,
    )

    telemetry = RunTelemetry(
        runs_dir=scrape_config.runs_dir,
        extra={
            "backend": args.backend,
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
            "counties": list(counties),
        },
    )
    observer = build_observer(progress=not args.no_progress, telemetry=telemetry)

    session = open_session(
        args.backend, headless=args.headless, download_timeout=scrape_config.download_timeout
    )
    try:
        run_scrape(
            session=session,
            credentials=credentials,
            counties=counties,
            start_date=start_date,
            end_date=end_date,
            scrape_config=scrape_config,
            observer=observer,
        )
    except AuthenticationFailure:
        return 1
    finally:
        session.close()

    if telemetry.path is not None:
        log_line(f"Run telemetry written to {telemetry.path}")
    return 0


__all__ = ["run_scrape", "open_session", "build_observer", "_cli_entrypoint"]


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(_cli_entrypoint())
