from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from . import config
from .config import Credentials, ScrapeConfig
from .logging_utils import _scraper_event
from .utils import log_line

Entrypoint = Literal["cli", "tests"]


def _raise_config_error(message: str, *, entrypoint: Entrypoint, error: str) -> None:
    _scraper_event(
        "error",
        phase="config",
        context="runtime_validation",
        error=error,
        entrypoint=entrypoint,
    )
    log_line(f"[CONFIG] {message} (entrypoint={entrypoint})")
    raise ValueError(message)


def validate_runtime_config(
    entrypoint: Entrypoint,
    scrape_config: ScrapeConfig,
    *,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    backend: str = config.BROWSER_BACKEND,
    credentials: Optional[Credentials] = None,
) -> None:
    """Validate runtime configuration for the given entrypoint.

    Raises ``ValueError`` when a blocking misconfiguration is detected.
    """

    timeout_fields = [
        ("trigger_timeout", scrape_config.trigger_timeout),
        ("download_timeout", scrape_config.download_timeout),
        ("poll_interval", scrape_config.poll_interval),
    ]
    for field_name, value in timeout_fields:
        if value <= 0:
            _raise_config_error(
                f"{field_name} must be greater than zero.",
                entrypoint=entrypoint,
                error="invalid_timeout",
            )

    if not scrape_config.roster_url.lower().startswith(("http://", "https://")):
        _raise_config_error(
            f"Roster URL {scrape_config.roster_url!r} is not an http(s) URL.",
            entrypoint=entrypoint,
            error="invalid_roster_url",
        )

    if start_date is not None and end_date is not None and start_date > end_date:
        _raise_config_error(
            f"Start date {start_date} is after end date {end_date}.",
            entrypoint=entrypoint,
            error="invalid_date_range",
        )

    if backend not in config.BROWSER_BACKENDS:
        _raise_config_error(
            f"Unknown browser backend {backend!r}; expected one of {', '.join(config.BROWSER_BACKENDS)}.",
            entrypoint=entrypoint,
            error="invalid_backend",
        )

    if entrypoint == "cli" and credentials is None:
        _raise_config_error(
            "JDI_EMAIL and JDI_PASSWORD must be set (environment or .env).",
            entrypoint=entrypoint,
            error="missing_credentials",
        )


__all__ = ["validate_runtime_config", "Entrypoint"]
