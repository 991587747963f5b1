"""Configuration constants for the JDI roster scraper."""
from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from datetime import date
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Credentials live in a local .env next to the checkout.
load_dotenv()


def _parse_timeout_seconds(env_var: str, default: float, *, minimum: float = 0.1) -> float:
    """Parse a timeout value in seconds from the environment with bounds."""

    try:
        value = float(os.getenv(env_var, str(default)))
    except ValueError:
        return default
    return max(minimum, value)


def _env_flag(env_var: str, default: str = "0") -> bool:
    return os.getenv(env_var, default).strip().lower() not in {"", "0", "false", "no"}


DATA_DIR: Path = Path(os.getenv("JDI_OUTPUT_DIR", "data")).expanduser()
LOG_DIR: Path = Path(os.getenv("JDI_LOG_DIR", str(DATA_DIR / "logs"))).expanduser()
LOG_FILE: Path = LOG_DIR / "latest.log"
RUNS_DIR: Path = DATA_DIR / "runs"
EXPORTS_DIR: Path = DATA_DIR / "exports"

HOME_URL: str = os.getenv("JDI_HOME_URL", "https://jaildatainitiative.org/")
ROSTER_URL: str = os.getenv("JDI_ROSTER_URL", "https://jaildatainitiative.org/roster")
PORTAL_HOST: str = "jaildatainitiative.org"
ROSTER_STATE: str = os.getenv("JDI_STATE", "OK")

DEFAULT_START_DATE: str = os.getenv("JDI_START_DATE", "2025-12-01")
DEFAULT_END_DATE: Optional[str] = os.getenv("JDI_END_DATE") or None

# Bounded waits (seconds).
TRIGGER_TIMEOUT_SECONDS: float = _parse_timeout_seconds("JDI_TRIGGER_TIMEOUT_SECONDS", 15)
DOWNLOAD_TIMEOUT_SECONDS: float = _parse_timeout_seconds("JDI_DOWNLOAD_TIMEOUT_SECONDS", 15)
LOGIN_TIMEOUT_SECONDS: float = _parse_timeout_seconds("JDI_LOGIN_TIMEOUT_SECONDS", 15)
POLL_INTERVAL_SECONDS: float = _parse_timeout_seconds(
    "JDI_POLL_INTERVAL_SECONDS", 0.5, minimum=0.05
)
POST_LOGIN_SETTLE_SECONDS: float = float(os.getenv("JDI_POST_LOGIN_SETTLE_SECONDS", "3"))

BROWSER_BACKEND: str = os.getenv("JDI_BROWSER_BACKEND", "selenium").strip().lower() or "selenium"
BROWSER_BACKENDS = ("selenium", "playwright")
HEADLESS: bool = _env_flag("JDI_HEADLESS")
CHROME_BINARY: Optional[str] = os.getenv("JDI_CHROME_BINARY") or None
WINDOW_SIZE = (1280, 1024)

CLEANUP_ARCHIVES: bool = _env_flag("JDI_CLEANUP_ARCHIVES")

ARCHIVE_SUFFIX: str = ".zip"
ARTIFACT_SUFFIX: str = ".csv"
IN_PROGRESS_SUFFIX: str = ".crdownload"

# Locators are (strategy, value) pairs understood by every browser backend.
DOWNLOAD_TRIGGER_LOCATOR = ("xpath", "//button[contains(., 'Original CSV')]")
LOGIN_TRIGGER_LOCATOR = ("xpath", "//button[contains(., 'LOG IN')]")
EMAIL_INPUT_LOCATOR = ("xpath", '//*[@id="email"]')
PASSWORD_INPUT_LOCATOR = ("xpath", '//*[@id="password"]')
SUBMIT_LOCATOR = ("css", 'button[type="submit"]')


@dataclass(frozen=True)
class Credentials:
    email: str
    password: str

    @classmethod
    def from_env(cls) -> Optional["Credentials"]:
        email = (os.getenv("JDI_EMAIL") or "").strip()
        password = os.getenv("JDI_PASSWORD") or ""
        if not email or not password:
            return None
        return cls(email=email, password=password)

    def __repr__(self) -> str:
        return f"Credentials(email={self.email!r}, password='***')"


@dataclass(frozen=True)
class ScrapeConfig:
    """Explicit settings handed to the orchestrator at construction.

    Built from the module-level constants by :meth:`from_env`; tests build
    their own instances instead of patching globals.
    """

    output_root: Path = DATA_DIR
    runs_dir: Path = RUNS_DIR
    log_dir: Path = LOG_DIR
    roster_url: str = ROSTER_URL
    state: str = ROSTER_STATE
    trigger_timeout: float = TRIGGER_TIMEOUT_SECONDS
    download_timeout: float = DOWNLOAD_TIMEOUT_SECONDS
    poll_interval: float = POLL_INTERVAL_SECONDS
    cleanup_archives: bool = CLEANUP_ARCHIVES
    download_trigger_locator: tuple[str, str] = field(default=DOWNLOAD_TRIGGER_LOCATOR)

    @classmethod
    def from_env(cls) -> "ScrapeConfig":
        return cls(
            output_root=DATA_DIR,
            runs_dir=RUNS_DIR,
            log_dir=LOG_DIR,
            roster_url=ROSTER_URL,
            state=ROSTER_STATE,
            trigger_timeout=TRIGGER_TIMEOUT_SECONDS,
            download_timeout=DOWNLOAD_TIMEOUT_SECONDS,
            poll_interval=POLL_INTERVAL_SECONDS,
            cleanup_archives=CLEANUP_ARCHIVES,
        )

    def with_overrides(self, **changes) -> "ScrapeConfig":
        """Return a copy with ``None``-valued overrides ignored."""

        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def rooted_at(self, output_root: Path) -> "ScrapeConfig":
        """Copy with targets, run telemetry and logs all under ``output_root``."""

        output_root = Path(output_root)
        return replace(
            self,
            output_root=output_root,
            runs_dir=output_root / "runs",
            log_dir=output_root / "logs",
        )


def today() -> date:
    return date.today()
