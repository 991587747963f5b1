from __future__ import annotations

"""Error code taxonomy and exceptions for per-target scrape failures.

Codes are written to run telemetry and structured logs so a run summary can
explain why a (county, date) target failed. Keep them stable for reporting.
"""


class ErrorCode:
    NO_DOWNLOAD_TRIGGER = "no_download_trigger"
    DOWNLOAD_TIMED_OUT = "download_timed_out"
    ARCHIVE_NOT_FOUND = "archive_not_found"
    EXTRACTION_ERROR = "extraction_error"
    AUTHENTICATION_FAILURE = "authentication_failure"
    BROWSER_ERROR = "browser_error"
    INTERNAL = "internal_error"


class ScrapeError(Exception):
    error_code = ErrorCode.INTERNAL

    def __init__(self, message: str, *, error_code: str | None = None) -> None:
        super().__init__(message)
        if error_code is not None:
            self.error_code = error_code

    def __str__(self) -> str:  # pragma: no cover - inherited behaviour
        return str(self.args[0]) if self.args else ""


class NoDownloadTrigger(ScrapeError):
    """The download button never became actionable within the wait bound."""

    error_code = ErrorCode.NO_DOWNLOAD_TRIGGER


class DownloadTimedOut(ScrapeError):
    error_code = ErrorCode.DOWNLOAD_TIMED_OUT


class ArchiveNotFound(ScrapeError):
    error_code = ErrorCode.ARCHIVE_NOT_FOUND


class ExtractionError(ScrapeError):
    error_code = ErrorCode.EXTRACTION_ERROR


class AuthenticationFailure(ScrapeError):
    """Login failed; fatal for the whole run."""

    error_code = ErrorCode.AUTHENTICATION_FAILURE


__all__ = [
    "ErrorCode",
    "ScrapeError",
    "NoDownloadTrigger",
    "DownloadTimedOut",
    "ArchiveNotFound",
    "ExtractionError",
    "AuthenticationFailure",
]
