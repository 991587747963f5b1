"""Portal login handshake.

Every roster download needs an authenticated session, so any failure here is
raised as :class:`AuthenticationFailure` and ends the run before targets are
attempted.
"""
from __future__ import annotations

import time
from typing import Callable, Optional
from urllib.parse import urlparse

from . import config
from .browser import BrowserSession
from .config import Credentials
from .error_codes import AuthenticationFailure
from .logging_utils import _scraper_event
from .utils import log_line


def _on_portal(url: str, host: str) -> bool:
    netloc = urlparse(url or "").netloc.lower()
    return netloc == host or netloc.endswith("." + host)


def login(
    session: BrowserSession,
    credentials: Optional[Credentials],
    *,
    home_url: str = config.HOME_URL,
    portal_host: str = config.PORTAL_HOST,
    timeout: float = config.LOGIN_TIMEOUT_SECONDS,
    settle_seconds: float = config.POST_LOGIN_SETTLE_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Sign in through the landing page and the OAuth form."""

    if credentials is None:
        raise AuthenticationFailure("JDI_EMAIL and JDI_PASSWORD must be set")

    step = "home"
    try:
        log_line("Navigating to home page...")
        session.navigate(home_url)

        step = "login_button"
        log_line("Clicking landing page Login button...")
        session.click(config.LOGIN_TRIGGER_LOCATOR, timeout)

        step = "credentials"
        log_line("Entering credentials on OAuth page...")
        session.type_text(config.EMAIL_INPUT_LOCATOR, credentials.email, timeout)
        session.type_text(config.PASSWORD_INPUT_LOCATOR, credentials.password, timeout)
        session.click(config.SUBMIT_LOCATOR, timeout)

        step = "redirect"
        session.wait_until(lambda: _on_portal(session.current_url, portal_host), timeout)
    except AuthenticationFailure:
        raise
    except Exception as exc:  # noqa: BLE001
        _scraper_event(
            "error",
            phase="login",
            step=step,
            error=f"{type(exc).__name__}: {exc}",
        )
        raise AuthenticationFailure(f"Login failed at {step}: {exc}") from exc

    _scraper_event("state", phase="login", ok=True, url=session.current_url)
    log_line("Login successful!")
    if settle_seconds > 0:
        sleep(settle_seconds)


__all__ = ["login"]
