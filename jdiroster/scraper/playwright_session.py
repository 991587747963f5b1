# jdiroster/scraper/playwright_session.py
"""Playwright (Chromium) implementation of the browser session."""
from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Callable, Optional

from playwright.sync_api import (
    Error as PWError,
    Locator as PWLocator,
    Page,
    TimeoutError as PWTimeout,
    sync_playwright,
)

from . import config
from .browser import Locator
from .utils import log_line


def _selector(locator: Locator) -> str:
    strategy, value = locator
    if strategy == "xpath":
        return f"xpath={value}"
    if strategy == "css":
        return f"css={value}"
    if strategy == "id":
        return f"#{value}"
    raise ValueError(f"Unsupported locator strategy {strategy!r}")


def _ms(seconds: float) -> float:
    return max(0.0, seconds) * 1000


class PlaywrightBrowserSession:
    """``BrowserSession`` on a Playwright page.

    Playwright hands downloads to the script instead of the browser's
    download directory, so ``invoke`` waits for the download event and saves
    the file into the configured sink. The completion detector then sees a
    finished archive exactly as it would with Chrome.
    """

    def __init__(
        self,
        page: Page,
        *,
        download_timeout: float = config.DOWNLOAD_TIMEOUT_SECONDS,
        on_close: Optional[Callable[[], None]] = None,
    ) -> None:
        self.page = page
        self.download_timeout = download_timeout
        self.download_dir: Optional[Path] = None
        self._on_close = on_close

    @classmethod
    def launch(
        cls,
        *,
        headless: bool = config.HEADLESS,
        download_timeout: float = config.DOWNLOAD_TIMEOUT_SECONDS,
    ) -> "PlaywrightBrowserSession":
        pw = sync_playwright().start()
        browser = pw.chromium.launch(headless=headless, args=["--window-position=0,0"])
        width, height = config.WINDOW_SIZE
        context = browser.new_context(
            accept_downloads=True,
            viewport={"width": width, "height": height},
        )
        page = context.new_page()

        def _shutdown() -> None:
            context.close()
            browser.close()
            pw.stop()

        return cls(page, download_timeout=download_timeout, on_close=_shutdown)

    @property
    def current_url(self) -> str:
        return self.page.url

    def _locator(self, locator: Locator) -> PWLocator:
        return self.page.locator(_selector(locator)).first

    def navigate(self, url: str) -> None:
        self.page.goto(url, wait_until="domcontentloaded")

    def find_element(self, locator: Locator, timeout: float) -> PWLocator:
        """Wait until the element is attached, visible and enabled."""

        deadline = time.monotonic() + timeout
        element = self._locator(locator)
        try:
            element.wait_for(state="visible", timeout=_ms(timeout))
            while not element.is_enabled():
                if time.monotonic() >= deadline:
                    raise TimeoutError(f"Element {locator[1]!r} stayed disabled for {timeout:g}s")
                self.page.wait_for_timeout(100)
        except PWTimeout as exc:
            raise TimeoutError(f"Element {locator[1]!r} not visible within {timeout:g}s") from exc
        return element

    def invoke(self, element: Any) -> None:
        # dispatch_event skips actionability checks, so overlays cannot swallow it.
        try:
            with self.page.expect_download(timeout=_ms(self.download_timeout)) as download_info:
                element.dispatch_event("click")
            download = download_info.value
        except PWTimeout as exc:
            raise TimeoutError(
                f"No download started within {self.download_timeout:g}s"
            ) from exc

        sink = self.download_dir or Path.cwd()
        destination = sink / download.suggested_filename
        download.save_as(destination)
        log_line(f"Saved download {destination.name}")

    def click(self, locator: Locator, timeout: float) -> None:
        try:
            self._locator(locator).click(timeout=_ms(timeout))
        except PWTimeout as exc:
            raise TimeoutError(f"Element {locator[1]!r} not clickable within {timeout:g}s") from exc

    def type_text(self, locator: Locator, text: str, timeout: float) -> None:
        try:
            self._locator(locator).fill(text, timeout=_ms(timeout))
        except PWTimeout as exc:
            raise TimeoutError(f"Element {locator[1]!r} not fillable within {timeout:g}s") from exc

    def configure_download_sink(self, directory: Path) -> None:
        self.download_dir = Path(directory).resolve()

    def wait_until(self, predicate: Callable[[], bool], timeout: float) -> None:
        deadline = time.monotonic() + timeout
        while not predicate():
            if time.monotonic() >= deadline:
                raise TimeoutError(f"Condition not met within {timeout:g}s")
            self.page.wait_for_timeout(200)

    def close(self) -> None:
        if self._on_close is None:
            return
        try:
            self._on_close()
        except PWError as exc:
            log_line(f"[BROWSER][WARN] Error while closing Playwright: {exc}")
        finally:
            self._on_close = None


__all__ = ["PlaywrightBrowserSession"]
