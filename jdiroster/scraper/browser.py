"""Browser session capability and its Selenium (Chrome) backend."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Optional, Protocol, Tuple

from selenium import webdriver
from selenium.common.exceptions import (
    NoSuchElementException,
    StaleElementReferenceException,
    TimeoutException,
)
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webdriver import WebDriver
from selenium.webdriver.support.ui import WebDriverWait

from . import config
from .utils import log_line

Locator = Tuple[str, str]

_BY = {
    "xpath": By.XPATH,
    "css": By.CSS_SELECTOR,
    "id": By.ID,
}


class BrowserSession(Protocol):
    """What the orchestrator and login handshake need from a browser.

    Bounded waits raise the builtin ``TimeoutError``. ``invoke`` must fire
    the element's click even when an overlay covers it.
    """

    @property
    def current_url(self) -> str: ...

    def navigate(self, url: str) -> None: ...

    def find_element(self, locator: Locator, timeout: float) -> Any: ...

    def invoke(self, element: Any) -> None: ...

    def click(self, locator: Locator, timeout: float) -> None: ...

    def type_text(self, locator: Locator, text: str, timeout: float) -> None: ...

    def configure_download_sink(self, directory: Path) -> None: ...

    def wait_until(self, predicate: Callable[[], bool], timeout: float) -> None: ...

    def close(self) -> None: ...


def make_driver(headless: bool = config.HEADLESS, binary: Optional[str] = config.CHROME_BINARY) -> WebDriver:
    """Instantiate a Chrome WebDriver sized for the roster UI."""

    chrome_options = Options()
    if binary:
        chrome_options.binary_location = binary
    if headless:
        chrome_options.add_argument("--headless=new")
        chrome_options.add_argument("--disable-gpu")
        chrome_options.add_argument("--no-sandbox")
        chrome_options.add_argument("--disable-dev-shm-usage")
    width, height = config.WINDOW_SIZE
    chrome_options.add_argument("--window-position=0,0")
    chrome_options.add_argument(f"--window-size={width},{height}")
    chrome_options.add_experimental_option(
        "prefs",
        {
            "download.prompt_for_download": False,
            "download.directory_upgrade": True,
        },
    )
    return webdriver.Chrome(options=chrome_options)


def _by(locator: Locator) -> Tuple[str, str]:
    strategy, value = locator
    try:
        return _BY[strategy], value
    except KeyError:
        raise ValueError(f"Unsupported locator strategy {strategy!r}") from None


class SeleniumBrowserSession:
    """``BrowserSession`` backed by a Chrome ``WebDriver``."""

    def __init__(self, driver: WebDriver, *, poll_frequency: float = 0.2) -> None:
        self.driver = driver
        self.poll_frequency = poll_frequency
        self.download_dir: Optional[Path] = None

    @classmethod
    def launch(cls, *, headless: bool = config.HEADLESS) -> "SeleniumBrowserSession":
        return cls(make_driver(headless=headless))

    @property
    def current_url(self) -> str:
        return self.driver.current_url

    def _wait(self, timeout: float) -> WebDriverWait:
        return WebDriverWait(
            self.driver,
            timeout,
            poll_frequency=self.poll_frequency,
            ignored_exceptions=(NoSuchElementException, StaleElementReferenceException),
        )

    def navigate(self, url: str) -> None:
        self.driver.get(url)

    def find_element(self, locator: Locator, timeout: float) -> Any:
        """Wait until the element is present, displayed and enabled."""

        by, value = _by(locator)

        def _actionable(driver: WebDriver):
            element = driver.find_element(by, value)
            if element.is_displayed() and element.is_enabled():
                return element
            return False

        try:
            return self._wait(timeout).until(_actionable)
        except TimeoutException as exc:
            raise TimeoutError(f"Element {value!r} not actionable within {timeout:g}s") from exc

    def invoke(self, element: Any) -> None:
        # Script click fires even when a loading overlay sits on top.
        self.driver.execute_script("arguments[0].click();", element)

    def click(self, locator: Locator, timeout: float) -> None:
        self.find_element(locator, timeout).click()

    def type_text(self, locator: Locator, text: str, timeout: float) -> None:
        by, value = _by(locator)
        try:
            element = self._wait(timeout).until(lambda driver: driver.find_element(by, value))
        except TimeoutException as exc:
            raise TimeoutError(f"Element {value!r} not present within {timeout:g}s") from exc
        element.send_keys(text)

    def configure_download_sink(self, directory: Path) -> None:
        directory = Path(directory).resolve()
        self.driver.execute_cdp_cmd(
            "Browser.setDownloadBehavior",
            {
                "behavior": "allow",
                "downloadPath": str(directory),
                "eventsEnabled": True,
            },
        )
        self.download_dir = directory

    def wait_until(self, predicate: Callable[[], bool], timeout: float) -> None:
        try:
            self._wait(timeout).until(lambda _driver: predicate())
        except TimeoutException as exc:
            raise TimeoutError(f"Condition not met within {timeout:g}s") from exc

    def close(self) -> None:
        try:
            self.driver.quit()
        except Exception as exc:  # noqa: BLE001
            log_line(f"[BROWSER][WARN] Error while closing driver: {exc}")


__all__ = ["BrowserSession", "Locator", "SeleniumBrowserSession", "make_driver"]
