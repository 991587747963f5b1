from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import pytest

from jdiroster.scraper import config, utils


def _configure_temp_paths(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    data_dir = tmp_path / "data"
    data_dir.mkdir(parents=True, exist_ok=True)
    monkeypatch.setattr(config, "DATA_DIR", data_dir)
    monkeypatch.setattr(config, "LOG_DIR", data_dir / "logs")
    monkeypatch.setattr(config, "LOG_FILE", data_dir / "logs" / "latest.log")
    monkeypatch.setattr(config, "RUNS_DIR", data_dir / "runs")
    monkeypatch.setattr(config, "EXPORTS_DIR", data_dir / "exports")
    monkeypatch.setattr(utils, "_LOGGER_INITIALISED", False)
    return data_dir


def write_zip(
    path: Path, entries: Dict[str, bytes], compression: int = zipfile.ZIP_DEFLATED
) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w", compression) as bundle:
        for name, data in entries.items():
            bundle.writestr(name, data)
    return path


class FakeClock:
    """Monotonic clock that only moves when ``sleep`` is called.

    ``on_sleep(n)`` runs after the n-th sleep, which is where tests make a
    download land while the detector is polling.
    """

    def __init__(self, on_sleep: Optional[Callable[[int], None]] = None) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []
        self.on_sleep = on_sleep

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        if self.on_sleep is not None:
            self.on_sleep(len(self.sleeps))


Delivery = Callable[[Path, str], None]


class FakeBrowserSession:
    """In-memory BrowserSession.

    ``deliver(sink, url)`` runs when the download trigger is invoked and is
    expected to drop files into ``sink`` the way Chrome would.
    ``missing_trigger(url)`` decides whether the button ever shows up.
    """

    def __init__(
        self,
        deliver: Optional[Delivery] = None,
        *,
        missing_trigger: Callable[[str], bool] = lambda _url: False,
        login_redirect: str = "https://jaildatainitiative.org/dashboard",
        fail_on: Optional[str] = None,
    ) -> None:
        self.deliver = deliver
        self.missing_trigger = missing_trigger
        self.login_redirect = login_redirect
        self.fail_on = fail_on
        self.current_url = ""
        self.sink: Optional[Path] = None
        self.calls: List[Tuple[str, object]] = []
        self.typed: Dict[str, str] = {}
        self.closed = False

    def _maybe_fail(self, step: str) -> None:
        if self.fail_on == step:
            raise RuntimeError(f"{step} exploded")

    def navigate(self, url: str) -> None:
        self.calls.append(("navigate", url))
        self._maybe_fail("navigate")
        self.current_url = url

    def find_element(self, locator, timeout: float):
        self.calls.append(("find_element", locator))
        if self.missing_trigger(self.current_url):
            raise TimeoutError("button never appeared")
        return ("element", locator)

    def invoke(self, element) -> None:
        self.calls.append(("invoke", self.current_url))
        self._maybe_fail("invoke")
        if self.deliver is not None and self.sink is not None:
            self.deliver(self.sink, self.current_url)

    def click(self, locator, timeout: float) -> None:
        self.calls.append(("click", locator))
        self._maybe_fail("click")
        if locator == config.SUBMIT_LOCATOR:
            self.current_url = self.login_redirect

    def type_text(self, locator, text: str, timeout: float) -> None:
        self.calls.append(("type_text", locator))
        self.typed[locator[1]] = text

    def configure_download_sink(self, directory: Path) -> None:
        self.calls.append(("sink", Path(directory)))
        self.sink = Path(directory)

    def wait_until(self, predicate, timeout: float) -> None:
        if not predicate():
            raise TimeoutError("condition never held")

    def close(self) -> None:
        self.closed = True

    @property
    def download_attempts(self) -> int:
        return sum(1 for name, _ in self.calls if name == "invoke")
