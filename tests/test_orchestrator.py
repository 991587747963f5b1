import os
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from jdiroster.scraper import orchestrator as orchestrator_module
from jdiroster.scraper.completion import DownloadCompletionDetector
from jdiroster.scraper.config import DOWNLOAD_TRIGGER_LOCATOR, ScrapeConfig
from jdiroster.scraper.error_codes import ErrorCode
from jdiroster.scraper.observers import ScrapeObserver
from jdiroster.scraper.orchestrator import ScrapeOrchestrator
from jdiroster.scraper.outcomes import OutcomeStatus
from tests.helpers import FakeBrowserSession, FakeClock, write_zip

TULSA = {"Tulsa": "tulsa"}
DAY = date(2025, 6, 1)


def _config(root: Path, **overrides) -> ScrapeConfig:
    base = ScrapeConfig(
        output_root=root,
        roster_url="https://jaildatainitiative.org/roster",
        trigger_timeout=1,
        download_timeout=2,
        poll_interval=0.5,
        cleanup_archives=False,
    )
    return base.with_overrides(**overrides)


def _orchestrator(
    session, root: Path, *, clock: Optional[FakeClock] = None, **overrides
) -> ScrapeOrchestrator:
    clock = clock or FakeClock()
    detector = DownloadCompletionDetector(0.5, clock=clock, sleep=clock.sleep)
    return ScrapeOrchestrator(session, _config(root, **overrides), detector=detector)


def _deliver_zip(entries: Dict[str, bytes], name: str = "roster.zip"):
    def deliver(sink: Path, _url: str) -> None:
        write_zip(sink / name, entries)

    return deliver


def test_end_to_end_single_target(tmp_path: Path) -> None:
    root = tmp_path / "out"
    session = FakeBrowserSession(_deliver_zip({"data.csv": b"id\n1\n", "readme.txt": b"hi"}))

    summary = _orchestrator(session, root).run(TULSA, DAY, DAY)

    directory = root / "tulsa" / "2025-06-01"
    csvs = sorted(p.name for p in directory.glob("*.csv"))
    assert csvs == ["data-tulsa-2025-06-01.csv"]
    assert not list(directory.glob("readme*"))
    assert (directory / "roster.zip").exists()
    assert summary.counts["success"] == 1
    outcome = summary.outcomes[0]
    assert outcome.status == OutcomeStatus.SUCCESS
    assert outcome.artifacts == (directory / "data-tulsa-2025-06-01.csv",)

    assert session.calls[0] == ("sink", directory)
    assert session.calls[1] == (
        "navigate",
        "https://jaildatainitiative.org/roster?state=OK&jail=Tulsa&date=2025-06-01",
    )
    assert session.calls[2] == ("find_element", DOWNLOAD_TRIGGER_LOCATOR)
    assert session.calls[3][0] == "invoke"


def test_cleanup_option_removes_archive(tmp_path: Path) -> None:
    root = tmp_path / "out"
    session = FakeBrowserSession(_deliver_zip({"data.csv": b"id\n1\n", "readme.txt": b"hi"}))

    _orchestrator(session, root, cleanup_archives=True).run(TULSA, DAY, DAY)

    directory = root / "tulsa" / "2025-06-01"
    assert sorted(p.name for p in directory.iterdir()) == ["data-tulsa-2025-06-01.csv"]


def test_second_run_downloads_nothing(tmp_path: Path) -> None:
    root = tmp_path / "out"
    counties = {"Tulsa": "tulsa", "Creek": "creek"}
    session = FakeBrowserSession(_deliver_zip({"data.csv": b"x\n"}))
    orchestrator = _orchestrator(session, root)

    first = orchestrator.run(counties, DAY, date(2025, 6, 2))
    attempts_after_first = session.download_attempts
    second = orchestrator.run(counties, DAY, date(2025, 6, 2))

    assert first.counts["success"] == 4
    assert attempts_after_first == 4
    assert session.download_attempts == 4
    assert second.counts["skipped"] == 4
    assert second.attempted == 0


def test_skip_happens_before_any_browser_call(tmp_path: Path) -> None:
    root = tmp_path / "out"
    directory = root / "tulsa" / "2025-06-01"
    directory.mkdir(parents=True)
    (directory / "data-tulsa-2025-06-01.csv").write_text("x\n")
    session = FakeBrowserSession(_deliver_zip({"data.csv": b"x\n"}))

    summary = _orchestrator(session, root).run(TULSA, DAY, DAY)

    assert summary.outcomes[0].status == OutcomeStatus.SKIPPED
    assert session.calls == []


def test_stray_archive_is_refetched(tmp_path: Path) -> None:
    root = tmp_path / "out"
    directory = root / "tulsa" / "2025-06-01"
    stale = write_zip(directory / "old.zip", {"notes.txt": b""})
    os.utime(stale, (1_000_000, 1_000_000))
    session = FakeBrowserSession(_deliver_zip({"data.csv": b"x\n"}, name="roster.zip"))

    summary = _orchestrator(session, root).run(TULSA, DAY, DAY)

    assert session.download_attempts == 1
    assert summary.outcomes[0].status == OutcomeStatus.SUCCESS
    assert summary.outcomes[0].artifacts == (directory / "data-tulsa-2025-06-01.csv",)


def test_download_landing_after_first_poll_beats_stale_archive(tmp_path: Path) -> None:
    root = tmp_path / "out"
    directory = root / "tulsa" / "2025-06-01"
    directory.mkdir(parents=True)
    stale = directory / "old.zip"
    stale.write_bytes(b"left over from a failed attempt")
    os.utime(stale, (1_000_000, 1_000_000))

    def land(count: int) -> None:
        if count == 1:
            write_zip(directory / "roster.zip", {"data.csv": b"id\n1\n"})

    # The browser returns from the click before the file exists.
    session = FakeBrowserSession()
    summary = _orchestrator(session, root, clock=FakeClock(on_sleep=land)).run(TULSA, DAY, DAY)

    outcome = summary.outcomes[0]
    assert outcome.status == OutcomeStatus.SUCCESS
    assert outcome.artifacts == (directory / "data-tulsa-2025-06-01.csv",)
    assert (directory / "data-tulsa-2025-06-01.csv").read_bytes() == b"id\n1\n"


def test_timeout_is_recorded_and_run_continues(tmp_path: Path) -> None:
    root = tmp_path / "out"

    def deliver(sink: Path, url: str) -> None:
        if "jail=Tulsa" in url:
            # Download starts but never finishes.
            (sink / "roster.zip.crdownload").write_bytes(b"partial")
            return
        write_zip(sink / "roster.zip", {"data.csv": b"x\n"})

    session = FakeBrowserSession(deliver)
    summary = _orchestrator(session, root).run({"Tulsa": "tulsa", "Creek": "creek"}, DAY, DAY)

    statuses = [(o.target.county_slug, o.status) for o in summary.outcomes]
    assert statuses == [("tulsa", OutcomeStatus.TIMED_OUT), ("creek", OutcomeStatus.SUCCESS)]
    assert summary.outcomes[0].error_code == ErrorCode.DOWNLOAD_TIMED_OUT
    assert summary.fail_reasons == {ErrorCode.DOWNLOAD_TIMED_OUT: 1}


def test_missing_trigger_is_a_timeout_not_a_crash(tmp_path: Path) -> None:
    root = tmp_path / "out"
    session = FakeBrowserSession(
        _deliver_zip({"data.csv": b"x\n"}),
        missing_trigger=lambda url: "date=2025-06-01" in url,
    )

    summary = _orchestrator(session, root).run(TULSA, DAY, date(2025, 6, 2))

    first, second = summary.outcomes
    assert first.status == OutcomeStatus.TIMED_OUT
    assert first.error_code == ErrorCode.NO_DOWNLOAD_TRIGGER
    assert second.status == OutcomeStatus.SUCCESS
    # Directory is created even though nothing landed in it.
    assert (root / "tulsa" / "2025-06-01").is_dir()


def test_corrupt_archive_is_extraction_failure(tmp_path: Path) -> None:
    root = tmp_path / "out"

    def deliver(sink: Path, _url: str) -> None:
        (sink / "roster.zip").write_bytes(b"garbage")

    summary = _orchestrator(FakeBrowserSession(deliver), root).run(TULSA, DAY, DAY)

    assert summary.outcomes[0].status == OutcomeStatus.FAILED
    assert summary.outcomes[0].error_code == ErrorCode.EXTRACTION_ERROR


def test_archive_without_csv_succeeds_with_no_artifacts(tmp_path: Path) -> None:
    root = tmp_path / "out"
    session = FakeBrowserSession(_deliver_zip({"readme.txt": b"empty day"}))

    summary = _orchestrator(session, root).run(TULSA, DAY, DAY)

    assert summary.outcomes[0].status == OutcomeStatus.SUCCESS
    assert summary.outcomes[0].artifacts == ()


def test_browser_exception_is_contained(tmp_path: Path) -> None:
    root = tmp_path / "out"
    session = FakeBrowserSession(_deliver_zip({"data.csv": b"x\n"}), fail_on="navigate")

    summary = _orchestrator(session, root).run(TULSA, DAY, date(2025, 6, 2))

    assert [o.status for o in summary.outcomes] == [OutcomeStatus.FAILED, OutcomeStatus.FAILED]
    assert {o.error_code for o in summary.outcomes} == {ErrorCode.BROWSER_ERROR}
    assert "RuntimeError" in summary.outcomes[0].reason


def test_invoke_timeout_maps_to_timed_out(tmp_path: Path) -> None:
    root = tmp_path / "out"

    class SlowSession(FakeBrowserSession):
        def invoke(self, element) -> None:
            raise TimeoutError("no download event")

    summary = _orchestrator(SlowSession(), root).run(TULSA, DAY, DAY)

    assert summary.outcomes[0].status == OutcomeStatus.TIMED_OUT


def test_observer_receives_events_in_order(tmp_path: Path) -> None:
    events: List[str] = []

    class Recorder(ScrapeObserver):
        def on_run_start(self, total: int) -> None:
            events.append(f"start:{total}")

        def on_target_start(self, target) -> None:
            events.append(f"target:{target.date_str}")

        def on_outcome(self, outcome) -> None:
            events.append(f"outcome:{outcome.status.value}")

        def on_run_end(self, summary) -> None:
            events.append(f"end:{len(summary.outcomes)}")

    root = tmp_path / "out"
    session = FakeBrowserSession(_deliver_zip({"data.csv": b"x\n"}))
    orchestrator = _orchestrator(session, root)
    orchestrator.observer = Recorder()

    orchestrator.run(TULSA, DAY, date(2025, 6, 2))

    assert events == [
        "start:2",
        "target:2025-06-01",
        "outcome:success",
        "target:2025-06-02",
        "outcome:success",
        "end:2",
    ]


def test_failures_emit_structured_error_events(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    events: list[tuple[tuple, dict]] = []
    monkeypatch.setattr(
        orchestrator_module, "_scraper_event", lambda *args, **kwargs: events.append((args, kwargs))
    )
    session = FakeBrowserSession(missing_trigger=lambda _url: True)

    _orchestrator(session, tmp_path / "out").run(TULSA, DAY, DAY)

    errors = [kwargs for args, kwargs in events if args == ("error",)]
    assert len(errors) == 1
    assert errors[0]["error_code"] == ErrorCode.NO_DOWNLOAD_TRIGGER
    assert errors[0]["county"] == "tulsa"
    assert errors[0]["date"] == "2025-06-01"
