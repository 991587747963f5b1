"""Filesystem-observed completion of browser downloads.

The browser writes into the configured sink directory and gives no callback
when it is done. Chrome first creates ``<name>.crdownload`` and renames it
once the bytes are flushed, but the final ``.zip`` entry can appear while a
marker is still present, so completion requires both an archive and the
absence of any marker in the same listing. Archives that were already in the
directory before the trigger fired are ignored unless they are rewritten.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from . import config
from .error_codes import ArchiveNotFound, DownloadTimedOut
from .logging_utils import _scraper_event

Clock = Callable[[], float]
Sleeper = Callable[[float], None]
Lister = Callable[[Path], List[str]]
Baseline = Mapping[str, float]


class SessionState(str, Enum):
    TRIGGERED = "triggered"
    POLLING = "polling"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"


_ALLOWED_TRANSITIONS = {
    SessionState.TRIGGERED: {SessionState.POLLING},
    SessionState.POLLING: {SessionState.POLLING, SessionState.COMPLETED, SessionState.TIMED_OUT},
    SessionState.COMPLETED: set(),
    SessionState.TIMED_OUT: set(),
}


def list_directory(directory: Path) -> List[str]:
    """Names of regular files directly inside ``directory``; empty if absent."""

    try:
        return sorted(p.name for p in Path(directory).iterdir() if p.is_file())
    except FileNotFoundError:
        return []


def _archives(names: Iterable[str]) -> List[str]:
    return sorted(n for n in names if n.lower().endswith(config.ARCHIVE_SUFFIX))


def _markers(names: Iterable[str]) -> List[str]:
    return [n for n in names if n.lower().endswith(config.IN_PROGRESS_SUFFIX)]


def _newest(directory: Path, names: Iterable[str]) -> Optional[Path]:
    """Most recently written archive among ``names``; ``None`` if none exist."""

    candidates = []
    for name in names:
        path = directory / name
        try:
            candidates.append((path.stat().st_mtime, name, path))
        except FileNotFoundError:
            continue
    if not candidates:
        return None
    return max(candidates)[2]


def _mtime(path: Path) -> Optional[float]:
    try:
        return path.stat().st_mtime
    except FileNotFoundError:
        return None


def snapshot_archives(directory: Path) -> Dict[str, float]:
    """Archives already in ``directory`` mapped to their modification times.

    Taken before the download is triggered so leftovers from an earlier
    attempt are never mistaken for the new download.
    """

    directory = Path(directory)
    snapshot = {}
    for name in _archives(list_directory(directory)):
        mtime = _mtime(directory / name)
        if mtime is not None:
            snapshot[name] = mtime
    return snapshot


def _fresh_archives(directory: Path, names: Iterable[str], baseline: Baseline) -> List[str]:
    fresh = []
    for name in _archives(names):
        if name not in baseline:
            fresh.append(name)
            continue
        mtime = _mtime(directory / name)
        if mtime is not None and mtime > baseline[name]:
            fresh.append(name)
    return fresh


def download_complete(names: Iterable[str]) -> bool:
    """True when ``names`` holds an archive and no in-progress marker."""

    names = list(names)
    return bool(_archives(names)) and not _markers(names)


@dataclass
class DownloadSession:
    """Transient per-target polling state. Never persisted."""

    target_directory: Path
    deadline: float
    state: SessionState = SessionState.TRIGGERED
    polls: int = 0
    archive: Optional[Path] = None
    history: List[SessionState] = field(default_factory=list)

    def transition(self, target: SessionState) -> None:
        if target not in _ALLOWED_TRANSITIONS[self.state]:
            raise RuntimeError(
                f"Invalid download session transition {self.state.value} -> {target.value}"
            )
        if target != self.state:
            self.history.append(self.state)
            _scraper_event(
                "state",
                phase="download",
                directory=str(self.target_directory),
                from_status=self.state.value,
                to_status=target.value,
                polls=self.polls,
            )
        self.state = target


class DownloadCompletionDetector:
    """Poll a sink directory until a download has fully landed.

    ``clock``, ``sleep`` and ``lister`` are injectable so tests can drive the
    loop without real time or a real browser.
    """

    def __init__(
        self,
        poll_interval: float = config.POLL_INTERVAL_SECONDS,
        *,
        clock: Clock = time.monotonic,
        sleep: Sleeper = time.sleep,
        lister: Lister = list_directory,
    ) -> None:
        self.poll_interval = max(0.0, float(poll_interval))
        self._clock = clock
        self._sleep = sleep
        self._lister = lister
        self.last_session: Optional[DownloadSession] = None

    def await_completion(
        self,
        target_directory: Path,
        timeout: float,
        *,
        baseline: Optional[Baseline] = None,
    ) -> Path:
        """Block until a new archive is complete in ``target_directory``.

        Returns the archive path. Archives listed in ``baseline`` (see
        :func:`snapshot_archives`) only count once their modification time has
        moved on. The directory is checked at least once even with a zero
        timeout.

        Raises:
            DownloadTimedOut: the bound elapsed before the listing settled.
            ArchiveNotFound: completion was observed but the archive could not
                be resolved to a file.
        """

        directory = Path(target_directory)
        baseline = baseline or {}
        session = DownloadSession(target_directory=directory, deadline=self._clock() + timeout)
        self.last_session = session
        session.transition(SessionState.POLLING)

        while True:
            names = self._lister(directory)
            session.polls += 1
            fresh = _fresh_archives(directory, names, baseline)
            stale = set(_archives(names)) - set(fresh)
            if download_complete(n for n in names if n not in stale):
                archive = _newest(directory, fresh)
                if archive is None:
                    raise ArchiveNotFound(f"Zip not found in {directory}")
                session.archive = archive
                session.transition(SessionState.COMPLETED)
                return archive

            now = self._clock()
            if now >= session.deadline:
                session.transition(SessionState.TIMED_OUT)
                pending = _markers(names)
                detail = f"{len(pending)} download(s) still in progress" if pending else "no new archive"
                raise DownloadTimedOut(
                    f"Download did not complete within {timeout:g}s ({detail})"
                )
            self._sleep(min(self.poll_interval, max(0.0, session.deadline - now)))


__all__ = [
    "SessionState",
    "DownloadSession",
    "DownloadCompletionDetector",
    "download_complete",
    "list_directory",
    "snapshot_archives",
]
