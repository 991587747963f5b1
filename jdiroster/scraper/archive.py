"""Unpack downloaded roster archives into canonically named CSV artifacts."""
from __future__ import annotations

import zipfile
import zlib
from datetime import date
from pathlib import Path

from . import config
from .error_codes import ExtractionError
from .logging_utils import _scraper_event
from .naming import artifact_path
from .utils import log_line


def _is_csv_entry(info: zipfile.ZipInfo) -> bool:
    return not info.is_dir() and info.filename.lower().endswith(config.ARTIFACT_SUFFIX)


def _write_artifact(dest_path: Path, payload: bytes) -> None:
    # A half-written ``.part`` never counts as a CSV artifact.
    part_path = dest_path.with_name(dest_path.name + ".part")
    try:
        part_path.write_bytes(payload)
        part_path.replace(dest_path)
    except OSError:
        part_path.unlink(missing_ok=True)
        raise


def _rollback(paths: list[Path]) -> None:
    for path in paths:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            log_line(f"[ARCHIVE][WARN] Unable to remove partial artifact {path}: {exc}")


def extract(archive: Path, target_directory: Path, county_slug: str, day: date) -> list[Path]:
    """Write every CSV entry of ``archive`` into ``target_directory``.

    Entries are written in archive-listing order; an existing file at the
    computed path is overwritten, so when two entries map to the same name
    the later one wins. Non-CSV entries are skipped. Returns the written
    paths in listing order (duplicates collapsed).

    Each entry is fully read (and its CRC checked) before anything is
    written. If any entry fails, the artifacts already written by this call
    are removed so a failed extraction never leaves the target looking done.

    Raises:
        ExtractionError: the archive is missing, corrupt or unreadable.
    """

    archive = Path(archive)
    target_directory = Path(target_directory)
    log_line(f"Extracting contents from {archive.name}")

    written: list[Path] = []
    try:
        with zipfile.ZipFile(archive) as bundle:
            for info in bundle.infolist():
                if not _is_csv_entry(info):
                    continue
                dest_path = artifact_path(target_directory, info.filename, county_slug, day)
                log_line(f"Extracting to: {dest_path}")
                _write_artifact(dest_path, bundle.read(info))
                if dest_path not in written:
                    written.append(dest_path)
    except (
        zipfile.BadZipFile,
        zipfile.LargeZipFile,
        zlib.error,
        NotImplementedError,
        OSError,
        EOFError,
    ) as exc:
        _rollback(written)
        _scraper_event(
            "error",
            phase="extract",
            archive=str(archive),
            rolled_back=len(written),
            error=f"{type(exc).__name__}: {exc}",
        )
        raise ExtractionError(f"Unable to extract {archive.name}: {exc}") from exc

    _scraper_event(
        "state",
        phase="extract",
        archive=archive.name,
        artifacts=len(written),
    )
    return written


def discard_archive(archive: Path) -> bool:
    """Delete ``archive`` after a successful extraction; ``False`` if it failed."""

    try:
        Path(archive).unlink()
    except FileNotFoundError:
        return False
    except OSError as exc:
        log_line(f"[ARCHIVE][WARN] Unable to remove {archive}: {exc}")
        return False
    return True


__all__ = ["extract", "discard_archive"]
