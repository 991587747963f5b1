from __future__ import annotations

import sys
from typing import Any, Mapping, Optional

from .utils import log_line


def _format_fields(fields: Mapping[str, Any]) -> str:
    return ", ".join(f"{key}={value!r}" for key, value in sorted(fields.items()))


def _scraper_event(label: str, *, phase: Optional[str] = None, **fields: Any) -> None:
    """Log one ``[SCRAPER][LABEL] key=value, ...`` line.

    ``label`` is the event kind (state, error, plan, summary); ``phase`` is
    the workflow stage it came from and is logged with the other fields.
    A failing log handler is reported on stderr and never reaches the caller.
    """

    if phase is not None:
        fields["phase"] = phase
    line = f"[SCRAPER][{label.upper()}] {_format_fields(fields)}"
    try:
        log_line(line)
    except (OSError, ValueError) as exc:
        print(f"{line} (log write failed: {exc})", file=sys.stderr)


__all__ = ["_scraper_event"]
