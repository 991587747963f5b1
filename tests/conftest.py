from __future__ import annotations

from pathlib import Path

import pytest

from tests.helpers import _configure_temp_paths


@pytest.fixture(autouse=True)
def temp_paths(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    return _configure_temp_paths(tmp_path, monkeypatch)
