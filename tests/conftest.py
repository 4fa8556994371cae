from __future__ import annotations

import os
import pathlib
import sys
import tempfile
from datetime import datetime, timezone

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault(
    "PHOTOFRAME_DATABASE_URL",
    f"sqlite:///{pathlib.Path(tempfile.gettempdir()) / 'photoframe-tests.db'}",
)


@pytest.fixture()
def t0() -> datetime:
    return datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def clear_duration_reports():
    from slideshow.service import UNKNOWN_DURATION_REPORTS

    UNKNOWN_DURATION_REPORTS.clear()
    yield
    UNKNOWN_DURATION_REPORTS.clear()
