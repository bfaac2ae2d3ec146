"""Pytest configuration for test isolation.

Every test gets its own file-backed SQLite database under ``tmp_path`` and a
clean environment: ``DATABASE_URL`` and the default-importer override are
removed, and uploads spool into the test's temporary directory. Cached
engines are disposed after each test so no connection outlives its file.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

# Make sure the workspace `packages/` dir is on sys.path so `finance_tracker` is importable
_ROOT = Path(__file__).resolve().parents[1]
_PKG_DIR = _ROOT / "packages"
sys.path[:0] = [p for p in [str(_PKG_DIR), str(_ROOT)] if p not in sys.path]

from db.client import dispose_engines, get_session  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from tests.helpers.db import bootstrap_sqlite_db  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("FINANCE_TRACKER_DEFAULT_IMPORTER", raising=False)
    upload_dir = tmp_path / "uploads"
    upload_dir.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("FINANCE_TRACKER_UPLOAD_DIR", os.fspath(upload_dir))
    yield
    dispose_engines()


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return bootstrap_sqlite_db(tmp_path / "tracker.db")


@pytest.fixture
def session(database_url: str) -> Iterator[Session]:
    s = get_session(database_url=database_url)
    try:
        yield s
    finally:
        s.rollback()
        s.close()
