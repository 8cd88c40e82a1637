"""Pytest configuration for test isolation.

The CLI and the persistence layer read ``DATABASE_URL``,
``BUDGET_CYCLES_SETTINGS`` and ``BUDGET_CYCLES_LOG_LEVEL`` from the
environment, and ``db.client`` caches one engine per process. A developer
``.env`` or an engine left over from an earlier test would leak into later
tests, so every test starts from a clean environment, a fresh engine and an
unconfigured package logger.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from budget_cycles.logging_setup import reset_logging
from db.client import reset_engine

_ISOLATED_ENV_VARS = ("DATABASE_URL", "BUDGET_CYCLES_SETTINGS", "BUDGET_CYCLES_LOG_LEVEL")


@pytest.fixture(autouse=True)
def _isolate_process_state(
    tmp_path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[None]:
    for name in _ISOLATED_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # The CLI loads `.env` from the working directory; keep it empty.
    monkeypatch.chdir(tmp_path)
    reset_engine()
    reset_logging()
    yield
    reset_engine()
    reset_logging()
