"""Pytest configuration for test isolation.

Settings are read from ``FOLIO_LEDGER_*`` environment variables, so a
developer's shell (or a ``.env`` loaded by an earlier CLI test) could change
normalization rules underneath a test. An autouse fixture clears them for
every test.

The CLI configures the package logger once per process; a second autouse
fixture undoes that after each test so later tests see the default
(unconfigured, propagating) logger.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

# Make sure the workspace `packages/` dir is on sys.path so `folio_ledger` is importable
_ROOT = Path(__file__).resolve().parents[1]
_PKG_DIR = _ROOT / "packages"
sys.path[:0] = [p for p in [str(_PKG_DIR)] if p not in sys.path]

_ENV_VARS = (
    "FOLIO_LEDGER_EXCLUDED_VOUCHER_TYPES",
    "FOLIO_LEDGER_OPENING_BALANCE_LABEL",
    "FOLIO_LEDGER_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    # ``load_dotenv`` writes to os.environ directly, outside monkeypatch.
    for name in _ENV_VARS:
        os.environ.pop(name, None)


@pytest.fixture(autouse=True)
def _reset_package_logger():
    yield
    from folio_ledger.logging_setup import reset_logging

    reset_logging()
