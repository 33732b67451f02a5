import io
import logging

import pytest

from folio_ledger.config import (
    DEFAULT_EXCLUDED_VOUCHER_TYPES,
    DEFAULT_OPENING_BALANCE_LABEL,
    LedgerSettings,
    load_settings,
)
from folio_ledger.logging_setup import configure_logging, get_logger


def test_defaults_when_env_empty():
    settings = load_settings({})
    assert settings.excluded_voucher_types == DEFAULT_EXCLUDED_VOUCHER_TYPES
    assert settings.opening_balance_label == DEFAULT_OPENING_BALANCE_LABEL


def test_reads_process_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("FOLIO_LEDGER_EXCLUDED_VOUCHER_TYPES", "Book Voucher, Journal ,")
    monkeypatch.setenv("FOLIO_LEDGER_OPENING_BALANCE_LABEL", "  Balance b/f ")
    settings = load_settings()
    assert settings.excluded_voucher_types == frozenset({"Book Voucher", "Journal"})
    assert settings.opening_balance_label == "Balance b/f"


def test_blank_values_keep_defaults():
    settings = load_settings(
        {"FOLIO_LEDGER_EXCLUDED_VOUCHER_TYPES": "  ", "FOLIO_LEDGER_OPENING_BALANCE_LABEL": ""}
    )
    assert settings == LedgerSettings()


def test_invalid_values_raise_value_error():
    with pytest.raises(ValueError):
        load_settings({"FOLIO_LEDGER_EXCLUDED_VOUCHER_TYPES": ",, ,"})
    with pytest.raises(ValueError):
        LedgerSettings(opening_balance_label="   ")
    with pytest.raises(ValueError):
        LedgerSettings(unknown_field=True)


def test_settings_are_frozen():
    settings = LedgerSettings()
    with pytest.raises(ValueError):
        settings.opening_balance_label = "x"


def test_configure_logging_attaches_single_handler():
    buf = io.StringIO()
    configure_logging("DEBUG", stream=buf)
    configure_logging("ERROR", stream=io.StringIO())  # no-op once configured

    get_logger("folio_ledger.tests").debug("hello %s", "ledger")

    pkg = logging.getLogger("folio_ledger")
    assert len(pkg.handlers) == 1
    assert pkg.propagate is False
    assert "folio_ledger.tests DEBUG hello ledger" in buf.getvalue()


def test_log_level_falls_back_to_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("FOLIO_LEDGER_LOG_LEVEL", "warning")
    buf = io.StringIO()
    configure_logging(stream=buf)

    log = get_logger("folio_ledger.tests")
    log.info("quiet")
    log.warning("loud")

    assert logging.getLogger("folio_ledger").level == logging.WARNING
    assert "quiet" not in buf.getvalue()
    assert "loud" in buf.getvalue()


def test_invalid_env_level_defaults_to_info(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("FOLIO_LEDGER_LOG_LEVEL", "chatty")
    configure_logging(stream=io.StringIO())
    assert logging.getLogger("folio_ledger").level == logging.INFO
