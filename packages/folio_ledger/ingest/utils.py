"""Ingest utilities shared by CLI commands and the orchestration API.

Exposes a single helper that reads a statement file and dispatches it to the
matching parser: the ledger normalizer for fund transfers, or the sectioned
P&L / dividend adapters.
"""

from __future__ import annotations

import csv
from os import PathLike
from pathlib import Path
from typing import Any

from ..config import LedgerSettings
from ..duplicates import RecordKind

# Columns without which a ledger export cannot yield transactions.
REQUIRED_LEDGER_COLUMNS: frozenset[str] = frozenset(
    {"particulars", "posting_date", "voucher_type", "debit", "credit"}
)


def read_text(path: str | PathLike[str]) -> str:
    # utf-8-sig drops a leading BOM written by spreadsheet exports.
    return Path(path).read_text(encoding="utf-8-sig")


def check_ledger_header(text: str, source: str) -> None:
    """Raise ``csv.Error`` unless the first row names every required ledger column."""

    reader = csv.reader(text.lstrip("\ufeff").splitlines()[:1])
    header = next(reader, None)
    if not header:
        raise csv.Error(f"CSV appears to have no header row: {source}")
    present = {h.strip().lower() for h in header}
    missing = sorted(REQUIRED_LEDGER_COLUMNS - present)
    if missing:
        raise csv.Error(
            "CSV header mismatch for ledger export. Missing columns: " + ", ".join(missing)
        )


def parse_statement_text(
    text: str,
    kind: RecordKind | str,
    *,
    account_id: int | None = None,
    settings: LedgerSettings | None = None,
    source: str = "<text>",
) -> list[Any]:
    """Parse statement ``text`` of the given kind into records.

    Raises ``csv.Error`` when the text has no recognisable header.
    """

    from .adapters.dividend_statement_csv import to_dividend_records
    from .adapters.pnl_statement_csv import to_pnl_records
    from ..normalizers import parse_ledger_csv

    kind = RecordKind(kind)
    if kind is RecordKind.FUND_TRANSACTION:
        check_ledger_header(text, source)
        return list(parse_ledger_csv(text, account_id=account_id, settings=settings))
    if kind is RecordKind.PNL:
        return list(to_pnl_records(text))
    return list(to_dividend_records(text))


def load_statement(
    path: str | PathLike[str],
    kind: RecordKind | str,
    *,
    account_id: int | None = None,
    settings: LedgerSettings | None = None,
) -> list[Any]:
    """Read a statement file and return its parsed records."""

    return parse_statement_text(
        read_text(path), kind, account_id=account_id, settings=settings, source=str(path)
    )


__all__ = [
    "REQUIRED_LEDGER_COLUMNS",
    "read_text",
    "check_ledger_header",
    "parse_statement_text",
    "load_statement",
]
