"""Ledger CSV → :class:`FundTransaction` normalizer.

A broker ledger export has one row per accounting entry with the columns
``particulars, posting_date, cost_center, voucher_type, debit, credit,
net_balance``. Only rows that move cash in or out of the account become
transactions:

- rows whose voucher type is excluded (book/delivery vouchers) are dropped;
- the "Opening Balance" seed row is dropped;
- a positive debit becomes a WITHDRAWAL, a positive credit an ADDITION (a row
  carrying both yields both).

Malformed rows are skipped and logged, never raised: real exports routinely
carry header/footer noise.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable, Iterator, Mapping
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from io import StringIO
from typing import Any

from .config import LedgerSettings, load_settings
from .logging_setup import get_logger
from .models import FundTransaction, LedgerRow, TransactionKind

_LOG = get_logger("folio_ledger.normalizers")

# ISO first; then the day-first layouts used by Indian broker exports.
_DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%d-%m-%Y",
    "%d/%m/%Y",
    "%d-%b-%Y",
    "%d %b %Y",
    "%Y/%m/%d",
)

# ---------------------------------------------------------------------------
# Helpers (amount/date parsing, CSV loading)
# ---------------------------------------------------------------------------


def parse_amount(raw: str | None) -> Decimal:
    """Parse a ledger amount cell; anything unparseable counts as zero."""

    if raw is None:
        return Decimal(0)
    s = raw.strip()
    if s.startswith("₹") or s.startswith("$"):
        s = s[1:].lstrip()
    s = s.replace(",", "")
    if not s:
        return Decimal(0)
    try:
        d = Decimal(s)
    except InvalidOperation:
        return Decimal(0)
    if not d.is_finite():
        return Decimal(0)
    return d


def parse_date(raw: str | None) -> date | None:
    """Parse a posting date, truncated to the day. ``None`` when unparseable."""

    if raw is None:
        return None
    s = raw.strip()
    if not s:
        return None
    try:
        # Covers "YYYY-MM-DD", "YYYY-MM-DDTHH:MM:SS[+TZ]" and "YYYY-MM-DD HH:MM:SS".
        return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    # Day-first layouts, with or without a trailing time part.
    for candidate in dict.fromkeys((s, s.split()[0])):
        for fmt in _DATE_FORMATS:
            try:
                return datetime.strptime(candidate, fmt).date()
            except ValueError:
                continue
    return None


def _read_csv_rows(csv_text: str) -> list[dict[str, str]]:
    with StringIO(csv_text.lstrip("\ufeff")) as f:
        reader = csv.DictReader(f)
        rows: list[dict[str, str]] = []
        for row in reader:
            # DictReader aggregates extra cells under a None key; drop it.
            rows.append({k: (v if v is not None else "") for k, v in row.items() if k is not None})
        return rows


# ---------------------------------------------------------------------------
# Row and file normalization
# ---------------------------------------------------------------------------


def normalize_ledger_row(
    row: LedgerRow | Mapping[str, Any],
    *,
    account_id: int | None = None,
    settings: LedgerSettings | None = None,
) -> list[FundTransaction]:
    """Turn one ledger row into zero, one or two fund transactions."""

    if not isinstance(row, LedgerRow):
        row = LedgerRow.from_mapping(row)
    cfg = settings or load_settings()

    voucher_type = row.voucher_type.strip()
    if voucher_type in cfg.excluded_voucher_types:
        _LOG.debug("skip row: excluded voucher type %r", voucher_type)
        return []

    particulars = row.particulars.strip()
    if particulars == cfg.opening_balance_label:
        _LOG.debug("skip row: opening balance")
        return []

    debit = parse_amount(row.debit)
    credit = parse_amount(row.credit)
    legs: list[tuple[Decimal, TransactionKind]] = []
    if debit > 0:
        legs.append((debit, TransactionKind.WITHDRAWAL))
    if credit > 0:
        legs.append((credit, TransactionKind.ADDITION))
    if not legs:
        return []

    posted = parse_date(row.posting_date)
    if posted is None:
        _LOG.debug("skip row: unparseable posting date %r", row.posting_date)
        return []

    return [
        FundTransaction(
            account_id=account_id,
            date=posted,
            amount=amount,
            kind=kind,
            description=particulars or None,
        )
        for amount, kind in legs
    ]


def normalize_ledger_rows(
    rows: Iterable[LedgerRow | Mapping[str, Any]],
    *,
    account_id: int | None = None,
    settings: LedgerSettings | None = None,
) -> Iterator[FundTransaction]:
    cfg = settings or load_settings()
    for row in rows:
        yield from normalize_ledger_row(row, account_id=account_id, settings=cfg)


def parse_ledger_csv(
    csv_text: str,
    *,
    account_id: int | None = None,
    settings: LedgerSettings | None = None,
) -> list[FundTransaction]:
    """Parse a full ledger export into fund transactions, in file order."""

    cfg = settings or load_settings()
    rows = _read_csv_rows(csv_text)
    transactions: list[FundTransaction] = []
    skipped = 0
    for row in rows:
        emitted = normalize_ledger_row(row, account_id=account_id, settings=cfg)
        if not emitted:
            skipped += 1
        transactions.extend(emitted)
    _LOG.info(
        "Parsed %d fund transactions from %d ledger rows (skipped %d rows)",
        len(transactions),
        len(rows),
        skipped,
    )
    return transactions


__all__ = [
    "parse_amount",
    "parse_date",
    "normalize_ledger_row",
    "normalize_ledger_rows",
    "parse_ledger_csv",
]
