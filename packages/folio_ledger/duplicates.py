"""Duplicate reconciliation shared by fund, P&L and dividend uploads.

A record's economic identity is exactly its reconciliation key: a tuple of
field values chosen per record kind. Anything outside the key (free-text
description, statement charges, internal ids) does not affect duplicate
status. Reconciliation is plain set membership over those keys.

Public surface:
- ``RecordKind`` and ``key_function(kind)``: tagged key extractors.
- ``fund_transaction_key``, ``pnl_record_key``, ``dividend_record_key``.
- ``reconcile``: partition candidates into duplicates and uniques.
- ``summarize_by``: per-group counts over a reconciliation result.
- ``UploadPolicy``: the caller-side choice of what to persist.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import StrEnum
from typing import Any

from .logging_setup import get_logger
from .models import DividendRecord, FundTransaction, GroupCounts, PnlRecord

_LOG = get_logger("folio_ledger.duplicates")

_CENTS = Decimal("0.01")

type ReconciliationKey = tuple[Hashable, ...]
type KeyFunction = Callable[[Any], ReconciliationKey]


class RecordKind(StrEnum):
    FUND_TRANSACTION = "fund_transaction"
    PNL = "pnl"
    DIVIDEND = "dividend"


class UploadPolicy(StrEnum):
    """What the caller persists after classification.

    ``SKIP_DUPLICATES`` writes only the uniques; ``UPLOAD_ALL`` writes every
    candidate and lets the store's uniqueness constraint reject duplicates.
    """

    SKIP_DUPLICATES = "skip_duplicates"
    UPLOAD_ALL = "upload_all"


# ---------------------------------------------------------------------------
# Key normalization helpers
# ---------------------------------------------------------------------------


def _day(value: date | datetime | None) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


def _money(value: Decimal | float | int | str | None) -> Decimal | None:
    if value is None:
        return None
    d = value if isinstance(value, Decimal) else Decimal(str(value))
    return d.quantize(_CENTS, rounding=ROUND_HALF_UP)


def _quantity(value: Decimal | float | int | str | None) -> Decimal | None:
    if value is None:
        return None
    d = value if isinstance(value, Decimal) else Decimal(str(value))
    # normalize() drops trailing zeros so 10 and 10.000 compare equal.
    return d.normalize()


def _text(value: str | None) -> str | None:
    if value is None:
        return None
    s = value.strip()
    return s or None


# ---------------------------------------------------------------------------
# Key functions per record kind
# ---------------------------------------------------------------------------


def fund_transaction_key(tx: FundTransaction) -> ReconciliationKey:
    """``(day, amount, kind)``; description and account are not part of identity."""

    return (_day(tx.date), _money(tx.amount), str(tx.kind))


def pnl_record_key(rec: PnlRecord) -> ReconciliationKey:
    return (
        _text(rec.symbol),
        _text(rec.instrument_type),
        _day(rec.entry_date),
        _day(rec.exit_date),
        _quantity(rec.quantity),
        _money(rec.buy_value),
        _money(rec.sell_value),
        _money(rec.profit),
    )


def dividend_record_key(rec: DividendRecord) -> ReconciliationKey:
    return (
        _text(rec.symbol),
        _text(rec.isin),
        _day(rec.ex_date),
        _quantity(rec.quantity),
        _money(rec.dividend_per_share),
        _money(rec.net_dividend_amount),
    )


_KEY_FUNCTIONS: dict[RecordKind, KeyFunction] = {
    RecordKind.FUND_TRANSACTION: fund_transaction_key,
    RecordKind.PNL: pnl_record_key,
    RecordKind.DIVIDEND: dividend_record_key,
}


def key_function(kind: RecordKind | str) -> KeyFunction:
    """Return the key extractor registered for ``kind``."""

    return _KEY_FUNCTIONS[RecordKind(kind)]


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ReconciliationResult:
    """Candidates split into duplicates and uniques, both in candidate order."""

    duplicates: tuple[Any, ...]
    uniques: tuple[Any, ...]

    @property
    def total_records(self) -> int:
        return len(self.duplicates) + len(self.uniques)

    @property
    def duplicate_count(self) -> int:
        return len(self.duplicates)

    @property
    def unique_count(self) -> int:
        return len(self.uniques)


def reconcile(
    candidates: Iterable[Any],
    existing: Iterable[Any],
    key_fn: Callable[[Any], ReconciliationKey],
) -> ReconciliationResult:
    """Classify each candidate as a duplicate of ``existing`` or as unique.

    Only membership in the existing snapshot counts: two identical candidates
    that are both absent from ``existing`` are both unique.
    """

    existing_keys = {key_fn(rec) for rec in existing}
    duplicates: list[Any] = []
    uniques: list[Any] = []
    for candidate in candidates:
        if key_fn(candidate) in existing_keys:
            duplicates.append(candidate)
        else:
            uniques.append(candidate)

    _LOG.info(
        "Reconciled %d candidates against %d existing keys: %d duplicates, %d unique",
        len(duplicates) + len(uniques),
        len(existing_keys),
        len(duplicates),
        len(uniques),
    )
    return ReconciliationResult(duplicates=tuple(duplicates), uniques=tuple(uniques))


def summarize_by(
    result: ReconciliationResult,
    group_fn: Callable[[Any], str | None],
    *,
    candidates: Iterable[Any] | None = None,
    default_group: str = "Unknown",
) -> dict[str, GroupCounts]:
    """Per-group ``total/duplicates/unique`` counts.

    Groups come out in the order they first appear in ``candidates`` when the
    original candidate sequence is given; otherwise duplicates' groups come
    before groups seen only among uniques.
    """

    totals: dict[str, list[int]] = {}
    for rec in candidates or ():
        totals.setdefault(group_fn(rec) or default_group, [0, 0])
    for rec in result.duplicates:
        counts = totals.setdefault(group_fn(rec) or default_group, [0, 0])
        counts[1] += 1
    for rec in result.uniques:
        counts = totals.setdefault(group_fn(rec) or default_group, [0, 0])
        counts[0] += 1
    return {
        group: GroupCounts(total=uniq + dup, duplicates=dup, unique=uniq)
        for group, (uniq, dup) in totals.items()
    }


__all__ = [
    "RecordKind",
    "UploadPolicy",
    "ReconciliationKey",
    "KeyFunction",
    "fund_transaction_key",
    "pnl_record_key",
    "dividend_record_key",
    "key_function",
    "ReconciliationResult",
    "reconcile",
    "summarize_by",
]
