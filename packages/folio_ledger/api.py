"""Public API and orchestration for the ``folio_ledger`` package.

The pieces underneath are pure: normalizers turn rows into records, the
reconciler classifies candidates, the aggregator and solver compute returns.
This module composes them for callers (an upload endpoint, the CLI) and is
the only place that talks to a :class:`~folio_ledger.store.LedgerStore`,
which is always passed in explicitly.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from .cashflows import aggregate, compute_totals
from .config import LedgerSettings
from .duplicates import RecordKind, UploadPolicy, key_function, reconcile, summarize_by
from .logging_setup import get_logger
from .models import DuplicateCheckResponse, FundTransaction, XirrResult, record_to_dict
from .normalizers import parse_ledger_csv
from .store import DuplicateRecordError, LedgerStore
from .xirr import solve

_LOG = get_logger("folio_ledger.api")


# ---------------------------------------------------------------------------
# Duplicate checks
# ---------------------------------------------------------------------------


def check_ledger_duplicates(
    csv_text: str,
    *,
    account_id: int | None,
    existing: Iterable[FundTransaction],
    settings: LedgerSettings | None = None,
) -> DuplicateCheckResponse:
    """Parse a ledger export and classify its transactions against ``existing``.

    The response lists the unique transactions themselves so the caller can
    persist exactly those.
    """

    candidates = parse_ledger_csv(csv_text, account_id=account_id, settings=settings)
    result = reconcile(candidates, existing, key_function(RecordKind.FUND_TRANSACTION))
    return DuplicateCheckResponse(
        total_records=result.total_records,
        duplicate_count=result.duplicate_count,
        duplicates=[record_to_dict(r) for r in result.duplicates],
        unique_records=[record_to_dict(r) for r in result.uniques],
    )


def check_statement_duplicates(
    records: Sequence[Any],
    *,
    kind: RecordKind | str,
    existing: Iterable[Any],
) -> DuplicateCheckResponse:
    """Classify parsed P&L or dividend records against ``existing``.

    ``uniqueRecords`` is reported as a count. P&L checks also report a
    per-instrument-type breakdown.
    """

    kind = RecordKind(kind)
    result = reconcile(records, existing, key_function(kind))
    by_group = None
    if kind is RecordKind.PNL:
        by_group = summarize_by(
            result, lambda rec: rec.instrument_type, candidates=records
        )
    return DuplicateCheckResponse(
        total_records=result.total_records,
        duplicate_count=result.duplicate_count,
        duplicates=[record_to_dict(r) for r in result.duplicates],
        unique_records=result.unique_count,
        records_by_group=by_group,
    )


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class UploadOutcome:
    total: int
    inserted: int
    skipped: int


def upload_records(
    store: LedgerStore,
    *,
    kind: RecordKind | str,
    account_id: int | None,
    records: Sequence[Any],
    policy: UploadPolicy | str = UploadPolicy.SKIP_DUPLICATES,
) -> UploadOutcome:
    """Persist ``records`` through ``store`` according to ``policy``.

    ``SKIP_DUPLICATES`` reconciles against the store's current snapshot and
    inserts only the uniques. ``UPLOAD_ALL`` inserts every record and counts
    the store's uniqueness rejections as skipped. Either way a record that
    races in between the snapshot and the insert is rejected by the store and
    counted, not raised.
    """

    kind = RecordKind(kind)
    policy = UploadPolicy(policy)
    if policy is UploadPolicy.SKIP_DUPLICATES:
        result = reconcile(records, store.fetch(kind, account_id), key_function(kind))
        to_insert: Sequence[Any] = result.uniques
        skipped = result.duplicate_count
    else:
        to_insert = records
        skipped = 0

    inserted = 0
    for record in to_insert:
        try:
            store.insert(kind, account_id, record)
        except DuplicateRecordError as exc:
            skipped += 1
            _LOG.debug("store rejected duplicate: %s", exc)
            continue
        inserted += 1

    _LOG.info(
        "Uploaded %s records for account %s (%s): inserted %d, skipped %d",
        kind,
        account_id,
        policy,
        inserted,
        skipped,
    )
    return UploadOutcome(total=len(records), inserted=inserted, skipped=skipped)


# ---------------------------------------------------------------------------
# Returns
# ---------------------------------------------------------------------------


def calculate_xirr(
    transactions: Iterable[FundTransaction],
    current_value: Decimal | float | int | str,
    *,
    as_of: date | datetime | None = None,
) -> XirrResult:
    """Money-weighted return and totals for ``transactions`` valued at ``current_value``.

    With no transactions the result is the "no activity" sentinel: rate 0,
    nothing invested, the whole current value counted as gain.
    """

    txs = list(transactions)
    value = Decimal(str(current_value))
    if not txs:
        return XirrResult(
            rate=0.0,
            total_invested=Decimal(0),
            current_value=value,
            total_gain=value,
            total_gain_percentage=0.0,
        )

    totals = compute_totals(txs, value)
    solution = solve(aggregate(txs, value, as_of))
    return XirrResult(
        rate=solution.rate,
        total_invested=totals.net_invested,
        current_value=value,
        total_gain=totals.total_gain,
        total_gain_percentage=totals.total_gain_percentage,
    )


def calculate_account_xirr(
    store: LedgerStore,
    account_id: int,
    current_value: Decimal | float | int | str,
    *,
    as_of: date | datetime | None = None,
) -> XirrResult:
    transactions = store.fetch(RecordKind.FUND_TRANSACTION, account_id)
    return calculate_xirr(transactions, current_value, as_of=as_of)


def calculate_family_xirr(
    store: LedgerStore,
    account_ids: Iterable[int],
    current_value: Decimal | float | int | str,
    *,
    as_of: date | datetime | None = None,
) -> XirrResult:
    """Return over the union of several accounts' transactions (a family view)."""

    transactions: list[FundTransaction] = []
    for account_id in account_ids:
        transactions.extend(store.fetch(RecordKind.FUND_TRANSACTION, account_id))
    return calculate_xirr(transactions, current_value, as_of=as_of)


__all__ = [
    "check_ledger_duplicates",
    "check_statement_duplicates",
    "UploadOutcome",
    "upload_records",
    "calculate_xirr",
    "calculate_account_xirr",
    "calculate_family_xirr",
]
