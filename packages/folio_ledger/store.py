"""Repository interface handed to the orchestration layer.

The core never reaches out to storage on its own; whoever runs the pipeline
passes a :class:`LedgerStore`. The store is authoritative for uniqueness: an
``insert`` of a record whose reconciliation key is already stored for the same
account raises :class:`DuplicateRecordError`.

:class:`InMemoryLedgerStore` is the reference implementation used by the CLI
and the tests.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Protocol

from .duplicates import ReconciliationKey, RecordKind, key_function


class DuplicateRecordError(Exception):
    """Raised by a store when its uniqueness constraint rejects a record."""

    def __init__(self, kind: RecordKind, account_id: int | None, key: ReconciliationKey) -> None:
        super().__init__(f"duplicate {kind} record for account {account_id}: {key!r}")
        self.kind = kind
        self.account_id = account_id
        self.key = key


class LedgerStore(Protocol):
    def fetch(self, kind: RecordKind, account_id: int | None) -> list[Any]:
        """Return the records of ``kind`` stored for ``account_id``."""
        ...

    def insert(self, kind: RecordKind, account_id: int | None, record: Any) -> None:
        """Store one record; raise :class:`DuplicateRecordError` on a key clash."""
        ...


class InMemoryLedgerStore:
    """Dict-backed :class:`LedgerStore` enforcing key uniqueness per account."""

    def __init__(self) -> None:
        self._records: dict[tuple[RecordKind, int | None], list[Any]] = {}
        self._keys: dict[tuple[RecordKind, int | None], set[ReconciliationKey]] = {}

    def fetch(self, kind: RecordKind, account_id: int | None) -> list[Any]:
        return list(self._records.get((RecordKind(kind), account_id), ()))

    def insert(self, kind: RecordKind, account_id: int | None, record: Any) -> None:
        scope = (RecordKind(kind), account_id)
        key = key_function(kind)(record)
        keys = self._keys.setdefault(scope, set())
        if key in keys:
            raise DuplicateRecordError(scope[0], account_id, key)
        keys.add(key)
        self._records.setdefault(scope, []).append(record)

    def extend(self, kind: RecordKind, account_id: int | None, records: Iterable[Any]) -> int:
        """Insert records, silently skipping key clashes; returns the number stored."""

        stored = 0
        for record in records:
            try:
                self.insert(kind, account_id, record)
            except DuplicateRecordError:
                continue
            stored += 1
        return stored


__all__ = ["DuplicateRecordError", "LedgerStore", "InMemoryLedgerStore"]
