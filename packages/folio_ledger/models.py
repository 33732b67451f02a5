"""Data models and type aliases for ``folio_ledger``.

Records produced by the normalizers and adapters are frozen, slotted
dataclasses: they are compared and hashed by value and are cheap to build in
bulk. Response shapes handed to the surrounding application are pydantic
models with camelCase aliases so they serialize exactly as callers expect.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, fields
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

# ---------------------------------------------------------------------------
# Ledger records
# ---------------------------------------------------------------------------


class TransactionKind(StrEnum):
    """Direction of a fund transfer; the amount itself is always positive."""

    ADDITION = "ADDITION"
    WITHDRAWAL = "WITHDRAWAL"


LEDGER_COLUMNS: tuple[str, ...] = (
    "particulars",
    "posting_date",
    "cost_center",
    "voucher_type",
    "debit",
    "credit",
    "net_balance",
)


@dataclass(frozen=True, slots=True)
class LedgerRow:
    """One raw row of a ledger export; every field is the cell text as exported."""

    particulars: str = ""
    posting_date: str = ""
    cost_center: str = ""
    voucher_type: str = ""
    debit: str = ""
    credit: str = ""
    net_balance: str = ""

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> LedgerRow:
        """Build a row from a ``csv.DictReader`` mapping.

        Header names are matched case-insensitively after trimming; missing
        columns become empty strings.
        """

        by_name = {
            str(k).strip().lower(): ("" if v is None else str(v))
            for k, v in row.items()
            if k is not None
        }
        return cls(**{name: by_name.get(name, "") for name in LEDGER_COLUMNS})


@dataclass(frozen=True, slots=True)
class FundTransaction:
    """A contribution to or withdrawal from a brokerage account.

    ``amount`` is strictly positive; direction is carried by ``kind``.
    """

    account_id: int | None
    date: date
    amount: Decimal
    kind: TransactionKind
    description: str | None = None

    def __post_init__(self) -> None:
        amount = self.amount
        if not isinstance(amount, Decimal):
            try:
                amount = Decimal(str(amount))
            except InvalidOperation as exc:
                raise ValueError(f"invalid amount: {self.amount!r}") from exc
            object.__setattr__(self, "amount", amount)
        if not amount.is_finite() or amount <= 0:
            raise ValueError(f"FundTransaction.amount must be positive, got {self.amount!r}")
        if not isinstance(self.kind, TransactionKind):
            object.__setattr__(self, "kind", TransactionKind(self.kind))


@dataclass(frozen=True, slots=True)
class CashFlowEvent:
    """A dated, signed amount: negative leaves the investor, positive reaches them."""

    date: date
    amount: Decimal


@dataclass(frozen=True, slots=True)
class PnlRecord:
    """A realised profit/loss line from a broker P&L statement."""

    symbol: str
    instrument_type: str
    isin: str | None = None
    entry_date: date | None = None
    exit_date: date | None = None
    quantity: Decimal | None = None
    buy_value: Decimal | None = None
    sell_value: Decimal | None = None
    profit: Decimal | None = None
    period_of_holding: str | None = None
    # Remaining numeric statement columns keyed by their header text
    # (Brokerage, STT, Stamp Duty, ...). Excluded from equality.
    charges: Mapping[str, Decimal] = field(default_factory=dict, compare=False)


@dataclass(frozen=True, slots=True)
class DividendRecord:
    """A dividend credit line from a broker dividend statement."""

    symbol: str
    isin: str | None = None
    ex_date: date | None = None
    quantity: Decimal | None = None
    dividend_per_share: Decimal | None = None
    net_dividend_amount: Decimal | None = None


# Any record kind the reconciler handles.
type LedgerRecord = FundTransaction | PnlRecord | DividendRecord


# ---------------------------------------------------------------------------
# Computed results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class InvestmentTotals:
    """Date-independent totals computed alongside the cash-flow series."""

    total_contributed: Decimal
    total_withdrawn: Decimal
    net_invested: Decimal
    current_value: Decimal
    total_gain: Decimal
    total_gain_percentage: float


@dataclass(frozen=True, slots=True)
class XirrResult:
    """Money-weighted return plus totals for one account or family.

    ``total_invested`` is the net invested amount (contributions minus
    withdrawals). ``rate`` is a percentage.
    """

    rate: float
    total_invested: Decimal
    current_value: Decimal
    total_gain: Decimal
    total_gain_percentage: float

    def to_response(self) -> XirrResponse:
        return XirrResponse(
            xirr=self.rate,
            total_invested=self.total_invested,
            current_value=self.current_value,
            total_gain=self.total_gain,
            total_gain_percentage=self.total_gain_percentage,
        )


# ---------------------------------------------------------------------------
# Response DTOs
# ---------------------------------------------------------------------------


class GroupCounts(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid")

    total: int
    duplicates: int
    unique: int


class DuplicateCheckResponse(BaseModel):
    """Duplicate-check payload consumed by upload callers.

    ``unique_records`` is the list of unique records for ledger uploads and a
    plain count for statement uploads, mirroring the two caller contracts.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    total_records: int = Field(alias="totalRecords", ge=0)
    duplicate_count: int = Field(alias="duplicateCount", ge=0)
    duplicates: list[dict[str, Any]]
    unique_records: list[dict[str, Any]] | int = Field(alias="uniqueRecords")
    records_by_group: dict[str, GroupCounts] | None = Field(
        default=None, alias="recordsByGroup"
    )

    @model_validator(mode="after")
    def _counts_consistent(self) -> DuplicateCheckResponse:
        if self.duplicate_count != len(self.duplicates):
            raise ValueError("duplicateCount must equal len(duplicates)")
        uniques = (
            self.unique_records
            if isinstance(self.unique_records, int)
            else len(self.unique_records)
        )
        if self.duplicate_count + uniques != self.total_records:
            raise ValueError("duplicateCount + uniqueRecords must equal totalRecords")
        return self


class XirrResponse(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    xirr: float
    total_invested: Decimal = Field(alias="totalInvested")
    current_value: Decimal = Field(alias="currentValue")
    total_gain: Decimal = Field(alias="totalGain")
    total_gain_percentage: float = Field(alias="totalGainPercentage")


def record_to_dict(record: LedgerRecord) -> dict[str, Any]:
    """Render a record as a JSON-friendly mapping (ISO dates, string decimals)."""

    out: dict[str, Any] = {}
    for f in fields(record):
        out[f.name] = _jsonable(getattr(record, f.name))
    return out


def _jsonable(value: Any) -> Any:
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, TransactionKind):
        return value.value
    if isinstance(value, Mapping):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, Sequence) and not isinstance(value, str):
        return [_jsonable(v) for v in value]
    return value


__all__ = [
    "TransactionKind",
    "LEDGER_COLUMNS",
    "LedgerRow",
    "FundTransaction",
    "CashFlowEvent",
    "PnlRecord",
    "DividendRecord",
    "LedgerRecord",
    "InvestmentTotals",
    "XirrResult",
    "GroupCounts",
    "DuplicateCheckResponse",
    "XirrResponse",
    "record_to_dict",
]
