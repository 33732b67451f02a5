"""Public interface for the ``folio_ledger`` package.

Ledger reconciliation and money-weighted return computation for brokerage
accounts. This module only re-exports the stable import surface.
"""

from .api import (
    UploadOutcome,
    calculate_account_xirr,
    calculate_family_xirr,
    calculate_xirr,
    check_ledger_duplicates,
    check_statement_duplicates,
    upload_records,
)
from .cashflows import aggregate, compute_totals
from .config import LedgerSettings, load_settings
from .duplicates import (
    RecordKind,
    ReconciliationResult,
    UploadPolicy,
    dividend_record_key,
    fund_transaction_key,
    key_function,
    pnl_record_key,
    reconcile,
    summarize_by,
)
from .models import (
    CashFlowEvent,
    DividendRecord,
    DuplicateCheckResponse,
    FundTransaction,
    InvestmentTotals,
    LedgerRow,
    PnlRecord,
    TransactionKind,
    XirrResponse,
    XirrResult,
)
from .normalizers import normalize_ledger_row, parse_ledger_csv
from .store import DuplicateRecordError, InMemoryLedgerStore, LedgerStore
from .xirr import SolveStatus, XirrSolution, solve

__all__ = [
    # API
    "check_ledger_duplicates",
    "check_statement_duplicates",
    "upload_records",
    "UploadOutcome",
    "calculate_xirr",
    "calculate_account_xirr",
    "calculate_family_xirr",
    # Pipeline stages
    "normalize_ledger_row",
    "parse_ledger_csv",
    "reconcile",
    "summarize_by",
    "key_function",
    "fund_transaction_key",
    "pnl_record_key",
    "dividend_record_key",
    "aggregate",
    "compute_totals",
    "solve",
    # Models / types
    "TransactionKind",
    "LedgerRow",
    "FundTransaction",
    "CashFlowEvent",
    "PnlRecord",
    "DividendRecord",
    "InvestmentTotals",
    "XirrResult",
    "XirrSolution",
    "SolveStatus",
    "DuplicateCheckResponse",
    "XirrResponse",
    "RecordKind",
    "UploadPolicy",
    "ReconciliationResult",
    # Store / config
    "LedgerStore",
    "InMemoryLedgerStore",
    "DuplicateRecordError",
    "LedgerSettings",
    "load_settings",
]
