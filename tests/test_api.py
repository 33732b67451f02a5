import textwrap
from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from folio_ledger.api import (
    calculate_account_xirr,
    calculate_family_xirr,
    calculate_xirr,
    check_ledger_duplicates,
    check_statement_duplicates,
    upload_records,
)
from folio_ledger.duplicates import RecordKind, UploadPolicy
from folio_ledger.models import (
    DividendRecord,
    DuplicateCheckResponse,
    FundTransaction,
    PnlRecord,
    TransactionKind,
)
from folio_ledger.store import DuplicateRecordError, InMemoryLedgerStore


def _tx(day: date, amount: str, kind: TransactionKind = TransactionKind.ADDITION, account_id=1):
    return FundTransaction(account_id=account_id, date=day, amount=Decimal(amount), kind=kind)


LEDGER_CSV = textwrap.dedent(
    """\
    particulars,posting_date,cost_center,voucher_type,debit,credit,net_balance
    Opening Balance,,,,,,0
    NEFT IN,2024-01-10,,Bank Receipts,,50000,50000
    Payout,2024-03-01,,Bank Payments,1500.00,,48500
    Settlement,2024-03-02,,Book Voucher,9000,,39500
    """
)


# ---- Duplicate checks ----------------------------------------------------------


def test_check_ledger_duplicates_lists_uniques():
    existing = [_tx(date(2024, 1, 10), "50000.00")]
    response = check_ledger_duplicates(LEDGER_CSV, account_id=1, existing=existing)

    payload = response.model_dump(by_alias=True)
    assert payload["totalRecords"] == 2
    assert payload["duplicateCount"] == 1
    assert payload["duplicates"][0]["date"] == "2024-01-10"
    assert payload["duplicates"][0]["kind"] == "ADDITION"
    assert payload["uniqueRecords"] == [
        {
            "account_id": 1,
            "date": "2024-03-01",
            "amount": "1500.00",
            "kind": "WITHDRAWAL",
            "description": "Payout",
        }
    ]
    assert payload["recordsByGroup"] is None


def _pnl(symbol: str, instrument_type: str, profit: str = "100") -> PnlRecord:
    return PnlRecord(
        symbol=symbol,
        instrument_type=instrument_type,
        entry_date=date(2023, 1, 2),
        exit_date=date(2023, 6, 1),
        quantity=Decimal("1"),
        buy_value=Decimal("1000"),
        sell_value=Decimal("1100"),
        profit=Decimal(profit),
    )


def test_check_statement_duplicates_pnl_breakdown():
    records = [
        _pnl("INFY", "Equity - Short Term"),
        _pnl("TCS", "Equity - Short Term"),
        _pnl("NIFTY24JUNFUT", "F&O", "-50"),
    ]
    existing = [_pnl("INFY", "Equity - Short Term")]
    response = check_statement_duplicates(records, kind="pnl", existing=existing)

    payload = response.model_dump(by_alias=True)
    assert payload["totalRecords"] == 3
    assert payload["duplicateCount"] == 1
    assert payload["uniqueRecords"] == 2
    assert payload["recordsByGroup"] == {
        "Equity - Short Term": {"total": 2, "duplicates": 1, "unique": 1},
        "F&O": {"total": 1, "duplicates": 0, "unique": 1},
    }


def test_check_statement_duplicates_dividends_report_count_only():
    div = DividendRecord(
        symbol="ITC",
        isin="INE154A01025",
        ex_date=date(2023, 5, 31),
        quantity=Decimal("100"),
        dividend_per_share=Decimal("6.75"),
        net_dividend_amount=Decimal("675"),
    )
    response = check_statement_duplicates([div], kind=RecordKind.DIVIDEND, existing=[div])
    assert response.duplicate_count == 1
    assert response.unique_records == 0
    assert response.records_by_group is None


def test_duplicate_check_response_rejects_inconsistent_counts():
    with pytest.raises(ValidationError):
        DuplicateCheckResponse(totalRecords=3, duplicateCount=1, duplicates=[{}], uniqueRecords=1)
    with pytest.raises(ValidationError):
        DuplicateCheckResponse(totalRecords=1, duplicateCount=1, duplicates=[], uniqueRecords=0)


# ---- Uploads -------------------------------------------------------------------


def test_upload_skip_duplicates_inserts_only_uniques():
    store = InMemoryLedgerStore()
    store.insert(RecordKind.FUND_TRANSACTION, 1, _tx(date(2024, 1, 1), "100"))

    candidates = [_tx(date(2024, 1, 1), "100"), _tx(date(2024, 1, 2), "200")]
    outcome = upload_records(
        store,
        kind=RecordKind.FUND_TRANSACTION,
        account_id=1,
        records=candidates,
        policy=UploadPolicy.SKIP_DUPLICATES,
    )

    assert (outcome.total, outcome.inserted, outcome.skipped) == (2, 1, 1)
    assert len(store.fetch(RecordKind.FUND_TRANSACTION, 1)) == 2


def test_upload_skip_duplicates_counts_in_batch_repeats_rejected_by_store():
    store = InMemoryLedgerStore()
    twin = _tx(date(2024, 1, 5), "10")
    outcome = upload_records(store, kind="fund_transaction", account_id=1, records=[twin, twin])
    assert (outcome.inserted, outcome.skipped) == (1, 1)


def test_upload_all_relies_on_store_constraint():
    store = InMemoryLedgerStore()
    store.insert(RecordKind.FUND_TRANSACTION, 1, _tx(date(2024, 1, 1), "100"))

    candidates = [_tx(date(2024, 1, 1), "100.00"), _tx(date(2024, 1, 3), "300")]
    outcome = upload_records(
        store,
        kind=RecordKind.FUND_TRANSACTION,
        account_id=1,
        records=candidates,
        policy="upload_all",
    )

    assert (outcome.total, outcome.inserted, outcome.skipped) == (2, 1, 1)
    assert len(store.fetch(RecordKind.FUND_TRANSACTION, 1)) == 2


def test_store_scopes_uniqueness_per_account_and_kind():
    store = InMemoryLedgerStore()
    tx = _tx(date(2024, 1, 1), "100")
    store.insert(RecordKind.FUND_TRANSACTION, 1, tx)
    store.insert(RecordKind.FUND_TRANSACTION, 2, tx)
    with pytest.raises(DuplicateRecordError) as exc_info:
        store.insert(RecordKind.FUND_TRANSACTION, 1, tx)
    assert exc_info.value.account_id == 1
    assert store.extend(RecordKind.FUND_TRANSACTION, 1, [tx, _tx(date(2024, 1, 2), "1")]) == 1


# ---- Returns -------------------------------------------------------------------


def test_calculate_xirr_empty_is_no_activity():
    result = calculate_xirr([], Decimal("2500"), as_of=date(2025, 1, 1))
    assert result.rate == 0.0
    assert result.total_invested == 0
    assert result.current_value == Decimal("2500")
    assert result.total_gain == Decimal("2500")
    assert result.total_gain_percentage == 0.0


def test_calculate_xirr_example_scenario():
    txs = [_tx(date(2024, 1, 10), "50000")]
    result = calculate_xirr(txs, 55000, as_of=date(2025, 1, 10))

    assert result.rate == pytest.approx(10.0, abs=0.1)
    assert result.total_invested == Decimal("50000")
    assert result.total_gain == Decimal("5000")
    assert result.total_gain_percentage == pytest.approx(10.0)

    response = result.to_response().model_dump(by_alias=True)
    assert set(response) == {
        "xirr",
        "totalInvested",
        "currentValue",
        "totalGain",
        "totalGainPercentage",
    }
    assert response["xirr"] == result.rate


def test_total_invested_is_net_of_withdrawals():
    txs = [
        _tx(date(2023, 1, 1), "100000"),
        _tx(date(2023, 7, 1), "30000", TransactionKind.WITHDRAWAL),
    ]
    result = calculate_xirr(txs, "80000", as_of=date(2024, 1, 1))
    assert result.total_invested == Decimal("70000")
    assert result.total_gain == Decimal("10000")


def test_account_and_family_xirr_read_from_store():
    store = InMemoryLedgerStore()
    a = [_tx(date(2023, 1, 1), "100000", account_id=1)]
    b = [_tx(date(2023, 7, 1), "50000", account_id=2)]
    store.extend(RecordKind.FUND_TRANSACTION, 1, a)
    store.extend(RecordKind.FUND_TRANSACTION, 2, b)
    as_of = date(2024, 1, 1)

    single = calculate_account_xirr(store, 1, 110000, as_of=as_of)
    assert single == calculate_xirr(a, 110000, as_of=as_of)

    family = calculate_family_xirr(store, [1, 2], 165000, as_of=as_of)
    assert family == calculate_xirr(a + b, 165000, as_of=as_of)
    assert family.total_invested == Decimal("150000")

    nobody = calculate_family_xirr(store, [99], 0, as_of=as_of)
    assert nobody.rate == 0.0
    assert nobody.total_invested == 0


def test_xirr_keeps_identical_flows_within_an_account():
    deposit = _tx(date(2024, 1, 10), "10000")
    result = calculate_xirr([deposit, deposit], "20000", as_of=date(2025, 1, 10))

    assert result.total_invested == Decimal("20000")
    assert result.total_gain == 0
    assert result.rate == pytest.approx(0.0, abs=0.01)
