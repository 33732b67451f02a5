"""Adapter for broker tax P&L statements (one titled section per instrument type).

Sections start at a line whose first cell begins with one of
:data:`INSTRUMENT_TYPES`; every data row beneath that section's ``Symbol``
header is tagged with the section's instrument type. Rows without a symbol
(blank separators, sub-totals) are skipped.

Column mapping
--------------
``Symbol, ISIN, Entry Date, Exit Date, Quantity, Buy Value, Sell Value,
Profit, Period of Holding`` map onto :class:`PnlRecord` fields. The remaining
numeric columns (:data:`CHARGE_COLUMNS`) are kept in ``PnlRecord.charges``
under their header text when non-empty.
"""

from __future__ import annotations

from collections.abc import Iterator

from ...logging_setup import get_logger
from ...models import PnlRecord
from .sectioned_csv import cell_date, cell_decimal, cell_text, iter_section_rows

_LOG = get_logger("folio_ledger.ingest.pnl")

INSTRUMENT_TYPES: tuple[str, ...] = (
    "Equity - Intraday",
    "Equity - Short Term",
    "Equity - Long Term",
    "Equity - Buyback",
    "Non Equity",
    "Mutual Funds",
    "F&O",
    "Currency",
    "Commodity",
)

CHARGE_COLUMNS: tuple[str, ...] = (
    "Fair Market Value",
    "Taxable Profit",
    "Turnover",
    "Brokerage",
    "Exchange Transaction Charges",
    "IPFT",
    "SEBI Charges",
    "CGST",
    "SGST",
    "IGST",
    "Stamp Duty",
    "STT",
)


def _is_instrument_section(first_cell: str, _line: str) -> bool:
    return any(first_cell.startswith(t) for t in INSTRUMENT_TYPES)


def iter_pnl_records(text: str) -> Iterator[PnlRecord]:
    skipped = 0
    emitted = 0
    for section, line_no, row in iter_section_rows(
        text, _is_instrument_section, statement="P&L statement"
    ):
        symbol = cell_text(row.get("Symbol"))
        if symbol is None:
            skipped += 1
            _LOG.debug("line %d: skip row without symbol in %s", line_no, section)
            continue

        charges = {}
        for col in CHARGE_COLUMNS:
            value = cell_decimal(row.get(col))
            if value is not None:
                charges[col] = value

        emitted += 1
        yield PnlRecord(
            symbol=symbol,
            instrument_type=section,
            isin=cell_text(row.get("ISIN")),
            entry_date=cell_date(row.get("Entry Date")),
            exit_date=cell_date(row.get("Exit Date")),
            quantity=cell_decimal(row.get("Quantity")),
            buy_value=cell_decimal(row.get("Buy Value")),
            sell_value=cell_decimal(row.get("Sell Value")),
            profit=cell_decimal(row.get("Profit")),
            period_of_holding=cell_text(row.get("Period of Holding")),
            charges=charges,
        )

    _LOG.info("Parsed %d P&L records (skipped %d rows with empty symbols)", emitted, skipped)


def to_pnl_records(text: str) -> list[PnlRecord]:
    """Parse a P&L statement's text into records, in file order.

    Raises ``csv.Error`` when no ``Symbol`` header row is present.
    """

    return list(iter_pnl_records(text))


__all__ = ["INSTRUMENT_TYPES", "CHARGE_COLUMNS", "iter_pnl_records", "to_pnl_records"]
