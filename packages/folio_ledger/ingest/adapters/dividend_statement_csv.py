"""Adapter for broker dividend statements.

The data section starts at a title such as ``Equity Dividends from
2023-04-01 to 2024-03-31`` (any non-header line mentioning ``Dividend`` that
is not itself a summary line), followed by the header
``Symbol,ISIN,Ex-date,Quantity,Dividend Per Share,Net Dividend Amount``.

Rows are dropped when they are summaries (``Total Dividend Amount``, any first
cell containing "total", the "dividends are credited ..." footnote), when the
symbol is the only meaningful cell, or when none of quantity, dividend per
share and net amount carries a value.
"""

from __future__ import annotations

from collections.abc import Iterator

from ...logging_setup import get_logger
from ...models import DividendRecord
from .sectioned_csv import cell_date, cell_decimal, cell_text, iter_section_rows

_LOG = get_logger("folio_ledger.ingest.dividends")

SECTION_MARKER = "Equity Dividends from"


def _is_summary(first_cell: str) -> bool:
    lowered = first_cell.lower()
    return "total" in lowered or "dividends are credited" in lowered


def _is_dividend_section(first_cell: str, line: str) -> bool:
    if SECTION_MARKER in line:
        return True
    return "Dividend" in line and "Symbol" not in line and not _is_summary(first_cell)


def _is_blank_cell(raw: str | None) -> bool:
    if not raw or not raw.strip():
        return True
    # "0", "0.0" and "0.00" all read as empty.
    return cell_decimal(raw) == 0


def _has_meaningful_data(row: dict[str, str]) -> bool:
    return not all(_is_blank_cell(v) for v in list(row.values())[1:])


def iter_dividend_records(text: str) -> Iterator[DividendRecord]:
    skipped = 0
    emitted = 0
    for _section, line_no, row in iter_section_rows(
        text, _is_dividend_section, statement="dividend statement"
    ):
        first = next(iter(row.values()), "")
        if not first or _is_summary(first):
            _LOG.debug("line %d: skip summary row %r", line_no, first)
            continue
        if not _has_meaningful_data(row):
            skipped += 1
            _LOG.debug("line %d: skip row with no data for %s", line_no, first)
            continue

        record = DividendRecord(
            symbol=cell_text(row.get("Symbol")) or first,
            isin=cell_text(row.get("ISIN")),
            ex_date=cell_date(row.get("Ex-date")),
            quantity=cell_decimal(row.get("Quantity")),
            dividend_per_share=cell_decimal(row.get("Dividend Per Share")),
            net_dividend_amount=cell_decimal(row.get("Net Dividend Amount")),
        )
        if not (record.quantity or record.dividend_per_share or record.net_dividend_amount):
            skipped += 1
            continue

        emitted += 1
        yield record

    _LOG.info("Parsed %d dividend records (skipped %d empty/invalid rows)", emitted, skipped)


def to_dividend_records(text: str) -> list[DividendRecord]:
    """Parse a dividend statement's text into records, in file order.

    Raises ``csv.Error`` when no ``Symbol`` header row is present.
    """

    return list(iter_dividend_records(text))


__all__ = ["SECTION_MARKER", "iter_dividend_records", "to_dividend_records"]
