"""Scanner for broker statements laid out as titled CSV sections.

P&L and dividend statements share a shape: free-text preamble lines, then a
section title line, then a ``Symbol,...`` header row, then data rows and
summary rows. A P&L statement repeats title/header pairs once per instrument
type.

Contract
--------
- Lines are tokenized with :mod:`csv` so quoted cells with commas survive.
- Blank lines are ignored everywhere.
- A line is a section title when ``is_section_title(first_cell, line)`` says
  so; the header must then be found again before rows are yielded.
- Until a section title and a header starting with ``Symbol`` have been seen,
  lines are preamble and ignored.
- If no header is found anywhere, ``csv.Error`` is raised.
"""

from __future__ import annotations

import csv
from collections.abc import Callable, Iterator
from datetime import date
from decimal import Decimal, InvalidOperation

from ...normalizers import parse_date

HEADER_FIRST_CELL = "Symbol"

type SectionPredicate = Callable[[str, str], bool]


def iter_section_rows(
    text: str,
    is_section_title: SectionPredicate,
    *,
    statement: str = "statement",
) -> Iterator[tuple[str, int, dict[str, str]]]:
    """Yield ``(section_title, line_number, row)`` for every row under a header.

    ``row`` maps header names to stripped cell text; cells beyond the header
    are dropped and missing trailing cells are empty strings.
    """

    lines = text.lstrip("\ufeff").splitlines()
    section: str | None = None
    headers: list[str] | None = None
    header_seen = False

    for line_no, line in enumerate(lines, start=1):
        stripped = [c.strip() for c in next(csv.reader([line]), [])]
        if not any(stripped):
            continue
        first = stripped[0]
        if first != HEADER_FIRST_CELL and is_section_title(first, line):
            section = first
            headers = None
            continue
        if section is None:
            continue
        if headers is None:
            if first == HEADER_FIRST_CELL and len(stripped) > 1:
                headers = stripped
                header_seen = True
            continue
        padded = stripped + [""] * (len(headers) - len(stripped))
        yield section, line_no, dict(zip(headers, padded, strict=False))

    if not header_seen:
        raise csv.Error(
            f"{statement}: could not locate a section header row starting with "
            f"{HEADER_FIRST_CELL!r}"
        )


def cell_decimal(raw: str | None) -> Decimal | None:
    """Numeric cell → ``Decimal``; empty or unparseable → ``None``."""

    if raw is None:
        return None
    s = raw.strip().replace(",", "")
    if not s:
        return None
    try:
        d = Decimal(s)
    except InvalidOperation:
        return None
    return d if d.is_finite() else None


def cell_date(raw: str | None) -> date | None:
    return parse_date(raw)


def cell_text(raw: str | None) -> str | None:
    if raw is None:
        return None
    s = raw.strip()
    return s or None


__all__ = ["HEADER_FIRST_CELL", "iter_section_rows", "cell_decimal", "cell_date", "cell_text"]
