"""Fund transactions → dated cash-flow series for return computation.

Sign convention: money leaving the investor (an ADDITION) is negative, money
reaching the investor (a WITHDRAWAL, or the terminal valuation) is positive.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal

from .models import CashFlowEvent, FundTransaction, InvestmentTotals, TransactionKind


def _as_day(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def to_cash_flow(tx: FundTransaction) -> CashFlowEvent:
    amount = -tx.amount if tx.kind is TransactionKind.ADDITION else tx.amount
    return CashFlowEvent(date=_as_day(tx.date), amount=amount)


def aggregate(
    transactions: Iterable[FundTransaction],
    current_value: Decimal | float | int | str,
    as_of: date | datetime | None = None,
) -> list[CashFlowEvent]:
    """Build the chronologically sorted cash-flow series.

    One terminal event dated ``as_of`` (today by default) carries
    ``current_value`` as supplied. The sort is stable, so same-day events keep
    their input order with the terminal event last among them.
    """

    terminal_day = _as_day(as_of) if as_of is not None else date.today()
    events = [to_cash_flow(tx) for tx in transactions]
    events.append(CashFlowEvent(date=terminal_day, amount=Decimal(str(current_value))))
    events.sort(key=lambda ev: ev.date)
    return events


def compute_totals(
    transactions: Iterable[FundTransaction],
    current_value: Decimal | float | int | str,
) -> InvestmentTotals:
    """Contributed/withdrawn/net invested plus gain, independent of dates.

    Gain percentage is defined as 0 when nothing is net invested.
    """

    value = Decimal(str(current_value))
    contributed = Decimal(0)
    withdrawn = Decimal(0)
    for tx in transactions:
        if tx.kind is TransactionKind.ADDITION:
            contributed += tx.amount
        else:
            withdrawn += tx.amount

    net_invested = contributed - withdrawn
    total_gain = value - net_invested
    gain_pct = float(total_gain / net_invested * 100) if net_invested > 0 else 0.0
    return InvestmentTotals(
        total_contributed=contributed,
        total_withdrawn=withdrawn,
        net_invested=net_invested,
        current_value=value,
        total_gain=total_gain,
        total_gain_percentage=gain_pct,
    )


__all__ = ["to_cash_flow", "aggregate", "compute_totals"]
