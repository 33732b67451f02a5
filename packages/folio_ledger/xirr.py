"""Money-weighted annualized return (XIRR) for irregular cash flows.

Finds ``r`` such that

    sum(amount_i * (1 + r) ** -years_i) == 0

where ``years_i`` is the time from the earliest event to event ``i`` measured
in 365.25-day years. The root is found with a damped Newton-Raphson iteration:

- start from ``INITIAL_GUESS``;
- stop when ``|NPV| < NPV_TOLERANCE`` (converged) or when
  ``|dNPV/dr| < DERIVATIVE_FLOOR`` (flat derivative, no safe step);
- otherwise step ``r - NPV / dNPV`` and clamp into ``[MIN_RATE, MAX_RATE]``;
- give up after ``MAX_ITERATIONS`` and return the last estimate.

Nothing here raises on numeric trouble. A series with fewer than two events,
or with every event on the same day, has no usable duration and yields a rate
of 0. Callers that need a strict answer inspect ``XirrSolution.status`` and
``XirrSolution.residual``.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum

from .logging_setup import get_logger
from .models import CashFlowEvent

_LOG = get_logger("folio_ledger.xirr")

DAYS_PER_YEAR = 365.25
INITIAL_GUESS = 0.10
NPV_TOLERANCE = 1e-6
DERIVATIVE_FLOOR = 1e-6
MAX_ITERATIONS = 100
MIN_RATE = -0.99
MAX_RATE = 10.0

# (amount, years since the earliest event)
type DiscountTerm = tuple[float, float]


class SolveStatus(StrEnum):
    CONVERGED = "converged"
    FLAT_DERIVATIVE = "flat_derivative"
    MAX_ITERATIONS = "max_iterations"
    DEGENERATE = "degenerate"
    OVERFLOW = "overflow"


@dataclass(frozen=True, slots=True)
class XirrSolution:
    """Outcome of one solve.

    ``rate`` is a percentage. ``residual`` is the NPV at the returned rate
    (``inf`` when it could not be evaluated). ``iterations`` counts NPV
    evaluations made by the Newton loop.
    """

    rate: float
    iterations: int
    residual: float
    status: SolveStatus

    @property
    def converged(self) -> bool:
        return self.status is SolveStatus.CONVERGED


# ---------------------------------------------------------------------------
# Pure numeric pieces
# ---------------------------------------------------------------------------


def discount_terms(events: Iterable[CashFlowEvent]) -> list[DiscountTerm]:
    """Sort events by date and express each as ``(amount, years from the first)``."""

    ordered = sorted(events, key=lambda ev: ev.date)
    if not ordered:
        return []
    epoch = ordered[0].date
    return [
        (float(ev.amount), (ev.date - epoch).days / DAYS_PER_YEAR) for ev in ordered
    ]


def npv_and_derivative(rate: float, terms: Sequence[DiscountTerm]) -> tuple[float, float]:
    """NPV at ``rate`` and its analytic derivative with respect to ``rate``.

    Raises ``OverflowError`` when a discount factor leaves float range.
    """

    base = 1.0 + rate
    npv = 0.0
    derivative = 0.0
    for amount, years in terms:
        factor = base**-years
        npv += amount * factor
        derivative += amount * factor * -years / base
    return npv, derivative


def clamp_rate(rate: float) -> float:
    return min(MAX_RATE, max(MIN_RATE, rate))


def newton_step(rate: float, npv: float, derivative: float) -> float:
    """One damped Newton update; the caller guarantees a usable derivative."""

    return clamp_rate(rate - npv / derivative)


def _has_duration(terms: Sequence[DiscountTerm]) -> bool:
    return len(terms) >= 2 and terms[-1][1] > 0


# ---------------------------------------------------------------------------
# Solver
# ---------------------------------------------------------------------------


def solve(events: Iterable[CashFlowEvent]) -> XirrSolution:
    """Solve for the annualized rate of return of ``events`` (percent)."""

    terms = discount_terms(events)
    if not _has_duration(terms):
        _LOG.debug("degenerate cash-flow series (%d events, no duration)", len(terms))
        return XirrSolution(
            rate=0.0,
            iterations=0,
            residual=math.fsum(amount for amount, _ in terms),
            status=SolveStatus.DEGENERATE,
        )

    rate = INITIAL_GUESS
    status = SolveStatus.MAX_ITERATIONS
    residual = math.inf
    iterations = 0
    try:
        for iterations in range(1, MAX_ITERATIONS + 1):
            npv, derivative = npv_and_derivative(rate, terms)
            residual = npv
            _LOG.debug(
                "iteration %d: rate=%.10f npv=%.6g dnpv=%.6g", iterations, rate, npv, derivative
            )
            if abs(npv) < NPV_TOLERANCE:
                status = SolveStatus.CONVERGED
                break
            if abs(derivative) < DERIVATIVE_FLOOR:
                status = SolveStatus.FLAT_DERIVATIVE
                break
            rate = newton_step(rate, npv, derivative)
        else:
            residual, _ = npv_and_derivative(rate, terms)
    except OverflowError:
        status = SolveStatus.OVERFLOW
        residual = math.inf

    if status is not SolveStatus.CONVERGED:
        _LOG.warning(
            "XIRR did not converge (%s after %d iterations); returning estimate %.6f%%",
            status,
            iterations,
            rate * 100,
        )
    return XirrSolution(rate=rate * 100, iterations=iterations, residual=residual, status=status)


def xirr(events: Iterable[CashFlowEvent]) -> float:
    """Annualized rate of return in percent; see :func:`solve` for details."""

    return solve(events).rate


__all__ = [
    "DAYS_PER_YEAR",
    "INITIAL_GUESS",
    "NPV_TOLERANCE",
    "DERIVATIVE_FLOOR",
    "MAX_ITERATIONS",
    "MIN_RATE",
    "MAX_RATE",
    "SolveStatus",
    "XirrSolution",
    "discount_terms",
    "npv_and_derivative",
    "clamp_rate",
    "newton_step",
    "solve",
    "xirr",
]
