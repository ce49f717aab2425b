"""Danger score: how much a debt threatens monthly cashflow (0-100)."""

from __future__ import annotations

import math
from typing import Optional

from ..domain.exceptions import InvalidInputError
from .amortization import monthly_rate, round_half_up

MAX_SCORE = 100
APR_FACTOR_CAP = 30
BALANCE_FACTOR_CAP = 30
BALANCE_DOLLARS_PER_POINT = 333

# (ratio upper bound, points) checked in order; ratio = minimum / monthly interest
COVERAGE_BANDS = (
    (1.10, 40),
    (1.50, 30),
    (2.00, 20),
    (3.00, 10),
)


def apr_factor(apr_percent: float) -> float:
    return min(APR_FACTOR_CAP, apr_percent)


def balance_factor(balance_cents: int) -> int:
    balance_dollars = balance_cents / 100
    return min(BALANCE_FACTOR_CAP, round_half_up(balance_dollars / BALANCE_DOLLARS_PER_POINT))


def coverage_factor(balance_cents: int, apr_percent: float, minimum_payment_cents: int) -> int:
    """Points for how thinly the minimum payment covers the monthly interest."""

    interest = balance_cents * monthly_rate(apr_percent)
    if minimum_payment_cents <= 0 or interest <= 0:
        return 0
    ratio = minimum_payment_cents / interest
    for upper_bound, points in COVERAGE_BANDS:
        if ratio < upper_bound:
            return points
    return 0


def danger_score(
    balance_cents: int, apr_percent: float, minimum_payment_cents: Optional[int]
) -> int:
    """Return the 0-100 danger score for a debt.

    Sum of three capped factors: APR (max 30), balance size (max 30, one
    point per $333) and payment-to-interest coverage (max 40).
    """

    minimum = minimum_payment_cents or 0
    if balance_cents < 0:
        raise InvalidInputError(f"balance must be non-negative, got {balance_cents}")
    if not math.isfinite(apr_percent) or apr_percent < 0:
        raise InvalidInputError(f"APR must be a non-negative number, got {apr_percent}")
    if minimum < 0:
        raise InvalidInputError(f"minimum payment must be non-negative, got {minimum}")

    score = (
        apr_factor(apr_percent)
        + balance_factor(balance_cents)
        + coverage_factor(balance_cents, apr_percent, minimum)
    )
    return max(0, min(MAX_SCORE, round_half_up(score)))
