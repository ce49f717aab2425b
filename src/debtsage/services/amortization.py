"""Amortization projections for a single debt.

Every calculator here is a pure function of (balance, APR, minimum payment)
plus the reference date used for calendar arithmetic. Money is integer cents;
intermediate values are floats rounded half-up back to whole cents.
"""

from __future__ import annotations

import calendar
import math
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..domain.exceptions import InvalidInputError

TARGET_PAYOFF_MONTHS = 36
HEURISTIC_PAYOFF_MONTHS = 60  # 5-year fallback used when no usable minimum exists


@dataclass(frozen=True, slots=True)
class Projection:
    """Forward-looking payoff figures for one debt."""

    monthly_interest_cents: int
    months_to_payoff: Optional[int]  # None when the minimum never retires the balance
    total_interest_cents: int
    payoff_date: Optional[date]
    payment_for_36_month_payoff_cents: int

    @property
    def is_unbounded(self) -> bool:
        return self.months_to_payoff is None


def round_half_up(value: float) -> int:
    """Round to the nearest whole cent, halves away from zero."""

    return int(Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def add_months(start: date, months: int) -> date:
    """Return ``start`` shifted by ``months``, clamping the day to the month length."""

    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def _check_domain(balance_cents: int, apr_percent: float, minimum_payment_cents: int) -> None:
    if balance_cents < 0:
        raise InvalidInputError(f"balance must be non-negative, got {balance_cents}")
    if not math.isfinite(apr_percent) or apr_percent < 0:
        raise InvalidInputError(f"APR must be a non-negative number, got {apr_percent}")
    if minimum_payment_cents < 0:
        raise InvalidInputError(
            f"minimum payment must be non-negative, got {minimum_payment_cents}"
        )


def monthly_rate(apr_percent: float) -> float:
    return apr_percent / 100 / 12


def monthly_interest_cents(balance_cents: int, apr_percent: float) -> int:
    """Interest one month of the APR adds to ``balance_cents``."""

    if balance_cents < 0:
        raise InvalidInputError(f"balance must be non-negative, got {balance_cents}")
    if not math.isfinite(apr_percent) or apr_percent < 0:
        raise InvalidInputError(f"APR must be a non-negative number, got {apr_percent}")
    return round_half_up(balance_cents * monthly_rate(apr_percent))


def heuristic_payment_cents(balance_cents: int, monthly_interest: int) -> int:
    """Interest plus a 1/60th slice of principal (at least one cent)."""

    return monthly_interest + max(1, round_half_up(balance_cents / HEURISTIC_PAYOFF_MONTHS))


def payment_for_payoff_in(balance_cents: int, apr_percent: float, months: int) -> int:
    """Level payment that retires ``balance_cents`` in exactly ``months`` months."""

    rate = monthly_rate(apr_percent)
    if rate > 0:
        factor = (1 + rate) ** months
        return round_half_up(balance_cents * rate * factor / (factor - 1))
    return round_half_up(balance_cents / months)


def _never(balance_cents: int, interest: int) -> Projection:
    return Projection(
        monthly_interest_cents=interest,
        months_to_payoff=None,
        total_interest_cents=0,
        payoff_date=None,
        payment_for_36_month_payoff_cents=heuristic_payment_cents(balance_cents, interest),
    )


def project_debt(
    balance_cents: int,
    apr_percent: float,
    minimum_payment_cents: Optional[int],
    *,
    today: Optional[date] = None,
) -> Projection:
    """Project payoff timing and interest for a debt paid at its minimum.

    A missing (``None``) or zero minimum payment means "none set"; the payoff
    is then estimated from an implicit 60-month heuristic payment and the
    interest figure is an approximation (monthly interest times months).

    A minimum that does not exceed the monthly interest never retires the
    balance: the projection comes back with ``months_to_payoff=None`` and the
    36-month field carries the suggested heuristic payment instead.

    Raises:
        InvalidInputError: for negative balance, APR or minimum payment.
    """

    minimum = minimum_payment_cents or 0
    _check_domain(balance_cents, apr_percent, minimum)

    rate = monthly_rate(apr_percent)
    interest = round_half_up(balance_cents * rate)

    if 0 < minimum <= interest:
        return _never(balance_cents, interest)

    if minimum > 0 and rate > 0:
        log_argument = 1 - rate * balance_cents / minimum
        if log_argument <= 0:
            return _never(balance_cents, interest)
        months = math.ceil(-math.log(log_argument) / math.log(1 + rate))
        total_interest = round_half_up(minimum * months - balance_cents)
    elif minimum > 0:
        months = math.ceil(balance_cents / minimum)
        total_interest = 0
    else:
        implicit_payment = heuristic_payment_cents(balance_cents, interest)
        months = math.ceil(balance_cents / implicit_payment)
        total_interest = interest * months

    start = today or date.today()
    return Projection(
        monthly_interest_cents=interest,
        months_to_payoff=months,
        total_interest_cents=total_interest,
        payoff_date=add_months(start, months),
        payment_for_36_month_payoff_cents=payment_for_payoff_in(
            balance_cents, apr_percent, TARGET_PAYOFF_MONTHS
        ),
    )


__all__ = [
    "Projection",
    "add_months",
    "heuristic_payment_cents",
    "monthly_interest_cents",
    "payment_for_payoff_in",
    "project_debt",
    "round_half_up",
]
