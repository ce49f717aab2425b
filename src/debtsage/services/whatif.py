"""What-if simulation: effect of paying a fixed extra amount every month."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..domain.exceptions import InvalidInputError
from ..domain.repositories import DebtRepository
from ..models.debt import Debt
from .amortization import project_debt
from .debts import get_debt


@dataclass(frozen=True, slots=True)
class WhatIfResult:
    original_payoff_date: Optional[date]
    new_payoff_date: Optional[date]
    months_saved: int
    interest_saved_cents: int
    extra_monthly_payment_cents: int


def what_if(debt: Debt, extra_monthly_cents: int, *, today: Optional[date] = None) -> WhatIfResult:
    """Compare the minimum-only projection with minimum + ``extra_monthly_cents``.

    Months saved is 0 when either projection never pays off. Interest saved is
    always the difference of the two projected totals; a never-ending
    projection totals 0, so rescuing such a debt reports a negative saving
    equal to the interest the boosted plan will pay.
    """

    if extra_monthly_cents < 0:
        raise InvalidInputError("extra monthly payment must be non-negative")

    minimum = debt.minimum_payment_cents or 0
    baseline = project_debt(debt.current_balance_cents, debt.apr_percent, minimum, today=today)
    boosted = project_debt(
        debt.current_balance_cents, debt.apr_percent, minimum + extra_monthly_cents, today=today
    )

    if baseline.is_unbounded or boosted.is_unbounded:
        months_saved = 0
    else:
        months_saved = baseline.months_to_payoff - boosted.months_to_payoff

    return WhatIfResult(
        original_payoff_date=baseline.payoff_date,
        new_payoff_date=boosted.payoff_date,
        months_saved=months_saved,
        interest_saved_cents=baseline.total_interest_cents - boosted.total_interest_cents,
        extra_monthly_payment_cents=extra_monthly_cents,
    )


def what_if_extra_payment(
    store: DebtRepository,
    debt_id: int,
    extra_monthly_cents: int,
    *,
    today: Optional[date] = None,
) -> WhatIfResult:
    """Run :func:`what_if` for a stored debt; raises if the id is unknown."""

    return what_if(get_debt(store, debt_id), extra_monthly_cents, today=today)


__all__ = ["WhatIfResult", "what_if", "what_if_extra_payment"]
