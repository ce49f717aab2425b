"""Multi-debt payoff strategies (avalanche, snowball, hybrid).

Each ordering is simulated month by month on its own scratch copy of the
debts: interest accrues, minimums are paid, the extra budget goes to the
first open debt in the ordering, and the minimum of every debt that reaches
zero rolls into the extra budget for the following months.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from ..domain.exceptions import InvalidInputError
from ..domain.repositories import DebtRepository
from ..logging_config import get_logger
from ..models.debt import Debt
from .amortization import monthly_rate, project_debt, round_half_up
from .danger import danger_score

logger = get_logger(__name__)

MAX_SIMULATION_MONTHS = 360

AVALANCHE = "avalanche"
SNOWBALL = "snowball"
HYBRID = "hybrid"

STRATEGY_DESCRIPTIONS = {
    AVALANCHE: "Pay highest interest rate first - saves the most money",
    SNOWBALL: "Pay smallest balance first - quick wins for motivation",
    HYBRID: "Pay most dangerous debts first - protects your cashflow",
}


@dataclass(frozen=True, slots=True)
class PayoffEntry:
    """When and at what cost one debt reached zero in a simulation."""

    debt_id: Optional[int]
    debt_name: str
    payoff_month: int
    total_paid_cents: int
    interest_paid_cents: int


@dataclass(slots=True)
class StrategyResult:
    """Outcome of simulating one payoff ordering."""

    name: str
    description: str
    months_to_debt_free: int
    total_interest_paid_cents: int
    interest_saved_cents: int
    converged: bool
    residual_balance_cents: int
    payoff_order: list[PayoffEntry] = field(default_factory=list)


@dataclass(slots=True)
class _ScratchDebt:
    debt_id: Optional[int]
    name: str
    balance: int
    apr_percent: float
    minimum: int
    total_paid: int = 0
    interest_paid: int = 0
    payoff_month: Optional[int] = None


def _by_apr(debt: Debt) -> float:
    return -debt.apr_percent


def _by_balance(debt: Debt) -> int:
    return debt.current_balance_cents


def _by_danger(debt: Debt) -> int:
    return -danger_score(debt.current_balance_cents, debt.apr_percent, debt.minimum_payment_cents)


ORDERINGS: dict[str, Callable[[Debt], float]] = {
    AVALANCHE: _by_apr,
    SNOWBALL: _by_balance,
    HYBRID: _by_danger,
}


def order_debts(strategy: str, debts: Iterable[Debt]) -> list[Debt]:
    """Return ``debts`` in the priority order of ``strategy`` (stable sort)."""

    try:
        key = ORDERINGS[strategy]
    except KeyError:
        raise InvalidInputError(f"Invalid debt payoff strategy: {strategy!r}") from None
    return sorted(debts, key=key)


def _open_debts(debts: Iterable[Debt]) -> list[Debt]:
    """Debts with something left to pay; a negative balance is rejected."""

    debts = list(debts)
    for debt in debts:
        if debt.current_balance_cents < 0:
            raise InvalidInputError(
                f"debt {debt.name!r} has a negative balance ({debt.current_balance_cents})"
            )
    return [debt for debt in debts if debt.current_balance_cents > 0]


def _check_extra(extra_budget_cents: int) -> None:
    if extra_budget_cents < 0:
        raise InvalidInputError("extra monthly budget must be non-negative")


def _run(ordered: list[Debt], extra_budget_cents: int) -> tuple[list[_ScratchDebt], list[_ScratchDebt], int]:
    """Simulate one ordering; returns (scratch debts, payoff order, months run)."""

    scratch = [
        _ScratchDebt(
            debt_id=debt.id,
            name=debt.name,
            balance=debt.current_balance_cents,
            apr_percent=debt.apr_percent,
            minimum=debt.minimum_payment_cents or 0,
        )
        for debt in ordered
    ]
    paid_off: list[_ScratchDebt] = []
    extra_available = extra_budget_cents
    month = 0

    while any(item.balance > 0 for item in scratch) and month < MAX_SIMULATION_MONTHS:
        month += 1
        monthly_extra = extra_available
        earlier_open = False

        for item in scratch:
            if item.balance <= 0:
                continue

            interest = round_half_up(item.balance * monthly_rate(item.apr_percent))
            item.interest_paid += interest
            item.balance += interest

            payment = min(item.balance, item.minimum)
            item.balance -= payment
            item.total_paid += payment

            # Extra goes to the first debt in the ordering that is still open
            if monthly_extra > 0 and item.balance > 0 and not earlier_open:
                extra = min(monthly_extra, item.balance)
                item.balance -= extra
                item.total_paid += extra
                monthly_extra -= extra

            if item.balance <= 0 and item.payoff_month is None:
                item.balance = 0
                item.payoff_month = month
                extra_available += item.minimum
                paid_off.append(item)
            else:
                earlier_open = True

    return scratch, paid_off, month


def simulate_ordering(
    strategy: str,
    debts: Iterable[Debt],
    extra_budget_cents: int = 0,
    *,
    baseline_interest_cents: Optional[int] = None,
) -> StrategyResult:
    """Simulate a single named ordering over the open debts."""

    _check_extra(extra_budget_cents)
    open_debts = _open_debts(debts)
    ordered = order_debts(strategy, open_debts)
    if baseline_interest_cents is None:
        baseline_interest_cents = minimum_only_interest(open_debts)

    scratch, paid_off, months = _run(ordered, extra_budget_cents)
    total_interest = sum(item.interest_paid for item in scratch)
    residual = sum(item.balance for item in scratch)
    converged = residual == 0
    if not converged:
        logger.warning(
            "Simulation stopped at the month cap with balance remaining",
            extra={
                "strategy": strategy,
                "months": months,
                "residual_balance_cents": residual,
            },
        )

    return StrategyResult(
        name=strategy,
        description=STRATEGY_DESCRIPTIONS[strategy],
        months_to_debt_free=months,
        total_interest_paid_cents=total_interest,
        interest_saved_cents=max(0, baseline_interest_cents - total_interest),
        converged=converged,
        residual_balance_cents=residual,
        payoff_order=[
            PayoffEntry(
                debt_id=item.debt_id,
                debt_name=item.name,
                payoff_month=item.payoff_month or 0,
                total_paid_cents=item.total_paid,
                interest_paid_cents=item.interest_paid,
            )
            for item in paid_off
        ],
    )


def minimum_only_interest(debts: Iterable[Debt]) -> int:
    """Sum of each debt's independently projected interest at its minimum."""

    return sum(
        project_debt(
            debt.current_balance_cents, debt.apr_percent, debt.minimum_payment_cents
        ).total_interest_cents
        for debt in debts
    )


def simulate_strategies(debts: Iterable[Debt], extra_budget_cents: int = 0) -> list[StrategyResult]:
    """Simulate avalanche, snowball and hybrid orderings for the open debts.

    Returns an empty list when no debt has a positive balance.
    """

    _check_extra(extra_budget_cents)
    open_debts = _open_debts(debts)
    if not open_debts:
        return []

    baseline = minimum_only_interest(open_debts)
    results = [
        simulate_ordering(
            strategy, open_debts, extra_budget_cents, baseline_interest_cents=baseline
        )
        for strategy in (AVALANCHE, SNOWBALL, HYBRID)
    ]
    logger.info(
        "Payoff strategies simulated",
        extra={
            "debt_count": len(open_debts),
            "extra_budget_cents": extra_budget_cents,
            "months": {result.name: result.months_to_debt_free for result in results},
        },
    )
    return results


def compare_strategies(store: DebtRepository, extra_budget_cents: int = 0) -> list[StrategyResult]:
    """Simulate all orderings over the store's active debts."""

    return simulate_strategies(store.list_active_debts(), extra_budget_cents)


__all__ = [
    "AVALANCHE",
    "HYBRID",
    "MAX_SIMULATION_MONTHS",
    "PayoffEntry",
    "SNOWBALL",
    "StrategyResult",
    "compare_strategies",
    "minimum_only_interest",
    "order_debts",
    "simulate_ordering",
    "simulate_strategies",
]
