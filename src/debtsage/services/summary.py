"""Portfolio-level aggregates across active debts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from ..constants.debts import STATUS_ACTIVE
from ..domain.repositories import DebtRepository
from ..models.debt import Debt
from .amortization import project_debt, round_half_up
from .danger import danger_score


@dataclass(frozen=True, slots=True)
class PortfolioSummary:
    total_debt_cents: int = 0
    total_minimum_payment_cents: int = 0
    highest_apr: float = 0.0
    average_apr: float = 0.0
    debt_count: int = 0
    projected_interest_cents: int = 0
    earliest_payoff_date: Optional[date] = None
    latest_payoff_date: Optional[date] = None
    average_danger_score: int = 0


def summarize_debts(debts: Iterable[Debt], *, today: Optional[date] = None) -> PortfolioSummary:
    """Aggregate the active debts in ``debts``; an empty set yields zeros."""

    active = [debt for debt in debts if debt.status == STATUS_ACTIVE]
    if not active:
        return PortfolioSummary()

    projections = [
        project_debt(
            debt.current_balance_cents, debt.apr_percent, debt.minimum_payment_cents, today=today
        )
        for debt in active
    ]
    payoff_dates = sorted(p.payoff_date for p in projections if p.payoff_date is not None)
    aprs = [debt.apr_percent for debt in active]
    scores = [
        danger_score(debt.current_balance_cents, debt.apr_percent, debt.minimum_payment_cents)
        for debt in active
    ]
    average_apr = Decimal(str(sum(aprs) / len(aprs))).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    return PortfolioSummary(
        total_debt_cents=sum(debt.current_balance_cents for debt in active),
        total_minimum_payment_cents=sum(debt.minimum_payment_cents or 0 for debt in active),
        highest_apr=max(aprs),
        average_apr=float(average_apr),
        debt_count=len(active),
        projected_interest_cents=sum(p.total_interest_cents for p in projections),
        earliest_payoff_date=payoff_dates[0] if payoff_dates else None,
        latest_payoff_date=payoff_dates[-1] if payoff_dates else None,
        average_danger_score=round_half_up(sum(scores) / len(scores)),
    )


def portfolio_summary(store: DebtRepository, *, today: Optional[date] = None) -> PortfolioSummary:
    """Summary over the store's active debts."""

    return summarize_debts(store.list_active_debts(), today=today)


__all__ = ["PortfolioSummary", "portfolio_summary", "summarize_debts"]
