"""Debt lifecycle operations that keep the cached projection fields current."""

from __future__ import annotations

import calendar
import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable, Optional, TypeVar

from ..constants.debts import (
    DEBT_CATEGORIES,
    DEBT_STATUSES,
    MAX_APR_PERCENT,
    MAX_NAME_LENGTH,
    STATUS_ACTIVE,
    STATUS_PAID_OFF,
)
from ..domain.exceptions import ConcurrentUpdateError, DebtNotFoundError, InvalidInputError
from ..domain.repositories import DebtRepository
from ..logging_config import get_logger
from ..models.debt import Debt, DebtPayment
from .amortization import Projection, add_months, project_debt
from .danger import danger_score

logger = get_logger(__name__)

T = TypeVar("T")

MAX_WRITE_ATTEMPTS = 3

UPDATABLE_FIELDS = frozenset(
    {"name", "category", "apr_percent", "minimum_payment_cents", "due_day", "status"}
)


@dataclass(slots=True)
class DebtDetail:
    """A debt with a freshly computed projection and its payment history."""

    debt: Debt
    projection: Projection
    payments: list[DebtPayment]


def _validate_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned or len(cleaned) > MAX_NAME_LENGTH:
        raise InvalidInputError(f"name must be 1-{MAX_NAME_LENGTH} characters")
    return cleaned


def _validate_category(category: str) -> str:
    if category not in DEBT_CATEGORIES:
        raise InvalidInputError(
            f"unknown category {category!r}; expected one of {', '.join(DEBT_CATEGORIES)}"
        )
    return category


def _validate_apr(apr_percent: float) -> float:
    if not math.isfinite(apr_percent) or not 0 <= apr_percent <= MAX_APR_PERCENT:
        raise InvalidInputError(f"APR must be between 0 and {MAX_APR_PERCENT:g}")
    return float(apr_percent)


def _validate_minimum(minimum_payment_cents: Optional[int]) -> Optional[int]:
    if minimum_payment_cents is not None and minimum_payment_cents < 0:
        raise InvalidInputError("minimum payment must be non-negative")
    return minimum_payment_cents


def _validate_due_day(due_day: Optional[int]) -> Optional[int]:
    if due_day is not None and not 1 <= due_day <= 31:
        raise InvalidInputError("due day must be between 1 and 31")
    return due_day


def next_due_date(due_day: Optional[int], today: Optional[date] = None) -> Optional[date]:
    """Return the first due date strictly after ``today``.

    Days past the end of a short month fall on that month's last day.
    """

    if due_day is None:
        return None
    current = today or date.today()
    last_day = calendar.monthrange(current.year, current.month)[1]
    candidate = date(current.year, current.month, min(due_day, last_day))
    if candidate <= current:
        following = add_months(date(current.year, current.month, 1), 1)
        last_day = calendar.monthrange(following.year, following.month)[1]
        candidate = following.replace(day=min(due_day, last_day))
    return candidate


def refresh_cached_projection(debt: Debt, *, today: Optional[date] = None) -> Projection:
    """Rebuild the cached death date, projected interest and danger score."""

    projection = project_debt(
        debt.current_balance_cents,
        debt.apr_percent,
        debt.minimum_payment_cents,
        today=today,
    )
    debt.death_date = projection.payoff_date
    debt.total_interest_projected_cents = projection.total_interest_cents
    debt.danger_score = danger_score(
        debt.current_balance_cents, debt.apr_percent, debt.minimum_payment_cents
    )
    debt.updated_at = datetime.now(timezone.utc)
    if projection.is_unbounded and debt.current_balance_cents > 0:
        logger.warning(
            "Minimum payment does not cover interest; debt never pays off",
            extra={
                "debt_id": debt.id,
                "monthly_interest_cents": projection.monthly_interest_cents,
                "minimum_payment_cents": debt.minimum_payment_cents,
            },
        )
    return projection


def get_debt(store: DebtRepository, debt_id: int) -> Debt:
    """Return the debt or raise :class:`DebtNotFoundError`."""

    debt = store.find_debt(debt_id)
    if debt is None:
        raise DebtNotFoundError(debt_id)
    return debt


def retry_on_conflict(operation: Callable[[], T], debt_id: int) -> T:
    """Run a read-modify-write ``operation``, re-reading when a writer beat it.

    Gives up with :class:`ConcurrentUpdateError` after ``MAX_WRITE_ATTEMPTS``.
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return operation()
        except ConcurrentUpdateError:
            if attempt >= MAX_WRITE_ATTEMPTS:
                logger.error(
                    "Debt kept changing underneath the write; giving up",
                    extra={"debt_id": debt_id, "attempts": attempt},
                )
                raise
            logger.info(
                "Concurrent debt update detected, retrying",
                extra={"debt_id": debt_id, "attempt": attempt},
            )


def create_debt(
    store: DebtRepository,
    *,
    name: str,
    category: str,
    original_balance_cents: int,
    current_balance_cents: int,
    apr_percent: float,
    minimum_payment_cents: Optional[int] = None,
    due_day: Optional[int] = None,
    today: Optional[date] = None,
) -> Debt:
    """Validate and store a new active debt with its cached projection."""

    if original_balance_cents <= 0:
        raise InvalidInputError("original balance must be positive")
    if current_balance_cents < 0:
        raise InvalidInputError("current balance must be non-negative")

    debt = Debt(
        name=_validate_name(name),
        category=_validate_category(category),
        original_balance_cents=original_balance_cents,
        current_balance_cents=current_balance_cents,
        apr_percent=_validate_apr(apr_percent),
        minimum_payment_cents=_validate_minimum(minimum_payment_cents),
        due_day=_validate_due_day(due_day),
        status=STATUS_ACTIVE,
    )
    debt.next_due_date = next_due_date(debt.due_day, today)
    refresh_cached_projection(debt, today=today)
    saved = store.save_debt(debt)
    logger.info(
        "Debt created",
        extra={
            "debt_id": saved.id,
            "category": saved.category,
            "balance_cents": saved.current_balance_cents,
            "danger_score": saved.danger_score,
        },
    )
    return saved


def update_debt(
    store: DebtRepository,
    debt_id: int,
    *,
    today: Optional[date] = None,
    **changes: Any,
) -> Debt:
    """Edit descriptive or pricing fields of a debt and rebuild its projection.

    Balances are not editable here: payments lower them through
    :func:`debtsage.services.payments.record_payment` and new charges raise
    them through :func:`apply_new_charge`. ``paid_off`` is only ever reached
    through a recorded payment.
    """

    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise InvalidInputError(f"cannot update field(s): {', '.join(sorted(unknown))}")

    def edit() -> Debt:
        debt = get_debt(store, debt_id)
        if "name" in changes:
            debt.name = _validate_name(changes["name"])
        if "category" in changes:
            debt.category = _validate_category(changes["category"])
        if "apr_percent" in changes:
            debt.apr_percent = _validate_apr(changes["apr_percent"])
        if "minimum_payment_cents" in changes:
            debt.minimum_payment_cents = _validate_minimum(changes["minimum_payment_cents"])
        if "due_day" in changes:
            debt.due_day = _validate_due_day(changes["due_day"])
            debt.next_due_date = next_due_date(debt.due_day, today)
        if "status" in changes:
            status = changes["status"]
            if status not in DEBT_STATUSES:
                raise InvalidInputError(f"unknown status {status!r}")
            if status == STATUS_PAID_OFF and debt.status != STATUS_PAID_OFF:
                raise InvalidInputError("a debt is marked paid off only by recording a payment")
            debt.status = status

        refresh_cached_projection(debt, today=today)
        return store.save_debt(debt)

    saved = retry_on_conflict(edit, debt_id)
    logger.info("Debt updated", extra={"debt_id": debt_id, "fields": sorted(changes)})
    return saved


def apply_new_charge(
    store: DebtRepository,
    debt_id: int,
    amount_cents: int,
    *,
    today: Optional[date] = None,
) -> Debt:
    """Add a new charge to the balance; reactivates a paid-off debt."""

    if amount_cents <= 0:
        raise InvalidInputError("charge amount must be positive")

    def charge() -> Debt:
        debt = get_debt(store, debt_id)
        debt.current_balance_cents += amount_cents
        if debt.status == STATUS_PAID_OFF:
            debt.status = STATUS_ACTIVE
        refresh_cached_projection(debt, today=today)
        return store.save_debt(debt)

    saved = retry_on_conflict(charge, debt_id)
    logger.info(
        "New charge applied",
        extra={
            "debt_id": debt_id,
            "amount_cents": amount_cents,
            "balance_cents": saved.current_balance_cents,
        },
    )
    return saved


def get_debt_detail(
    store: DebtRepository, debt_id: int, *, today: Optional[date] = None
) -> DebtDetail:
    """Return a debt, a fresh projection and its payments (newest first)."""

    debt = get_debt(store, debt_id)
    projection = project_debt(
        debt.current_balance_cents, debt.apr_percent, debt.minimum_payment_cents, today=today
    )
    return DebtDetail(debt=debt, projection=projection, payments=store.list_payments(debt_id))


__all__ = [
    "DebtDetail",
    "apply_new_charge",
    "create_debt",
    "get_debt",
    "get_debt_detail",
    "next_due_date",
    "refresh_cached_projection",
    "retry_on_conflict",
    "update_debt",
]
