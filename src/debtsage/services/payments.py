"""Payment recording: principal/interest split and balance update."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from ..constants.debts import STATUS_PAID_OFF
from ..domain.exceptions import DebtNotFoundError, InvalidInputError
from ..domain.repositories import AtomicPaymentRepository, DebtRepository
from ..logging_config import get_logger
from ..models.debt import Debt, DebtPayment
from .amortization import Projection, monthly_interest_cents
from .debts import get_debt, refresh_cached_projection, retry_on_conflict

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class PaymentSplit:
    """How a payment divides between interest and principal."""

    amount_cents: int
    interest_cents: int
    principal_cents: int
    new_balance_cents: int


@dataclass(slots=True)
class PaymentReceipt:
    """Result of recording a payment."""

    payment: DebtPayment
    debt: Debt
    projection: Projection


def _coerce_payment_date(payment_date: Union[date, str]) -> date:
    if isinstance(payment_date, date):
        return payment_date
    try:
        return date.fromisoformat(payment_date)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"payment date must be ISO-8601 (YYYY-MM-DD): {payment_date!r}") from exc


def _validate_amount(amount_cents: int) -> int:
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, int):
        raise InvalidInputError("payment amount must be an integer number of cents")
    if amount_cents <= 0:
        raise InvalidInputError("payment amount must be positive")
    return amount_cents


def split_payment(balance_cents: int, apr_percent: float, amount_cents: int) -> PaymentSplit:
    """Split a payment using one month of interest on the current balance.

    Interest is satisfied first; the rest reduces principal. An overpayment
    simply floors the balance at zero, the surplus is not carried anywhere.
    """

    _validate_amount(amount_cents)
    interest = min(amount_cents, monthly_interest_cents(balance_cents, apr_percent))
    principal = amount_cents - interest
    return PaymentSplit(
        amount_cents=amount_cents,
        interest_cents=interest,
        principal_cents=principal,
        new_balance_cents=max(0, balance_cents - principal),
    )


def _apply(
    debt: Debt,
    amount_cents: int,
    payment_date: date,
    external_ref: Optional[str],
    today: Optional[date],
) -> tuple[DebtPayment, Projection]:
    split = split_payment(debt.current_balance_cents, debt.apr_percent, amount_cents)
    payment = DebtPayment(
        debt_id=debt.id,
        amount_cents=split.amount_cents,
        principal_cents=split.principal_cents,
        interest_cents=split.interest_cents,
        payment_date=payment_date,
        external_ref=external_ref,
    )
    debt.current_balance_cents = split.new_balance_cents
    if split.new_balance_cents == 0:
        debt.status = STATUS_PAID_OFF
    projection = refresh_cached_projection(debt, today=today)
    return payment, projection


def record_payment(
    store: DebtRepository,
    debt_id: int,
    amount_cents: int,
    payment_date: Union[date, str],
    external_ref: Optional[str] = None,
    *,
    today: Optional[date] = None,
) -> PaymentReceipt:
    """Record a payment against a debt and rebuild its cached projection.

    Raises:
        DebtNotFoundError: when ``debt_id`` is unknown.
        InvalidInputError: for a non-positive amount or malformed date.
        ConcurrentUpdateError: when other writers keep winning the version check.
    """

    _validate_amount(amount_cents)
    paid_on = _coerce_payment_date(payment_date)

    if isinstance(store, AtomicPaymentRepository):
        projections: list[Projection] = []

        def apply(debt: Debt) -> DebtPayment:
            payment, projection = _apply(debt, amount_cents, paid_on, external_ref, today)
            projections.append(projection)
            return payment

        stored = retry_on_conflict(
            lambda: store.record_payment_atomically(debt_id, apply), debt_id
        )
        if stored is None:
            raise DebtNotFoundError(debt_id)
        debt, payment = stored
        projection = projections[-1]
    else:
        debt = get_debt(store, debt_id)
        payment, projection = _apply(debt, amount_cents, paid_on, external_ref, today)
        payment = store.append_payment(payment)
        debt = store.save_debt(debt)

    logger.info(
        "Payment recorded",
        extra={
            "debt_id": debt_id,
            "amount_cents": payment.amount_cents,
            "principal_cents": payment.principal_cents,
            "interest_cents": payment.interest_cents,
            "balance_cents": debt.current_balance_cents,
            "status": debt.status,
        },
    )
    return PaymentReceipt(payment=payment, debt=debt, projection=projection)


def list_payments(store: DebtRepository, debt_id: int) -> list[DebtPayment]:
    """Payment history for a debt, newest first."""

    get_debt(store, debt_id)
    return store.list_payments(debt_id)


__all__ = [
    "PaymentReceipt",
    "PaymentSplit",
    "list_payments",
    "record_payment",
    "split_payment",
]
