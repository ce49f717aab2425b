"""Debt repository protocol."""

from __future__ import annotations

from typing import Callable, Optional, Protocol, runtime_checkable

from ...models.debt import Debt, DebtPayment


class DebtRepository(Protocol):
    """Store collaborator for debts and their payments.

    Implementations own durability. Writes against the same debt id must be
    serialized by the implementation (row lock or optimistic version check) so
    a balance is never updated from a stale read; a write that loses the race
    raises :class:`~debtsage.domain.exceptions.ConcurrentUpdateError`.
    """

    def find_debt(self, debt_id: int) -> Optional[Debt]:
        """Retrieve a debt by ID, or ``None`` when it does not exist."""
        ...

    def save_debt(self, debt: Debt) -> Debt:
        """Insert or update a debt and return the stored row."""
        ...

    def append_payment(self, payment: DebtPayment) -> DebtPayment:
        """Persist a new payment record."""
        ...

    def list_active_debts(self) -> list[Debt]:
        """List debts with status ``active``."""
        ...

    def list_payments(self, debt_id: int) -> list[DebtPayment]:
        """List payments for a debt, newest payment date first."""
        ...


@runtime_checkable
class AtomicPaymentRepository(Protocol):
    """Optional capability: record a payment and its balance update in one unit."""

    def record_payment_atomically(
        self, debt_id: int, apply: Callable[[Debt], DebtPayment]
    ) -> Optional[tuple[Debt, DebtPayment]]:
        """Read the debt under lock, apply the payment and commit both rows."""
        ...
