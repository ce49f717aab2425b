"""SQLModel implementation of the debt repository."""

from __future__ import annotations

from typing import Callable, Optional

from sqlalchemy import update
from sqlmodel import Session, col, select

from ...constants.debts import STATUS_ACTIVE
from ...domain.exceptions import ConcurrentUpdateError, DebtNotFoundError
from ...models.debt import Debt, DebtPayment
from ..database import SessionFactory

# Columns never rewritten by a versioned update
_IMMUTABLE_COLUMNS = frozenset({"id", "version", "created_at"})


def _write_versioned(session: Session, debt: Debt) -> None:
    """Write ``debt`` only if the stored row still has the version it was read at.

    Raises:
        DebtNotFoundError: the row is gone.
        ConcurrentUpdateError: another writer committed first.
    """
    table = Debt.__table__  # type: ignore[attr-defined]
    expected = debt.version
    values = debt.model_dump(exclude=set(_IMMUTABLE_COLUMNS))
    result = session.connection().execute(
        update(table)
        .where(table.c.id == debt.id, table.c.version == expected)
        .values(**values, version=expected + 1)
    )
    if result.rowcount != 1:
        if session.get(Debt, debt.id) is None:
            raise DebtNotFoundError(debt.id)
        raise ConcurrentUpdateError(debt.id)
    debt.version = expected + 1


class SQLModelDebtRepository:
    """SQLModel-based debt repository implementation.

    Updates are optimistic: every write of an existing debt is conditional on
    the version it was read at, so a balance is never overwritten from a
    stale read on any backend, SQLite included.
    """

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def find_debt(self, debt_id: int) -> Optional[Debt]:
        """Retrieve a debt by ID."""
        with self.session_factory() as session:
            return session.get(Debt, debt_id)

    def save_debt(self, debt: Debt) -> Debt:
        """Insert a new debt, or update an existing one if nobody else has."""
        with self.session_factory() as session:
            if debt.id is None:
                session.add(debt)
                session.commit()
                session.refresh(debt)
                return debt
            _write_versioned(session, debt)
            return debt

    def append_payment(self, payment: DebtPayment) -> DebtPayment:
        """Insert a payment row."""
        with self.session_factory() as session:
            session.add(payment)
            session.commit()
            session.refresh(payment)
            return payment

    def list_all(self) -> list[Debt]:
        """List every debt regardless of status, most dangerous first."""
        with self.session_factory() as session:
            statement = select(Debt).order_by(
                col(Debt.danger_score).desc(), col(Debt.created_at), col(Debt.id)
            )
            return list(session.exec(statement).all())

    def list_active_debts(self) -> list[Debt]:
        """List debts with status ``active``, most dangerous first."""
        with self.session_factory() as session:
            statement = (
                select(Debt)
                .where(Debt.status == STATUS_ACTIVE)
                .order_by(col(Debt.danger_score).desc(), col(Debt.created_at), col(Debt.id))
            )
            return list(session.exec(statement).all())

    def list_payments(self, debt_id: int) -> list[DebtPayment]:
        """List payments for a debt, newest payment date first."""
        with self.session_factory() as session:
            statement = (
                select(DebtPayment)
                .where(DebtPayment.debt_id == debt_id)
                .order_by(col(DebtPayment.payment_date).desc(), col(DebtPayment.id).desc())
            )
            return list(session.exec(statement).all())

    def record_payment_atomically(
        self, debt_id: int, apply: Callable[[Debt], DebtPayment]
    ) -> Optional[tuple[Debt, DebtPayment]]:
        """Apply a payment and store the debt update and payment row in one commit.

        ``apply`` receives the freshly read debt and returns the payment to
        insert. The balance write is version-checked, so a concurrent writer
        makes this raise :class:`ConcurrentUpdateError` and nothing is stored.
        Returns ``None`` when the debt does not exist.
        """
        with self.session_factory() as session:
            debt = session.exec(
                select(Debt).where(Debt.id == debt_id).with_for_update()
            ).first()
            if debt is None:
                return None
            # Detached so the ORM never flushes it without the version check
            session.expunge(debt)
            payment = apply(debt)
            _write_versioned(session, debt)
            session.add(payment)
            session.commit()
            session.refresh(payment)
            return debt, payment
