"""Pytest configuration and shared fixtures for DebtSage tests.

Provides database fixtures, a debt factory and an in-memory store so the
services can be exercised with and without SQLModel.
"""

from __future__ import annotations

import tempfile
from datetime import date
from pathlib import Path
from typing import Optional

import pytest
from sqlmodel import SQLModel, create_engine

from debtsage.config import BaseConfig
from debtsage.infra.database import create_session_factory, enable_sqlite_pragmas
from debtsage.infra.repositories import SQLModelDebtRepository
from debtsage.models import Debt, DebtPayment
from debtsage.services.debts import refresh_cached_projection

TODAY = date(2026, 1, 15)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine with all tables created
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(
        f"sqlite:///{db_path}", echo=False, connect_args={"check_same_thread": False}
    )
    enable_sqlite_pragmas(engine, BaseConfig.SQLITE_BUSY_TIMEOUT_MS)
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching what the repositories expect."""
    return create_session_factory(db_engine)


@pytest.fixture
def debt_repo(session_factory) -> SQLModelDebtRepository:
    return SQLModelDebtRepository(session_factory)


@pytest.fixture
def today() -> date:
    return TODAY


# =============================================================================
# Test Data Factories
# =============================================================================


def make_debt(
    name: str = "Test Card",
    balance_cents: int = 100_000,
    apr_percent: float = 18.0,
    minimum_payment_cents: Optional[int] = 2_500,
    category: str = "credit_card",
    status: str = "active",
    debt_id: Optional[int] = None,
) -> Debt:
    """Build an unsaved debt with its cached projection filled in."""

    debt = Debt(
        id=debt_id,
        name=name,
        category=category,
        original_balance_cents=max(balance_cents, 1),
        current_balance_cents=balance_cents,
        apr_percent=apr_percent,
        minimum_payment_cents=minimum_payment_cents,
        status=status,
    )
    refresh_cached_projection(debt, today=TODAY)
    return debt


@pytest.fixture
def debt_factory(debt_repo):
    """Factory for creating persisted debts.

    Returns:
        Callable: same keyword arguments as ``make_debt``
    """

    def _create_debt(**kwargs) -> Debt:
        return debt_repo.save_debt(make_debt(**kwargs))

    return _create_debt


class InMemoryDebtRepository:
    """Dictionary-backed store without the atomic payment capability."""

    def __init__(self) -> None:
        self.debts: dict[int, Debt] = {}
        self.payments: list[DebtPayment] = []

    def find_debt(self, debt_id: int) -> Optional[Debt]:
        return self.debts.get(debt_id)

    def save_debt(self, debt: Debt) -> Debt:
        if debt.id is None:
            debt.id = len(self.debts) + 1
        self.debts[debt.id] = debt
        return debt

    def append_payment(self, payment: DebtPayment) -> DebtPayment:
        payment.id = len(self.payments) + 1
        self.payments.append(payment)
        return payment

    def list_active_debts(self) -> list[Debt]:
        return [debt for debt in self.debts.values() if debt.status == "active"]

    def list_payments(self, debt_id: int) -> list[DebtPayment]:
        rows = [payment for payment in self.payments if payment.debt_id == debt_id]
        return sorted(rows, key=lambda p: (p.payment_date, p.id), reverse=True)


@pytest.fixture
def memory_repo() -> InMemoryDebtRepository:
    return InMemoryDebtRepository()


@pytest.fixture
def build_debt():
    """Factory for unsaved debts (pure calculator tests)."""
    return make_debt
