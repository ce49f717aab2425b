"""Debt and debt payment entities."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

from ..constants.debts import STATUS_ACTIVE


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Debt(SQLModel, table=True):
    """Credit card, loan or other liability tracked by DebtSage.

    Money is stored as integer cents. ``death_date``,
    ``total_interest_projected_cents`` and ``danger_score`` are a cached view
    of (balance, APR, minimum payment) and are rebuilt by the services after
    every change to those fields.
    """

    __tablename__: ClassVar[str] = "debt"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, max_length=64, index=True)
    category: str = Field(default="other", max_length=32)
    original_balance_cents: int = Field(nullable=False)
    current_balance_cents: int = Field(nullable=False)
    apr_percent: float = Field(default=0.0, nullable=False)
    minimum_payment_cents: Optional[int] = Field(default=None)
    due_day: Optional[int] = Field(default=None, ge=1, le=31)
    next_due_date: Optional[date] = Field(default=None)
    status: str = Field(default=STATUS_ACTIVE, max_length=16, index=True)
    # Bumped on every stored write; guards read-modify-write races
    version: int = Field(default=1, nullable=False)

    # Cached projection fields
    death_date: Optional[date] = Field(default=None)
    total_interest_projected_cents: Optional[int] = Field(default=None)
    danger_score: Optional[int] = Field(default=None, index=True)

    created_at: datetime = Field(default_factory=_utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=_utcnow, nullable=False)


class DebtPayment(SQLModel, table=True):
    """A recorded payment against a debt. Never mutated after insert."""

    __tablename__: ClassVar[str] = "debt_payment"

    id: Optional[int] = Field(default=None, primary_key=True)
    debt_id: int = Field(foreign_key="debt.id", nullable=False, index=True)
    amount_cents: int = Field(nullable=False)
    principal_cents: int = Field(nullable=False)
    interest_cents: int = Field(nullable=False)
    payment_date: date = Field(nullable=False, index=True)
    external_ref: Optional[str] = Field(default=None, max_length=128)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)
