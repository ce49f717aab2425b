"""Domain-specific exceptions."""

from __future__ import annotations


class DebtSageError(Exception):
    """Base exception for the debt engine."""


class DebtNotFoundError(DebtSageError, LookupError):
    """A referenced debt id does not exist in the store."""

    def __init__(self, debt_id: int) -> None:
        super().__init__(f"Debt {debt_id} not found")
        self.debt_id = debt_id


class InvalidInputError(DebtSageError, ValueError):
    """Input outside the documented domain of a calculator or service."""


class ConcurrentUpdateError(DebtSageError):
    """The debt changed between read and write; the write was not applied."""

    def __init__(self, debt_id: int) -> None:
        super().__init__(f"Debt {debt_id} was modified concurrently")
        self.debt_id = debt_id
