"""Repository protocol definitions for domain layer."""

from .debt import AtomicPaymentRepository, DebtRepository

__all__ = [
    "AtomicPaymentRepository",
    "DebtRepository",
]
