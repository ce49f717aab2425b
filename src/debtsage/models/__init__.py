"""SQLModel table exports."""

from .debt import Debt, DebtPayment

__all__ = [
    "Debt",
    "DebtPayment",
]
