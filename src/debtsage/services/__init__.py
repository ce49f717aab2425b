"""Service module exports."""

from . import amortization, danger, debts, payments, strategies, summary, whatif

__all__ = [
    "amortization",
    "danger",
    "debts",
    "payments",
    "strategies",
    "summary",
    "whatif",
]
