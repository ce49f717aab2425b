"""Concrete repository implementations using SQLModel."""

from .debt import SQLModelDebtRepository

__all__ = [
    "SQLModelDebtRepository",
]
