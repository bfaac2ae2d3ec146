"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the finance tracker models used by ``finance_tracker``.
"""

from .finance import Base, Category, SimilarityPattern, Transaction, TransactionCategory

__all__ = [
    "Base",
    "Category",
    "SimilarityPattern",
    "Transaction",
    "TransactionCategory",
]
