"""
Domain Layer - Core Entities.

Entities:
    - BudgetQuery: Logical query (period, estudio, groupers, payment method)

Design Principles:
    - Immutable (frozen Pydantic models)
    - No infrastructure dependencies
"""

from budget_cache.domain.entities import (
    PAYMENT_ALL,
    PAYMENT_CASH,
    PAYMENT_CREDIT,
    PAYMENT_DEBIT,
    BudgetQuery,
)

__all__ = [
    "BudgetQuery",
    "PAYMENT_ALL",
    "PAYMENT_CASH",
    "PAYMENT_CREDIT",
    "PAYMENT_DEBIT",
]
