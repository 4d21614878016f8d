"""
Core Domain Entities.

This module defines the logical query that identifies a piece of budget
data requested by the simulate-mode screens.
"""

from __future__ import annotations

from typing import Any, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

# Payment-method filter values used by the dashboard
PAYMENT_ALL = "all"
PAYMENT_CREDIT = "credit"
PAYMENT_DEBIT = "debit"
PAYMENT_CASH = "cash"


class BudgetQuery(BaseModel):
    """
    Semantic identity of a budget data request.

    Grouper ids are stored as a tuple in the order given; the key codec
    sorts them, so permutations identify the same cached data.
    """

    period_id: Optional[str] = Field(default=None, description="Budget period")
    estudio_id: Optional[int] = Field(default=None, description="Study scope")
    grouper_ids: Optional[Tuple[int, ...]] = Field(
        default=(), description="Grouper ids the view is scoped to"
    )
    payment_method: Optional[str] = Field(
        default=None, description="Payment-method filter"
    )

    model_config = {"frozen": True}

    @field_validator("grouper_ids", mode="before")
    @classmethod
    def _none_means_all_groupers(cls, value: Any) -> Any:
        return () if value is None else value

    @property
    def has_grouper_scope(self) -> bool:
        """True when the query is narrowed to specific groupers."""
        return len(self.grouper_ids) > 0

    @property
    def has_payment_scope(self) -> bool:
        """True when the query is narrowed to one payment method."""
        return bool(self.payment_method) and self.payment_method != PAYMENT_ALL

    def widen(self, **changes: Any) -> "BudgetQuery":
        """Return a copy of this query with some dimensions replaced."""
        return BudgetQuery.model_validate({**self.model_dump(), **changes})
