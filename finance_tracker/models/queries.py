"""
Query Models

Inputs and outputs of the read-only queries behind the dashboard,
summary, analytics and history screens.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from finance_tracker.models.finance import Money, TransactionType


class SortOption(str, Enum):
    """Ordering of a transaction list."""
    DATE = "date"          # newest first
    AMOUNT = "amount"      # largest absolute amount first
    CATEGORY = "category"  # alphabetical


class TransactionQuery(BaseModel):
    """
    A structured question about the recorded transactions.

    The transaction type is decided by the sign of the amount, not by
    the `type` tag. Date bounds are inclusive calendar days in UTC.
    """

    query_id: str = Field(default_factory=lambda: str(uuid4()))
    query_type: Literal["list", "totals", "by_category"] = "list"

    transaction_type: Optional[TransactionType] = None
    search: str = Field(
        default="",
        description="Case-insensitive substring of the note"
    )
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    sort: SortOption = SortOption.DATE


class PeriodTotals(BaseModel):
    """Expense and income sums over a set of transactions."""

    expense: Money = Field(
        default=Decimal("0"),
        description="Sum of absolute expense amounts"
    )
    income: Money = Decimal("0")
    transaction_count: int = Field(default=0, ge=0)

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


class CategoryTotal(BaseModel):
    """Per-category sums, in first-seen order."""

    category: str
    color: str
    expense: Money = Decimal("0")
    income: Money = Decimal("0")
    transaction_count: int = Field(default=0, ge=0)


class MonthlyTotal(BaseModel):
    """Expense sum for one calendar month (YYYY-MM)."""

    month: str
    amount: Money = Decimal("0")


class QueryResult(BaseModel):
    """
    Result of executing a TransactionQuery.

    A failed query comes back with success=False and the reason in
    error_message instead of raising.
    """

    query_id: str
    executed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    # Success/failure
    success: bool
    error_message: Optional[str] = None

    # Results
    data_found: bool = Field(
        ...,
        description="Was any data found?"
    )
    result_count: int = Field(
        ge=0,
        description="Number of results"
    )
    results: list[dict] = Field(
        default_factory=list,
        description="Matching transactions or category rows as JSON dicts"
    )

    # Aggregation result if applicable
    aggregation_result: Optional[dict] = None

    query_description: str = Field(
        ...,
        description="Human-readable description of what was queried"
    )
