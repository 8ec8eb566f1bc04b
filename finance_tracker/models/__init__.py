"""
Data Models Package

Pydantic models for everything the stores own, persist and publish.
"""

from finance_tracker.models.finance import (
    DEFAULT_CARDS,
    DEFAULT_NOTE,
    NO_CARD,
    Card,
    FinanceRecord,
    FinanceSnapshot,
    Transaction,
    TransactionType,
    default_cards,
    generate_id,
    utc_timestamp,
)
from finance_tracker.models.profile import Profile
from finance_tracker.models.queries import (
    CategoryTotal,
    MonthlyTotal,
    PeriodTotals,
    QueryResult,
    SortOption,
    TransactionQuery,
)
from finance_tracker.models.events import (
    ChangeType,
    StoreChange,
    StoreChangeBuilder,
)

__all__ = [
    # Finance models
    "DEFAULT_CARDS",
    "DEFAULT_NOTE",
    "NO_CARD",
    "Card",
    "FinanceRecord",
    "FinanceSnapshot",
    "Transaction",
    "TransactionType",
    "default_cards",
    "generate_id",
    "utc_timestamp",
    # Profile
    "Profile",
    # Queries
    "CategoryTotal",
    "MonthlyTotal",
    "PeriodTotals",
    "QueryResult",
    "SortOption",
    "TransactionQuery",
    # Change events
    "ChangeType",
    "StoreChange",
    "StoreChangeBuilder",
]
