"""
Query Execution Engine

DESIGN DECISION: Queries are read-only and DETERMINISTIC.
They run over the store's current tuples and never write back, so the
screens can call them as often as they redraw.

Expense and income are decided by the sign of the amount, as the
balance rules do. Amounts that are not finite (NaN, infinity) have no
sign and are left out of every sum.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Iterable, Optional, Union

import structlog

from finance_tracker.models.finance import Transaction, TransactionType
from finance_tracker.models.queries import (
    CategoryTotal,
    MonthlyTotal,
    PeriodTotals,
    QueryResult,
    SortOption,
    TransactionQuery,
)
from finance_tracker.store import FinanceStore
from finance_tracker.validation.forms import CUSTOM_CATEGORY_COLOR, DEFAULT_CATEGORIES


CATEGORY_COLORS = {name: color for name, color in DEFAULT_CATEGORIES.values()}
UNCATEGORIZED = "Other"

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)

logger = structlog.get_logger(__name__)


class QueryExecutionError(Exception):
    """Error during query execution."""
    pass


def parse_transaction_date(value: str) -> Optional[datetime]:
    """Parse a stored ISO-8601 date; naive values are taken as UTC."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def is_expense(transaction: Transaction) -> bool:
    return transaction.amount.is_finite() and transaction.amount < 0


def is_income(transaction: Transaction) -> bool:
    return transaction.amount.is_finite() and transaction.amount > 0


def category_color(transaction: Transaction) -> str:
    return (
        transaction.custom_color
        or CATEGORY_COLORS.get(transaction.category)
        or CUSTOM_CATEGORY_COLOR
    )


class QueryExecutor:
    """
    Answers questions about the finance store.

    GUARANTEES:
    - Only returns data held by the store
    - Never modifies the store
    - Empty results, not errors, when nothing matches
    """

    def __init__(self, store: FinanceStore):
        self._store = store

    def total_balance(self) -> Decimal:
        """Sum of all card balances."""
        return sum((card.balance for card in self._store.cards), Decimal("0"))

    def filter_transactions(
        self,
        transaction_type: Optional[TransactionType] = None,
        search: str = "",
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        sort: Union[SortOption, str] = SortOption.DATE,
    ) -> list[Transaction]:
        """
        Transactions matching every given filter, sorted.

        `search` matches the note case-insensitively. With a date bound
        set, transactions whose date cannot be parsed are left out.
        """
        try:
            sort = SortOption(sort)
        except ValueError:
            raise QueryExecutionError(f"Unknown sort option: {sort}")

        matches = self._select(transaction_type, date_from, date_to)
        if search:
            needle = search.casefold()
            matches = [t for t in matches if needle in (t.note or "").casefold()]

        if sort == SortOption.DATE:
            return sorted(
                matches,
                key=lambda t: parse_transaction_date(t.date) or _OLDEST,
                reverse=True,
            )
        if sort == SortOption.AMOUNT:
            return sorted(
                matches,
                key=lambda t: (t.amount.is_finite(), abs(t.amount) if t.amount.is_finite() else 0),
                reverse=True,
            )
        return sorted(matches, key=lambda t: t.category.casefold())

    def totals(
        self,
        transaction_type: Optional[TransactionType] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> PeriodTotals:
        """Expense and income sums; expense is reported as a positive number."""
        matches = self._select(transaction_type, date_from, date_to)
        return PeriodTotals(
            expense=sum((-t.amount for t in matches if is_expense(t)), Decimal("0")),
            income=sum((t.amount for t in matches if is_income(t)), Decimal("0")),
            transaction_count=len(matches),
        )

    def by_category(
        self,
        transaction_type: Optional[TransactionType] = TransactionType.EXPENSE,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[CategoryTotal]:
        """
        Sums grouped by category, in the order categories first appear.

        A blank category is grouped under "Other". The color is the
        first custom color seen for the category, else its built-in one.
        """
        return self._group_by_category(self._select(transaction_type, date_from, date_to))

    def monthly_spending(self, months: int = 6, today: Optional[date] = None) -> list[MonthlyTotal]:
        """Expense sums for the last `months` calendar months, oldest first."""
        if months < 1:
            raise QueryExecutionError(f"months must be at least 1, got {months}")
        today = today or datetime.now(timezone.utc).date()

        first = today.year * 12 + today.month - months
        totals = {}
        for index in range(first, first + months):
            year, month = divmod(index, 12)
            totals[f"{year:04d}-{month + 1:02d}"] = Decimal("0")

        for transaction in self._store.transactions:
            if not is_expense(transaction):
                continue
            parsed = parse_transaction_date(transaction.date)
            key = parsed.strftime("%Y-%m") if parsed else None
            if key in totals:
                totals[key] -= transaction.amount

        return [MonthlyTotal(month=month, amount=amount) for month, amount in totals.items()]

    def execute(self, query: TransactionQuery) -> QueryResult:
        """
        Run a structured query.

        Invalid queries come back as a failed QueryResult.
        """
        try:
            if query.query_type == "totals":
                result = self._execute_totals(query)
            elif query.query_type == "by_category":
                result = self._execute_by_category(query)
            else:
                result = self._execute_list(query)
        except QueryExecutionError as e:
            logger.warning("query_failed", query_id=query.query_id, error=str(e))
            return QueryResult(
                query_id=query.query_id,
                success=False,
                error_message=str(e),
                data_found=False,
                result_count=0,
                query_description=f"Query failed: {e}",
            )

        logger.debug(
            "query_executed",
            query_id=query.query_id,
            query_type=query.query_type,
            result_count=result.result_count,
        )
        return result

    def _execute_list(self, query: TransactionQuery) -> QueryResult:
        transactions = self.filter_transactions(
            transaction_type=query.transaction_type,
            search=query.search,
            date_from=query.date_from,
            date_to=query.date_to,
            sort=query.sort,
        )
        results = [t.to_json_dict() for t in transactions]

        desc_parts = ["Listing transactions"]
        desc_parts.extend(self._filter_descriptions(query))
        desc_parts.append(f"sorted by {query.sort.value}")

        return QueryResult(
            query_id=query.query_id,
            success=True,
            data_found=len(results) > 0,
            result_count=len(results),
            results=results,
            query_description=" | ".join(desc_parts),
        )

    def _execute_totals(self, query: TransactionQuery) -> QueryResult:
        totals = self.totals(query.transaction_type, query.date_from, query.date_to)
        aggregation_result = totals.model_dump(mode="json")
        aggregation_result["net"] = float(totals.net)

        desc_parts = ["Calculating totals"]
        desc_parts.extend(self._filter_descriptions(query))

        return QueryResult(
            query_id=query.query_id,
            success=True,
            data_found=totals.transaction_count > 0,
            result_count=totals.transaction_count,
            aggregation_result=aggregation_result,
            query_description=" ".join(desc_parts),
        )

    def _execute_by_category(self, query: TransactionQuery) -> QueryResult:
        groups = self.by_category(query.transaction_type, query.date_from, query.date_to)
        results = [group.model_dump(mode="json") for group in groups]

        desc_parts = ["Grouping by category"]
        desc_parts.extend(self._filter_descriptions(query))

        return QueryResult(
            query_id=query.query_id,
            success=True,
            data_found=len(results) > 0,
            result_count=len(results),
            results=results,
            query_description=" ".join(desc_parts),
        )

    def _select(
        self,
        transaction_type: Optional[TransactionType],
        date_from: Optional[date],
        date_to: Optional[date],
    ) -> list[Transaction]:
        """Transactions of the given sign within the date bounds."""
        if date_from and date_to and date_from > date_to:
            raise QueryExecutionError(
                f"date_from {date_from.isoformat()} is after date_to {date_to.isoformat()}"
            )

        selected = []
        for transaction in self._store.transactions:
            if transaction_type == TransactionType.EXPENSE and not is_expense(transaction):
                continue
            if transaction_type == TransactionType.INCOME and not is_income(transaction):
                continue
            if date_from or date_to:
                parsed = parse_transaction_date(transaction.date)
                if parsed is None:
                    continue
                day = parsed.date()
                if (date_from and day < date_from) or (date_to and day > date_to):
                    continue
            selected.append(transaction)
        return selected

    def _group_by_category(self, transactions: Iterable[Transaction]) -> list[CategoryTotal]:
        """Calculate expense and income sums per category."""
        groups = {}
        for transaction in transactions:
            key = transaction.category or UNCATEGORIZED
            if key not in groups:
                groups[key] = {
                    "category": key,
                    "color": category_color(transaction),
                    "expense": Decimal("0"),
                    "income": Decimal("0"),
                    "transaction_count": 0,
                }
            group = groups[key]
            if is_expense(transaction):
                group["expense"] -= transaction.amount
            elif is_income(transaction):
                group["income"] += transaction.amount
            group["transaction_count"] += 1

        return [CategoryTotal(**group) for group in groups.values()]

    def _filter_descriptions(self, query: TransactionQuery) -> list[str]:
        parts = []
        if query.transaction_type:
            parts.append(f"type: {query.transaction_type.value}")
        if query.search:
            parts.append(f"note contains '{query.search}'")
        if query.date_from or query.date_to:
            parts.append(self._date_range_str(query.date_from, query.date_to))
        return parts

    def _date_range_str(
        self,
        date_from: Optional[date],
        date_to: Optional[date],
    ) -> str:
        """Format date range for description."""
        if date_from and date_to:
            if date_from == date_to:
                return f"on {date_from.strftime('%d %b %Y')}"
            elif date_from.month == date_to.month and date_from.year == date_to.year:
                return f"in {date_from.strftime('%B %Y')}"
            return f"from {date_from.strftime('%d %b %Y')} to {date_to.strftime('%d %b %Y')}"
        elif date_from:
            return f"from {date_from.strftime('%d %b %Y')}"
        elif date_to:
            return f"until {date_to.strftime('%d %b %Y')}"
        return ""
