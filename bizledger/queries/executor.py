"""
Query Execution Engine

Read-side computations behind the dashboard, history, reports and
calendar screens. Every query reads the user's full collection from the
Ledger Store and recomputes; nothing is cached.

NOTE: Report totals (income/expense/net profit) count every transaction in
the period, dues included. Only the cash balance and the "today" figures
exclude outstanding dues.
"""

from calendar import monthrange
from collections import defaultdict
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field

from bizledger.ledger import LedgerStore, calculate_balance
from bizledger.models.ledger import (
    DailyTotals,
    DueTotals,
    FinancialSummary,
    Transaction,
    TransactionType,
)


class QueryExecutionError(Exception):
    """Error during query execution."""
    pass


class LedgerQuery(BaseModel):
    """
    Filters for history and report screens.

    `period="month"` means the calendar month of `reference_date`
    (today when not given).
    """

    search: Optional[str] = Field(
        default=None,
        description="Matches category, note or party name, case-insensitive"
    )
    type_filter: Literal["ALL", "INCOME", "EXPENSE"] = "ALL"
    period: Literal["all", "month"] = "all"
    reference_date: Optional[date] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    limit: Optional[int] = Field(default=None, ge=1)


class QueryExecutor:
    """
    Runs LedgerQuery filters and aggregations over stored transactions.

    GUARANTEES:
    - Only returns real data from storage
    - Never invents or estimates
    """

    def __init__(self, ledger_store: LedgerStore):
        self._ledger = ledger_store

    # -------------------------------------------------------------------------
    # Filtering
    # -------------------------------------------------------------------------

    def _matches(self, tx: Transaction, query: LedgerQuery) -> bool:
        if query.type_filter != "ALL" and tx.type.value != query.type_filter:
            return False

        tx_day = tx.date.date()
        if query.period == "month":
            ref = query.reference_date or datetime.now(timezone.utc).date()
            if (tx_day.year, tx_day.month) != (ref.year, ref.month):
                return False
        if query.date_from and tx_day < query.date_from:
            return False
        if query.date_to and tx_day > query.date_to:
            return False

        if query.search:
            needle = query.search.strip().lower()
            haystack = [tx.category, tx.note or "", tx.party_name or ""]
            if needle and not any(needle in field.lower() for field in haystack):
                return False

        return True

    def _filtered(self, user_id: str, query: LedgerQuery) -> list[Transaction]:
        return [
            tx for tx in self._ledger.list_recent(user_id)
            if self._matches(tx, query)
        ]

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def history(
        self,
        user_id: str,
        query: Optional[LedgerQuery] = None,
    ) -> list[Transaction]:
        """Matching transactions, newest first by creation timestamp."""
        query = query or LedgerQuery()
        results = self._filtered(user_id, query)
        if query.limit is not None:
            results = results[:query.limit]
        return results

    def summary(
        self,
        user_id: str,
        query: Optional[LedgerQuery] = None,
    ) -> FinancialSummary:
        """Income, expense and net profit for the filtered period, plus cash balance."""
        query = query or LedgerQuery()
        all_transactions = self._ledger.list(user_id)
        filtered = [tx for tx in all_transactions if self._matches(tx, query)]

        income = sum(
            (tx.amount for tx in filtered if tx.type == TransactionType.INCOME),
            Decimal("0"),
        )
        expense = sum(
            (tx.amount for tx in filtered if tx.type == TransactionType.EXPENSE),
            Decimal("0"),
        )

        return FinancialSummary(
            total_income=income,
            total_expense=expense,
            net_profit=income - expense,
            balance=calculate_balance(all_transactions),
            transaction_count=len(filtered),
        )

    def expense_breakdown(
        self,
        user_id: str,
        query: Optional[LedgerQuery] = None,
    ) -> dict[str, Decimal]:
        """Expense totals per category, largest first."""
        query = (query or LedgerQuery()).model_copy(update={"type_filter": "EXPENSE"})

        totals: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
        for tx in self._filtered(user_id, query):
            totals[tx.category] += tx.amount

        return dict(sorted(totals.items(), key=lambda kv: kv[1], reverse=True))

    def daily_totals(self, user_id: str, year: int, month: int) -> list[DailyTotals]:
        """
        Per-day income and expense for one calendar month.

        Days without any transaction are left out.
        """
        if not 1 <= month <= 12:
            raise QueryExecutionError(f"Invalid month: {month}")

        days: dict[date, DailyTotals] = {}
        for tx in self._ledger.list(user_id):
            day = tx.date.date()
            if (day.year, day.month) != (year, month):
                continue
            totals = days.setdefault(day, DailyTotals(day=day))
            if tx.type == TransactionType.INCOME:
                totals.income += tx.amount
            else:
                totals.expense += tx.amount

        _, last_day = monthrange(year, month)
        return [
            days[date(year, month, d)]
            for d in range(1, last_day + 1)
            if date(year, month, d) in days
        ]

    def today_totals(
        self,
        user_id: str,
        today: Optional[date] = None,
    ) -> DailyTotals:
        """Cash income and expense recorded today (dues excluded)."""
        today = today or datetime.now(timezone.utc).date()
        totals = DailyTotals(day=today)
        for tx in self._ledger.list(user_id):
            if tx.is_due or tx.date.date() != today:
                continue
            if tx.type == TransactionType.INCOME:
                totals.income += tx.amount
            else:
                totals.expense += tx.amount
        return totals

    def due_totals(self, user_id: str) -> DueTotals:
        """Outstanding credit in both directions."""
        totals = DueTotals()
        for tx in self._ledger.list(user_id):
            if not tx.is_outstanding_due:
                continue
            if tx.type == TransactionType.INCOME:
                totals.receivable += tx.amount
            else:
                totals.payable += tx.amount
        return totals

    def upcoming_dues(
        self,
        user_id: str,
        before: Optional[date] = None,
    ) -> list[Transaction]:
        """
        Outstanding dues with a due date, earliest first.

        With `before`, only dues falling on or before that date.
        """
        dues = [
            tx for tx in self._ledger.list(user_id)
            if tx.is_outstanding_due and tx.due_date is not None
            and (before is None or tx.due_date <= before)
        ]
        return sorted(dues, key=lambda t: t.due_date)
