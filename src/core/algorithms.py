"""
Filtering and analytics algorithms for the expense tracker.
Implements the dashboard date windows and aggregation functions.
"""

import logging
from datetime import datetime, date, timedelta
from decimal import Decimal
from typing import List, Optional, Tuple
from collections import defaultdict, Counter

from dateutil.relativedelta import relativedelta

from .models import Expense, DateFilterSelection, ExpenseSummary, FilterType, to_local_date

logger = logging.getLogger(__name__)


class FilterEngine:
    """Date-window filtering for the expense list."""

    def __init__(self):
        """Initialize filter engine."""
        self.logger = logger

    def get_date_range(self, selection: DateFilterSelection,
                       now: Optional[datetime] = None) -> Optional[Tuple[date, date]]:
        """Resolve a filter selection to an inclusive date range.

        Args:
            selection: Dashboard filter selection
            now: Reference time, defaults to the current local time

        Returns:
            (start, end) dates, or None when the filter keeps everything
        """
        today = to_local_date(now or datetime.now())

        if selection.filter_type == FilterType.DAY:
            return today, today

        if selection.filter_type == FilterType.WEEK:
            return today - timedelta(days=7), today

        if selection.filter_type == FilterType.MONTH:
            # relativedelta clamps the day, e.g. Mar 31 -> Feb 28
            return today - relativedelta(months=1), today

        if selection.start_date is None or selection.end_date is None:
            return None
        return selection.start_date, selection.end_date

    def filter_expenses(self, expenses: List[Expense], selection: DateFilterSelection,
                        now: Optional[datetime] = None) -> List[Expense]:
        """Keep expenses whose date falls in the selected window.

        Args:
            expenses: Expenses to filter
            selection: Dashboard filter selection
            now: Reference time, defaults to the current local time

        Returns:
            Matching expenses in their original order
        """
        date_range = self.get_date_range(selection, now)
        if date_range is None:
            return list(expenses)

        start, end = date_range
        return [
            expense for expense in expenses
            if start <= to_local_date(expense.occurred_on) <= end
        ]


class AnalyticsEngine:
    """Aggregation functions behind the dashboard metrics and charts."""

    def __init__(self):
        """Initialize analytics engine."""
        self.logger = logger

    def aggregate(self, expenses: List[Expense], now: Optional[datetime] = None) -> ExpenseSummary:
        """Calculate totals for a set of expenses.

        Monthly buckets only cover the current year; older expenses still
        count towards the total and the category sums.

        Args:
            expenses: Expenses to aggregate
            now: Reference time for the current year

        Returns:
            ExpenseSummary with total, per-category and per-month figures
        """
        current_year = (now or datetime.now()).year

        total = Decimal("0")
        count_by_category = Counter()
        sum_by_category = defaultdict(Decimal)
        by_month = [Decimal("0")] * 12

        for expense in expenses:
            total += expense.amount
            count_by_category[expense.category] += 1
            sum_by_category[expense.category] += expense.amount

            expense_date = to_local_date(expense.occurred_on)
            if expense_date.year == current_year:
                by_month[expense_date.month - 1] += expense.amount

        return ExpenseSummary(
            total=total,
            count_by_category=dict(count_by_category),
            sum_by_category=dict(sum_by_category),
            sum_by_month_of_current_year=by_month
        )

    def category_breakdown(self, summary: ExpenseSummary) -> List[Tuple[str, Decimal]]:
        """Categories with a positive total, largest first.

        Args:
            summary: Aggregated expenses

        Returns:
            List of (category, amount) pairs for the category chart
        """
        return sorted(
            [(category, amount) for category, amount in summary.sum_by_category.items() if amount > 0],
            key=lambda x: x[1], reverse=True
        )
