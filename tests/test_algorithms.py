"""
Unit tests for dashboard filtering and aggregation.
"""

import pytest
from datetime import date, datetime
from decimal import Decimal

from core.algorithms import FilterEngine, AnalyticsEngine
from core.models import Expense, DateFilterSelection, FilterType


def make_expense(occurred_on: datetime, amount: str = "10.00", category: str = "food",
                 name: str = "Lunch", expense_id: str = None) -> Expense:
    """Build an in-memory expense for tests."""
    return Expense(
        id=expense_id or f"{name}-{occurred_on.isoformat()}",
        owner_id="user-1",
        name=name,
        category=category,
        amount=Decimal(amount),
        occurred_on=occurred_on
    )


class TestFilterEngine:
    """Test cases for FilterEngine class."""

    @pytest.fixture
    def engine(self):
        return FilterEngine()

    @pytest.fixture
    def now(self):
        """Reference time: last day of March in a leap year."""
        return datetime(2024, 3, 31, 15, 0)

    @pytest.fixture
    def expenses(self):
        return [
            make_expense(datetime(2024, 4, 1, 9, 0), name="Tomorrow"),
            make_expense(datetime(2024, 3, 31, 8, 0), name="Today Morning"),
            make_expense(datetime(2024, 3, 31, 23, 59), name="Today Night"),
            make_expense(datetime(2024, 3, 30, 12, 0), name="Yesterday"),
            make_expense(datetime(2024, 3, 24, 0, 0), name="Week Edge"),
            make_expense(datetime(2024, 3, 23, 23, 59), name="Before Week"),
            make_expense(datetime(2024, 2, 29, 10, 0), name="Month Edge"),
            make_expense(datetime(2024, 2, 28, 10, 0), name="Before Month"),
            make_expense(datetime(2023, 12, 25, 10, 0), name="Last Year"),
        ]

    def names(self, expenses):
        return [e.name for e in expenses]

    def test_day_filter(self, engine, expenses, now):
        """Test day filter keeps only today's expenses, any time of day."""
        result = engine.filter_expenses(expenses, DateFilterSelection(filter_type=FilterType.DAY), now)

        assert self.names(result) == ["Today Morning", "Today Night"]

    def test_week_filter(self, engine, expenses, now):
        """Test week filter covers today minus seven days inclusive."""
        result = engine.filter_expenses(expenses, DateFilterSelection(filter_type=FilterType.WEEK), now)

        assert self.names(result) == ["Today Morning", "Today Night", "Yesterday", "Week Edge"]

    def test_month_filter_clamps_day(self, engine, expenses, now):
        """Test month filter goes back one calendar month, clamping Mar 31 to Feb 29."""
        result = engine.filter_expenses(expenses, DateFilterSelection(filter_type=FilterType.MONTH), now)

        assert "Month Edge" in self.names(result)
        assert "Before Month" not in self.names(result)
        assert "Tomorrow" not in self.names(result)

    def test_month_filter_year_rollover(self, engine):
        """Test month arithmetic rolls back into the previous year."""
        expenses = [
            make_expense(datetime(2023, 12, 15), name="In"),
            make_expense(datetime(2023, 12, 14), name="Out"),
        ]

        result = engine.filter_expenses(
            expenses, DateFilterSelection(filter_type=FilterType.MONTH), datetime(2024, 1, 15, 8, 0)
        )

        assert self.names(result) == ["In"]

    def test_custom_filter(self, engine, expenses, now):
        """Test custom range is inclusive on both ends."""
        selection = DateFilterSelection(
            filter_type=FilterType.CUSTOM,
            start_date=date(2024, 3, 24),
            end_date=date(2024, 3, 30)
        )

        result = engine.filter_expenses(expenses, selection, now)

        assert self.names(result) == ["Yesterday", "Week Edge"]

    @pytest.mark.parametrize("start, end", [
        (None, None),
        (date(2024, 3, 1), None),
        (None, date(2024, 3, 1)),
    ])
    def test_custom_filter_without_bounds_keeps_all(self, engine, expenses, now, start, end):
        """Test custom filter with a missing bound returns everything."""
        selection = DateFilterSelection(filter_type=FilterType.CUSTOM, start_date=start, end_date=end)

        result = engine.filter_expenses(expenses, selection, now)

        assert result == expenses
        assert result is not expenses

    @pytest.mark.parametrize("filter_type", list(FilterType))
    def test_filter_is_idempotent(self, engine, expenses, now, filter_type):
        """Test filtering a filtered list changes nothing."""
        selection = DateFilterSelection(
            filter_type=filter_type,
            start_date=date(2024, 1, 1),
            end_date=date(2024, 3, 30)
        )

        once = engine.filter_expenses(expenses, selection, now)
        twice = engine.filter_expenses(once, selection, now)

        assert once == twice

    @pytest.mark.parametrize("filter_type", [FilterType.DAY, FilterType.WEEK, FilterType.MONTH])
    def test_results_inside_range(self, engine, expenses, now, filter_type):
        """Test no returned expense lies outside the resolved range."""
        selection = DateFilterSelection(filter_type=filter_type)
        start, end = engine.get_date_range(selection, now)

        for expense in engine.filter_expenses(expenses, selection, now):
            assert start <= expense.occurred_on.date() <= end

    def test_empty_input(self, engine, now):
        assert engine.filter_expenses([], DateFilterSelection(), now) == []

    def test_default_selection_is_month(self):
        assert DateFilterSelection().filter_type == FilterType.MONTH

    def test_custom_bounds_ignore_time_of_day(self, engine, expenses, now):
        """Test datetime bounds are reduced to their calendar date."""
        selection = DateFilterSelection(
            filter_type=FilterType.CUSTOM,
            start_date=datetime(2024, 3, 24, 15, 0),
            end_date=datetime(2024, 3, 30, 9, 0)
        )

        assert selection.start_date == date(2024, 3, 24)
        assert selection.end_date == date(2024, 3, 30)
        assert self.names(engine.filter_expenses(expenses, selection, now)) == ["Yesterday", "Week Edge"]


class TestAnalyticsEngine:
    """Test cases for AnalyticsEngine class."""

    @pytest.fixture
    def engine(self):
        return AnalyticsEngine()

    @pytest.fixture
    def now(self):
        return datetime(2024, 6, 1, 12, 0)

    @pytest.fixture
    def expenses(self):
        return [
            make_expense(datetime(2024, 1, 5), amount="10.00", category="food"),
            make_expense(datetime(2024, 1, 20), amount="5.50", category="food"),
            make_expense(datetime(2024, 6, 1), amount="100.00", category="travel"),
            make_expense(datetime(2023, 12, 31), amount="40.00", category="home"),
            make_expense(datetime(2024, 12, 31, 23, 0), amount="2.25", category="subscriptions"),
        ]

    def test_aggregate_empty(self, engine, now):
        """Test aggregating nothing yields zeros."""
        summary = engine.aggregate([], now)

        assert summary.total == 0
        assert summary.count_by_category == {}
        assert summary.sum_by_category == {}
        assert summary.sum_by_month_of_current_year == [Decimal("0")] * 12
        assert len(summary.sum_by_month_of_current_year) == 12

    def test_aggregate_totals(self, engine, expenses, now):
        """Test total and per-category figures."""
        summary = engine.aggregate(expenses, now)

        assert summary.total == Decimal("157.75")
        assert summary.count_by_category == {"food": 2, "travel": 1, "home": 1, "subscriptions": 1}
        assert summary.sum_by_category == {
            "food": Decimal("15.50"),
            "travel": Decimal("100.00"),
            "home": Decimal("40.00"),
            "subscriptions": Decimal("2.25"),
        }

    def test_category_sums_equal_total(self, engine, expenses, now):
        """Test category sums always add up to the total, whatever the year."""
        summary = engine.aggregate(expenses, now)

        assert sum(summary.sum_by_category.values()) == summary.total

    def test_monthly_buckets_current_year_only(self, engine, expenses, now):
        """Test monthly buckets ignore other years."""
        summary = engine.aggregate(expenses, now)
        months = summary.sum_by_month_of_current_year

        assert months[0] == Decimal("15.50")
        assert months[5] == Decimal("100.00")
        assert months[11] == Decimal("2.25")
        # The 2023 expense is in the total but in no bucket
        assert sum(months) == summary.total - Decimal("40.00")

    def test_category_breakdown(self, engine, now):
        """Test breakdown is sorted and drops zero totals."""
        expenses = [
            make_expense(datetime(2024, 1, 5), amount="10.00", category="food"),
            make_expense(datetime(2024, 1, 5), amount="0", category="gifts"),
            make_expense(datetime(2024, 1, 5), amount="30.00", category="home"),
        ]

        breakdown = engine.category_breakdown(engine.aggregate(expenses, now))

        assert breakdown == [("home", Decimal("30.00")), ("food", Decimal("10.00"))]
