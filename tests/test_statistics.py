"""
Unit tests for the pure statistics functions.
"""
from datetime import date
from decimal import Decimal

import pytest

from restohub.core.rounding import round_half_up, round_to_int
from restohub.services import statistics


def day(d: str, **fields) -> dict:
    row = {"date": date.fromisoformat(d)}
    row.update(fields)
    return row


class TestRounding:
    """Half-up rounding used for every reported figure."""

    def test_half_rounds_up(self):
        assert round_half_up(2.675, 2) == 2.68
        assert round_to_int(12.5) == 13

    def test_decimal_input(self):
        assert round_half_up(Decimal("33.335"), 2) == 33.34


class TestComputeDerivedFields:
    """Tests for compute_derived_fields."""

    def test_all_rates_from_counters(self):
        """Every derived field is filled when its denominator is positive."""
        values = {
            "total_orders": 50,
            "completed_orders": 45,
            "cancelled_orders": 5,
            "total_revenue": Decimal("1250.00"),
            "total_customers": 40,
            "returning_customers": 10,
            "view_count": 200,
            "items_sold": 120,
        }

        result = statistics.compute_derived_fields(values)

        assert result["order_cancellation_rate"] == 10.0
        assert result["average_order_value"] == pytest.approx(27.78)
        assert result["customer_retention_rate"] == 25.0
        assert result["conversion_rate"] == 25.0
        assert result["average_items_per_order"] == 2.4

    def test_zero_denominators_keep_supplied_values(self):
        """A zero denominator leaves whatever the caller supplied."""
        values = {"total_orders": 0, "view_count": 0, "conversion_rate": 3.5}

        result = statistics.compute_derived_fields(values)

        assert result["conversion_rate"] == 3.5
        assert "order_cancellation_rate" not in result
        assert "average_items_per_order" not in result

    def test_average_order_value_needs_revenue_and_completed(self):
        result = statistics.compute_derived_fields({"total_orders": 3, "completed_orders": 0, "total_revenue": 90})

        assert "average_order_value" not in result

    def test_input_not_mutated(self):
        values = {"total_orders": 10, "cancelled_orders": 1}

        statistics.compute_derived_fields(values)

        assert "order_cancellation_rate" not in values

    def test_conversion_rate_capped_at_100(self):
        result = statistics.compute_derived_fields({"total_orders": 20, "view_count": 1})

        assert result["conversion_rate"] == 100.0


class TestCheckConsistency:
    """Sub-counts against their totals."""

    def test_consistent(self):
        assert statistics.check_consistency({"total_orders": 10, "completed_orders": 8, "cancelled_orders": 2}) is None

    def test_orders_exceed_total(self):
        field, _ = statistics.check_consistency({"total_orders": 5, "completed_orders": 4, "refunded_orders": 2})

        assert field == "total_orders"

    def test_reviews_exceed_total(self):
        field, _ = statistics.check_consistency({"total_reviews": 1, "positive_reviews": 1, "negative_reviews": 1})

        assert field == "total_reviews"


class TestRowRates:
    """Per-row completion, success, on-time and positive review rates."""

    def test_rates(self):
        row = day(
            "2024-03-01",
            total_orders=20, completed_orders=16, cancelled_orders=3, refunded_orders=1,
            on_time_deliveries=9, late_deliveries=1,
            total_reviews=4, positive_reviews=3,
        )

        assert statistics.completion_rate(row) == 80.0
        assert statistics.success_rate(row) == 80.0
        assert statistics.on_time_delivery_rate(row) == 90.0
        assert statistics.positive_review_rate(row) == 75.0

    def test_empty_row_rates_are_zero(self):
        row = day("2024-03-01")

        assert statistics.completion_rate(row) == 0.0
        assert statistics.success_rate(row) == 0.0
        assert statistics.on_time_delivery_rate(row) == 0.0
        assert statistics.positive_review_rate(row) == 0.0


class TestCalculateAggregates:
    """Tests for calculate_aggregates."""

    def test_empty_input_is_all_zero(self):
        result = statistics.calculate_aggregates([])

        assert set(result) == set(statistics.AGGREGATE_FIELDS)
        assert all(value == 0 for value in result.values())

    def test_rating_weighted_by_review_count(self):
        """A day with many reviews outweighs a day with few."""
        rows = [
            day("2024-03-01", average_rating=5.0, total_reviews=1),
            day("2024-03-02", average_rating=3.0, total_reviews=3),
        ]

        assert statistics.calculate_aggregates(rows)["average_rating"] == 3.5

    def test_average_order_value_from_totals(self):
        """Recomputed from summed revenue and completed orders."""
        rows = [
            day("2024-03-01", total_orders=2, completed_orders=2, total_revenue=100),
            day("2024-03-02", total_orders=8, completed_orders=8, total_revenue=200),
        ]

        result = statistics.calculate_aggregates(rows)

        assert result["average_order_value"] == 30.0
        assert result["total_revenue"] == 300.0
        assert result["total_orders"] == 10

    def test_rates(self):
        rows = [
            day("2024-03-01", total_orders=10, completed_orders=9, cancelled_orders=1, items_sold=25),
            day("2024-03-02", total_orders=10, completed_orders=8, cancelled_orders=2, items_sold=15),
        ]

        result = statistics.calculate_aggregates(rows)

        assert result["completion_rate"] == 85.0
        assert result["cancellation_rate"] == 15.0
        assert result["average_items_per_order"] == 2.0


class TestGrowthRates:
    """Tests for calculate_growth_rates and calculate_percentage_difference."""

    def test_percentage_change(self):
        growth = statistics.calculate_growth_rates({"total_revenue": 150}, {"total_revenue": 100})

        assert growth == {"total_revenue": 50.0}

    def test_from_zero(self):
        """Growth from zero is 100 when positive now, 0 otherwise."""
        growth = statistics.calculate_growth_rates(
            {"total_orders": 5, "cancelled_orders": 0},
            {"total_orders": 0, "cancelled_orders": 0},
        )

        assert growth == {"total_orders": 100.0, "cancelled_orders": 0.0}

    def test_non_numeric_keys_skipped(self):
        growth = statistics.calculate_growth_rates(
            {"period": "2024-03", "flag": True, "total_orders": 2},
            {"period": "2024-02", "flag": False, "total_orders": 4},
        )

        assert growth == {"total_orders": -50.0}

    def test_percentage_difference(self):
        assert statistics.calculate_percentage_difference(30, 25) == 20.0
        assert statistics.calculate_percentage_difference(20, 25) == -20.0
        assert statistics.calculate_percentage_difference(20, 0) == 0.0


class TestGrouping:
    """Week (Sunday-based) and month buckets."""

    def test_week_starts_on_sunday(self):
        # 2024-03-03 is a Sunday
        assert statistics.week_start(date(2024, 3, 3)) == date(2024, 3, 3)
        assert statistics.week_start(date(2024, 3, 9)) == date(2024, 3, 3)
        assert statistics.week_start(date(2024, 3, 10)) == date(2024, 3, 10)

    def test_group_by_week(self):
        rows = [
            day("2024-03-08", total_orders=1),
            day("2024-03-09", total_orders=2),
            day("2024-03-10", total_orders=4),
        ]

        groups = statistics.group_by_week(rows)

        assert [(g["period"], g["total_orders"]) for g in groups] == [
            ("2024-03-03", 3),
            ("2024-03-10", 4),
        ]
        assert all(g["type"] == "week" for g in groups)

    def test_group_by_month(self):
        rows = [
            day("2024-02-28", total_revenue=10),
            day("2024-03-01", total_revenue=20),
            day("2024-03-31", total_revenue=30),
        ]

        groups = statistics.group_by_month(rows)

        assert [(g["period"], g["total_revenue"]) for g in groups] == [
            ("2024-02", 10.0),
            ("2024-03", 50.0),
        ]

    def test_date_range_inclusive(self):
        days = statistics.date_range(date(2024, 2, 28), date(2024, 3, 1))

        assert days == [date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)]

    def test_date_range_empty_when_reversed(self):
        assert statistics.date_range(date(2024, 3, 2), date(2024, 3, 1)) == []


class TestTrendsAndInsights:
    """Tests for calculate_trends, generate_insights and generate_chart_data."""

    def test_trends_need_two_rows(self):
        assert statistics.calculate_trends([day("2024-03-01", total_orders=5)]) == {}

    def test_trends_compare_latest_three_days(self):
        rows = [day(f"2024-03-{d:02d}", total_orders=orders) for d, orders in
                [(6, 20), (5, 20), (4, 20), (3, 10), (2, 10), (1, 10)]]

        trends = statistics.calculate_trends(rows)

        assert trends["total_orders"] == 100.0

    def test_insights(self):
        rows = [day(
            "2024-03-01",
            total_orders=10, completed_orders=8, total_revenue=200,
            average_rating=4.8, total_reviews=5,
        )]

        insights = statistics.generate_insights(rows)

        kinds = {(i["type"], i["impact"]) for i in insights}
        assert ("revenue", "positive") in kinds
        assert ("rating", "positive") in kinds
        assert ("operations", "warning") in kinds

    def test_poor_rating_insight(self):
        rows = [day("2024-03-01", total_orders=10, completed_orders=10, average_rating=2.0, total_reviews=3)]

        insights = statistics.generate_insights(rows)

        assert {"type": "rating", "impact": "negative"}.items() <= insights[0].items()

    def test_chart_series(self):
        rows = [day("2024-03-01", total_revenue=Decimal("12.50"), total_orders=3, average_rating=4)]

        charts = statistics.generate_chart_data(rows)

        assert charts["revenue"] == [{"x": "2024-03-01", "y": 12.5}]
        assert charts["orders"] == [{"x": "2024-03-01", "y": 3}]
        assert charts["ratings"] == [{"x": "2024-03-01", "y": 4.0}]
