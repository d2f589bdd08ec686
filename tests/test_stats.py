"""
Tests for the daily statistics endpoints.
"""
from datetime import date, timedelta
from decimal import Decimal

import pytest

from restohub.core.exceptions import ConfigurationError
from restohub.models import DailyStatistic
from restohub.schemas.statistics import DailyStatisticUpdate
from restohub.services import statistics_service
from restohub.services.statistics_service import StatisticsService


@pytest.fixture
def make_stat(db):
    """Factory: persist one daily row as-is, without recomputing rates."""
    def _make(restaurant, day, **fields) -> DailyStatistic:
        if isinstance(day, str):
            day = date.fromisoformat(day)
        row = DailyStatistic(restaurant_id=restaurant.id, date=day, **fields)
        db.add(row)
        db.commit()
        return row
    return _make


class TestUpsertDaily:
    """Tests for PUT /api/stats/daily/{date}."""

    counters = {
        "total_orders": 50,
        "completed_orders": 45,
        "cancelled_orders": 5,
        "total_revenue": "1250.00",
        "total_customers": 40,
        "returning_customers": 10,
        "view_count": 200,
        "items_sold": 120,
    }

    def test_create_then_update(self, client, db, owner_headers, restaurant):
        """First write creates the row (201), the second replaces it (200)."""
        created = client.put("/api/stats/daily/2024-03-01", json=self.counters, headers=owner_headers)

        assert created.status_code == 201
        body = created.json()
        assert body["created"] is True
        assert body["message"] == "Daily statistics created"
        stat = body["statistic"]
        assert stat["date"] == "2024-03-01"
        assert Decimal(stat["average_order_value"]) == Decimal("27.78")
        assert Decimal(stat["order_cancellation_rate"]) == Decimal("10")
        assert Decimal(stat["customer_retention_rate"]) == Decimal("25")
        assert Decimal(stat["conversion_rate"]) == Decimal("25")
        assert Decimal(stat["average_items_per_order"]) == Decimal("2.4")

        updated = client.put(
            "/api/stats/daily/2024-03-01",
            json=dict(self.counters, total_orders=60),
            headers=owner_headers,
        )

        assert updated.status_code == 200
        assert updated.json()["created"] is False
        assert updated.json()["statistic"]["total_orders"] == 60
        assert updated.json()["statistic"]["uuid"] == stat["uuid"]
        assert db.query(DailyStatistic).count() == 1

    def test_one_row_per_restaurant_and_day(self, client, db, owner_headers, other_owner_headers, restaurant, other_restaurant):
        client.put("/api/stats/daily/2024-03-01", json=self.counters, headers=owner_headers)
        client.put("/api/stats/daily/2024-03-02", json=self.counters, headers=owner_headers)
        response = client.put("/api/stats/daily/2024-03-01", json=self.counters, headers=other_owner_headers)

        assert response.status_code == 201
        assert db.query(DailyStatistic).count() == 3

    def test_top_selling_item(self, client, owner_headers, restaurant, make_item):
        item = make_item(restaurant, "Pizza")

        response = client.put(
            "/api/stats/daily/2024-03-01",
            json=dict(self.counters, top_selling_item_id=str(item.uuid)),
            headers=owner_headers,
        )

        assert response.status_code == 201

    def test_foreign_top_selling_item_is_400(self, client, owner_headers, restaurant, other_restaurant, make_item):
        foreign = make_item(other_restaurant, "Their Pizza")

        response = client.put(
            "/api/stats/daily/2024-03-01",
            json=dict(self.counters, top_selling_item_id=str(foreign.uuid)),
            headers=owner_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_reference"

    def test_inconsistent_counts_are_422(self, client, owner_headers, restaurant):
        response = client.put(
            "/api/stats/daily/2024-03-01",
            json={"total_orders": 5, "completed_orders": 4, "cancelled_orders": 2},
            headers=owner_headers,
        )

        assert response.status_code == 422

    def test_partial_update_keeps_stored_counters(self, client, db, owner_headers, restaurant, make_item):
        item = make_item(restaurant, "Pizza")
        client.put(
            "/api/stats/daily/2024-03-01",
            json=dict(self.counters, top_selling_item_id=str(item.uuid)),
            headers=owner_headers,
        )

        response = client.put("/api/stats/daily/2024-03-01", json={"notes": "correction"}, headers=owner_headers)

        assert response.status_code == 200
        stat = response.json()["statistic"]
        assert stat["notes"] == "correction"
        assert stat["total_orders"] == 50
        assert stat["view_count"] == 200
        assert Decimal(stat["order_cancellation_rate"]) == Decimal("10")
        assert Decimal(stat["conversion_rate"]) == Decimal("25")
        row = db.query(DailyStatistic).one()
        db.refresh(row)
        assert row.top_selling_item_id == item.id

    def test_rates_follow_merged_counters(self, client, owner_headers, restaurant):
        client.put("/api/stats/daily/2024-03-01", json=self.counters, headers=owner_headers)

        response = client.put(
            "/api/stats/daily/2024-03-01",
            json={"view_count": 0, "cancelled_orders": 0},
            headers=owner_headers,
        )

        stat = response.json()["statistic"]
        assert Decimal(stat["conversion_rate"]) == 0
        assert Decimal(stat["order_cancellation_rate"]) == 0
        assert Decimal(stat["average_items_per_order"]) == Decimal("2.4")

    def test_partial_update_checked_against_stored_totals(self, client, owner_headers, restaurant):
        client.put("/api/stats/daily/2024-03-01", json=self.counters, headers=owner_headers)

        response = client.put("/api/stats/daily/2024-03-01", json={"completed_orders": 60}, headers=owner_headers)

        assert response.status_code == 422
        assert "total_orders" in response.json()["details"]

    def test_conversion_rate_is_capped(self, client, owner_headers, restaurant):
        response = client.put(
            "/api/stats/daily/2024-03-01",
            json={"total_orders": 20, "view_count": 1, "items_sold": 3000},
            headers=owner_headers,
        )

        assert response.status_code == 201
        stat = response.json()["statistic"]
        assert Decimal(stat["conversion_rate"]) == Decimal("100")
        assert Decimal(stat["average_items_per_order"]) == Decimal("150")

    def test_unsupported_database(self, db, restaurant, monkeypatch):
        monkeypatch.setattr(statistics_service, "UPSERT_INSERTS", {})

        with pytest.raises(ConfigurationError):
            StatisticsService(db).upsert_daily(restaurant.owner_id, date(2024, 3, 1), DailyStatisticUpdate())

    def test_without_restaurant_is_404(self, client, owner_headers):
        response = client.put("/api/stats/daily/2024-03-01", json=self.counters, headers=owner_headers)

        assert response.status_code == 404


class TestRangeStatistics:
    """Tests for GET /api/stats."""

    def test_daily_with_comparison(self, client, owner_headers, restaurant, make_stat):
        for day in ("2024-03-01", "2024-03-02", "2024-03-03"):
            make_stat(restaurant, day, total_orders=10, completed_orders=10, total_revenue=Decimal("200.00"))
        for day in ("2024-02-27", "2024-02-28", "2024-02-29"):
            make_stat(restaurant, day, total_orders=5, completed_orders=5, total_revenue=Decimal("100.00"))

        response = client.get(
            "/api/stats",
            params={"start_date": "2024-03-01", "end_date": "2024-03-03", "compare": True},
            headers=owner_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["period"] == {"start_date": "2024-03-01", "end_date": "2024-03-03", "days": 3}
        assert data["aggregates"]["total_orders"] == 30
        assert data["aggregates"]["average_order_value"] == 20.0
        assert [row["date"] for row in data["daily"]] == ["2024-03-01", "2024-03-02", "2024-03-03"]
        comparison = data["comparison"]
        assert comparison["period"]["start_date"] == "2024-02-27"
        assert comparison["period"]["end_date"] == "2024-02-29"
        assert comparison["growth"]["total_orders"] == 100.0
        assert comparison["growth"]["total_revenue"] == 100.0

    def test_only_own_rows(self, client, owner_headers, restaurant, other_restaurant, make_stat):
        make_stat(restaurant, "2024-03-01", total_orders=3)
        make_stat(other_restaurant, "2024-03-01", total_orders=100)

        data = client.get(
            "/api/stats",
            params={"start_date": "2024-03-01", "end_date": "2024-03-01"},
            headers=owner_headers,
        ).json()

        assert data["aggregates"]["total_orders"] == 3
        assert data["comparison"] is None

    def test_group_by_week(self, client, owner_headers, restaurant, make_stat):
        make_stat(restaurant, "2024-03-08", total_orders=1)
        make_stat(restaurant, "2024-03-09", total_orders=2)
        make_stat(restaurant, "2024-03-10", total_orders=4)

        data = client.get(
            "/api/stats",
            params={"start_date": "2024-03-01", "end_date": "2024-03-31", "group_by": "week"},
            headers=owner_headers,
        ).json()

        assert data["daily"] == []
        assert [(g["period"], g["total_orders"]) for g in data["grouped"]] == [
            ("2024-03-03", 3),
            ("2024-03-10", 4),
        ]

    def test_invalid_group_by(self, client, owner_headers, restaurant):
        response = client.get("/api/stats", params={"group_by": "year"}, headers=owner_headers)

        assert response.status_code == 422

    def test_start_after_end_is_422(self, client, owner_headers, restaurant):
        response = client.get(
            "/api/stats",
            params={"start_date": "2024-03-10", "end_date": "2024-03-01"},
            headers=owner_headers,
        )

        assert response.status_code == 422
        assert "start_date" in response.json()["details"]


class TestSummary:
    """Tests for GET /api/stats/summary."""

    def test_summary(self, client, owner_headers, restaurant, make_stat):
        today = date.today()
        make_stat(restaurant, today, total_orders=4, completed_orders=4, total_revenue=Decimal("100.00"))
        make_stat(restaurant, today - timedelta(days=1), total_orders=6, completed_orders=6, total_revenue=Decimal("300.00"))
        make_stat(restaurant, today - timedelta(days=20), total_orders=99, total_revenue=Decimal("999.00"))

        data = client.get("/api/stats/summary", headers=owner_headers).json()

        assert data["today"]["date"] == today.isoformat()
        assert data["best_day"]["date"] == (today - timedelta(days=1)).isoformat()
        assert data["week"]["total_orders"] == 10
        assert data["week"]["total_revenue"] == 400.0
        assert data["trends"]["total_revenue"] == 100.0

    def test_empty(self, client, owner_headers, restaurant):
        data = client.get("/api/stats/summary", headers=owner_headers).json()

        assert data["today"] is None
        assert data["best_day"] is None
        assert data["trends"] == {}
        assert data["week"]["total_orders"] == 0


class TestReport:
    """Tests for GET /api/stats/report."""

    def test_report_with_charts(self, client, owner_headers, restaurant, make_stat):
        make_stat(
            restaurant, "2024-03-01",
            total_orders=10, completed_orders=8, total_revenue=Decimal("200.00"),
            average_rating=Decimal("4.80"), total_reviews=5,
            on_time_deliveries=4, late_deliveries=1,
        )

        response = client.get(
            "/api/stats/report",
            params={"start_date": "2024-03-01", "end_date": "2024-03-07", "include_charts": True},
            headers=owner_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["restaurant"]["uuid"] == str(restaurant.uuid)
        assert data["period"]["days"] == 7
        row = data["daily"][0]
        assert row["completion_rate"] == 80.0
        assert row["on_time_delivery_rate"] == 80.0
        assert {i["type"] for i in data["insights"]} == {"revenue", "rating", "operations"}
        assert data["charts"]["orders"] == [{"x": "2024-03-01", "y": 10}]

    def test_charts_are_opt_in(self, client, owner_headers, restaurant):
        data = client.get(
            "/api/stats/report",
            params={"start_date": "2024-03-01", "end_date": "2024-03-07"},
            headers=owner_headers,
        ).json()

        assert data["charts"] is None
        assert data["daily"] == []


class TestBenchmarks:
    """Tests for GET /api/stats/benchmarks."""

    def test_against_same_cuisine_and_city(self, client, owner_headers, restaurant, make_restaurant, make_stat):
        today = date.today()
        peer = make_restaurant(owner_id="peer", name="Peer Bistro")
        elsewhere = make_restaurant(owner_id="far", name="Sushi", cuisine_type="Japanese")
        make_stat(restaurant, today, total_orders=10, completed_orders=10, total_revenue=Decimal("300.00"))
        make_stat(peer, today, average_order_value=Decimal("25.00"))
        make_stat(elsewhere, today, average_order_value=Decimal("100.00"))

        data = client.get("/api/stats/benchmarks", headers=owner_headers).json()

        assert data["cuisine_type"] == "French"
        assert data["city"] == "Paris"
        assert data["sample_size"] == 1
        assert data["metrics"]["average_order_value"] == {
            "restaurant": 30.0,
            "industry": 25.0,
            "difference": 20.0,
        }

    def test_no_peers(self, client, owner_headers, restaurant):
        data = client.get("/api/stats/benchmarks", headers=owner_headers).json()

        assert data["sample_size"] == 0
        assert data["metrics"]["average_rating"]["difference"] == 0.0


def test_stats_require_identity(client, restaurant):
    response = client.get("/api/stats")

    assert response.status_code == 401
