"""
Daily statistics persistence and reporting for restaurant owners.

Queries live here; every number is computed by ``restohub.services.statistics``.
"""
import uuid
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from restohub.core.config import get_settings
from restohub.core.exceptions import ConfigurationError, InvalidReferenceError, ValidationError
from restohub.core.rounding import round_half_up
from restohub.db.session import atomic
from restohub.models.item import Item
from restohub.models.restaurant import Restaurant
from restohub.models.statistics import DailyStatistic
from restohub.schemas.statistics import DailyStatisticResponse, DailyStatisticUpdate, ReportRow
from restohub.services import statistics
from restohub.services.restaurant_service import RestaurantService

SUMMARY_DAYS = 7
BENCHMARK_DAYS = 30

# insert() constructs that support ON CONFLICT, by dialect name
UPSERT_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}

# Payload columns written as sent; derived rates and the item reference are handled apart
STORED_FIELDS = tuple(
    field for field in DailyStatisticUpdate.model_fields
    if field != "top_selling_item_id" and field not in statistics.DERIVED_FIELDS
)


def period_info(start: date, end: date) -> Dict:
    return {"start_date": start, "end_date": end, "days": (end - start).days + 1}


def previous_window(start: date, end: date) -> Tuple[date, date]:
    """The equal-length window ending the day before ``start``."""
    length = (end - start).days + 1
    previous_end = start - timedelta(days=1)
    return previous_end - timedelta(days=length - 1), previous_end


class StatisticsService:

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()

    def _restaurant(self, owner_id: str) -> Restaurant:
        return RestaurantService(self.db).get_owned(owner_id)

    def _rows(self, restaurant_id: int, start: date, end: date, newest_first: bool = False) -> List[DailyStatistic]:
        ordering = DailyStatistic.date.desc() if newest_first else DailyStatistic.date.asc()
        return list(self.db.execute(
            select(DailyStatistic).where(
                DailyStatistic.restaurant_id == restaurant_id,
                DailyStatistic.date >= start,
                DailyStatistic.date <= end,
            ).order_by(ordering)
        ).scalars().all())

    def _resolve_range(self, start: Optional[date], end: Optional[date]) -> Tuple[date, date]:
        end = end or date.today()
        start = start or end - timedelta(days=self.settings.STATS_DEFAULT_RANGE_DAYS)
        if start > end:
            raise ValidationError("start_date must be on or before end_date", field="start_date")
        return start, end

    # ============ Writes ============

    def upsert_daily(self, owner_id: str, day: date, payload: DailyStatisticUpdate) -> Tuple[DailyStatistic, bool]:
        """
        Create or update the row for (caller's restaurant, ``day``).

        Fields left out of the payload keep their stored value (or the
        schema default for a new day). Derived rates are then recomputed
        from the merged counters; a rate whose denominator is zero is 0
        unless the caller sent one. The write is a single
        INSERT .. ON CONFLICT (restaurant_id, date) DO UPDATE, so concurrent
        writers for the same day cannot create duplicates.
        Returns the row and whether it was newly created.
        """
        restaurant = self._restaurant(owner_id)
        existing = self._row(restaurant.id, day)

        sent = payload.model_dump(exclude_unset=True, exclude={"top_selling_item_id"})
        for field in statistics.DERIVED_FIELDS:
            if field in sent and sent[field] is None:
                sent.pop(field)

        if existing is not None:
            stored = {field: getattr(existing, field) for field in STORED_FIELDS}
        else:
            stored = {field: DailyStatisticUpdate.model_fields[field].default for field in STORED_FIELDS}

        values = {**stored, **{field: 0 for field in statistics.DERIVED_FIELDS}, **sent}
        problem = statistics.check_consistency(values)
        if problem is not None:
            field, message = problem
            raise ValidationError(message, field=field)

        values = statistics.compute_derived_fields(values)
        if "top_selling_item_id" in payload.model_fields_set:
            values["top_selling_item_id"] = self._resolve_top_item(restaurant, payload.top_selling_item_id)
        values["last_calculated"] = datetime.utcnow()

        insert = self._insert_construct()
        stmt = insert(DailyStatistic).values(
            uuid=uuid.uuid4(),
            restaurant_id=restaurant.id,
            date=day,
            **values,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[DailyStatistic.restaurant_id, DailyStatistic.date],
            set_={**{field: stmt.excluded[field] for field in values}, "updated_at": func.now()},
        )

        with atomic(self.db):
            self.db.execute(stmt)

        row = self.db.execute(
            select(DailyStatistic).where(
                DailyStatistic.restaurant_id == restaurant.id,
                DailyStatistic.date == day,
            ).execution_options(populate_existing=True)
        ).scalar_one()
        return row, existing is None

    def _row(self, restaurant_id: int, day: date) -> Optional[DailyStatistic]:
        return self.db.execute(
            select(DailyStatistic).where(
                DailyStatistic.restaurant_id == restaurant_id,
                DailyStatistic.date == day,
            )
        ).scalar_one_or_none()

    def _insert_construct(self):
        dialect = self.db.get_bind().dialect.name
        try:
            return UPSERT_INSERTS[dialect]
        except KeyError:
            raise ConfigurationError(
                f"Daily statistics need PostgreSQL or SQLite; the configured database is {dialect}"
            )

    def _resolve_top_item(self, restaurant: Restaurant, item_uuid: Optional[UUID]) -> Optional[int]:
        if item_uuid is None:
            return None
        item_id = self.db.execute(
            select(Item.id).where(Item.uuid == item_uuid, Item.restaurant_id == restaurant.id)
        ).scalar_one_or_none()
        if item_id is None:
            raise InvalidReferenceError("Top selling item not found in your restaurant", field="top_selling_item_id")
        return item_id

    # ============ Reads ============

    def range_statistics(
        self,
        owner_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        group_by: str = "day",
        compare: bool = False,
    ) -> Dict:
        """
        Aggregates over a date range, as daily rows or week/month buckets.

        With ``compare`` the same aggregates are computed for the preceding
        window of equal length, with growth rates between the two.
        """
        restaurant = self._restaurant(owner_id)
        start, end = self._resolve_range(start, end)
        rows = self._rows(restaurant.id, start, end)
        aggregates = statistics.calculate_aggregates(rows)

        result = {
            "restaurant": restaurant,
            "period": period_info(start, end),
            "group_by": group_by,
            "aggregates": aggregates,
            "daily": [],
            "grouped": [],
            "comparison": None,
        }
        if group_by == "week":
            result["grouped"] = statistics.group_by_week(rows)
        elif group_by == "month":
            result["grouped"] = statistics.group_by_month(rows)
        else:
            result["daily"] = rows

        if compare:
            previous_start, previous_end = previous_window(start, end)
            previous = statistics.calculate_aggregates(self._rows(restaurant.id, previous_start, previous_end))
            result["comparison"] = {
                "period": period_info(previous_start, previous_end),
                "aggregates": previous,
                "growth": statistics.calculate_growth_rates(aggregates, previous),
            }
        return result

    def summary(self, owner_id: str, today: Optional[date] = None) -> Dict:
        """Dashboard figures for the last week."""
        restaurant = self._restaurant(owner_id)
        today = today or date.today()
        rows = self._rows(restaurant.id, today - timedelta(days=SUMMARY_DAYS), today, newest_first=True)

        best_day = None
        for row in rows:
            if float(row.total_revenue or 0) > float(best_day.total_revenue if best_day else 0):
                best_day = row

        return {
            "today": next((row for row in rows if row.date == today), None),
            "trends": statistics.calculate_trends(rows),
            "best_day": best_day,
            "week": statistics.calculate_aggregates(rows),
        }

    def report(
        self,
        owner_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        include_charts: bool = False,
    ) -> Dict:
        restaurant = self._restaurant(owner_id)
        start, end = self._resolve_range(start, end)
        rows = self._rows(restaurant.id, start, end)

        daily = [
            ReportRow(
                **DailyStatisticResponse.model_validate(row).model_dump(),
                completion_rate=statistics.completion_rate(row),
                success_rate=statistics.success_rate(row),
                on_time_delivery_rate=statistics.on_time_delivery_rate(row),
                positive_review_rate=statistics.positive_review_rate(row),
            )
            for row in rows
        ]
        return {
            "restaurant": restaurant,
            "period": period_info(start, end),
            "summary": statistics.calculate_aggregates(rows),
            "daily": daily,
            "insights": statistics.generate_insights(rows),
            "charts": statistics.generate_chart_data(rows) if include_charts else None,
            "generated_at": datetime.utcnow(),
        }

    def benchmarks(self, owner_id: str, today: Optional[date] = None) -> Dict:
        """
        The caller's last 30 days against other restaurants of the same
        cuisine in the same city. Peers are anonymous; only averages leave.
        """
        restaurant = self._restaurant(owner_id)
        today = today or date.today()
        since = today - timedelta(days=BENCHMARK_DAYS)

        mine_rows = self._rows(restaurant.id, since, today)
        mine = statistics.calculate_aggregates(mine_rows)
        my_retention = (
            round_half_up(sum(float(r.customer_retention_rate or 0) for r in mine_rows) / len(mine_rows), 2)
            if mine_rows else 0
        )

        peers = self.db.execute(
            select(
                func.avg(DailyStatistic.average_order_value),
                func.avg(DailyStatistic.average_rating),
                func.avg(DailyStatistic.order_cancellation_rate),
                func.avg(DailyStatistic.customer_retention_rate),
                func.count(func.distinct(DailyStatistic.restaurant_id)),
            )
            .join(Restaurant, DailyStatistic.restaurant_id == Restaurant.id)
            .where(
                Restaurant.cuisine_type == restaurant.cuisine_type,
                Restaurant.city == restaurant.city,
                Restaurant.id != restaurant.id,
                DailyStatistic.date >= since,
            )
        ).one()
        avg_order_value, avg_rating, avg_cancellation, avg_retention, sample_size = peers

        def metric(my_value, industry_value) -> Dict:
            industry = round_half_up(industry_value or 0, 2)
            return {
                "restaurant": my_value,
                "industry": industry,
                "difference": statistics.calculate_percentage_difference(my_value, industry),
            }

        return {
            "cuisine_type": restaurant.cuisine_type,
            "city": restaurant.city,
            "sample_size": sample_size or 0,
            "metrics": {
                "average_order_value": metric(mine["average_order_value"], avg_order_value),
                "average_rating": metric(mine["average_rating"], avg_rating),
                "cancellation_rate": metric(mine["cancellation_rate"], avg_cancellation),
                "retention_rate": metric(my_retention, avg_retention),
            },
        }
