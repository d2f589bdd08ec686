"""
Pure statistics math over daily restaurant rows.

Nothing in this module touches the database: every function takes plain
mappings or ORM rows and returns plain dicts, so the rules can be tested in
isolation. ``StatisticsService`` does the querying and calls into here.

Rounding: money and percentages to 2 decimals, halves away from zero.
"""
from collections import OrderedDict
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from restohub.core.rounding import round_half_up

# Insight thresholds
EXCELLENT_RATING = 4.5
POOR_RATING = 3.0
MIN_COMPLETION_RATE = 85

AGGREGATE_FIELDS = (
    "total_orders",
    "completed_orders",
    "cancelled_orders",
    "total_revenue",
    "average_order_value",
    "average_rating",
    "completion_rate",
    "cancellation_rate",
    "items_sold",
    "total_customers",
    "total_reviews",
    "average_items_per_order",
)

# Columns filled by compute_derived_fields
DERIVED_FIELDS = (
    "order_cancellation_rate",
    "average_order_value",
    "customer_retention_rate",
    "conversion_rate",
    "average_items_per_order",
)

# Upper bounds of the derived columns
MAX_PERCENTAGE = 100.0
MAX_ITEMS_PER_ORDER = 999999.99


def _value(row: Any, field: str) -> float:
    """Read a numeric field from an ORM row or a mapping; missing/None -> 0."""
    if isinstance(row, Mapping):
        raw = row.get(field)
    else:
        raw = getattr(row, field, None)
    if raw is None:
        return 0.0
    return float(raw)


def _date_of(row: Any) -> date:
    raw = row.get("date") if isinstance(row, Mapping) else row.date
    if isinstance(raw, str):
        return date.fromisoformat(raw[:10])
    return raw


def _ratio(numerator: float, denominator: float, scale: float = 1) -> float:
    return round_half_up(numerator / denominator * scale, 2)


# ============ Derived fields ============

def compute_derived_fields(values: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Fill in rate and average columns from the raw counters.

    Each derived field is only written when its denominator is positive;
    otherwise whatever the caller supplied (or nothing) is kept. Returns a
    new dict and leaves ``values`` untouched.
    """
    result = dict(values)

    total_orders = _value(values, "total_orders")
    completed_orders = _value(values, "completed_orders")
    total_revenue = _value(values, "total_revenue")
    total_customers = _value(values, "total_customers")
    view_count = _value(values, "view_count")

    if total_orders > 0:
        result["order_cancellation_rate"] = _ratio(_value(values, "cancelled_orders"), total_orders, 100)

    if total_revenue > 0 and completed_orders > 0:
        result["average_order_value"] = _ratio(total_revenue, completed_orders)

    if total_customers > 0:
        result["customer_retention_rate"] = _ratio(_value(values, "returning_customers"), total_customers, 100)

    # Orders can outnumber tracked views
    if view_count > 0:
        result["conversion_rate"] = min(_ratio(total_orders, view_count, 100), MAX_PERCENTAGE)

    if total_orders > 0:
        result["average_items_per_order"] = min(_ratio(_value(values, "items_sold"), total_orders), MAX_ITEMS_PER_ORDER)

    return result


def check_consistency(values: Mapping[str, Any]) -> Optional[Tuple[str, str]]:
    """
    Sub-counts must not exceed their totals.

    Returns ``(field, message)`` for the first violation, or None.
    """
    if (_value(values, "completed_orders") + _value(values, "cancelled_orders")
            + _value(values, "refunded_orders") > _value(values, "total_orders")):
        return "total_orders", "completed, cancelled and refunded orders cannot exceed total_orders"
    if _value(values, "new_customers") + _value(values, "returning_customers") > _value(values, "total_customers"):
        return "total_customers", "new and returning customers cannot exceed total_customers"
    if _value(values, "positive_reviews") + _value(values, "negative_reviews") > _value(values, "total_reviews"):
        return "total_reviews", "positive and negative reviews cannot exceed total_reviews"
    return None


# ============ Per-row rates ============

def completion_rate(row: Any) -> float:
    total = _value(row, "total_orders")
    if total == 0:
        return 0.0
    return _ratio(_value(row, "completed_orders"), total, 100)


def success_rate(row: Any) -> float:
    """Share of orders neither cancelled nor refunded."""
    total = _value(row, "total_orders")
    if total == 0:
        return 0.0
    successful = total - _value(row, "cancelled_orders") - _value(row, "refunded_orders")
    return _ratio(successful, total, 100)


def on_time_delivery_rate(row: Any) -> float:
    on_time = _value(row, "on_time_deliveries")
    deliveries = on_time + _value(row, "late_deliveries")
    if deliveries == 0:
        return 0.0
    return _ratio(on_time, deliveries, 100)


def positive_review_rate(row: Any) -> float:
    total = _value(row, "total_reviews")
    if total == 0:
        return 0.0
    return _ratio(_value(row, "positive_reviews"), total, 100)


# ============ Aggregation ============

def calculate_aggregates(rows: Iterable[Any]) -> Dict[str, float]:
    """
    Roll a set of daily rows up into one summary.

    The average rating is weighted by each day's review count, and the
    average order value is recomputed from the summed revenue and completed
    orders, never averaged from the per-day values.
    """
    totals = {
        "total_orders": 0.0,
        "completed_orders": 0.0,
        "cancelled_orders": 0.0,
        "total_revenue": 0.0,
        "total_reviews": 0.0,
        "rating_sum": 0.0,
        "items_sold": 0.0,
        "total_customers": 0.0,
    }

    for row in rows:
        totals["total_orders"] += _value(row, "total_orders")
        totals["completed_orders"] += _value(row, "completed_orders")
        totals["cancelled_orders"] += _value(row, "cancelled_orders")
        totals["total_revenue"] += _value(row, "total_revenue")
        totals["total_reviews"] += _value(row, "total_reviews")
        totals["rating_sum"] += _value(row, "average_rating") * _value(row, "total_reviews")
        totals["items_sold"] += _value(row, "items_sold")
        totals["total_customers"] += _value(row, "total_customers")

    orders = totals["total_orders"]
    completed = totals["completed_orders"]
    reviews = totals["total_reviews"]

    return {
        "total_orders": int(orders),
        "completed_orders": int(completed),
        "cancelled_orders": int(totals["cancelled_orders"]),
        "total_revenue": round_half_up(totals["total_revenue"], 2),
        "average_order_value": _ratio(totals["total_revenue"], completed) if completed > 0 else 0,
        "average_rating": _ratio(totals["rating_sum"], reviews) if reviews > 0 else 0,
        "completion_rate": _ratio(completed, orders, 100) if orders > 0 else 0,
        "cancellation_rate": _ratio(totals["cancelled_orders"], orders, 100) if orders > 0 else 0,
        "items_sold": int(totals["items_sold"]),
        "total_customers": int(totals["total_customers"]),
        "total_reviews": int(reviews),
        "average_items_per_order": _ratio(totals["items_sold"], orders) if orders > 0 else 0,
    }


def calculate_growth_rates(current: Mapping[str, Any], previous: Mapping[str, Any]) -> Dict[str, float]:
    """
    Percentage change of every numeric metric present in both periods.

    A metric that was 0 in the previous period reports 100 if it is now
    positive and 0 otherwise.
    """
    growth: Dict[str, float] = {}
    for key, now in current.items():
        before = previous.get(key)
        if not _is_number(now) or not _is_number(before):
            continue
        now, before = float(now), float(before)
        if before == 0:
            rate = 100.0 if now > 0 else 0.0
        else:
            rate = (now - before) / before * 100
        growth[key] = round_half_up(rate, 2)
    return growth


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def calculate_percentage_difference(mine: Optional[float], reference: Optional[float]) -> float:
    """How far ``mine`` sits above (+) or below (-) ``reference``, in percent."""
    if not reference:
        return 0.0
    return round_half_up((float(mine or 0) - float(reference)) / float(reference) * 100, 2)


# ============ Period grouping ============

def week_start(day: date) -> date:
    """The Sunday that opens ``day``'s calendar week."""
    days_since_sunday = (day.weekday() + 1) % 7
    return day - timedelta(days=days_since_sunday)


def group_by_week(rows: Sequence[Any]) -> List[Dict[str, Any]]:
    buckets: "OrderedDict[str, List[Any]]" = OrderedDict()
    for row in rows:
        key = week_start(_date_of(row)).isoformat()
        buckets.setdefault(key, []).append(row)
    return [
        {"period": key, "type": "week", **calculate_aggregates(bucket)}
        for key, bucket in buckets.items()
    ]


def group_by_month(rows: Sequence[Any]) -> List[Dict[str, Any]]:
    buckets: "OrderedDict[str, List[Any]]" = OrderedDict()
    for row in rows:
        key = _date_of(row).isoformat()[:7]  # YYYY-MM
        buckets.setdefault(key, []).append(row)
    return [
        {"period": key, "type": "month", **calculate_aggregates(bucket)}
        for key, bucket in buckets.items()
    ]


def date_range(start: date, end: date) -> List[date]:
    """Every calendar day from ``start`` to ``end`` inclusive."""
    days = []
    current = start
    while current <= end:
        days.append(current)
        current += timedelta(days=1)
    return days


# ============ Trends & insights ============

def calculate_trends(rows_newest_first: Sequence[Any]) -> Dict[str, float]:
    """Growth of the latest 3 days against the 3 days before them."""
    if len(rows_newest_first) < 2:
        return {}
    recent = calculate_aggregates(rows_newest_first[:3])
    older = calculate_aggregates(rows_newest_first[3:6])
    return calculate_growth_rates(recent, older)


def generate_insights(rows: Sequence[Any]) -> List[Dict[str, str]]:
    """Advisory, human-readable observations about a period."""
    insights = []
    aggregates = calculate_aggregates(rows)

    if aggregates["total_revenue"] > 0:
        insights.append({
            "type": "revenue",
            "message": (
                f"Total revenue of €{aggregates['total_revenue']} with an average "
                f"order value of €{aggregates['average_order_value']}"
            ),
            "impact": "positive",
        })

    if aggregates["average_rating"] >= EXCELLENT_RATING:
        insights.append({
            "type": "rating",
            "message": f"Excellent customer satisfaction with {aggregates['average_rating']}/5 average rating",
            "impact": "positive",
        })
    elif aggregates["average_rating"] < POOR_RATING:
        insights.append({
            "type": "rating",
            "message": f"Customer satisfaction needs attention with {aggregates['average_rating']}/5 average rating",
            "impact": "negative",
        })

    if aggregates["completion_rate"] < MIN_COMPLETION_RATE:
        insights.append({
            "type": "operations",
            "message": f"Order completion rate of {aggregates['completion_rate']}% could be improved",
            "impact": "warning",
        })

    return insights


def generate_chart_data(rows: Sequence[Any]) -> Dict[str, List[Dict[str, Any]]]:
    return {
        "revenue": [{"x": _date_of(r).isoformat(), "y": _value(r, "total_revenue")} for r in rows],
        "orders": [{"x": _date_of(r).isoformat(), "y": int(_value(r, "total_orders"))} for r in rows],
        "ratings": [{"x": _date_of(r).isoformat(), "y": _value(r, "average_rating")} for r in rows],
    }
