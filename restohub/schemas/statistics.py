"""
Statistics Pydantic schemas for API request/response models.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from restohub.schemas.common import RestaurantRef

DataSource = Literal["manual", "automated", "imported"]
GroupBy = Literal["day", "week", "month"]


class DailyStatisticUpdate(BaseModel):
    """
    Raw counters for one restaurant day.

    Only the fields sent are written; the rest keep their stored value, or
    the defaults below for a new day. Rates and averages are recomputed
    from the merged counters, and a value sent for one is only kept when
    its denominator is zero.
    """
    # Orders
    total_orders: int = Field(0, ge=0)
    completed_orders: int = Field(0, ge=0)
    cancelled_orders: int = Field(0, ge=0)
    refunded_orders: int = Field(0, ge=0)

    # Revenue
    total_revenue: Decimal = Field(Decimal("0"), ge=0)
    net_revenue: Decimal = Field(Decimal("0"), ge=0)
    average_order_value: Optional[Decimal] = Field(None, ge=0, le=Decimal("99999999.99"))
    delivery_fee_revenue: Decimal = Field(Decimal("0"), ge=0)
    tax_amount: Decimal = Field(Decimal("0"), ge=0)

    # Performance
    average_preparation_time: int = Field(0, ge=0)
    average_delivery_time: int = Field(0, ge=0)
    on_time_deliveries: int = Field(0, ge=0)
    late_deliveries: int = Field(0, ge=0)

    # Items
    items_sold: int = Field(0, ge=0)
    unique_items_sold: int = Field(0, ge=0)
    top_selling_item_id: Optional[UUID] = None
    menus_sold: int = Field(0, ge=0)

    # Customers
    total_customers: int = Field(0, ge=0)
    new_customers: int = Field(0, ge=0)
    returning_customers: int = Field(0, ge=0)
    customer_retention_rate: Optional[Decimal] = Field(None, ge=0, le=100)

    # Reviews
    average_rating: Decimal = Field(Decimal("0"), ge=0, le=5)
    total_reviews: int = Field(0, ge=0)
    positive_reviews: int = Field(0, ge=0)
    negative_reviews: int = Field(0, ge=0)

    # Operations
    hours_open: Decimal = Field(Decimal("0"), ge=0, le=24)
    peak_hour_orders: int = Field(0, ge=0)
    peak_hour: Optional[int] = Field(None, ge=0, le=23)
    order_cancellation_rate: Optional[Decimal] = Field(None, ge=0, le=100)

    # Funnel
    view_count: int = Field(0, ge=0)
    conversion_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    average_items_per_order: Optional[Decimal] = Field(None, ge=0, le=Decimal("999999.99"))

    data_source: DataSource = "manual"
    notes: Optional[str] = Field(None, max_length=1000)


class DailyStatisticResponse(BaseModel):
    uuid: UUID
    date: date
    total_orders: int
    completed_orders: int
    cancelled_orders: int
    refunded_orders: int
    total_revenue: Decimal
    net_revenue: Decimal
    average_order_value: Decimal
    delivery_fee_revenue: Decimal
    tax_amount: Decimal
    average_preparation_time: int
    average_delivery_time: int
    on_time_deliveries: int
    late_deliveries: int
    items_sold: int
    unique_items_sold: int
    menus_sold: int
    total_customers: int
    new_customers: int
    returning_customers: int
    customer_retention_rate: Decimal
    average_rating: Decimal
    total_reviews: int
    positive_reviews: int
    negative_reviews: int
    hours_open: Decimal
    peak_hour_orders: int
    peak_hour: Optional[int] = None
    order_cancellation_rate: Decimal
    view_count: int
    conversion_rate: Decimal
    average_items_per_order: Decimal
    last_calculated: Optional[datetime] = None
    data_source: str
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class DailyStatisticUpsertResponse(BaseModel):
    message: str
    created: bool
    statistic: DailyStatisticResponse


class ReportRow(DailyStatisticResponse):
    """Daily row enriched with its per-day rates."""
    completion_rate: float
    success_rate: float
    on_time_delivery_rate: float
    positive_review_rate: float


class Aggregates(BaseModel):
    total_orders: int = 0
    completed_orders: int = 0
    cancelled_orders: int = 0
    total_revenue: float = 0
    average_order_value: float = 0
    average_rating: float = 0
    completion_rate: float = 0
    cancellation_rate: float = 0
    items_sold: int = 0
    total_customers: int = 0
    total_reviews: int = 0
    average_items_per_order: float = 0


class PeriodAggregate(Aggregates):
    period: str
    type: Literal["week", "month"]


class Period(BaseModel):
    start_date: date
    end_date: date
    days: int


class Comparison(BaseModel):
    period: Period
    aggregates: Aggregates
    growth: Dict[str, float]


class RangeStatisticsResponse(BaseModel):
    restaurant: RestaurantRef
    period: Period
    group_by: GroupBy
    aggregates: Aggregates
    daily: List[DailyStatisticResponse] = Field(default_factory=list)
    grouped: List[PeriodAggregate] = Field(default_factory=list)
    comparison: Optional[Comparison] = None


class SummaryResponse(BaseModel):
    today: Optional[DailyStatisticResponse] = None
    trends: Dict[str, float]
    best_day: Optional[DailyStatisticResponse] = None
    week: Aggregates


class Insight(BaseModel):
    type: str
    message: str
    impact: Literal["positive", "negative", "warning"]


class ReportResponse(BaseModel):
    restaurant: RestaurantRef
    period: Period
    summary: Aggregates
    daily: List[ReportRow]
    insights: List[Insight]
    charts: Optional[Dict[str, List[Dict[str, Any]]]] = None
    generated_at: datetime


class BenchmarkMetric(BaseModel):
    restaurant: float
    industry: float
    difference: float


class BenchmarksResponse(BaseModel):
    cuisine_type: Optional[str] = None
    city: str
    sample_size: int
    metrics: Dict[str, BenchmarkMetric]
