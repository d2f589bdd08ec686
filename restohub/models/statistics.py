"""
Per-day restaurant statistics.

One row per (restaurant, date). Rate and average columns are derived from
the raw counters by ``restohub.services.statistics.compute_derived_fields``
before every write.
"""
import uuid
from sqlalchemy import Column, Integer, String, Text, Numeric, Date, DateTime, ForeignKey, Uuid, UniqueConstraint, Index, func
from sqlalchemy.orm import relationship

from restohub.db.base import Base


DATA_SOURCES = ("manual", "automated", "imported")


class DailyStatistic(Base):
    __tablename__ = "restaurant_stats"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uuid = Column(Uuid, unique=True, nullable=False, default=uuid.uuid4)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)

    # Orders
    total_orders = Column(Integer, default=0, nullable=False)
    completed_orders = Column(Integer, default=0, nullable=False)
    cancelled_orders = Column(Integer, default=0, nullable=False)
    refunded_orders = Column(Integer, default=0, nullable=False)

    # Revenue
    total_revenue = Column(Numeric(12, 2), default=0, nullable=False)
    net_revenue = Column(Numeric(12, 2), default=0, nullable=False)
    average_order_value = Column(Numeric(10, 2), default=0, nullable=False)
    delivery_fee_revenue = Column(Numeric(10, 2), default=0, nullable=False)
    tax_amount = Column(Numeric(10, 2), default=0, nullable=False)

    # Performance
    average_preparation_time = Column(Integer, default=0, nullable=False)
    average_delivery_time = Column(Integer, default=0, nullable=False)
    on_time_deliveries = Column(Integer, default=0, nullable=False)
    late_deliveries = Column(Integer, default=0, nullable=False)

    # Items
    items_sold = Column(Integer, default=0, nullable=False)
    unique_items_sold = Column(Integer, default=0, nullable=False)
    top_selling_item_id = Column(Integer, ForeignKey("items.id", ondelete="SET NULL"), nullable=True)
    menus_sold = Column(Integer, default=0, nullable=False)

    # Customers
    total_customers = Column(Integer, default=0, nullable=False)
    new_customers = Column(Integer, default=0, nullable=False)
    returning_customers = Column(Integer, default=0, nullable=False)
    customer_retention_rate = Column(Numeric(5, 2), default=0, nullable=False)

    # Ratings and reviews
    average_rating = Column(Numeric(3, 2), default=0, nullable=False)
    total_reviews = Column(Integer, default=0, nullable=False)
    positive_reviews = Column(Integer, default=0, nullable=False)
    negative_reviews = Column(Integer, default=0, nullable=False)

    # Operations
    hours_open = Column(Numeric(4, 2), default=0, nullable=False)
    peak_hour_orders = Column(Integer, default=0, nullable=False)
    peak_hour = Column(Integer, nullable=True)
    order_cancellation_rate = Column(Numeric(5, 2), default=0, nullable=False)

    # Funnel
    view_count = Column(Integer, default=0, nullable=False)
    conversion_rate = Column(Numeric(5, 2), default=0, nullable=False)
    average_items_per_order = Column(Numeric(8, 2), default=0, nullable=False)

    # Metadata
    last_calculated = Column(DateTime, server_default=func.now())
    data_source = Column(String(20), default="automated", nullable=False)
    notes = Column(Text)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    restaurant = relationship("Restaurant", back_populates="daily_statistics")
    top_selling_item = relationship("Item")

    __table_args__ = (
        UniqueConstraint("restaurant_id", "date", name="uq_restaurant_stats_restaurant_date"),
        Index("idx_restaurant_stats_date", "date"),
    )
