"""
Restaurant aggregate root.
"""
import uuid
from sqlalchemy import Column, Integer, String, Text, Boolean, Numeric, DateTime, JSON, Uuid, Index, func
from sqlalchemy.orm import relationship

from restohub.db.base import Base


class Restaurant(Base):
    """
    A restaurant owned by exactly one user.

    ``opening_hours`` maps weekday keys "0" (Sunday) .. "6" (Saturday) to
    ``{"open": HHMM, "close": HHMM, "is_closed": bool}``.
    """
    __tablename__ = "restaurants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uuid = Column(Uuid, unique=True, nullable=False, default=uuid.uuid4)
    owner_id = Column(String(64), nullable=False, unique=True)  # id from the user service
    name = Column(String(255), nullable=False)
    description = Column(Text)
    cuisine_type = Column(String(100))
    phone = Column(String(20))
    email = Column(String(255))
    address = Column(Text, nullable=False)
    city = Column(String(100), nullable=False)
    postal_code = Column(String(20), nullable=False)
    country = Column(String(100), default="France")
    latitude = Column(Numeric(10, 8))
    longitude = Column(Numeric(11, 8))
    is_active = Column(Boolean, default=True, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    is_open = Column(Boolean, default=False, nullable=False)
    rating = Column(Numeric(3, 2), default=0)
    review_count = Column(Integer, default=0)
    delivery_fee = Column(Numeric(10, 2), default=0)
    minimum_order = Column(Numeric(10, 2), default=0)
    average_delivery_time = Column(Integer, default=30)
    opening_hours = Column(JSON, default=dict)
    tags = Column(JSON, default=list)
    business_license = Column(String(100))
    settings = Column(JSON, default=dict)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    items = relationship("Item", back_populates="restaurant", cascade="all, delete-orphan")
    menus = relationship("Menu", back_populates="restaurant", cascade="all, delete-orphan")
    reviews = relationship("Review", back_populates="restaurant", cascade="all, delete-orphan")
    daily_statistics = relationship("DailyStatistic", back_populates="restaurant", cascade="all, delete-orphan")
    category_links = relationship("RestaurantCategory", back_populates="restaurant", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_restaurants_city", "city"),
        Index("idx_restaurants_cuisine_type", "cuisine_type"),
        Index("idx_restaurants_coordinates", "latitude", "longitude"),
    )
