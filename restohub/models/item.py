"""
Sellable dishes.
"""
import uuid
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Boolean, Numeric, DateTime, ForeignKey, JSON, Uuid, UniqueConstraint, func
from sqlalchemy.orm import relationship

from restohub.core.rounding import round_to_int
from restohub.db.base import Base


class Item(Base):
    """A dish or product sold by one restaurant."""
    __tablename__ = "items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uuid = Column(Uuid, unique=True, nullable=False, default=uuid.uuid4)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    price = Column(Numeric(10, 2), nullable=False)
    original_price = Column(Numeric(10, 2))
    is_available = Column(Boolean, default=True, nullable=False)
    preparation_time = Column(Integer, default=15)
    calories = Column(Integer)
    allergens = Column(JSON, default=list)
    nutritional_info = Column(JSON, default=dict)  # {calories, protein, carbs, fat}
    ingredients = Column(JSON, default=list)
    tags = Column(JSON, default=list)
    is_vegetarian = Column(Boolean, default=False, nullable=False)
    is_vegan = Column(Boolean, default=False, nullable=False)
    is_gluten_free = Column(Boolean, default=False, nullable=False)
    is_spicy = Column(Boolean, default=False, nullable=False)
    spicy_level = Column(Integer, default=0)
    rating = Column(Numeric(3, 2), default=0)
    review_count = Column(Integer, default=0)
    order_count = Column(Integer, default=0)
    is_popular = Column(Boolean, default=False, nullable=False)
    is_featured = Column(Boolean, default=False, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    restaurant = relationship("Restaurant", back_populates="items")
    category = relationship("Category", back_populates="items")
    menu_links = relationship("MenuItem", back_populates="item", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("restaurant_id", "name", name="uq_items_restaurant_name"),
    )

    @property
    def has_discount(self) -> bool:
        return self.original_price is not None and Decimal(self.original_price) > Decimal(self.price)

    @property
    def discount_percentage(self) -> int:
        """Whole-number percentage off the original price, 0 when not discounted."""
        if not self.has_discount:
            return 0
        original = Decimal(self.original_price)
        return round_to_int((original - Decimal(self.price)) / original * 100)
