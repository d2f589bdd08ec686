"""
Category tree and the restaurant <-> category association.
"""
import uuid
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Uuid, UniqueConstraint, func
from sqlalchemy.orm import relationship

from restohub.db.base import Base


class Category(Base):
    """Globally shared dish category (e.g. "Pizza", "Pizza - Vegetarian")."""
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uuid = Column(Uuid, unique=True, nullable=False, default=uuid.uuid4)
    name = Column(String(100), nullable=False, unique=True)
    slug = Column(String(120), nullable=False, unique=True)
    description = Column(Text)
    icon = Column(String(100))
    image = Column(String(255))
    color = Column(String(7))
    is_active = Column(Boolean, default=True, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    parent_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    parent = relationship("Category", remote_side=[id], back_populates="subcategories")
    subcategories = relationship("Category", back_populates="parent")
    items = relationship("Item", back_populates="category")
    restaurant_links = relationship("RestaurantCategory", back_populates="category", cascade="all, delete-orphan")


class RestaurantCategory(Base):
    """
    Rich association between a restaurant and a category.

    Carries its own lifecycle metadata, so it is a mapped entity rather than
    a bare secondary table.
    """
    __tablename__ = "restaurant_categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    added_by = Column(String(64))  # user id of whoever attached it
    added_at = Column(DateTime, server_default=func.now())

    restaurant = relationship("Restaurant", back_populates="category_links")
    category = relationship("Category", back_populates="restaurant_links")

    __table_args__ = (
        UniqueConstraint("restaurant_id", "category_id", name="uq_restaurant_category"),
    )
