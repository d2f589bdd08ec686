"""
Menus (priced bundles of items) and their composition lines.
"""
import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import Column, Integer, String, Text, Boolean, Numeric, DateTime, ForeignKey, JSON, Uuid, UniqueConstraint, CheckConstraint, func
from sqlalchemy.orm import relationship

from restohub.db.base import Base


class Menu(Base):
    """
    A set menu sold at its own price.

    ``price`` is stored and authoritative; it is never derived from the
    prices of the items it contains.
    """
    __tablename__ = "menus"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uuid = Column(Uuid, unique=True, nullable=False, default=uuid.uuid4)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    price = Column(Numeric(10, 2), nullable=False)
    original_price = Column(Numeric(10, 2))
    is_available = Column(Boolean, default=True, nullable=False)
    preparation_time = Column(Integer, default=20)
    images = Column(JSON, default=list)
    tags = Column(JSON, default=list)
    is_popular = Column(Boolean, default=False, nullable=False)
    is_featured = Column(Boolean, default=False, nullable=False)
    valid_from = Column(DateTime, nullable=True)
    valid_until = Column(DateTime, nullable=True)
    sort_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    restaurant = relationship("Restaurant", back_populates="menus")
    menu_items = relationship(
        "MenuItem",
        back_populates="menu",
        cascade="all, delete-orphan",
        order_by="MenuItem.id",
    )

    def is_visible_at(self, moment: Optional[datetime] = None) -> bool:
        """True when customers may see the menu at ``moment`` (default: now)."""
        if not self.is_available:
            return False
        moment = moment or datetime.now()
        if self.valid_from is not None and self.valid_from > moment:
            return False
        if self.valid_until is not None and self.valid_until < moment:
            return False
        return True


class MenuItem(Base):
    """One line of a menu: which item, how many, and at what surcharge."""
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    menu_id = Column(Integer, ForeignKey("menus.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True)
    quantity = Column(Integer, default=1, nullable=False)
    is_optional = Column(Boolean, default=False, nullable=False)
    extra_price = Column(Numeric(10, 2), default=0, nullable=False)

    menu = relationship("Menu", back_populates="menu_items")
    item = relationship("Item", back_populates="menu_links")

    __table_args__ = (
        UniqueConstraint("menu_id", "item_id", name="uq_menu_items_menu_item"),
        CheckConstraint("quantity >= 1", name="ck_menu_items_quantity"),
        CheckConstraint("extra_price >= 0", name="ck_menu_items_extra_price"),
    )
