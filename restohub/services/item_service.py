"""
Item management scoped to the caller's restaurant, plus public item discovery.

Every owner-side lookup filters by the caller's restaurant, so an item owned
by someone else is indistinguishable from a missing one.
"""
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from restohub.core.exceptions import (
    DuplicateEntityError,
    InvalidReferenceError,
    NotFoundError,
    ValidationError,
)
from restohub.db.session import atomic
from restohub.models.category import Category
from restohub.models.item import Item
from restohub.models.restaurant import Restaurant
from restohub.schemas.item import ItemCreate, ItemUpdate
from restohub.services.restaurant_service import RestaurantService

# Columns that reject an explicit null on update
NOT_NULL_FIELDS = {
    "is_available", "is_vegetarian", "is_vegan", "is_gluten_free", "is_spicy",
    "is_popular", "is_featured", "sort_order", "price", "allergens", "ingredients", "tags",
}


def check_pricing(price: Optional[Decimal], original_price: Optional[Decimal]) -> None:
    """A price must be positive; an original price, when set, must exceed it."""
    if price is None or price <= 0:
        raise ValidationError("Price must be greater than 0", field="price")
    if original_price is not None and original_price <= price:
        raise ValidationError("Original price must be greater than the current price", field="original_price")


class ItemService:

    def __init__(self, db: Session):
        self.db = db

    def _restaurant(self, owner_id: str) -> Restaurant:
        return RestaurantService(self.db).get_owned(owner_id)

    def get_owned(self, owner_id: str, item_uuid: UUID) -> Item:
        restaurant = self._restaurant(owner_id)
        item = self.db.execute(
            select(Item).where(Item.uuid == item_uuid, Item.restaurant_id == restaurant.id)
        ).scalar_one_or_none()
        if item is None:
            raise NotFoundError("Item", "Item not found or does not belong to your restaurant")
        return item

    def _resolve_category(self, category_uuid: Optional[UUID]) -> Optional[Category]:
        if category_uuid is None:
            return None
        category = self.db.execute(
            select(Category).where(Category.uuid == category_uuid)
        ).scalar_one_or_none()
        if category is None:
            raise InvalidReferenceError("Category does not exist", field="category_id")
        return category

    def _ensure_unique_name(self, restaurant_id: int, name: str, exclude_id: Optional[int] = None) -> None:
        query = select(Item.id).where(Item.restaurant_id == restaurant_id, Item.name == name)
        if exclude_id is not None:
            query = query.where(Item.id != exclude_id)
        if self.db.execute(query).first():
            raise DuplicateEntityError("An item with this name already exists in your restaurant", field="name")

    # ============ Writes ============

    def create(self, owner_id: str, payload: ItemCreate) -> Item:
        check_pricing(payload.price, payload.original_price)

        restaurant = self._restaurant(owner_id)
        self._ensure_unique_name(restaurant.id, payload.name)
        category = self._resolve_category(payload.category_id)

        data = payload.model_dump(exclude_none=True, exclude={"category_id"})
        item = Item(restaurant_id=restaurant.id, category=category, **data)

        try:
            with atomic(self.db):
                self.db.add(item)
        except IntegrityError:
            raise DuplicateEntityError("An item with this name already exists in your restaurant", field="name")

        self.db.refresh(item)
        return item

    def update(self, owner_id: str, item_uuid: UUID, payload: ItemUpdate) -> Item:
        """
        Partial update. A price change alone is checked against the stored
        original price and vice versa.
        """
        item = self.get_owned(owner_id, item_uuid)
        changes = payload.model_dump(exclude_unset=True)

        for field in NOT_NULL_FIELDS:
            if field in changes and changes[field] is None:
                raise ValidationError(f"{field} cannot be null", field=field)

        if "price" in changes or "original_price" in changes:
            price = changes.get("price", item.price)
            original_price = changes.get("original_price", item.original_price)
            check_pricing(Decimal(price), Decimal(original_price) if original_price is not None else None)

        if "name" in changes and changes["name"] != item.name:
            self._ensure_unique_name(item.restaurant_id, changes["name"], exclude_id=item.id)

        if "category_id" in changes:
            changes["category"] = self._resolve_category(changes.pop("category_id"))

        try:
            with atomic(self.db):
                for field, value in changes.items():
                    setattr(item, field, value)
        except IntegrityError:
            raise DuplicateEntityError("An item with this name already exists in your restaurant", field="name")

        self.db.refresh(item)
        return item

    def delete(self, owner_id: str, item_uuid: UUID) -> Item:
        """Delete an item; menu lines referencing it go with it."""
        item = self.get_owned(owner_id, item_uuid)
        with atomic(self.db):
            self.db.delete(item)
        return item

    def toggle_availability(self, owner_id: str, item_uuid: UUID) -> Item:
        item = self.get_owned(owner_id, item_uuid)
        with atomic(self.db):
            item.is_available = not item.is_available
        self.db.refresh(item)
        return item

    # ============ Reads ============

    def list_owned(
        self,
        owner_id: str,
        category_id: Optional[UUID] = None,
        is_available: Optional[bool] = None,
        search: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        allergens: Optional[Sequence[str]] = None,
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[List[Item], int]:
        """
        The caller's items, ordered by (sort_order, popular first, newest first).

        ``allergens`` keeps items containing any of the listed allergens.
        """
        restaurant = self._restaurant(owner_id)
        query = select(Item).where(Item.restaurant_id == restaurant.id)

        if category_id is not None:
            query = query.join(Category, Item.category_id == Category.id).where(Category.uuid == category_id)
        if is_available is not None:
            query = query.where(Item.is_available == is_available)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.where(or_(Item.name.ilike(pattern), Item.description.ilike(pattern)))
        if min_price is not None:
            query = query.where(Item.price >= min_price)
        if max_price is not None:
            query = query.where(Item.price <= max_price)
        if allergens:
            # JSON list stored as text on every supported backend
            allergens_text = cast(Item.allergens, String)
            query = query.where(or_(*[allergens_text.like(f'%"{a}"%') for a in allergens]))

        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar_one()
        rows = self.db.execute(
            query.order_by(Item.sort_order.asc(), Item.is_popular.desc(), Item.created_at.desc(), Item.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars().all()
        return list(rows), total

    def popular(self, restaurant_uuid: Optional[UUID] = None, limit: int = 10) -> List[Item]:
        """Available items flagged popular, most ordered first."""
        query = (
            select(Item)
            .join(Restaurant, Item.restaurant_id == Restaurant.id)
            .where(Item.is_available == True, Item.is_popular == True, Restaurant.is_active == True)
        )
        if restaurant_uuid is not None:
            query = query.where(Restaurant.uuid == restaurant_uuid)
        query = query.order_by(Item.order_count.desc(), Item.rating.desc()).limit(limit)
        return list(self.db.execute(query).scalars().all())

    def search(
        self,
        q: str,
        city: Optional[str] = None,
        category_id: Optional[UUID] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        is_vegetarian: Optional[bool] = None,
        is_vegan: Optional[bool] = None,
        is_gluten_free: Optional[bool] = None,
        max_spicy_level: Optional[int] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Item], int]:
        """Customer-facing item search across active, open restaurants."""
        term = (q or "").strip()
        if len(term) < 2:
            raise ValidationError("Search query must be at least 2 characters long", field="q")

        pattern = f"%{term}%"
        query = (
            select(Item)
            .join(Restaurant, Item.restaurant_id == Restaurant.id)
            .where(
                Item.is_available == True,
                or_(Item.name.ilike(pattern), Item.description.ilike(pattern)),
                Restaurant.is_active == True,
                Restaurant.is_open == True,
            )
        )
        if city:
            query = query.where(Restaurant.city == city)
        if category_id is not None:
            query = query.join(Category, Item.category_id == Category.id).where(Category.uuid == category_id)
        if min_price is not None:
            query = query.where(Item.price >= min_price)
        if max_price is not None:
            query = query.where(Item.price <= max_price)
        if is_vegetarian:
            query = query.where(Item.is_vegetarian == True)
        if is_vegan:
            query = query.where(Item.is_vegan == True)
        if is_gluten_free:
            query = query.where(Item.is_gluten_free == True)
        if max_spicy_level is not None:
            query = query.where(Item.spicy_level <= max_spicy_level)

        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar_one()
        rows = self.db.execute(
            query.order_by(Item.rating.desc(), Item.order_count.desc(), Item.id)
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars().all()
        return list(rows), total
