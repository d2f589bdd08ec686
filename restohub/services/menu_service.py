"""
Menu composition and menu reporting.

A menu is a priced bundle of the restaurant's own items. Its lines are
always validated as a whole: one bad item rejects the entire request and
nothing is written.
"""
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from restohub.core.exceptions import InvalidItemsError, NotFoundError, ValidationError
from restohub.core.rounding import round_half_up, round_to_int
from restohub.db.session import atomic
from restohub.models.item import Item
from restohub.models.menu import Menu, MenuItem
from restohub.models.restaurant import Restaurant
from restohub.schemas.menu import MenuCreate, MenuLine, MenuUpdate
from restohub.services.restaurant_service import RestaurantService

SORT_FIELDS = {
    "name": Menu.name,
    "price": Menu.price,
    "sort_order": Menu.sort_order,
    "is_popular": Menu.is_popular,
    "is_featured": Menu.is_featured,
}

# Scalar columns carried over by duplicate()
COPIED_FIELDS = (
    "description", "price", "original_price", "preparation_time", "images", "tags",
    "valid_from", "valid_until", "sort_order",
)

NOT_NULL_FIELDS = {"name", "price", "is_available", "is_popular", "is_featured", "sort_order", "images", "tags"}


def nutritional_summary(menu: Menu) -> Dict[str, float]:
    """
    Nutrition of one full menu: every line's item times its quantity.

    Calories come from the item's own column, falling back to its
    nutritional info. Calories round to a whole number, macros to 0.1 g.
    """
    calories = protein = carbs = fat = 0.0
    for line in menu.menu_items:
        quantity = line.quantity or 1
        info = line.item.nutritional_info or {}
        item_calories = line.item.calories if line.item.calories is not None else info.get("calories")
        calories += float(item_calories or 0) * quantity
        protein += float(info.get("protein") or 0) * quantity
        carbs += float(info.get("carbs") or 0) * quantity
        fat += float(info.get("fat") or 0) * quantity

    return {
        "total_calories": round_to_int(calories),
        "total_protein": round_half_up(protein, 1),
        "total_carbs": round_half_up(carbs, 1),
        "total_fat": round_half_up(fat, 1),
    }


def menu_analytics(menu: Menu) -> Dict:
    """Cost and margin of a menu against the list prices of its items."""
    prices = [Decimal(line.item.price) for line in menu.menu_items]
    total_items = len(prices)
    average_item_price = sum(prices) / total_items if total_items else Decimal("0")
    items_cost = sum(
        (Decimal(line.item.price) * line.quantity for line in menu.menu_items),
        Decimal("0"),
    )
    price = Decimal(menu.price)
    profit_margin = (price - items_cost) / price * 100 if items_cost > 0 and price > 0 else Decimal("0")

    return {
        "uuid": menu.uuid,
        "name": menu.name,
        "price": float(price),
        "is_available": menu.is_available,
        "is_featured": menu.is_featured,
        "is_popular": menu.is_popular,
        "total_items": total_items,
        "average_item_price": round_half_up(average_item_price, 2),
        "menu_items_cost": round_half_up(items_cost, 2),
        "profit_margin": round_half_up(profit_margin, 2),
    }


class MenuService:

    def __init__(self, db: Session):
        self.db = db

    def _restaurant(self, owner_id: str) -> Restaurant:
        return RestaurantService(self.db).get_owned(owner_id)

    def get_owned(self, owner_id: str, menu_uuid: UUID) -> Menu:
        restaurant = self._restaurant(owner_id)
        menu = self.db.execute(
            select(Menu).where(Menu.uuid == menu_uuid, Menu.restaurant_id == restaurant.id)
        ).scalar_one_or_none()
        if menu is None:
            raise NotFoundError("Menu", "Menu not found in your restaurant")
        return menu

    def _build_lines(self, restaurant_id: int, lines: Sequence[MenuLine]) -> List[MenuItem]:
        """Turn requested lines into MenuItem rows, or reject them all."""
        if not lines:
            return []
        wanted = [line.item_id for line in lines]
        items = self.db.execute(
            select(Item).where(
                Item.uuid.in_(wanted),
                Item.restaurant_id == restaurant_id,
                Item.is_available == True,
            )
        ).scalars().all()
        by_uuid = {item.uuid: item for item in items}
        if len(by_uuid) != len(set(wanted)):
            raise InvalidItemsError()

        return [
            MenuItem(
                item=by_uuid[line.item_id],
                quantity=line.quantity,
                is_optional=line.is_optional,
                extra_price=line.extra_price,
            )
            for line in lines
        ]

    # ============ Writes ============

    def create(self, owner_id: str, payload: MenuCreate) -> Menu:
        restaurant = self._restaurant(owner_id)
        lines = self._build_lines(restaurant.id, payload.items)

        data = payload.model_dump(exclude_none=True, exclude={"items"})
        menu = Menu(restaurant_id=restaurant.id, **data)
        menu.menu_items.extend(lines)

        with atomic(self.db):
            self.db.add(menu)

        self.db.refresh(menu)
        return menu

    def update(self, owner_id: str, menu_uuid: UUID, payload: MenuUpdate) -> Menu:
        """
        Partial update.

        When ``items`` is sent, the old lines are deleted and the new ones
        inserted in the same transaction; ``[]`` empties the menu.
        """
        menu = self.get_owned(owner_id, menu_uuid)
        changes = payload.model_dump(exclude_unset=True, exclude={"items"})

        for field in NOT_NULL_FIELDS:
            if field in changes and changes[field] is None:
                raise ValidationError(f"{field} cannot be null", field=field)

        valid_from = changes.get("valid_from", menu.valid_from)
        valid_until = changes.get("valid_until", menu.valid_until)
        if valid_from and valid_until and valid_until <= valid_from:
            raise ValidationError("valid_until must be after valid_from", field="valid_until")

        replace_lines = "items" in payload.model_fields_set
        new_lines = []
        if replace_lines:
            new_lines = self._build_lines(menu.restaurant_id, payload.items or [])

        with atomic(self.db):
            for field, value in changes.items():
                setattr(menu, field, value)
            if replace_lines:
                menu.menu_items.clear()
                # Old rows must be gone before the same (menu, item) pairs are inserted again
                self.db.flush()
                menu.menu_items.extend(new_lines)

        self.db.refresh(menu)
        return menu

    def duplicate(self, owner_id: str, menu_uuid: UUID, new_name: Optional[str]) -> Menu:
        """Copy a menu and its lines under a new name. The copy starts hidden."""
        name = (new_name or "").strip()
        if len(name) < 2:
            raise ValidationError("New menu name is required", field="name")

        original = self.get_owned(owner_id, menu_uuid)
        copy = Menu(
            restaurant_id=original.restaurant_id,
            name=name,
            is_available=False,
            is_featured=False,
            is_popular=False,
            **{field: getattr(original, field) for field in COPIED_FIELDS},
        )
        for line in original.menu_items:
            copy.menu_items.append(MenuItem(
                item_id=line.item_id,
                quantity=line.quantity,
                is_optional=line.is_optional,
                extra_price=line.extra_price,
            ))

        with atomic(self.db):
            self.db.add(copy)

        self.db.refresh(copy)
        return copy

    def bulk_set_availability(self, owner_id: str, menu_uuids: Sequence[UUID], is_available: bool) -> int:
        """Set availability on the caller's menus among ``menu_uuids``; returns how many changed."""
        restaurant = self._restaurant(owner_id)
        with atomic(self.db):
            result = self.db.execute(
                update(Menu)
                .where(Menu.uuid.in_(list(menu_uuids)), Menu.restaurant_id == restaurant.id)
                .values(is_available=is_available)
                .execution_options(synchronize_session="fetch")
            )
        return result.rowcount

    def delete(self, owner_id: str, menu_uuid: UUID) -> Menu:
        menu = self.get_owned(owner_id, menu_uuid)
        with atomic(self.db):
            self.db.delete(menu)
        return menu

    def toggle_availability(self, owner_id: str, menu_uuid: UUID) -> Menu:
        menu = self.get_owned(owner_id, menu_uuid)
        with atomic(self.db):
            menu.is_available = not menu.is_available
        self.db.refresh(menu)
        return menu

    # ============ Reads ============

    def list_owned(
        self,
        owner_id: str,
        is_available: Optional[bool] = None,
        search: Optional[str] = None,
        sort_by: str = "sort_order",
        sort_order: str = "asc",
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Menu], int, Dict[str, int]]:
        """The caller's menus, the match count and availability counts over all their menus."""
        if sort_by not in SORT_FIELDS:
            raise ValidationError(f"Cannot sort by '{sort_by}'", field="sort_by")

        restaurant = self._restaurant(owner_id)
        query = select(Menu).where(Menu.restaurant_id == restaurant.id)
        if is_available is not None:
            query = query.where(Menu.is_available == is_available)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.where(or_(Menu.name.ilike(pattern), Menu.description.ilike(pattern)))

        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar_one()

        column = SORT_FIELDS[sort_by]
        ordering = column.desc() if sort_order.lower() == "desc" else column.asc()
        menus = self.db.execute(
            query.order_by(ordering, Menu.name.asc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars().all()

        return list(menus), total, self._statistics(restaurant.id)

    def _statistics(self, restaurant_id: int) -> Dict[str, int]:
        row = self.db.execute(
            select(
                func.count(Menu.id),
                func.count(Menu.id).filter(Menu.is_available == True),
                func.count(Menu.id).filter(Menu.is_featured == True),
            ).where(Menu.restaurant_id == restaurant_id)
        ).one()
        total, available, featured = row
        return {
            "total": total,
            "available": available,
            "featured": featured,
            "unavailable": total - available,
        }

    def get_with_nutrition(self, owner_id: str, menu_uuid: UUID) -> Tuple[Menu, Dict[str, float]]:
        menu = self.get_owned(owner_id, menu_uuid)
        return menu, nutritional_summary(menu)

    def list_public(
        self,
        restaurant_uuid: UUID,
        featured: bool = False,
        popular: bool = False,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[Restaurant, List[Menu]]:
        """Menus a customer can order right now, featured and popular first."""
        restaurant = RestaurantService(self.db).get_public(restaurant_uuid)
        now = now or datetime.now()

        query = select(Menu).where(
            Menu.restaurant_id == restaurant.id,
            Menu.is_available == True,
            or_(Menu.valid_from.is_(None), Menu.valid_from <= now),
            or_(Menu.valid_until.is_(None), Menu.valid_until >= now),
        )
        if featured:
            query = query.where(Menu.is_featured == True)
        if popular:
            query = query.where(Menu.is_popular == True)
        if min_price is not None:
            query = query.where(Menu.price >= min_price)
        if max_price is not None:
            query = query.where(Menu.price <= max_price)

        menus = self.db.execute(
            query.order_by(
                Menu.is_featured.desc(),
                Menu.is_popular.desc(),
                Menu.sort_order.asc(),
                Menu.price.asc(),
            )
        ).scalars().all()
        return restaurant, list(menus)

    def analytics(self, owner_id: str, menu_uuid: Optional[UUID] = None) -> Dict:
        """Per-menu cost and margin figures plus a roll-up over the selection."""
        restaurant = self._restaurant(owner_id)
        query = select(Menu).where(Menu.restaurant_id == restaurant.id)
        if menu_uuid is not None:
            query = query.where(Menu.uuid == menu_uuid)
        menus = self.db.execute(query.order_by(Menu.sort_order, Menu.name)).scalars().all()

        entries = [menu_analytics(menu) for menu in menus]
        count = len(entries)
        summary = {
            "total_menus": count,
            "available_menus": sum(1 for m in menus if m.is_available),
            "featured_menus": sum(1 for m in menus if m.is_featured),
            "popular_menus": sum(1 for m in menus if m.is_popular),
            "average_menu_price": round_half_up(sum(e["price"] for e in entries) / count, 2) if count else 0,
            "average_profit_margin": round_half_up(sum(e["profit_margin"] for e in entries) / count, 2) if count else 0,
        }
        return {"analytics": entries, "summary": summary}
