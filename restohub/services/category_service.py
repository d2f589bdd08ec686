"""
Category tree management and the restaurant <-> category association.

Categories are shared across restaurants; a restaurant opts into one through
a RestaurantCategory row, which records who attached it and when.
"""
import re
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from restohub.core.exceptions import (
    DuplicateEntityError,
    HasDependentItemsError,
    InvalidReferenceError,
    NotFoundError,
    ValidationError,
)
from restohub.db.session import atomic
from restohub.models.category import Category, RestaurantCategory
from restohub.models.item import Item
from restohub.models.restaurant import Restaurant
from restohub.schemas.category import CategoryCreate, CategoryUpdate


def slugify(name: str) -> str:
    """'Pizza - Vegetarian' -> 'pizza-vegetarian'"""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


class CategoryService:

    def __init__(self, db: Session):
        self.db = db

    # ============ Lookups ============

    def get(self, category_uuid: UUID) -> Category:
        category = self.db.execute(
            select(Category).where(Category.uuid == category_uuid)
        ).scalar_one_or_none()
        if category is None:
            raise NotFoundError("Category")
        return category

    def _get_restaurant(self, restaurant_uuid: UUID, owner_id: Optional[str] = None) -> Restaurant:
        query = select(Restaurant).where(Restaurant.uuid == restaurant_uuid)
        if owner_id is not None:
            query = query.where(Restaurant.owner_id == owner_id)
        restaurant = self.db.execute(query).scalar_one_or_none()
        if restaurant is None:
            raise NotFoundError("Restaurant")
        return restaurant

    def list_categories(
        self,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        restaurant_uuid: Optional[UUID] = None,
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[List[Category], int]:
        """Paginated categories ordered by (sort_order, name)."""
        query = select(Category)

        if is_active is not None:
            query = query.where(Category.is_active == is_active)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.where(or_(Category.name.ilike(pattern), Category.description.ilike(pattern)))
        if restaurant_uuid is not None:
            query = (
                query.join(RestaurantCategory, RestaurantCategory.category_id == Category.id)
                .join(Restaurant, Restaurant.id == RestaurantCategory.restaurant_id)
                .where(Restaurant.uuid == restaurant_uuid)
            )

        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar_one()
        rows = self.db.execute(
            query.order_by(Category.sort_order.asc(), Category.name.asc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars().all()
        return list(rows), total

    def get_detail(self, category_uuid: UUID, include_items: bool = False, include_restaurants: bool = False) -> Dict:
        """Category with its subcategories and, on request, available items and restaurants."""
        category = self.get(category_uuid)
        detail = {
            "category": category,
            "subcategories": self._ordered(category.subcategories),
            "items": [],
            "restaurants": [],
        }
        if include_items:
            detail["items"] = [item for item in category.items if item.is_available]
        if include_restaurants:
            detail["restaurants"] = [link.restaurant for link in category.restaurant_links]
        return detail

    def subcategories(self, category_uuid: UUID) -> List[Category]:
        return self._ordered(self.get(category_uuid).subcategories)

    def list_for_restaurant(
        self,
        restaurant_uuid: UUID,
        active_only: bool = True,
        include_items: bool = False,
    ) -> List[Tuple[Category, Optional[List[Item]]]]:
        """
        Categories a restaurant has opted into.

        With ``include_items`` each category carries that restaurant's
        available items in it; otherwise the item slot is None.
        """
        restaurant = self._get_restaurant(restaurant_uuid)

        query = (
            select(Category)
            .join(RestaurantCategory, RestaurantCategory.category_id == Category.id)
            .where(RestaurantCategory.restaurant_id == restaurant.id)
        )
        if active_only:
            query = query.where(Category.is_active == True, RestaurantCategory.is_active == True)
        categories = self.db.execute(
            query.order_by(Category.sort_order.asc(), Category.name.asc())
        ).scalars().all()

        result = []
        for category in categories:
            items = None
            if include_items:
                items = self.db.execute(
                    select(Item).where(
                        Item.category_id == category.id,
                        Item.restaurant_id == restaurant.id,
                        Item.is_available == True,
                    ).order_by(Item.sort_order, Item.name)
                ).scalars().all()
            result.append((category, items))
        return result

    # ============ Writes ============

    def create(self, payload: CategoryCreate, actor_id: Optional[str] = None) -> Category:
        """
        Create a category, optionally offered straight away by ``restaurant_ids``.

        All restaurants must resolve or nothing is created.
        """
        name = payload.name
        slug = slugify(name)
        self._ensure_unique(name, slug)

        parent = self._resolve_parent(payload.parent_id)
        restaurants = self._resolve_restaurants(payload.restaurant_ids or [])

        category = Category(
            name=name,
            slug=slug,
            description=payload.description,
            icon=payload.icon,
            image=payload.image,
            color=payload.color,
            is_active=True if payload.is_active is None else payload.is_active,
            sort_order=payload.sort_order or 0,
            parent=parent,
        )
        for restaurant in restaurants:
            category.restaurant_links.append(RestaurantCategory(restaurant=restaurant, added_by=actor_id))

        self._commit_new(category)
        return category

    def update(self, category_uuid: UUID, payload: CategoryUpdate, actor_id: Optional[str] = None) -> Category:
        category = self.get(category_uuid)
        changes = payload.model_dump(exclude_unset=True)

        if "name" in changes:
            if changes["name"] is None:
                raise ValidationError("name cannot be empty", field="name")
            if changes["name"] != category.name:
                category_slug = slugify(changes["name"])
                self._ensure_unique(changes["name"], category_slug, exclude_id=category.id)
                changes["slug"] = category_slug

        # Explicit nulls on these leave the stored value alone
        for field in ("color", "is_active", "sort_order"):
            if field in changes and changes[field] is None:
                changes.pop(field)

        if "parent_id" in changes:
            parent_uuid = changes.pop("parent_id")
            parent = self._resolve_parent(parent_uuid)
            if parent is not None:
                self._check_no_cycle(category, parent)
            changes["parent"] = parent

        restaurants = None
        if "restaurant_ids" in changes:
            restaurants = self._resolve_restaurants(changes.pop("restaurant_ids") or [])

        try:
            with atomic(self.db):
                for field, value in changes.items():
                    setattr(category, field, value)
                if restaurants is not None:
                    self._replace_restaurants(category, restaurants, actor_id)
        except IntegrityError:
            raise DuplicateEntityError("A category with this name already exists", field="name")

        self.db.refresh(category)
        return category

    def delete(self, category_uuid: UUID) -> None:
        """
        Delete a category that no item uses.

        Its restaurant associations go with it and its subcategories become
        top-level, all in one transaction.
        """
        category = self.get(category_uuid)
        item_count = self.db.execute(
            select(func.count(Item.id)).where(Item.category_id == category.id)
        ).scalar_one()
        if item_count:
            raise HasDependentItemsError(
                f"Cannot delete category with {item_count} item(s). Move or delete them first.",
                {"item_count": item_count},
            )

        with atomic(self.db):
            category.restaurant_links.clear()
            for child in list(category.subcategories):
                child.parent = None
            self.db.delete(category)

    def reorder(self, category_uuids: Sequence[UUID]) -> List[Category]:
        """Set sort_order to each category's 1-based position. Any unknown uuid aborts all."""
        categories = []
        for category_uuid in category_uuids:
            categories.append(self.get(category_uuid))

        with atomic(self.db):
            for position, category in enumerate(categories, start=1):
                category.sort_order = position
        return categories

    # ============ Restaurant association ============

    def attach(self, restaurant_uuid: UUID, category_uuid: UUID, actor_id: str) -> RestaurantCategory:
        """Offer a category at the actor's restaurant. Attaching twice is an error."""
        restaurant = self._get_restaurant(restaurant_uuid, owner_id=actor_id)
        category = self.get(category_uuid)

        if self._find_link(restaurant, category) is not None:
            raise DuplicateEntityError("Category is already associated with this restaurant")

        link = RestaurantCategory(restaurant=restaurant, category=category, added_by=actor_id)
        try:
            with atomic(self.db):
                self.db.add(link)
        except IntegrityError:
            raise DuplicateEntityError("Category is already associated with this restaurant")

        self.db.refresh(link)
        return link

    def detach(self, restaurant_uuid: UUID, category_uuid: UUID, actor_id: str) -> None:
        restaurant = self._get_restaurant(restaurant_uuid, owner_id=actor_id)
        category = self.get(category_uuid)

        link = self._find_link(restaurant, category)
        if link is None:
            raise NotFoundError("Association", "Category is not associated with this restaurant")

        with atomic(self.db):
            self.db.delete(link)

    # ============ Helpers ============

    def _find_link(self, restaurant: Restaurant, category: Category) -> Optional[RestaurantCategory]:
        return self.db.execute(
            select(RestaurantCategory).where(
                RestaurantCategory.restaurant_id == restaurant.id,
                RestaurantCategory.category_id == category.id,
            )
        ).scalar_one_or_none()

    def _ensure_unique(self, name: str, slug: str, exclude_id: Optional[int] = None) -> None:
        query = select(Category).where(or_(Category.name == name, Category.slug == slug))
        if exclude_id is not None:
            query = query.where(Category.id != exclude_id)
        clash = self.db.execute(query).scalars().first()
        if clash is not None:
            field = "name" if clash.name == name else "slug"
            raise DuplicateEntityError(f"A category with this {field} already exists", field=field)

    def _resolve_parent(self, parent_uuid: Optional[UUID]) -> Optional[Category]:
        if parent_uuid is None:
            return None
        parent = self.db.execute(
            select(Category).where(Category.uuid == parent_uuid)
        ).scalar_one_or_none()
        if parent is None:
            raise InvalidReferenceError("Parent category does not exist", field="parent_id")
        return parent

    def _resolve_restaurants(self, restaurant_uuids: Sequence[UUID]) -> List[Restaurant]:
        wanted = set(restaurant_uuids)
        if not wanted:
            return []
        restaurants = self.db.execute(
            select(Restaurant).where(Restaurant.uuid.in_(wanted))
        ).scalars().all()
        if len(restaurants) != len(wanted):
            raise InvalidReferenceError("One or more restaurants not found", field="restaurant_ids")
        return list(restaurants)

    def _replace_restaurants(self, category: Category, restaurants: List[Restaurant], actor_id: Optional[str]) -> None:
        """Keep links that stay (with their metadata), drop the rest, add the new ones."""
        wanted = {restaurant.id: restaurant for restaurant in restaurants}
        for link in list(category.restaurant_links):
            if link.restaurant_id in wanted:
                wanted.pop(link.restaurant_id)
            else:
                category.restaurant_links.remove(link)
        for restaurant in wanted.values():
            category.restaurant_links.append(RestaurantCategory(restaurant=restaurant, added_by=actor_id))

    def _check_no_cycle(self, category: Category, parent: Category) -> None:
        """A category cannot sit under itself or under any of its descendants."""
        node = parent
        while node is not None:
            if node.id == category.id:
                raise ValidationError("A category cannot be its own ancestor", field="parent_id")
            node = node.parent

    def _commit_new(self, category: Category) -> None:
        try:
            with atomic(self.db):
                self.db.add(category)
        except IntegrityError:
            raise DuplicateEntityError("A category with this name already exists", field="name")
        self.db.refresh(category)

    @staticmethod
    def _ordered(categories) -> List[Category]:
        return sorted(categories, key=lambda c: (c.sort_order or 0, c.name))
