"""
Restaurant registration, profile management and discovery.
"""
import math
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from restohub.core.exceptions import DuplicateEntityError, NotFoundError, ValidationError
from restohub.core.rounding import round_half_up
from restohub.db.session import atomic
from restohub.models.restaurant import Restaurant
from restohub.schemas.restaurant import RestaurantCreate, RestaurantUpdate

EARTH_RADIUS_KM = 6371
POPULAR_MIN_RATING = 4.0
LATEST_REVIEWS = 5

# Caller-facing sort keys -> columns
SORT_FIELDS = {
    "rating": Restaurant.rating,
    "name": Restaurant.name,
    "delivery_fee": Restaurant.delivery_fee,
    "average_delivery_time": Restaurant.average_delivery_time,
    "created_at": Restaurant.created_at,
}

# Columns that reject an explicit null on update
NOT_NULL_FIELDS = {
    "name", "address", "city", "postal_code", "opening_hours", "tags", "settings",
    "delivery_fee", "minimum_order",
}


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_to(restaurant: Restaurant, lat: Optional[float], lng: Optional[float]) -> Optional[float]:
    """Distance from (lat, lng) to the restaurant, or None if either side lacks coordinates."""
    if lat is None or lng is None or restaurant.latitude is None or restaurant.longitude is None:
        return None
    return haversine_km(lat, lng, float(restaurant.latitude), float(restaurant.longitude))


def is_open_now(restaurant: Restaurant, now: Optional[datetime] = None) -> bool:
    """
    Whether the restaurant is taking orders at ``now`` (default: local now).

    Requires the active and open flags plus a complete entry for the current
    weekday (0 = Sunday). Windows crossing midnight are not supported.
    """
    if not (restaurant.is_active and restaurant.is_open):
        return False

    now = now or datetime.now()
    weekday = str((now.weekday() + 1) % 7)
    hours = (restaurant.opening_hours or {}).get(weekday)
    if not hours or hours.get("is_closed"):
        return False

    opens, closes = hours.get("open"), hours.get("close")
    if opens is None or closes is None:
        return False

    current = now.hour * 100 + now.minute
    return int(opens) <= current <= int(closes)


class RestaurantService:
    """Restaurant lifecycle for owners and discovery for customers."""

    def __init__(self, db: Session):
        self.db = db

    # ============ Owner operations ============

    def get_owned(self, owner_id: str) -> Restaurant:
        restaurant = self.db.execute(
            select(Restaurant).where(Restaurant.owner_id == owner_id)
        ).scalar_one_or_none()
        if restaurant is None:
            raise NotFoundError("Restaurant", "No restaurant found for your account")
        return restaurant

    def create(self, owner_id: str, payload: RestaurantCreate) -> Restaurant:
        """Register the caller's restaurant. One owner holds at most one."""
        existing = self.db.execute(
            select(Restaurant.id).where(Restaurant.owner_id == owner_id)
        ).first()
        if existing:
            raise DuplicateEntityError("You already own a restaurant", field="owner_id")

        restaurant = Restaurant(owner_id=owner_id, **payload.model_dump(exclude_none=True))
        try:
            with atomic(self.db):
                self.db.add(restaurant)
        except IntegrityError:
            raise DuplicateEntityError("You already own a restaurant", field="owner_id")

        self.db.refresh(restaurant)
        return restaurant

    def update(self, owner_id: str, payload: RestaurantUpdate) -> Restaurant:
        restaurant = self.get_owned(owner_id)
        changes = payload.model_dump(exclude_unset=True)

        for field, value in changes.items():
            if value is None and field in NOT_NULL_FIELDS:
                raise ValidationError(f"{field} cannot be null", field=field)

        with atomic(self.db):
            for field, value in changes.items():
                setattr(restaurant, field, value)

        self.db.refresh(restaurant)
        return restaurant

    def toggle_open(self, owner_id: str) -> Restaurant:
        restaurant = self.get_owned(owner_id)
        with atomic(self.db):
            restaurant.is_open = not restaurant.is_open
        self.db.refresh(restaurant)
        return restaurant

    # ============ Public operations ============

    def get_public(self, restaurant_uuid: UUID) -> Restaurant:
        """Active restaurant by public id; inactive ones are reported as missing."""
        restaurant = self.db.execute(
            select(Restaurant).where(
                Restaurant.uuid == restaurant_uuid,
                Restaurant.is_active == True,
            )
        ).scalar_one_or_none()
        if restaurant is None:
            raise NotFoundError("Restaurant")
        return restaurant

    def public_catalogue(self, restaurant: Restaurant, now: Optional[datetime] = None) -> Tuple[List, List, List]:
        """Available items, customer-visible menus and the latest visible reviews."""
        items = sorted(
            (item for item in restaurant.items if item.is_available),
            key=lambda item: (item.sort_order or 0, item.name),
        )
        menus = sorted(
            (menu for menu in restaurant.menus if menu.is_visible_at(now)),
            key=lambda menu: (not menu.is_featured, menu.sort_order or 0, menu.name),
        )
        reviews = sorted(
            (review for review in restaurant.reviews if review.is_visible),
            key=lambda review: (review.created_at or datetime.min, review.id),
            reverse=True,
        )[:LATEST_REVIEWS]
        return items, menus, reviews

    def search(
        self,
        q: Optional[str] = None,
        city: Optional[str] = None,
        cuisine_type: Optional[str] = None,
        is_open: Optional[bool] = None,
        min_rating: Optional[float] = None,
        max_delivery_fee: Optional[float] = None,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        radius: float = 10,
        sort_by: str = "rating",
        sort_order: str = "desc",
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Tuple[Restaurant, Optional[float]]], int]:
        """
        Filtered, paginated restaurant search.

        With coordinates the result is restricted to ``radius`` km and
        ordered by distance; otherwise by ``sort_by`` (see SORT_FIELDS).
        Returns (restaurant, distance) pairs and the total match count.
        """
        if sort_by != "distance" and sort_by not in SORT_FIELDS:
            raise ValidationError(f"Cannot sort by '{sort_by}'", field="sort_by")

        query = select(Restaurant).where(Restaurant.is_active == True)

        if q:
            pattern = f"%{q}%"
            query = query.where(or_(
                Restaurant.name.ilike(pattern),
                Restaurant.description.ilike(pattern),
                Restaurant.cuisine_type.ilike(pattern),
            ))
        if city:
            query = query.where(Restaurant.city == city)
        if cuisine_type:
            query = query.where(Restaurant.cuisine_type == cuisine_type)
        if is_open:
            query = query.where(Restaurant.is_open == True)
        if min_rating is not None:
            query = query.where(Restaurant.rating >= min_rating)
        if max_delivery_fee is not None:
            query = query.where(Restaurant.delivery_fee <= max_delivery_fee)

        offset = (page - 1) * limit

        if lat is not None and lng is not None:
            candidates = self.db.execute(
                query.where(Restaurant.latitude.is_not(None), Restaurant.longitude.is_not(None))
            ).scalars().all()
            within = self._within_radius(candidates, lat, lng, radius)
            return within[offset:offset + limit], len(within)

        if sort_by == "distance":
            raise ValidationError("Sorting by distance requires lat and lng", field="sort_by")

        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar_one()

        column = SORT_FIELDS[sort_by]
        ordering = column.asc() if sort_order.lower() == "asc" else column.desc()
        rows = self.db.execute(
            query.order_by(ordering, Restaurant.id).offset(offset).limit(limit)
        ).scalars().all()
        return [(restaurant, None) for restaurant in rows], total

    def popular(self, limit: int = 10, city: Optional[str] = None) -> List[Restaurant]:
        """Best-rated restaurants currently open."""
        query = select(Restaurant).where(
            Restaurant.is_active == True,
            Restaurant.is_open == True,
            Restaurant.rating >= POPULAR_MIN_RATING,
        )
        if city:
            query = query.where(Restaurant.city == city)
        query = query.order_by(Restaurant.rating.desc(), Restaurant.review_count.desc()).limit(limit)
        return list(self.db.execute(query).scalars().all())

    def nearby(self, lat: float, lng: float, radius: float = 5, limit: int = 20) -> List[Tuple[Restaurant, float]]:
        """Active restaurants within ``radius`` km, closest first."""
        candidates = self.db.execute(
            select(Restaurant).where(
                Restaurant.is_active == True,
                Restaurant.latitude.is_not(None),
                Restaurant.longitude.is_not(None),
            )
        ).scalars().all()
        return self._within_radius(candidates, lat, lng, radius)[:limit]

    def _within_radius(self, candidates, lat: float, lng: float, radius: float) -> List[Tuple[Restaurant, float]]:
        pairs = []
        for restaurant in candidates:
            distance = distance_to(restaurant, lat, lng)
            if distance is not None and distance <= radius:
                pairs.append((restaurant, round_half_up(distance, 2)))
        pairs.sort(key=lambda pair: pair[1])
        return pairs
