"""
Restaurant router: owner profile management and customer discovery.

Owner endpoints act on the caller's single restaurant (``/me``); discovery
endpoints are public and only ever expose active restaurants.
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from restohub.core.config import get_settings
from restohub.core.deps import get_current_user_id
from restohub.core.rounding import round_half_up
from restohub.db.session import get_db
from restohub.models.restaurant import Restaurant
from restohub.schemas.common import Pagination
from restohub.schemas.item import ItemResponse
from restohub.schemas.menu import MenuSummary
from restohub.schemas.restaurant import (
    RestaurantCreate,
    RestaurantDetail,
    RestaurantListResponse,
    RestaurantPublic,
    RestaurantResponse,
    RestaurantUpdate,
    ToggleStatusResponse,
)
from restohub.schemas.review import ReviewResponse
from restohub.services.restaurant_service import RestaurantService, distance_to, is_open_now

router = APIRouter(prefix="/restaurants", tags=["restaurants"])
settings = get_settings()


def public_view(
    restaurant: Restaurant,
    distance: Optional[float] = None,
    lat: Optional[float] = None,
    lng: Optional[float] = None,
) -> RestaurantPublic:
    """Customer view with the computed ``is_open_now`` and ``distance`` filled in."""
    if distance is None:
        raw = distance_to(restaurant, lat, lng)
        distance = round_half_up(raw, 2) if raw is not None else None
    view = RestaurantPublic.model_validate(restaurant)
    view.is_open_now = is_open_now(restaurant)
    view.distance = distance
    return view


def owner_view(restaurant: Restaurant) -> RestaurantResponse:
    view = RestaurantResponse.model_validate(restaurant)
    view.is_open_now = is_open_now(restaurant)
    return view


# ============ Owner endpoints ============

@router.post("", response_model=RestaurantResponse, status_code=status.HTTP_201_CREATED)
def create_restaurant(
    payload: RestaurantCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Register the caller's restaurant. Each owner can hold one restaurant."""
    restaurant = RestaurantService(db).create(user_id, payload)
    return owner_view(restaurant)


@router.get("/me", response_model=RestaurantResponse)
def get_my_restaurant(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return owner_view(RestaurantService(db).get_owned(user_id))


@router.put("/me", response_model=RestaurantResponse)
def update_my_restaurant(
    payload: RestaurantUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Update the caller's restaurant. Only fields present in the body change."""
    return owner_view(RestaurantService(db).update(user_id, payload))


@router.patch("/me/toggle-status", response_model=ToggleStatusResponse)
def toggle_restaurant_status(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    restaurant = RestaurantService(db).toggle_open(user_id)
    return ToggleStatusResponse(
        uuid=restaurant.uuid,
        is_open=restaurant.is_open,
        message=f"Restaurant is now {'open' if restaurant.is_open else 'closed'}",
    )


# ============ Discovery ============

@router.get("/search", response_model=RestaurantListResponse)
def search_restaurants(
    q: Optional[str] = Query(None, description="Matches name, description or cuisine"),
    city: Optional[str] = None,
    cuisine_type: Optional[str] = None,
    is_open: Optional[bool] = None,
    min_rating: Optional[float] = Query(None, ge=0, le=5),
    max_delivery_fee: Optional[float] = Query(None, ge=0),
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    radius: float = Query(10, gt=0, le=100, description="Search radius in km"),
    sort_by: str = Query("rating"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
):
    """
    Search active restaurants.

    With ``lat``/``lng`` results are limited to ``radius`` km and ordered by
    distance.
    """
    pairs, total = RestaurantService(db).search(
        q=q,
        city=city,
        cuisine_type=cuisine_type,
        is_open=is_open,
        min_rating=min_rating,
        max_delivery_fee=max_delivery_fee,
        lat=lat,
        lng=lng,
        radius=radius,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    return RestaurantListResponse(
        restaurants=[public_view(restaurant, distance) for restaurant, distance in pairs],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/popular", response_model=RestaurantListResponse)
def popular_restaurants(
    limit: int = Query(10, ge=1, le=50),
    city: Optional[str] = None,
    db: Session = Depends(get_db),
):
    restaurants = RestaurantService(db).popular(limit=limit, city=city)
    return RestaurantListResponse(restaurants=[public_view(r) for r in restaurants])


@router.get("/nearby", response_model=RestaurantListResponse)
def nearby_restaurants(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius: float = Query(5, gt=0, le=50, description="Radius in km"),
    limit: int = Query(20, ge=1, le=50),
    db: Session = Depends(get_db),
):
    pairs = RestaurantService(db).nearby(lat, lng, radius=radius, limit=limit)
    return RestaurantListResponse(
        restaurants=[public_view(restaurant, distance) for restaurant, distance in pairs]
    )


@router.get("/{restaurant_uuid}", response_model=RestaurantDetail)
def get_restaurant(
    restaurant_uuid: UUID,
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    db: Session = Depends(get_db),
):
    """
    Public restaurant page: available items, menus customers can order now
    and the latest visible reviews.
    """
    service = RestaurantService(db)
    restaurant = service.get_public(restaurant_uuid)
    items, menus, reviews = service.public_catalogue(restaurant)

    return RestaurantDetail(
        **public_view(restaurant, lat=lat, lng=lng).model_dump(),
        items=[ItemResponse.model_validate(item) for item in items],
        menus=[MenuSummary.model_validate(menu) for menu in menus],
        reviews=[ReviewResponse.model_validate(review) for review in reviews],
    )
