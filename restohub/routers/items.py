"""
Item router: the owner's catalogue plus public popular items and item search.
"""
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from restohub.core.config import get_settings
from restohub.core.deps import get_current_user_id
from restohub.db.session import get_db
from restohub.models.item import Item
from restohub.schemas.common import MessageResponse, Pagination
from restohub.schemas.item import (
    ItemAvailabilityResponse,
    ItemCreate,
    ItemListResponse,
    ItemResponse,
    ItemSearchResponse,
    ItemSearchResult,
    ItemUpdate,
)
from restohub.services.item_service import ItemService

router = APIRouter(prefix="/items", tags=["items"])
settings = get_settings()


def search_result(item: Item) -> ItemSearchResult:
    return ItemSearchResult(
        **ItemResponse.model_validate(item).model_dump(),
        restaurant_uuid=item.restaurant.uuid,
        restaurant_name=item.restaurant.name,
    )


@router.post("", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
def create_item(
    payload: ItemCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """
    Add an item to the caller's restaurant.

    The price must be positive and, when an original price is given, lower
    than it. Names are unique per restaurant.
    """
    return ItemService(db).create(user_id, payload)


@router.get("", response_model=ItemListResponse)
def list_my_items(
    category_id: Optional[UUID] = None,
    is_available: Optional[bool] = None,
    search: Optional[str] = None,
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    allergens: Optional[List[str]] = Query(None, description="Items containing any of these allergens"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    items, total = ItemService(db).list_owned(
        user_id,
        category_id=category_id,
        is_available=is_available,
        search=search,
        min_price=min_price,
        max_price=max_price,
        allergens=allergens,
        page=page,
        limit=limit,
    )
    return ItemListResponse(
        items=[ItemResponse.model_validate(item) for item in items],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/popular", response_model=List[ItemResponse])
def popular_items(
    restaurant_id: Optional[UUID] = None,
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
):
    return ItemService(db).popular(restaurant_uuid=restaurant_id, limit=limit)


@router.get("/search", response_model=ItemSearchResponse)
def search_items(
    q: str = Query(..., description="At least 2 characters"),
    city: Optional[str] = None,
    category_id: Optional[UUID] = None,
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    is_vegetarian: Optional[bool] = None,
    is_vegan: Optional[bool] = None,
    is_gluten_free: Optional[bool] = None,
    max_spicy_level: Optional[int] = Query(None, ge=0, le=5),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
):
    """Search available items of active, open restaurants."""
    items, total = ItemService(db).search(
        q,
        city=city,
        category_id=category_id,
        min_price=min_price,
        max_price=max_price,
        is_vegetarian=is_vegetarian,
        is_vegan=is_vegan,
        is_gluten_free=is_gluten_free,
        max_spicy_level=max_spicy_level,
        page=page,
        limit=limit,
    )
    return ItemSearchResponse(
        items=[search_result(item) for item in items],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/{item_uuid}", response_model=ItemResponse)
def get_item(
    item_uuid: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return ItemService(db).get_owned(user_id, item_uuid)


@router.put("/{item_uuid}", response_model=ItemResponse)
def update_item(
    item_uuid: UUID,
    payload: ItemUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return ItemService(db).update(user_id, item_uuid, payload)


@router.delete("/{item_uuid}", response_model=MessageResponse)
def delete_item(
    item_uuid: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    ItemService(db).delete(user_id, item_uuid)
    return MessageResponse(message="Item deleted successfully")


@router.patch("/{item_uuid}/toggle-availability", response_model=ItemAvailabilityResponse)
def toggle_item_availability(
    item_uuid: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    item = ItemService(db).toggle_availability(user_id, item_uuid)
    return ItemAvailabilityResponse(
        uuid=item.uuid,
        is_available=item.is_available,
        message=f"Item is now {'available' if item.is_available else 'unavailable'}",
    )
