"""
Category router: the shared category tree and restaurant opt-ins.

Reads are public. Writes require an identity; attaching or detaching a
category additionally requires owning the restaurant.
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from restohub.core.config import get_settings
from restohub.core.deps import get_current_user_id
from restohub.db.session import get_db
from restohub.schemas.category import (
    CategoryCreate,
    CategoryDetail,
    CategoryListResponse,
    CategoryReorderRequest,
    CategoryResponse,
    CategoryUpdate,
    CategoryWithItems,
    ReorderResponse,
    RestaurantCategoryResponse,
)
from restohub.schemas.common import CategoryRef, MessageResponse, Pagination, RestaurantRef
from restohub.schemas.item import ItemResponse
from restohub.services.category_service import CategoryService

router = APIRouter(prefix="/categories", tags=["categories"])
settings = get_settings()


@router.get("", response_model=CategoryListResponse)
def list_categories(
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    restaurant_id: Optional[UUID] = Query(None, description="Only categories offered by this restaurant"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
):
    categories, total = CategoryService(db).list_categories(
        search=search,
        is_active=is_active,
        restaurant_uuid=restaurant_id,
        page=page,
        limit=limit,
    )
    return CategoryListResponse(
        categories=[CategoryResponse.model_validate(c) for c in categories],
        pagination=Pagination.build(page, limit, total),
    )


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """
    Create a category. The slug is derived from the name.

    ``restaurant_ids`` attaches the category to those restaurants in the
    same transaction; one unknown id rejects the whole request.
    """
    return CategoryService(db).create(payload, actor_id=user_id)


@router.put("/reorder", response_model=ReorderResponse)
def reorder_categories(
    payload: CategoryReorderRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Set sort order from list position (first id gets 1)."""
    categories = CategoryService(db).reorder(payload.category_ids)
    return ReorderResponse(
        categories=[CategoryRef.model_validate(c) for c in categories],
        message="Categories reordered successfully",
    )


@router.get("/restaurant/{restaurant_uuid}", response_model=List[CategoryWithItems])
def list_restaurant_categories(
    restaurant_uuid: UUID,
    active_only: bool = True,
    include_items: bool = False,
    db: Session = Depends(get_db),
):
    pairs = CategoryService(db).list_for_restaurant(
        restaurant_uuid, active_only=active_only, include_items=include_items
    )
    return [
        CategoryWithItems(
            **CategoryResponse.model_validate(category).model_dump(),
            items=[ItemResponse.model_validate(item) for item in items] if items is not None else None,
        )
        for category, items in pairs
    ]


@router.post(
    "/restaurant/{restaurant_uuid}/{category_uuid}",
    response_model=RestaurantCategoryResponse,
    status_code=status.HTTP_201_CREATED,
)
def attach_category(
    restaurant_uuid: UUID,
    category_uuid: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Offer a category at the caller's restaurant. Attaching twice returns 409."""
    return CategoryService(db).attach(restaurant_uuid, category_uuid, actor_id=user_id)


@router.delete("/restaurant/{restaurant_uuid}/{category_uuid}", response_model=MessageResponse)
def detach_category(
    restaurant_uuid: UUID,
    category_uuid: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    CategoryService(db).detach(restaurant_uuid, category_uuid, actor_id=user_id)
    return MessageResponse(message="Category removed from restaurant")


@router.get("/{category_uuid}", response_model=CategoryDetail)
def get_category(
    category_uuid: UUID,
    include_items: bool = False,
    include_restaurants: bool = False,
    db: Session = Depends(get_db),
):
    detail = CategoryService(db).get_detail(
        category_uuid, include_items=include_items, include_restaurants=include_restaurants
    )
    return CategoryDetail(
        **CategoryResponse.model_validate(detail["category"]).model_dump(),
        subcategories=[CategoryRef.model_validate(c) for c in detail["subcategories"]],
        items=[ItemResponse.model_validate(item) for item in detail["items"]],
        restaurants=[RestaurantRef.model_validate(r) for r in detail["restaurants"]],
    )


@router.get("/{category_uuid}/subcategories", response_model=List[CategoryResponse])
def list_subcategories(category_uuid: UUID, db: Session = Depends(get_db)):
    return CategoryService(db).subcategories(category_uuid)


@router.put("/{category_uuid}", response_model=CategoryResponse)
def update_category(
    category_uuid: UUID,
    payload: CategoryUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Partial update. ``restaurant_ids``, when sent, replaces the restaurant set."""
    return CategoryService(db).update(category_uuid, payload, actor_id=user_id)


@router.delete("/{category_uuid}", response_model=MessageResponse)
def delete_category(
    category_uuid: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Delete a category. Refused with 409 while items still reference it."""
    CategoryService(db).delete(category_uuid)
    return MessageResponse(message="Category deleted successfully")
