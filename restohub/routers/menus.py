"""
Menu router: composition and reporting for owners, visible menus for customers.
"""
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from restohub.core.deps import get_current_user_id
from restohub.db.session import get_db
from restohub.schemas.common import MessageResponse, Pagination
from restohub.schemas.menu import (
    MenuAnalyticsResponse,
    MenuAvailabilityResponse,
    MenuBulkAvailabilityRequest,
    MenuBulkAvailabilityResponse,
    MenuCreate,
    MenuDuplicateRequest,
    MenuListResponse,
    MenuResponse,
    MenuUpdate,
    NutritionalSummary,
)
from restohub.services.menu_service import MenuService, nutritional_summary

router = APIRouter(prefix="/menus", tags=["menus"])

MAX_MENU_PAGE_SIZE = 50


@router.post("", response_model=MenuResponse, status_code=status.HTTP_201_CREATED)
def create_menu(
    payload: MenuCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """
    Create a menu from the caller's items.

    Every referenced item must belong to the caller's restaurant and be
    available; otherwise nothing is created.
    """
    return MenuService(db).create(user_id, payload)


@router.get("", response_model=MenuListResponse)
def list_my_menus(
    is_available: Optional[bool] = None,
    search: Optional[str] = None,
    sort_by: str = Query("sort_order", description="name, price, sort_order, is_popular or is_featured"),
    sort_order: str = Query("asc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=MAX_MENU_PAGE_SIZE),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    menus, total, stats = MenuService(db).list_owned(
        user_id,
        is_available=is_available,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    return MenuListResponse(
        menus=[MenuResponse.model_validate(menu) for menu in menus],
        pagination=Pagination.build(page, limit, total),
        statistics=stats,
    )


@router.get("/analytics", response_model=MenuAnalyticsResponse)
def menu_analytics(
    menu_id: Optional[UUID] = None,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Cost and margin per menu, optionally for a single menu."""
    return MenuService(db).analytics(user_id, menu_uuid=menu_id)


@router.patch("/bulk-availability", response_model=MenuBulkAvailabilityResponse)
def bulk_update_availability(
    payload: MenuBulkAvailabilityRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Set availability on several menus; ids outside the caller's restaurant are skipped."""
    count = MenuService(db).bulk_set_availability(user_id, payload.menu_ids, payload.is_available)
    state = "available" if payload.is_available else "unavailable"
    return MenuBulkAvailabilityResponse(
        updated_count=count,
        message=f"{count} menu(s) marked {state}",
    )


@router.get("/restaurant/{restaurant_uuid}", response_model=List[MenuResponse])
def list_restaurant_menus(
    restaurant_uuid: UUID,
    featured: bool = False,
    popular: bool = False,
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    db: Session = Depends(get_db),
):
    """Menus customers can order right now."""
    _, menus = MenuService(db).list_public(
        restaurant_uuid,
        featured=featured,
        popular=popular,
        min_price=min_price,
        max_price=max_price,
    )
    return menus


@router.get("/{menu_uuid}", response_model=MenuResponse)
def get_menu(
    menu_uuid: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    menu, summary = MenuService(db).get_with_nutrition(user_id, menu_uuid)
    response = MenuResponse.model_validate(menu)
    response.nutritional_summary = NutritionalSummary(**summary)
    return response


@router.put("/{menu_uuid}", response_model=MenuResponse)
def update_menu(
    menu_uuid: UUID,
    payload: MenuUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """
    Update a menu. Sending ``items`` replaces every line; leaving it out
    keeps the current lines.
    """
    menu = MenuService(db).update(user_id, menu_uuid, payload)
    response = MenuResponse.model_validate(menu)
    response.nutritional_summary = NutritionalSummary(**nutritional_summary(menu))
    return response


@router.delete("/{menu_uuid}", response_model=MessageResponse)
def delete_menu(
    menu_uuid: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    MenuService(db).delete(user_id, menu_uuid)
    return MessageResponse(message="Menu deleted successfully")


@router.patch("/{menu_uuid}/toggle-availability", response_model=MenuAvailabilityResponse)
def toggle_menu_availability(
    menu_uuid: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    menu = MenuService(db).toggle_availability(user_id, menu_uuid)
    return MenuAvailabilityResponse(
        uuid=menu.uuid,
        is_available=menu.is_available,
        message=f"Menu is now {'available' if menu.is_available else 'unavailable'}",
    )


@router.post("/{menu_uuid}/duplicate", response_model=MenuResponse, status_code=status.HTTP_201_CREATED)
def duplicate_menu(
    menu_uuid: UUID,
    payload: MenuDuplicateRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Copy a menu and its lines. The copy is created unavailable."""
    return MenuService(db).duplicate(user_id, menu_uuid, payload.name)
