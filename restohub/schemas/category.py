"""
Category Pydantic schemas for API request/response models.
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from restohub.schemas.common import CategoryRef, Pagination, RestaurantRef
from restohub.schemas.item import ItemResponse

COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class CategoryBase(BaseModel):
    description: Optional[str] = Field(None, max_length=500)
    icon: Optional[str] = Field(None, max_length=100)
    image: Optional[str] = Field(None, max_length=255)
    is_active: Optional[bool] = None
    sort_order: Optional[int] = Field(None, ge=0)
    parent_id: Optional[UUID] = None
    # Replaces the set of restaurants offering the category when present
    restaurant_ids: Optional[List[UUID]] = None


class CategoryCreate(CategoryBase):
    name: str = Field(..., min_length=2, max_length=100)
    color: str = Field("#000000", pattern=COLOR_PATTERN)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class CategoryUpdate(CategoryBase):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    color: Optional[str] = Field(None, pattern=COLOR_PATTERN)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if v is not None else v


class CategoryReorderRequest(BaseModel):
    """Category uuids in their new display order."""
    category_ids: List[UUID] = Field(..., min_length=1)


class CategoryResponse(BaseModel):
    uuid: UUID
    name: str
    slug: str
    description: Optional[str] = None
    icon: Optional[str] = None
    image: Optional[str] = None
    color: Optional[str] = None
    is_active: bool
    sort_order: int
    parent: Optional[CategoryRef] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CategoryDetail(CategoryResponse):
    subcategories: List[CategoryRef] = Field(default_factory=list)
    items: List[ItemResponse] = Field(default_factory=list)
    restaurants: List[RestaurantRef] = Field(default_factory=list)


class CategoryWithItems(CategoryResponse):
    """Category as offered by one restaurant, optionally with its items there."""
    items: Optional[List[ItemResponse]] = None


class CategoryListResponse(BaseModel):
    categories: List[CategoryResponse]
    pagination: Pagination


class RestaurantCategoryResponse(BaseModel):
    """One restaurant <-> category association."""
    restaurant: RestaurantRef
    category: CategoryRef
    is_active: bool
    added_by: Optional[str] = None
    added_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ReorderResponse(BaseModel):
    categories: List[CategoryRef]
    message: str
