"""
Item Pydantic schemas for API request/response models.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from restohub.schemas.common import CategoryRef, Pagination

Allergen = Literal["gluten", "dairy", "eggs", "nuts", "peanuts", "soy", "fish", "shellfish", "sesame"]


class NutritionalInfo(BaseModel):
    """Per-portion nutrition. Calories in kcal, the rest in grams."""
    calories: Optional[float] = Field(None, ge=0, le=5000)
    protein: Optional[float] = Field(None, ge=0, le=200)
    carbs: Optional[float] = Field(None, ge=0, le=500)
    fat: Optional[float] = Field(None, ge=0, le=200)


class ItemBase(BaseModel):
    description: Optional[str] = Field(None, max_length=500)
    # Lower bound and original_price > price are enforced by ItemService
    price: Optional[Decimal] = Field(None, le=Decimal("999.99"), decimal_places=2)
    original_price: Optional[Decimal] = Field(None, le=Decimal("999.99"), decimal_places=2)
    category_id: Optional[UUID] = None
    is_available: Optional[bool] = None
    preparation_time: Optional[int] = Field(None, ge=0, le=180)
    calories: Optional[int] = Field(None, ge=0, le=5000)
    allergens: Optional[List[Allergen]] = Field(None, max_length=10)
    nutritional_info: Optional[NutritionalInfo] = None
    ingredients: Optional[List[str]] = Field(None, max_length=20)
    tags: Optional[List[str]] = Field(None, max_length=20)
    is_vegetarian: Optional[bool] = None
    is_vegan: Optional[bool] = None
    is_gluten_free: Optional[bool] = None
    is_spicy: Optional[bool] = None
    spicy_level: Optional[int] = Field(None, ge=0, le=5)
    is_popular: Optional[bool] = None
    is_featured: Optional[bool] = None
    sort_order: Optional[int] = Field(None, ge=0)

    @field_validator("allergens")
    @classmethod
    def unique_allergens(cls, v):
        if v is not None:
            v = list(dict.fromkeys(v))
        return v


class ItemCreate(ItemBase):
    """Request model for adding an item to the caller's restaurant."""
    name: str = Field(..., min_length=2, max_length=100)
    price: Decimal = Field(..., le=Decimal("999.99"), decimal_places=2)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("name must be at least 2 characters")
        return v


class ItemUpdate(ItemBase):
    """Request model for updating an item. Unset fields are left alone."""
    name: Optional[str] = Field(None, min_length=2, max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        if len(v) < 2:
            raise ValueError("name must be at least 2 characters")
        return v


class ItemBrief(BaseModel):
    """Item reference embedded in menu lines."""
    uuid: UUID
    name: str
    price: Decimal
    is_available: bool
    calories: Optional[int] = None
    allergens: List[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class ItemResponse(BaseModel):
    """Response model for a single item."""
    uuid: UUID
    name: str
    description: Optional[str] = None
    price: Decimal
    original_price: Optional[Decimal] = None
    has_discount: bool
    discount_percentage: int
    category: Optional[CategoryRef] = None
    is_available: bool
    preparation_time: Optional[int] = None
    calories: Optional[int] = None
    allergens: List[str] = Field(default_factory=list)
    nutritional_info: Optional[dict] = None
    ingredients: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    is_vegetarian: bool = False
    is_vegan: bool = False
    is_gluten_free: bool = False
    is_spicy: bool = False
    spicy_level: Optional[int] = 0
    rating: Optional[Decimal] = None
    review_count: Optional[int] = 0
    order_count: Optional[int] = 0
    is_popular: bool = False
    is_featured: bool = False
    sort_order: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ItemSearchResult(ItemResponse):
    """Item found by public search, with the restaurant that sells it."""
    restaurant_uuid: UUID
    restaurant_name: str


class ItemListResponse(BaseModel):
    items: List[ItemResponse]
    pagination: Pagination


class ItemSearchResponse(BaseModel):
    items: List[ItemSearchResult]
    pagination: Pagination


class ItemAvailabilityResponse(BaseModel):
    uuid: UUID
    is_available: bool
    message: str
