"""
Menu Pydantic schemas for API request/response models.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from restohub.schemas.common import Pagination
from restohub.schemas.item import ItemBrief


class MenuLine(BaseModel):
    """One requested line of a menu."""
    item_id: UUID
    quantity: int = Field(1, ge=1, le=10)
    is_optional: bool = False
    extra_price: Decimal = Field(Decimal("0"), ge=0, le=100)


def _check_lines(lines: Optional[List[MenuLine]]) -> Optional[List[MenuLine]]:
    if lines is not None:
        ids = [line.item_id for line in lines]
        if len(ids) != len(set(ids)):
            raise ValueError("an item can appear only once per menu")
    return lines


class MenuBase(BaseModel):
    description: Optional[str] = Field(None, max_length=500)
    original_price: Optional[Decimal] = Field(None, ge=0, le=1000)
    is_available: Optional[bool] = None
    preparation_time: Optional[int] = Field(None, ge=0, le=180)
    images: Optional[List[str]] = Field(None, max_length=5)
    tags: Optional[List[str]] = Field(None, max_length=20)
    is_popular: Optional[bool] = None
    is_featured: Optional[bool] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    sort_order: Optional[int] = Field(None, ge=0)

    @field_validator("valid_from", "valid_until")
    @classmethod
    def naive_local_time(cls, v: Optional[datetime]) -> Optional[datetime]:
        # Stored naive and compared against datetime.now()
        if v is not None and v.tzinfo is not None:
            return v.astimezone().replace(tzinfo=None)
        return v

    @model_validator(mode="after")
    def validity_window(self):
        if self.valid_from and self.valid_until and self.valid_until <= self.valid_from:
            raise ValueError("valid_until must be after valid_from")
        return self


class MenuCreate(MenuBase):
    """Request model for creating a menu with its composition."""
    name: str = Field(..., min_length=2, max_length=100)
    price: Decimal = Field(..., ge=0, le=1000)
    items: List[MenuLine] = Field(..., min_length=1, max_length=20)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()

    @field_validator("items")
    @classmethod
    def distinct_items(cls, v):
        return _check_lines(v)


class MenuUpdate(MenuBase):
    """
    Request model for updating a menu.

    ``items`` replaces the whole composition when present, even as ``[]``;
    leaving it out keeps the current lines.
    """
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    price: Optional[Decimal] = Field(None, ge=0, le=1000)
    items: Optional[List[MenuLine]] = Field(None, max_length=20)

    @field_validator("items")
    @classmethod
    def distinct_items(cls, v):
        return _check_lines(v)


class MenuDuplicateRequest(BaseModel):
    # Length is checked by MenuService so a short name reports a domain error
    name: Optional[str] = None


class MenuBulkAvailabilityRequest(BaseModel):
    menu_ids: List[UUID] = Field(..., min_length=1, max_length=100)
    is_available: bool


class MenuBulkAvailabilityResponse(BaseModel):
    updated_count: int
    message: str


class MenuLineResponse(BaseModel):
    item: ItemBrief
    quantity: int
    is_optional: bool
    extra_price: Decimal

    model_config = ConfigDict(from_attributes=True)


class NutritionalSummary(BaseModel):
    total_calories: int
    total_protein: float
    total_carbs: float
    total_fat: float


class MenuSummary(BaseModel):
    """Menu without its composition, for listings."""
    uuid: UUID
    name: str
    description: Optional[str] = None
    price: Decimal
    original_price: Optional[Decimal] = None
    is_available: bool
    preparation_time: Optional[int] = None
    images: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    is_popular: bool
    is_featured: bool
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    sort_order: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class MenuResponse(MenuSummary):
    """Menu with its lines; single reads also carry a nutrition summary."""
    items: List[MenuLineResponse] = Field(default_factory=list, validation_alias=AliasChoices("menu_items", "items"))
    nutritional_summary: Optional[NutritionalSummary] = None


class MenuStatistics(BaseModel):
    total: int
    available: int
    featured: int
    unavailable: int


class MenuListResponse(BaseModel):
    menus: List[MenuResponse]
    pagination: Pagination
    statistics: MenuStatistics


class MenuAvailabilityResponse(BaseModel):
    uuid: UUID
    is_available: bool
    message: str


class MenuAnalyticsEntry(BaseModel):
    uuid: UUID
    name: str
    price: float
    is_available: bool
    is_featured: bool
    is_popular: bool
    total_items: int
    average_item_price: float
    menu_items_cost: float
    profit_margin: float


class MenuAnalyticsSummary(BaseModel):
    total_menus: int
    available_menus: int
    featured_menus: int
    popular_menus: int
    average_menu_price: float
    average_profit_margin: float


class MenuAnalyticsResponse(BaseModel):
    analytics: List[MenuAnalyticsEntry]
    summary: MenuAnalyticsSummary
