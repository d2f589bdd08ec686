"""
Restaurant Pydantic schemas for API request/response models.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from restohub.schemas.common import Pagination
from restohub.schemas.item import ItemResponse
from restohub.schemas.menu import MenuSummary
from restohub.schemas.review import ReviewResponse

WEEKDAY_KEYS = {"0", "1", "2", "3", "4", "5", "6"}  # "0" = Sunday


class DayHours(BaseModel):
    """Opening window for one weekday, times as HHMM integers (e.g. 1130)."""
    open: Optional[int] = Field(None, ge=0, le=2359)
    close: Optional[int] = Field(None, ge=0, le=2359)
    is_closed: bool = False

    @field_validator("open", "close")
    @classmethod
    def valid_minutes(cls, v):
        if v is not None and v % 100 > 59:
            raise ValueError("minutes must be between 00 and 59")
        return v

    @model_validator(mode="after")
    def open_and_close_together(self):
        if not self.is_closed and (self.open is None or self.close is None):
            raise ValueError("open and close are required unless the day is closed")
        return self


def _check_weekday_keys(hours: Optional[Dict[str, DayHours]]) -> Optional[Dict[str, DayHours]]:
    if hours is not None:
        unknown = set(hours) - WEEKDAY_KEYS
        if unknown:
            raise ValueError(f"opening_hours keys must be '0'..'6' (0 = Sunday), got {sorted(unknown)}")
    return hours


class RestaurantBase(BaseModel):
    description: Optional[str] = Field(None, max_length=1000)
    cuisine_type: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    opening_hours: Optional[Dict[str, DayHours]] = None
    delivery_fee: Optional[Decimal] = Field(None, ge=0, le=50)
    minimum_order: Optional[Decimal] = Field(None, ge=0)
    average_delivery_time: Optional[int] = Field(None, ge=10, le=120)
    tags: Optional[List[str]] = Field(None, max_length=20)
    business_license: Optional[str] = Field(None, max_length=100)
    settings: Optional[Dict[str, Any]] = None

    @field_validator("opening_hours")
    @classmethod
    def weekday_keys(cls, v):
        return _check_weekday_keys(v)


class RestaurantCreate(RestaurantBase):
    """Request model for registering the caller's restaurant."""
    name: str = Field(..., min_length=2, max_length=100)
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1, max_length=100)
    postal_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field("France", max_length=100)

    @field_validator("name", "address", "city", "postal_code")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class RestaurantUpdate(RestaurantBase):
    """Request model for updating the caller's restaurant. Unset fields are left alone."""
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if v is not None else v


class RestaurantPublic(BaseModel):
    """Restaurant as customers see it. Never carries the business license."""
    uuid: UUID
    name: str
    description: Optional[str] = None
    cuisine_type: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: str
    city: str
    postal_code: str
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    opening_hours: Dict[str, Any] = Field(default_factory=dict)
    is_open: bool
    rating: Decimal = Decimal("0")
    review_count: int = 0
    delivery_fee: Decimal = Decimal("0")
    minimum_order: Decimal = Decimal("0")
    average_delivery_time: Optional[int] = None
    tags: List[str] = Field(default_factory=list)
    is_verified: bool = False
    is_open_now: bool = False
    distance: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)


class RestaurantResponse(RestaurantPublic):
    """Owner view of their own restaurant."""
    owner_id: str
    is_active: bool
    business_license: Optional[str] = None
    settings: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RestaurantDetail(RestaurantPublic):
    """Public restaurant page with its catalogue and latest reviews."""
    items: List[ItemResponse] = Field(default_factory=list)
    menus: List[MenuSummary] = Field(default_factory=list)
    reviews: List[ReviewResponse] = Field(default_factory=list)


class RestaurantListResponse(BaseModel):
    restaurants: List[RestaurantPublic]
    pagination: Optional[Pagination] = None


class ToggleStatusResponse(BaseModel):
    uuid: UUID
    is_open: bool
    message: str
