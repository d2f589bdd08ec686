"""
Shared response pieces.
"""
import math
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class Pagination(BaseModel):
    """Page metadata returned by every paginated listing."""
    current_page: int
    total_pages: int
    total_count: int
    limit: int

    @classmethod
    def build(cls, page: int, limit: int, total_count: int) -> "Pagination":
        return cls(
            current_page=page,
            total_pages=math.ceil(total_count / limit) if limit else 0,
            total_count=total_count,
            limit=limit,
        )


class MessageResponse(BaseModel):
    message: str


class CategoryRef(BaseModel):
    """Compact category reference embedded in other resources."""
    uuid: UUID
    name: str
    slug: str
    color: Optional[str] = None
    icon: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class RestaurantRef(BaseModel):
    uuid: UUID
    name: str
    city: str
    cuisine_type: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
