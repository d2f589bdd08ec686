"""
Review Pydantic schemas for API request/response models.
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from restohub.schemas.common import Pagination


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, min_length=10, max_length=1000)
    order_id: Optional[str] = Field(None, max_length=64)
    images: List[str] = Field(default_factory=list, max_length=3)

    @field_validator("comment")
    @classmethod
    def strip_comment(cls, v):
        return v.strip() if v is not None else v


class ReviewRespond(BaseModel):
    """Owner reply to a review."""
    response: str = Field(..., min_length=10, max_length=500)

    @field_validator("response")
    @classmethod
    def strip_response(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 10:
            raise ValueError("response must be at least 10 characters")
        return v


class ReviewResponse(BaseModel):
    uuid: UUID
    customer_id: str
    order_id: Optional[str] = None
    rating: int
    comment: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    is_verified: bool
    is_visible: bool
    response: Optional[str] = None
    responded_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ReviewListResponse(BaseModel):
    reviews: List[ReviewResponse]
    pagination: Pagination
    average_rating: float
