"""
Review router: public listing and posting, owner moderation and replies.
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from restohub.core.deps import get_current_user_id
from restohub.db.session import get_db
from restohub.schemas.common import Pagination
from restohub.schemas.review import ReviewCreate, ReviewListResponse, ReviewRespond, ReviewResponse
from restohub.services.review_service import ReviewService

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.get("/restaurant/{restaurant_uuid}", response_model=ReviewListResponse)
def list_restaurant_reviews(
    restaurant_uuid: UUID,
    rating: Optional[int] = Query(None, ge=1, le=5),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
):
    reviews, total, average = ReviewService(db).list_public(
        restaurant_uuid, rating=rating, page=page, limit=limit
    )
    return ReviewListResponse(
        reviews=[ReviewResponse.model_validate(r) for r in reviews],
        pagination=Pagination.build(page, limit, total),
        average_rating=average,
    )


@router.post(
    "/restaurant/{restaurant_uuid}",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_review(
    restaurant_uuid: UUID,
    payload: ReviewCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Post the caller's review. One review per customer and restaurant."""
    return ReviewService(db).create(restaurant_uuid, user_id, payload)


@router.get("/me", response_model=ReviewListResponse)
def list_my_restaurant_reviews(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Every review of the caller's restaurant, hidden ones included."""
    reviews, total, average = ReviewService(db).list_owned(user_id, page=page, limit=limit)
    return ReviewListResponse(
        reviews=[ReviewResponse.model_validate(r) for r in reviews],
        pagination=Pagination.build(page, limit, total),
        average_rating=average,
    )


@router.post("/{review_uuid}/respond", response_model=ReviewResponse)
def respond_to_review(
    review_uuid: UUID,
    payload: ReviewRespond,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return ReviewService(db).respond(user_id, review_uuid, payload.response)


@router.patch("/{review_uuid}/toggle-visibility", response_model=ReviewResponse)
def toggle_review_visibility(
    review_uuid: UUID,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Hide or show a review. The restaurant rating only counts visible reviews."""
    return ReviewService(db).toggle_visibility(user_id, review_uuid)
