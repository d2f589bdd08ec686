"""
Customer reviews and owner responses.

The restaurant's ``rating`` and ``review_count`` always reflect its visible
reviews; every write that changes that set recalculates them.
"""
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from restohub.core.exceptions import DuplicateEntityError, NotFoundError, ValidationError
from restohub.core.rounding import round_half_up
from restohub.db.session import atomic
from restohub.models.restaurant import Restaurant
from restohub.models.review import Review
from restohub.schemas.review import ReviewCreate
from restohub.services.restaurant_service import RestaurantService


class ReviewService:

    def __init__(self, db: Session):
        self.db = db

    def list_public(
        self,
        restaurant_uuid: UUID,
        rating: Optional[int] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Review], int, float]:
        """Visible reviews, newest first, with the restaurant's current average."""
        restaurant = RestaurantService(self.db).get_public(restaurant_uuid)
        query = select(Review).where(Review.restaurant_id == restaurant.id, Review.is_visible == True)
        if rating is not None:
            query = query.where(Review.rating == rating)

        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar_one()
        reviews = self.db.execute(
            query.order_by(Review.created_at.desc(), Review.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars().all()
        return list(reviews), total, float(restaurant.rating or 0)

    def list_owned(self, owner_id: str, page: int = 1, limit: int = 10) -> Tuple[List[Review], int, float]:
        """Every review of the caller's restaurant, hidden ones included."""
        restaurant = RestaurantService(self.db).get_owned(owner_id)
        query = select(Review).where(Review.restaurant_id == restaurant.id)
        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar_one()
        reviews = self.db.execute(
            query.order_by(Review.created_at.desc(), Review.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars().all()
        return list(reviews), total, float(restaurant.rating or 0)

    def create(self, restaurant_uuid: UUID, customer_id: str, payload: ReviewCreate) -> Review:
        """One review per customer per restaurant; owners cannot review themselves."""
        restaurant = RestaurantService(self.db).get_public(restaurant_uuid)
        if restaurant.owner_id == customer_id:
            raise ValidationError("You cannot review your own restaurant")

        existing = self.db.execute(
            select(Review.id).where(Review.restaurant_id == restaurant.id, Review.customer_id == customer_id)
        ).first()
        if existing:
            raise DuplicateEntityError("You have already reviewed this restaurant")

        review = Review(restaurant_id=restaurant.id, customer_id=customer_id, **payload.model_dump(exclude_none=True))
        try:
            with atomic(self.db):
                self.db.add(review)
                self.db.flush()
                self._recalculate_rating(restaurant)
        except IntegrityError:
            raise DuplicateEntityError("You have already reviewed this restaurant")

        self.db.refresh(review)
        return review

    def _get_owned_review(self, owner_id: str, review_uuid: UUID) -> Review:
        restaurant = RestaurantService(self.db).get_owned(owner_id)
        review = self.db.execute(
            select(Review).where(Review.uuid == review_uuid, Review.restaurant_id == restaurant.id)
        ).scalar_one_or_none()
        if review is None:
            raise NotFoundError("Review")
        return review

    def respond(self, owner_id: str, review_uuid: UUID, response: str) -> Review:
        review = self._get_owned_review(owner_id, review_uuid)
        with atomic(self.db):
            review.response = response
            review.responded_at = datetime.utcnow()
        self.db.refresh(review)
        return review

    def toggle_visibility(self, owner_id: str, review_uuid: UUID) -> Review:
        review = self._get_owned_review(owner_id, review_uuid)
        with atomic(self.db):
            review.is_visible = not review.is_visible
            self.db.flush()
            self._recalculate_rating(review.restaurant)
        self.db.refresh(review)
        return review

    def _recalculate_rating(self, restaurant: Restaurant) -> None:
        average, count = self.db.execute(
            select(func.avg(Review.rating), func.count(Review.id)).where(
                Review.restaurant_id == restaurant.id,
                Review.is_visible == True,
            )
        ).one()
        restaurant.rating = round_half_up(average, 2) if count else 0
        restaurant.review_count = count
