import uuid
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Uuid, JSON, UniqueConstraint, CheckConstraint, func
from sqlalchemy.orm import relationship

from restohub.db.base import Base


class Review(Base):
    """Customer review of a restaurant, with an optional owner response."""
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uuid = Column(Uuid, unique=True, nullable=False, default=uuid.uuid4)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True)
    customer_id = Column(String(64), nullable=False, index=True)  # id from the user service
    order_id = Column(String(64))  # id from the order service
    rating = Column(Integer, nullable=False)
    comment = Column(Text)
    images = Column(JSON, default=list)
    is_verified = Column(Boolean, default=False, nullable=False)
    is_visible = Column(Boolean, default=True, nullable=False)
    response = Column(Text)
    responded_at = Column(DateTime)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    restaurant = relationship("Restaurant", back_populates="reviews")

    __table_args__ = (
        UniqueConstraint("restaurant_id", "customer_id", name="uq_reviews_restaurant_customer"),
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating"),
    )
