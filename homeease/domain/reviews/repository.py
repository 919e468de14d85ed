"""Review repository - Database operations for reviews and provider ratings"""

import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ...database import retry_read
from ...exceptions import ConflictError
from ...models import Review, User, utcnow

logger = logging.getLogger(__name__)


class ReviewRepository:
    """Repository for review database operations"""

    @staticmethod
    @retry_read
    def get_review(db: Session, review_id: int) -> Optional[Review]:
        return db.query(Review).filter(Review.id == review_id).first()

    @staticmethod
    @retry_read
    def get_review_by_booking(db: Session, booking_id: int) -> Optional[Review]:
        return db.query(Review).filter(Review.booking_id == booking_id).first()

    @staticmethod
    def create_review(db: Session, review: Review) -> Review:
        """Insert a review; the unique booking_id index rejects a second one"""
        db.add(review)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.warning(f"⚠️ Duplicate review rejected for booking {review.booking_id}")
            raise ConflictError("This booking has already been reviewed") from e
        db.refresh(review)
        return review

    @staticmethod
    def refresh_provider_rating(db: Session, provider_id: int) -> tuple[float, int]:
        """Recompute the provider's rating from visible reviews"""
        average, count = (
            db.query(func.avg(Review.rating), func.count(Review.id))
            .filter(Review.provider_id == provider_id, Review.is_visible.is_(True))
            .one()
        )
        rating = round(float(average), 1) if average else 0.0

        db.query(User).filter(User.id == provider_id).update(
            {
                User.provider_rating: rating,
                User.provider_total_ratings: count,
                User.updated_at: utcnow(),
            },
            synchronize_session=False,
        )
        db.commit()
        logger.info(f"⭐ Provider {provider_id} rating: {rating} from {count} reviews")
        return rating, count

    @staticmethod
    @retry_read
    def list_reviews(
        db: Session,
        provider_id: Optional[int] = None,
        service_id: Optional[int] = None,
        rating: Optional[int] = None,
        visible_only: bool = True,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Review], int, float]:
        """Return (page_items, total, average_rating) for the filtered reviews"""
        query = db.query(Review)

        if provider_id is not None:
            query = query.filter(Review.provider_id == provider_id)
        if service_id is not None:
            query = query.filter(Review.service_id == service_id)
        if rating is not None:
            query = query.filter(Review.rating == rating)
        if visible_only:
            query = query.filter(Review.is_visible.is_(True))

        total = query.count()
        average = query.with_entities(func.avg(Review.rating)).scalar()
        reviews = (
            query.options(joinedload(Review.customer))
            .order_by(Review.created_at.desc(), Review.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return reviews, total, round(float(average), 1) if average else 0.0

    @staticmethod
    def set_visibility(db: Session, review: Review, is_visible: bool) -> Review:
        review.is_visible = is_visible
        db.commit()
        db.refresh(review)
        return review

    @staticmethod
    def delete_review(db: Session, review: Review) -> None:
        db.delete(review)
        db.commit()
