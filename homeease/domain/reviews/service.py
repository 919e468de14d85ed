"""Review service - The review gate and provider rating upkeep"""

import logging
import math
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...auth import require_role
from ...config import REVIEW_MAX_COMMENT_LENGTH, REVIEW_MIN_COMMENT_LENGTH
from ...exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from ...models import Review, User
from ..bookings.repository import BookingRepository
from ..bookings.service import is_completed
from .repository import ReviewRepository

logger = logging.getLogger(__name__)


class ReviewService:
    """Service layer for review business logic"""

    def __init__(self, db: Session, min_comment_length: int = REVIEW_MIN_COMMENT_LENGTH):
        self.db = db
        self.min_comment_length = min_comment_length
        self.repo = ReviewRepository()
        self.bookings = BookingRepository()

    def submit_review(self, booking_id: int, customer: User, rating: int, comment: str) -> Review:
        """
        Store the customer's review of a completed booking.

        Raises:
            ValidationError: rating outside 1-5 or comment length out of range
            NotFoundError: unknown booking
            AuthorizationError: the booking belongs to someone else
            PreconditionError: the booking is not completed yet
            ConflictError: the booking already has a review
        """
        comment = (comment or "").strip()
        self._validate(rating, comment)

        booking = self.bookings.get_booking_by_id(self.db, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        if booking.customer_id != customer.id:
            raise AuthorizationError()
        if not is_completed(booking):
            raise PreconditionError("You can only review completed bookings")
        if self.repo.get_review_by_booking(self.db, booking_id):
            raise ConflictError("This booking has already been reviewed")

        logger.info(f"📥 Storing {rating}-star review for booking {booking.booking_code}")
        review = self.repo.create_review(
            self.db,
            Review(
                booking_id=booking.id,
                customer_id=customer.id,
                provider_id=booking.provider_id,
                service_id=booking.items[0].service_id,
                rating=rating,
                comment=comment,
                is_visible=True,
            ),
        )

        self._refresh_rating(review.provider_id)
        logger.info(f"✅ Review {review.id} stored for booking {booking.booking_code}")
        return review

    def _validate(self, rating: int, comment: str) -> None:
        if not isinstance(rating, int) or isinstance(rating, bool) or not 1 <= rating <= 5:
            raise ValidationError("Rating must be a whole number between 1 and 5")
        if len(comment) < self.min_comment_length:
            raise ValidationError(
                f"Comment must be at least {self.min_comment_length} characters long"
            )
        if len(comment) > REVIEW_MAX_COMMENT_LENGTH:
            raise ValidationError(
                f"Comment cannot be longer than {REVIEW_MAX_COMMENT_LENGTH} characters"
            )

    def _refresh_rating(self, provider_id: int) -> None:
        try:
            self.repo.refresh_provider_rating(self.db, provider_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to refresh rating for provider {provider_id}: {e}")

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_provider_reviews(self, provider_id: int, actor: User, page: int = 1, limit: int = 10) -> dict:
        if actor.role != "admin" and actor.id != provider_id:
            raise AuthorizationError()
        return self._page(page, limit, provider_id=provider_id)

    def list_service_reviews(self, service_id: int, page: int = 1, limit: int = 10) -> dict:
        return self._page(page, limit, service_id=service_id)

    def list_all_reviews(
        self, actor: User, rating: Optional[int] = None, page: int = 1, limit: int = 20
    ) -> dict:
        """Admin view, hidden reviews included"""
        require_role(actor, ["admin"])
        return self._page(page, limit, rating=rating, visible_only=False)

    def _page(self, page: int, limit: int, **filters) -> dict:
        reviews, total, average = self.repo.list_reviews(self.db, page=page, limit=limit, **filters)
        return {
            "reviews": reviews,
            "page": page,
            "pages": math.ceil(total / limit) if limit else 0,
            "total": total,
            "averageRating": average,
        }

    # ------------------------------------------------------------------
    # Moderation
    # ------------------------------------------------------------------

    def set_visibility(self, review_id: int, is_visible: bool, actor: User) -> Review:
        require_role(actor, ["admin"])
        review = self._get_existing(review_id)
        review = self.repo.set_visibility(self.db, review, is_visible)
        logger.info(f"👁️ Review {review_id} visibility set to {is_visible}")
        self._refresh_rating(review.provider_id)
        return review

    def delete_review(self, review_id: int, actor: User) -> None:
        require_role(actor, ["admin"])
        review = self._get_existing(review_id)
        provider_id = review.provider_id
        self.repo.delete_review(self.db, review)
        logger.info(f"🗑️ Review {review_id} deleted")
        self._refresh_rating(provider_id)

    def _get_existing(self, review_id: int) -> Review:
        review = self.repo.get_review(self.db, review_id)
        if not review:
            raise NotFoundError("Review not found")
        return review
