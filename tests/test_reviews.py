import pytest

from homeease.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from homeease.models import Review
from tests.conftest import complete_booking, make_booking


@pytest.fixture
def completed_booking(booking_service, customer, provider, deep_clean):
    booking = make_booking(booking_service, customer, deep_clean)
    return complete_booking(booking_service, booking.id, provider)


class TestReviewEligibility:
    def test_not_eligible_until_completed(self, booking_service, customer, provider, pipe_repair):
        booking = make_booking(booking_service, customer, pipe_repair)
        assert booking_service.can_review(booking.id, customer.id) is False

        booking_service.transition_status(booking.id, "confirmed", provider)
        booking_service.transition_service_status(booking.id, "in-progress", provider)
        assert booking_service.can_review(booking.id, customer.id) is False

        booking_service.transition_service_status(booking.id, "completed", provider)
        assert booking_service.can_review(booking.id, customer.id) is True

    def test_not_eligible_once_reviewed(self, booking_service, review_service, customer, completed_booking):
        review_service.submit_review(completed_booking.id, customer, 4, "Neat and tidy job")

        assert booking_service.can_review(completed_booking.id, customer.id) is False

    def test_only_the_booking_customer(self, booking_service, other_customer, completed_booking):
        assert booking_service.can_review(completed_booking.id, other_customer.id) is False

    def test_unknown_booking(self, booking_service, customer):
        assert booking_service.can_review(12345, customer.id) is False


class TestSubmitReview:
    def test_stores_review_against_first_line_item(
        self, review_service, customer, provider, deep_clean, completed_booking
    ):
        review = review_service.submit_review(completed_booking.id, customer, 5, "  Spotless kitchen afterwards  ")

        assert review.booking_id == completed_booking.id
        assert review.provider_id == provider.id
        assert review.service_id == deep_clean.id
        assert review.comment == "Spotless kitchen afterwards"
        assert review.is_visible is True

    def test_before_completion(self, booking_service, review_service, customer, pipe_repair):
        booking = make_booking(booking_service, customer, pipe_repair)

        with pytest.raises(PreconditionError):
            review_service.submit_review(booking.id, customer, 5, "Looking forward to it")

    def test_someone_elses_booking(self, review_service, other_customer, completed_booking):
        with pytest.raises(AuthorizationError):
            review_service.submit_review(completed_booking.id, other_customer, 5, "Never even booked this")

    def test_unknown_booking(self, review_service, customer):
        with pytest.raises(NotFoundError):
            review_service.submit_review(999, customer, 5, "Who booked this one?")

    @pytest.mark.parametrize("rating", [0, 6, -1])
    def test_rating_out_of_range(self, review_service, customer, completed_booking, rating):
        with pytest.raises(ValidationError):
            review_service.submit_review(completed_booking.id, customer, rating, "Rating is out of range")

    def test_comment_too_short(self, review_service, customer, completed_booking):
        with pytest.raises(ValidationError):
            review_service.submit_review(completed_booking.id, customer, 4, "Good")

    def test_comment_too_long(self, review_service, customer, completed_booking):
        with pytest.raises(ValidationError):
            review_service.submit_review(completed_booking.id, customer, 4, "x" * 501)

    def test_duplicate_review(self, db, review_service, customer, completed_booking):
        review_service.submit_review(completed_booking.id, customer, 5, "Great work, very punctual")

        with pytest.raises(ConflictError):
            review_service.submit_review(completed_booking.id, customer, 1, "Changed my mind about it")
        assert db.query(Review).count() == 1


class TestProviderRating:
    def test_rating_is_recomputed_from_reviews(
        self, db, booking_service, review_service, customer, provider, deep_clean
    ):
        for rating in (5, 4):
            booking = make_booking(booking_service, customer, deep_clean)
            complete_booking(booking_service, booking.id, provider)
            review_service.submit_review(booking.id, customer, rating, "Rated after the visit")

        db.refresh(provider)
        assert provider.provider_rating == 4.5
        assert provider.provider_total_ratings == 2

    def test_hidden_reviews_do_not_count(self, db, booking_service, review_service, customer, provider, admin, deep_clean):
        reviews = []
        for rating in (5, 1):
            booking = make_booking(booking_service, customer, deep_clean)
            complete_booking(booking_service, booking.id, provider)
            reviews.append(review_service.submit_review(booking.id, customer, rating, "Rated after the visit"))

        review_service.set_visibility(reviews[1].id, False, admin)

        db.refresh(provider)
        assert provider.provider_rating == 5.0
        assert provider.provider_total_ratings == 1

    def test_deleting_review_recomputes_rating(self, db, review_service, customer, provider, admin, completed_booking):
        review = review_service.submit_review(completed_booking.id, customer, 3, "Average experience")

        review_service.delete_review(review.id, admin)

        db.refresh(provider)
        assert provider.provider_rating == 0.0
        assert provider.provider_total_ratings == 0
        assert db.query(Review).count() == 0


class TestReviewListing:
    def test_service_reviews_with_average(self, booking_service, review_service, customer, provider, deep_clean):
        for rating in (5, 4, 4):
            booking = make_booking(booking_service, customer, deep_clean)
            complete_booking(booking_service, booking.id, provider)
            review_service.submit_review(booking.id, customer, rating, "Rated after the visit")

        page = review_service.list_service_reviews(deep_clean.id, page=1, limit=2)

        assert page["total"] == 3
        assert page["pages"] == 2
        assert len(page["reviews"]) == 2
        assert page["averageRating"] == 4.3
        assert page["reviews"][0].customer_name == "Asha Verma"

    def test_provider_reviews_are_private(self, review_service, provider, other_provider, admin):
        assert review_service.list_provider_reviews(provider.id, provider)["total"] == 0
        assert review_service.list_provider_reviews(provider.id, admin)["total"] == 0
        with pytest.raises(AuthorizationError):
            review_service.list_provider_reviews(provider.id, other_provider)

    def test_admin_listing_includes_hidden(self, review_service, customer, admin, completed_booking):
        review = review_service.submit_review(completed_booking.id, customer, 2, "Arrived an hour late")
        review_service.set_visibility(review.id, False, admin)

        assert review_service.list_all_reviews(admin)["total"] == 1
        assert review_service.list_all_reviews(admin, rating=5)["total"] == 0
        assert review_service.list_service_reviews(review.service_id)["total"] == 0

    def test_moderation_is_admin_only(self, review_service, customer, provider, completed_booking):
        review = review_service.submit_review(completed_booking.id, customer, 2, "Arrived an hour late")

        with pytest.raises(AuthorizationError):
            review_service.set_visibility(review.id, False, provider)
        with pytest.raises(AuthorizationError):
            review_service.delete_review(review.id, customer)
