from datetime import timedelta

import pytest

from homeease.domain.catalog.service import CatalogService
from homeease.domain.providers.service import ProviderService
from homeease.exceptions import AuthorizationError, NotFoundError, ValidationError
from homeease.models import Booking, utcnow
from tests.conftest import complete_booking, make_booking


@pytest.fixture
def provider_service(db):
    return ProviderService(db)


@pytest.fixture
def busy_provider(booking_service, review_service, customer, provider, pipe_repair, deep_clean):
    """One completed and reviewed deep clean, one pending double pipe repair"""
    completed = make_booking(booking_service, customer, deep_clean)
    complete_booking(booking_service, completed.id, provider)
    review_service.submit_review(completed.id, customer, 4, "Thorough and on time")
    make_booking(booking_service, customer, pipe_repair, quantities=[2])
    return provider


class TestUserAdministration:
    def test_lists_users_by_role_and_search(self, provider_service, admin, customer, other_customer, provider):
        customers = provider_service.list_users(admin, role="customer")
        assert customers["total"] == 2

        found = provider_service.list_users(admin, search="vikram")
        assert [u.id for u in found["users"]] == [provider.id]

    def test_filters_by_active_flag(self, provider_service, admin, customer, other_customer):
        provider_service.set_user_status(other_customer.id, False, admin)

        inactive = provider_service.list_users(admin, is_active=False)

        assert [u.id for u in inactive["users"]] == [other_customer.id]

    def test_pagination(self, provider_service, admin, customer, other_customer, provider):
        page = provider_service.list_users(admin, page=2, limit=2)

        assert page["total"] == 4
        assert page["pages"] == 2
        assert len(page["users"]) == 2

    def test_deactivated_provider_cannot_be_booked(self, provider_service, booking_service, admin, customer, provider, pipe_repair):
        updated = provider_service.set_user_status(provider.id, False, admin)
        assert updated.is_active is False

        with pytest.raises(NotFoundError):
            make_booking(booking_service, customer, pipe_repair)

    def test_deactivated_provider_leaves_the_catalog(self, db, provider_service, admin, provider, pipe_repair):
        provider_service.set_user_status(provider.id, False, admin)

        assert CatalogService(db).list_services()["total"] == 0

    def test_reactivated_provider_can_be_booked(self, provider_service, booking_service, admin, customer, provider, pipe_repair):
        provider_service.set_user_status(provider.id, False, admin)
        provider_service.set_user_status(provider.id, True, admin)

        assert make_booking(booking_service, customer, pipe_repair).status == "pending"

    def test_admin_only(self, provider_service, provider, customer):
        with pytest.raises(AuthorizationError):
            provider_service.set_user_status(customer.id, False, provider)
        with pytest.raises(AuthorizationError):
            provider_service.list_users(customer)

    def test_cannot_deactivate_self(self, provider_service, admin):
        with pytest.raises(ValidationError):
            provider_service.set_user_status(admin.id, False, admin)

    def test_unknown_user(self, provider_service, admin):
        with pytest.raises(NotFoundError):
            provider_service.set_user_status(9999, False, admin)


class TestApproval:
    def test_rejection_reason_is_cleared_on_approval(self, provider_service, admin, pending_provider):
        rejected = provider_service.set_approval(pending_provider.id, "rejected", "Missing GST details", admin)
        assert rejected.rejection_reason == "Missing GST details"

        approved = provider_service.set_approval(pending_provider.id, "approved", None, admin)

        assert approved.approval_status == "approved"
        assert approved.rejection_reason is None

    def test_only_providers_can_be_approved(self, provider_service, admin, customer):
        with pytest.raises(ValidationError):
            provider_service.set_approval(customer.id, "approved", None, admin)


class TestProviderAnalytics:
    def test_overview(self, provider_service, busy_provider):
        analytics = provider_service.get_provider_analytics(busy_provider.id, busy_provider)

        assert analytics["timeframe"] == 30
        assert analytics["overview"] == {
            "totalBookings": 2,
            "completedBookings": 1,
            "completionRate": 50,
            "totalRevenue": 1050.0,
            "avgOrderValue": 1050,
            "totalReviews": 1,
            "avgRating": 4.0,
        }
        assert analytics["statusDistribution"] == {"completed": 1, "pending": 1}

    def test_rating_distribution(self, provider_service, busy_provider):
        analytics = provider_service.get_provider_analytics(busy_provider.id, busy_provider)

        assert analytics["ratingDistribution"] == {1: 0, 2: 0, 3: 0, 4: 1, 5: 0}

    def test_popular_services_by_quantity(self, provider_service, busy_provider, pipe_repair, deep_clean):
        popular = provider_service.get_provider_analytics(busy_provider.id, busy_provider)["popularServices"]

        assert [(s["serviceId"], s["count"], s["revenue"]) for s in popular] == [
            (pipe_repair.id, 2, 1000.0),
            (deep_clean.id, 1, 1000.0),
        ]

    def test_daily_trends(self, provider_service, busy_provider):
        trends = provider_service.get_provider_analytics(busy_provider.id, busy_provider)["dailyTrends"]

        assert len(trends) == 1
        assert trends[0]["date"] == utcnow().date().isoformat()
        assert trends[0]["bookings"] == 2
        assert trends[0]["completedBookings"] == 1
        assert trends[0]["revenue"] == 2100.0

    def test_bookings_outside_timeframe_are_ignored(self, db, provider_service, busy_provider):
        db.query(Booking).update({Booking.created_at: utcnow() - timedelta(days=40)}, synchronize_session=False)
        db.commit()

        overview = provider_service.get_provider_analytics(busy_provider.id, busy_provider)["overview"]
        assert overview["totalBookings"] == 0
        assert overview["totalRevenue"] == 0

        wider = provider_service.get_provider_analytics(busy_provider.id, busy_provider, timeframe_days=60)
        assert wider["overview"]["totalBookings"] == 2

    def test_empty_provider(self, provider_service, other_provider):
        analytics = provider_service.get_provider_analytics(other_provider.id, other_provider)

        assert analytics["overview"]["totalBookings"] == 0
        assert analytics["overview"]["completionRate"] == 0
        assert analytics["overview"]["avgRating"] == 0
        assert analytics["popularServices"] == []

    def test_owner_or_admin_only(self, provider_service, busy_provider, other_provider, customer, admin):
        assert provider_service.get_provider_analytics(busy_provider.id, admin)["overview"]["totalBookings"] == 2

        with pytest.raises(AuthorizationError):
            provider_service.get_provider_analytics(busy_provider.id, other_provider)
        with pytest.raises(AuthorizationError):
            provider_service.get_provider_analytics(busy_provider.id, customer)

    def test_not_a_provider(self, provider_service, admin, customer):
        with pytest.raises(NotFoundError):
            provider_service.get_provider_analytics(customer.id, admin)

    def test_timeframe_must_be_positive(self, provider_service, provider):
        with pytest.raises(ValidationError):
            provider_service.get_provider_analytics(provider.id, provider, timeframe_days=0)


class TestPlatformAnalytics:
    def test_platform_overview(self, provider_service, admin, customer, busy_provider):
        analytics = provider_service.get_platform_analytics(admin)

        assert analytics["users"] == {"totalUsers": 1, "totalProviders": 1, "newUsers": 1, "newProviders": 1}
        assert analytics["bookings"] == {"totalBookings": 2, "completedBookings": 1, "completionRate": 50}
        assert analytics["revenue"] == {"totalRevenue": 1050.0, "avgOrderValue": 1050}
        assert analytics["topProviders"] == [
            {"providerId": busy_provider.id, "providerName": "Vikram", "bookingsCount": 2, "revenue": 2100.0}
        ]

    def test_category_performance(self, provider_service, admin, busy_provider):
        categories = provider_service.get_platform_analytics(admin)["categoryPerformance"]

        assert {c["category"]: c["revenue"] for c in categories} == {"plumbing": 1000.0, "cleaning": 1000.0}

    def test_admin_only(self, provider_service, provider):
        with pytest.raises(AuthorizationError):
            provider_service.get_platform_analytics(provider)
