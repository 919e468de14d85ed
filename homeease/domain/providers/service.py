"""Provider service - Dashboards, approval workflow, account status and analytics"""

import logging
import math
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...auth import require_role
from ...exceptions import AuthorizationError, NotFoundError, ValidationError
from ...models import User, utcnow
from ..bookings.repository import BookingRepository
from .repository import ProviderRepository

logger = logging.getLogger(__name__)


class ProviderService:
    """Service layer for provider and admin views"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProviderRepository()
        self.bookings = BookingRepository()

    def get_dashboard(self, user: User) -> dict:
        """Booking counts, earnings and the ten most recent bookings"""
        require_role(user, ["provider"])

        counts = self.bookings.get_status_counts(self.db, provider_id=user.id)
        return {
            "stats": {
                "totalBookings": counts["total"],
                "pendingBookings": counts["pending"],
                "confirmedBookings": counts["confirmed"],
                "completedBookings": counts["completed"],
                "cancelledBookings": counts["cancelled"],
                "rejectedBookings": counts["rejected"],
                "totalEarnings": self.repo.get_completed_earnings(self.db, user.id),
                "rating": user.provider_rating or 0.0,
                "totalRatings": user.provider_total_ratings or 0,
            },
            "recentBookings": self.repo.get_recent_bookings(self.db, user.id, limit=10),
        }

    def list_pending_providers(self, admin: User) -> list[User]:
        require_role(admin, ["admin"])
        return self.repo.get_pending_providers(self.db)

    def set_approval(self, provider_id: int, status: str, reason: Optional[str], admin: User) -> User:
        require_role(admin, ["admin"])

        provider = self.repo.get_user(self.db, provider_id)
        if not provider:
            raise NotFoundError("Provider not found")
        if provider.role != "provider":
            raise ValidationError("User is not a provider")

        provider = self.repo.set_approval(self.db, provider, status, reason)
        logger.info(f"✅ Provider {provider_id} {status} by admin {admin.id}")
        return provider

    def get_statistics(self, admin: User) -> dict:
        require_role(admin, ["admin"])
        return self.repo.get_platform_statistics(self.db)

    def list_users(
        self,
        admin: User,
        role: Optional[str] = None,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict:
        require_role(admin, ["admin"])
        users, total = self.repo.list_users(
            self.db, role=role, search=search, is_active=is_active, page=page, limit=limit
        )
        return {
            "users": users,
            "page": page,
            "pages": math.ceil(total / limit) if limit else 0,
            "total": total,
            "limit": limit,
        }

    def set_user_status(self, user_id: int, is_active: bool, admin: User) -> User:
        """
        Activate or deactivate an account.

        A deactivated user can no longer authenticate, and a deactivated
        provider's services drop out of the catalog and cannot be booked.
        """
        require_role(admin, ["admin"])
        if user_id == admin.id and not is_active:
            raise ValidationError("You cannot deactivate your own account")

        user = self.repo.get_user(self.db, user_id)
        if not user:
            raise NotFoundError("User not found")

        user = self.repo.set_active(self.db, user, is_active)
        logger.info(f"✅ User {user_id} {'activated' if is_active else 'deactivated'} by admin {admin.id}")
        return user

    def get_provider_analytics(self, provider_id: int, actor: User, timeframe_days: int = 30) -> dict:
        """Provider performance over the last timeframe_days; the provider or an admin only"""
        if actor.role != "admin" and not (actor.role == "provider" and actor.id == provider_id):
            raise AuthorizationError()
        since = self._window_start(timeframe_days)

        provider = self.repo.get_user(self.db, provider_id)
        if not provider or provider.role != "provider":
            raise NotFoundError("Provider not found")

        analytics = self.repo.get_provider_analytics(self.db, provider_id, since)
        analytics["timeframe"] = timeframe_days
        return analytics

    def get_platform_analytics(self, admin: User, timeframe_days: int = 30) -> dict:
        require_role(admin, ["admin"])
        analytics = self.repo.get_platform_analytics(self.db, self._window_start(timeframe_days))
        analytics["timeframe"] = timeframe_days
        return analytics

    @staticmethod
    def _window_start(timeframe_days: int) -> datetime:
        if timeframe_days < 1:
            raise ValidationError("Timeframe must be at least one day")
        return utcnow() - timedelta(days=timeframe_days)
