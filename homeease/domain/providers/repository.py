"""Provider repository - Aggregates and account queries for service providers"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session, selectinload

from ...database import retry_read
from ...models import Booking, BookingItem, Review, Service, User, utcnow

logger = logging.getLogger(__name__)


class ProviderRepository:
    """Repository for provider database operations"""

    @staticmethod
    def refresh_provider_stats(db: Session, provider_id: int) -> None:
        """
        Recompute completed_services and total_earnings from completed bookings.

        Runs as its own update keyed by provider id so it never contends with
        the booking row that triggered it.
        """
        completed_services, total_earnings, last_completed = (
            db.query(
                func.coalesce(func.sum(BookingItem.quantity), 0),
                func.coalesce(func.sum(BookingItem.unit_price * BookingItem.quantity), 0.0),
                func.max(Booking.completed_at),
            )
            .select_from(BookingItem)
            .join(Booking, BookingItem.booking_id == Booking.id)
            .filter(Booking.provider_id == provider_id, Booking.status == "completed")
            .one()
        )

        db.query(User).filter(User.id == provider_id).update(
            {
                User.completed_services: int(completed_services),
                User.total_earnings: round(float(total_earnings), 2),
                User.last_service_date: last_completed,
                User.updated_at: utcnow(),
            },
            synchronize_session=False,
        )
        db.commit()
        logger.info(
            f"📊 Provider {provider_id} stats: {completed_services} services, ₹{float(total_earnings):g} earned"
        )

    @staticmethod
    @retry_read
    def get_completed_earnings(db: Session, provider_id: int) -> float:
        total = (
            db.query(func.coalesce(func.sum(Booking.subtotal), 0.0))
            .filter(Booking.provider_id == provider_id, Booking.status == "completed")
            .scalar()
        )
        return round(float(total), 2)

    @staticmethod
    @retry_read
    def get_recent_bookings(db: Session, provider_id: int, limit: int = 10) -> list[Booking]:
        return (
            db.query(Booking)
            .options(selectinload(Booking.items), selectinload(Booking.history))
            .filter(Booking.provider_id == provider_id)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    @retry_read
    def get_pending_providers(db: Session) -> list[User]:
        return (
            db.query(User)
            .filter(User.role == "provider", User.approval_status == "pending")
            .order_by(User.created_at.desc())
            .all()
        )

    @staticmethod
    @retry_read
    def get_user(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def set_approval(db: Session, provider: User, status: str, reason: Optional[str]) -> User:
        provider.approval_status = status
        if status == "approved":
            provider.rejection_reason = None
        elif reason:
            provider.rejection_reason = reason
        db.commit()
        db.refresh(provider)
        return provider

    @staticmethod
    @retry_read
    def list_users(
        db: Session,
        role: Optional[str] = None,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[User], int]:
        query = db.query(User)
        if role:
            query = query.filter(User.role == role)
        if is_active is not None:
            query = query.filter(User.is_active.is_(is_active))
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    User.first_name.ilike(pattern),
                    User.last_name.ilike(pattern),
                    User.email.ilike(pattern),
                )
            )

        total = query.count()
        users = (
            query.order_by(User.created_at.desc(), User.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return users, total

    @staticmethod
    def set_active(db: Session, user: User, is_active: bool) -> User:
        user.is_active = is_active
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    @retry_read
    def get_provider_analytics(db: Session, provider_id: int, since: datetime) -> dict:
        """Bookings, revenue, ratings and popular services created since a point in time"""
        in_window = (Booking.provider_id == provider_id, Booking.created_at >= since)

        status_distribution = dict(
            db.query(Booking.status, func.count(Booking.id))
            .filter(*in_window)
            .group_by(Booking.status)
            .all()
        )
        total_bookings = sum(status_distribution.values())
        completed_bookings = status_distribution.get("completed", 0)

        total_revenue, avg_order_value = (
            db.query(func.coalesce(func.sum(Booking.total), 0.0), func.avg(Booking.total))
            .filter(*in_window, Booking.status == "completed")
            .one()
        )

        rating_distribution = {rating: 0 for rating in range(1, 6)}
        for rating, count in (
            db.query(Review.rating, func.count(Review.id))
            .filter(Review.provider_id == provider_id, Review.created_at >= since)
            .group_by(Review.rating)
            .all()
        ):
            rating_distribution[rating] = count
        total_reviews = sum(rating_distribution.values())
        rating_sum = sum(rating * count for rating, count in rating_distribution.items())

        quantity_sum = func.sum(BookingItem.quantity)
        popular_services = [
            {"serviceId": service_id, "serviceName": name, "count": int(count), "revenue": round(float(revenue), 2)}
            for service_id, name, count, revenue in (
                db.query(
                    BookingItem.service_id,
                    BookingItem.service_name,
                    quantity_sum,
                    func.sum(BookingItem.unit_price * BookingItem.quantity),
                )
                .select_from(BookingItem)
                .join(Booking, BookingItem.booking_id == Booking.id)
                .filter(*in_window)
                .group_by(BookingItem.service_id, BookingItem.service_name)
                .order_by(quantity_sum.desc(), BookingItem.service_id)
                .limit(5)
                .all()
            )
        ]

        day = func.date(Booking.created_at)
        daily_trends = [
            {
                "date": str(booked_on),
                "bookings": bookings,
                "revenue": round(float(revenue or 0), 2),
                "completedBookings": int(completed or 0),
            }
            for booked_on, bookings, revenue, completed in (
                db.query(
                    day,
                    func.count(Booking.id),
                    func.sum(Booking.total),
                    func.sum(case((Booking.status == "completed", 1), else_=0)),
                )
                .filter(*in_window)
                .group_by(day)
                .order_by(day)
                .all()
            )
        ]

        return {
            "overview": {
                "totalBookings": total_bookings,
                "completedBookings": completed_bookings,
                "completionRate": round(completed_bookings / total_bookings * 100) if total_bookings else 0,
                "totalRevenue": round(float(total_revenue), 2),
                "avgOrderValue": round(float(avg_order_value)) if avg_order_value else 0,
                "totalReviews": total_reviews,
                "avgRating": round(rating_sum / total_reviews, 1) if total_reviews else 0,
            },
            "ratingDistribution": rating_distribution,
            "popularServices": popular_services,
            "dailyTrends": daily_trends,
            "statusDistribution": status_distribution,
        }

    @staticmethod
    @retry_read
    def get_platform_analytics(db: Session, since: datetime) -> dict:
        """Platform growth, revenue, top providers and category performance since a point in time"""

        def users_with_role(role: str, *criteria) -> int:
            return db.query(func.count(User.id)).filter(User.role == role, *criteria).scalar()

        total_bookings = db.query(func.count(Booking.id)).filter(Booking.created_at >= since).scalar()
        completed_bookings = (
            db.query(func.count(Booking.id))
            .filter(Booking.created_at >= since, Booking.status == "completed")
            .scalar()
        )
        total_revenue, avg_order_value = (
            db.query(func.coalesce(func.sum(Booking.total), 0.0), func.avg(Booking.total))
            .filter(Booking.created_at >= since, Booking.status == "completed")
            .one()
        )

        booking_count = func.count(Booking.id)
        top_providers = [
            {"providerId": provider_id, "providerName": name, "bookingsCount": count, "revenue": round(float(revenue), 2)}
            for provider_id, name, count, revenue in (
                db.query(User.id, User.first_name, booking_count, func.coalesce(func.sum(Booking.total), 0.0))
                .select_from(Booking)
                .join(User, Booking.provider_id == User.id)
                .filter(Booking.created_at >= since)
                .group_by(User.id, User.first_name)
                .order_by(booking_count.desc(), User.id)
                .limit(10)
                .all()
            )
        ]

        line_count = func.count(BookingItem.id)
        category_performance = [
            {"category": category, "bookings": count, "revenue": round(float(revenue), 2)}
            for category, count, revenue in (
                db.query(Service.category, line_count, func.sum(BookingItem.unit_price * BookingItem.quantity))
                .select_from(BookingItem)
                .join(Booking, BookingItem.booking_id == Booking.id)
                .join(Service, BookingItem.service_id == Service.id)
                .filter(Booking.created_at >= since)
                .group_by(Service.category)
                .order_by(line_count.desc(), Service.category)
                .all()
            )
        ]

        return {
            "users": {
                "totalUsers": users_with_role("customer"),
                "totalProviders": users_with_role("provider"),
                "newUsers": users_with_role("customer", User.created_at >= since),
                "newProviders": users_with_role("provider", User.created_at >= since),
            },
            "bookings": {
                "totalBookings": total_bookings,
                "completedBookings": completed_bookings,
                "completionRate": round(completed_bookings / total_bookings * 100) if total_bookings else 0,
            },
            "revenue": {
                "totalRevenue": round(float(total_revenue), 2),
                "avgOrderValue": round(float(avg_order_value)) if avg_order_value else 0,
            },
            "topProviders": top_providers,
            "categoryPerformance": category_performance,
        }

    @staticmethod
    @retry_read
    def get_platform_statistics(db: Session) -> dict:
        """Platform-wide totals for the admin dashboard"""

        def role_counts(role: str) -> dict:
            total = db.query(func.count(User.id)).filter(User.role == role).scalar()
            active = (
                db.query(func.count(User.id))
                .filter(User.role == role, User.is_active.is_(True))
                .scalar()
            )
            return {"total": total, "active": active, "inactive": total - active}

        total_services = db.query(func.count(Service.id)).scalar()
        active_services = (
            db.query(func.count(Service.id)).filter(Service.is_active.is_(True)).scalar()
        )

        booking_counts = dict(
            db.query(Booking.status, func.count(Booking.id)).group_by(Booking.status).all()
        )

        total_reviews, average_rating = db.query(
            func.count(Review.id), func.avg(Review.rating)
        ).one()

        return {
            "users": role_counts("customer"),
            "providers": role_counts("provider"),
            "services": {
                "total": total_services,
                "active": active_services,
                "inactive": total_services - active_services,
            },
            "bookings": {
                "total": sum(booking_counts.values()),
                "completed": booking_counts.get("completed", 0),
                "pending": booking_counts.get("pending", 0),
            },
            "reviews": {
                "total": total_reviews,
                "averageRating": round(float(average_rating), 1) if average_rating else 0,
            },
        }
