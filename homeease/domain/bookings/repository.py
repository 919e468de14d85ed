"""Booking repository - Database operations for bookings"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import StaleDataError

from ...database import retry_read
from ...exceptions import ConflictError
from ...models import Booking, BookingStatusHistory, Review, utcnow
from .state import PRIMARY_STATUSES


class BookingCodeCollision(Exception):
    pass


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    @retry_read
    def get_booking_by_id(db: Session, booking_id: int) -> Optional[Booking]:
        """Get a booking with its line items and history"""
        return (
            db.query(Booking)
            .options(selectinload(Booking.items), selectinload(Booking.history))
            .filter(Booking.id == booking_id)
            .first()
        )

    @staticmethod
    @retry_read
    def get_booking_by_code(db: Session, booking_code: str) -> Optional[Booking]:
        """Get a booking by its human-readable code"""
        return (
            db.query(Booking)
            .options(selectinload(Booking.items), selectinload(Booking.history))
            .filter(Booking.booking_code == booking_code)
            .first()
        )

    @staticmethod
    def create_booking(db: Session, booking: Booking) -> Booking:
        """Insert a booking and all of its line items in one transaction"""
        db.add(booking)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if "booking_code" in str(e.orig):
                raise BookingCodeCollision(booking.booking_code) from e
            raise
        db.refresh(booking)
        return booking

    @staticmethod
    def append_history(
        booking: Booking, status: str, notes: Optional[str], updated_by_id: Optional[int]
    ) -> BookingStatusHistory:
        """Append a service status history row; rows are never updated"""
        entry = BookingStatusHistory(
            status=status,
            notes=notes or "",
            updated_by_id=updated_by_id,
            updated_at=utcnow(),
        )
        booking.history.append(entry)
        return entry

    @staticmethod
    def save(db: Session, booking: Booking) -> Booking:
        """
        Commit pending changes to a booking.

        The UPDATE is conditional on the version the booking was read at, so a
        concurrent writer that committed first makes this one fail.
        """
        try:
            db.commit()
        except StaleDataError as e:
            db.rollback()
            raise ConflictError(
                "Booking was modified concurrently, refresh and retry"
            ) from e
        db.refresh(booking)
        return booking

    @staticmethod
    @retry_read
    def list_bookings(
        db: Session,
        customer_id: Optional[int] = None,
        provider_id: Optional[int] = None,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Booking], int]:
        """List bookings newest first, returning (page_items, total)"""
        query = db.query(Booking)

        if customer_id is not None:
            query = query.filter(Booking.customer_id == customer_id)
        if provider_id is not None:
            query = query.filter(Booking.provider_id == provider_id)
        if status and status != "all":
            query = query.filter(Booking.status == status)

        total = query.count()
        bookings = (
            query.options(selectinload(Booking.items), selectinload(Booking.history))
            .order_by(Booking.created_at.desc(), Booking.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return bookings, total

    @staticmethod
    @retry_read
    def get_status_counts(
        db: Session,
        customer_id: Optional[int] = None,
        provider_id: Optional[int] = None,
    ) -> dict:
        """Count bookings per primary status, zero-filled"""
        query = db.query(Booking.status, func.count(Booking.id).label("count"))

        if customer_id is not None:
            query = query.filter(Booking.customer_id == customer_id)
        if provider_id is not None:
            query = query.filter(Booking.provider_id == provider_id)

        counts = {status: 0 for status in PRIMARY_STATUSES}
        for status, count in query.group_by(Booking.status).all():
            counts[status] = count
        counts["total"] = sum(counts[s] for s in PRIMARY_STATUSES)
        return counts

    @staticmethod
    @retry_read
    def has_review(db: Session, booking_id: int) -> bool:
        return db.query(Review.id).filter(Review.booking_id == booking_id).first() is not None
