from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how DateTime columns are stored"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(15), nullable=True)
    role = Column(String(20), default="customer", nullable=False)  # customer, provider, admin
    approval_status = Column(String(20), default="approved", nullable=False)  # pending, approved, rejected
    rejection_reason = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    # Provider business details
    business_name = Column(String(255), nullable=True)
    business_details_complete = Column(Boolean, default=False, nullable=False)
    # Provider performance, recomputed from bookings and reviews
    provider_rating = Column(Float, default=0.0, nullable=False)
    provider_total_ratings = Column(Integer, default=0, nullable=False)
    completed_services = Column(Integer, default=0, nullable=False)
    total_earnings = Column(Float, default=0.0, nullable=False)
    last_service_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    services = relationship("Service", back_populates="provider")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False)
    category = Column(String(50), nullable=False, index=True)
    price = Column(Float, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    provider = relationship("User", back_populates="services")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    booking_code = Column(String(32), unique=True, index=True, nullable=False)  # e.g. HEM2X9K1ABCDE
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    scheduled_date = Column(Date, nullable=False)
    scheduled_time = Column(String(10), nullable=False)

    # Contact snapshot, independent of later profile edits
    customer_first_name = Column(String(50), nullable=False)
    customer_last_name = Column(String(50), nullable=False)
    customer_phone = Column(String(15), nullable=False)
    customer_email = Column(String(255), nullable=False)

    # Address snapshot
    address_street = Column(String(255), nullable=False)
    address_city = Column(String(100), nullable=False)
    address_state = Column(String(100), default="India", nullable=False)
    address_pincode = Column(String(6), nullable=False, index=True)
    address_landmark = Column(String(255), nullable=True)

    # Pricing, frozen at creation
    subtotal = Column(Float, nullable=False)
    service_fee = Column(Float, nullable=False)
    total = Column(Float, nullable=False)
    payment_method = Column(String(20), default="cod", nullable=False)
    payment_status = Column(String(20), default="pending", nullable=False)  # pending, completed

    status = Column(String(20), default="pending", nullable=False, index=True)
    service_status = Column(String(20), nullable=True)  # NULL until confirmed

    customer_notes = Column(Text, nullable=True)
    provider_notes = Column(Text, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    cancelled_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    confirmed_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Optimistic lock: every UPDATE checks and increments this column
    version = Column(Integer, nullable=False)

    customer = relationship("User", foreign_keys=[customer_id])
    provider = relationship("User", foreign_keys=[provider_id])
    items = relationship(
        "BookingItem",
        back_populates="booking",
        order_by="BookingItem.id",
        cascade="all, delete-orphan",
    )
    history = relationship(
        "BookingStatusHistory",
        back_populates="booking",
        order_by="BookingStatusHistory.id",
    )
    review = relationship("Review", back_populates="booking", uselist=False)

    __mapper_args__ = {"version_id_col": version}
    __table_args__ = (
        Index("ix_bookings_customer_created", "customer_id", "created_at"),
        Index("ix_bookings_provider_scheduled", "provider_id", "scheduled_date"),
    )

    @property
    def customer_name(self) -> str:
        return f"{self.customer_first_name} {self.customer_last_name}".strip()


class BookingItem(Base):
    __tablename__ = "booking_items"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    service_name = Column(String(100), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Float, nullable=False)

    booking = relationship("Booking", back_populates="items")
    service = relationship("Service")


class BookingStatusHistory(Base):
    """Append-only service status history, one row per change"""

    __tablename__ = "booking_status_history"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False)
    notes = Column(Text, nullable=True)
    updated_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    booking = relationship("Booking", back_populates="history")


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), unique=True, nullable=False)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(String(500), nullable=False)
    is_visible = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    booking = relationship("Booking", back_populates="review")
    customer = relationship("User", foreign_keys=[customer_id])
    service = relationship("Service")

    @property
    def customer_name(self):
        return self.customer.full_name if self.customer else None
