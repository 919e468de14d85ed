"""Booking service - Business logic for the booking lifecycle"""

import logging
import math
import secrets
import string
import time
from datetime import date
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import CUSTOMER_CANCEL_POLICY, SERVICE_FEE
from ...exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from ...models import Booking, BookingItem, User, utcnow
from ...services.notification_service import NotificationSender, dispatch_booking_notification
from ..catalog.repository import CatalogRepository
from ..providers.repository import ProviderRepository
from .repository import BookingCodeCollision, BookingRepository
from .schemas import BookingCreate
from .state import (
    CANCELLED,
    COMPLETED,
    CONFIRMED,
    NOT_STARTED,
    ON_THE_WAY,
    PENDING,
    REJECTED,
    SERVICE_CANCELLED,
    SERVICE_COMPLETED,
    SERVICE_TERMINAL_STATUSES,
    assert_booking_transition,
    assert_service_transition,
)

logger = logging.getLogger(__name__)

BASE36_ALPHABET = string.digits + string.ascii_uppercase
MAX_CODE_ATTEMPTS = 3

CANCEL_POLICIES = {
    "conservative": {NOT_STARTED},
    "before-in-progress": {NOT_STARTED, ON_THE_WAY},
}


def _to_base36(value: int) -> str:
    digits = ""
    while value:
        value, remainder = divmod(value, 36)
        digits = BASE36_ALPHABET[remainder] + digits
    return digits or "0"


def generate_booking_code() -> str:
    """HE + base-36 millisecond timestamp + 5 random base-36 characters"""
    timestamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(5))
    return f"HE{timestamp}{suffix}"


class BookingService:
    """Service layer for booking business logic"""

    def __init__(
        self,
        db: Session,
        notifier: Optional[NotificationSender] = None,
        service_fee: float = SERVICE_FEE,
        cancel_policy: str = CUSTOMER_CANCEL_POLICY,
    ):
        if cancel_policy not in CANCEL_POLICIES:
            raise ValueError(f"Unknown customer cancel policy: {cancel_policy}")
        self.db = db
        self.notifier = notifier
        self.service_fee = service_fee
        self.cancel_policy = cancel_policy
        self.repo = BookingRepository()
        self.catalog = CatalogRepository()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_booking(self, data: BookingCreate, customer: User) -> Booking:
        """
        Turn a cart into a pending booking.

        Unit prices and service names are copied from the catalog at this
        moment; later catalog edits never change the booking.
        """
        if customer.role != "customer":
            raise AuthorizationError()

        if data.scheduledDate <= date.today():
            raise ValidationError("Scheduled date must be after today")

        logger.info(f"📥 Creating booking for customer {customer.id} with {len(data.services)} cart items")

        lines, provider_id = self._price_cart(data)
        subtotal = round(sum(line["unit_price"] * line["quantity"] for line in lines), 2)
        total = round(subtotal + self.service_fee, 2)

        booking = None
        for attempt in range(1, MAX_CODE_ATTEMPTS + 1):
            candidate = self._build_booking(data, customer, provider_id, lines, subtotal, total)
            try:
                booking = self.repo.create_booking(self.db, candidate)
                break
            except BookingCodeCollision as e:
                logger.warning(f"⚠️ Booking code collision on attempt {attempt}: {e}")

        if booking is None:
            raise ConflictError("Could not allocate a booking code, please retry")

        logger.info(f"✅ Booking {booking.booking_code} created: ₹{booking.total:g} for provider {provider_id}")
        dispatch_booking_notification(self.notifier, booking, "booking-received")
        return booking

    def _price_cart(self, data: BookingCreate) -> tuple[list[dict], int]:
        quantities: dict[int, int] = {}
        for item in data.services:
            quantities[item.serviceId] = quantities.get(item.serviceId, 0) + item.quantity

        lines = []
        provider_ids = set()
        for service_id, quantity in quantities.items():
            service = self.catalog.get_service(self.db, service_id)
            if not service or not service.is_active:
                raise NotFoundError(f"Service {service_id} not found or inactive")

            provider = self.catalog.get_provider(self.db, service.provider_id)
            if not provider or not provider.is_active or provider.approval_status != "approved":
                raise NotFoundError(f"Provider for service {service_id} is not available")

            provider_ids.add(provider.id)
            lines.append(
                {
                    "service_id": service.id,
                    "service_name": service.name,
                    "quantity": quantity,
                    "unit_price": service.price,
                }
            )

        if len(provider_ids) > 1:
            raise ValidationError("All services in a booking must be from the same provider")

        return lines, provider_ids.pop()

    def _build_booking(
        self,
        data: BookingCreate,
        customer: User,
        provider_id: int,
        lines: list[dict],
        subtotal: float,
        total: float,
    ) -> Booking:
        return Booking(
            booking_code=generate_booking_code(),
            customer_id=customer.id,
            provider_id=provider_id,
            scheduled_date=data.scheduledDate,
            scheduled_time=data.scheduledTime,
            customer_first_name=data.customerInfo.firstName.strip(),
            customer_last_name=data.customerInfo.lastName.strip(),
            customer_phone=data.customerInfo.phone,
            customer_email=data.customerInfo.email,
            address_street=data.address.street.strip(),
            address_city=data.address.city.strip(),
            address_state=data.address.state,
            address_pincode=data.address.pincode,
            address_landmark=data.address.landmark,
            subtotal=subtotal,
            service_fee=self.service_fee,
            total=total,
            payment_method=data.paymentMethod,
            payment_status="pending",
            status=PENDING,
            service_status=None,
            customer_notes=data.notes,
            items=[BookingItem(**line) for line in lines],
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def transition_status(
        self, booking_id: int, target: str, actor: User, reason: Optional[str] = None
    ) -> Booking:
        """Move the primary status: confirm, reject or cancel"""
        booking = self._get_existing(booking_id)
        if not self._is_party(booking, actor):
            raise AuthorizationError()

        current = booking.status
        assert_booking_transition(current, target)
        self._authorize_status_change(booking, target, actor)

        now = utcnow()
        if target == CONFIRMED:
            booking.status = CONFIRMED
            booking.confirmed_at = now
            booking.service_status = NOT_STARTED
            self.repo.append_history(booking, NOT_STARTED, "Booking confirmed", actor.id)
        elif target == REJECTED:
            booking.status = REJECTED
            booking.rejection_reason = reason
        elif target == CANCELLED:
            self._cancel(booking, actor, reason, now)
            if booking.service_status and booking.service_status not in SERVICE_TERMINAL_STATUSES:
                booking.service_status = SERVICE_CANCELLED
                self.repo.append_history(booking, SERVICE_CANCELLED, reason or "Booking cancelled", actor.id)

        self.repo.save(self.db, booking)
        logger.info(f"✅ Booking {booking.booking_code} status: {current} → {target} by user {actor.id}")

        dispatch_booking_notification(self.notifier, booking, f"booking-{target}", reason=reason)
        return booking

    def transition_service_status(
        self, booking_id: int, target: str, actor: User, notes: Optional[str] = None
    ) -> Booking:
        """
        Advance the service status of a confirmed booking.

        Reaching completed also completes the booking and marks the cash
        payment collected; reaching cancelled cancels the booking.
        """
        booking = self._get_existing(booking_id)
        if not (actor.role == "admin" or actor.id == booking.provider_id):
            raise AuthorizationError()

        if booking.status != CONFIRMED:
            raise PreconditionError(
                f"Service status can only change while the booking is confirmed (current: {booking.status})"
            )

        current = booking.service_status
        assert_service_transition(current, target)

        now = utcnow()
        booking.service_status = target
        self.repo.append_history(booking, target, notes, actor.id)

        if target == SERVICE_COMPLETED:
            booking.status = COMPLETED
            booking.completed_at = now
            booking.payment_status = "completed"
        elif target == SERVICE_CANCELLED:
            self._cancel(booking, actor, notes or "Service cancelled by provider", now)

        self.repo.save(self.db, booking)
        logger.info(f"✅ Booking {booking.booking_code} service status: {current} → {target}")

        if target == SERVICE_COMPLETED:
            self._refresh_provider_stats(booking.provider_id)

        dispatch_booking_notification(self.notifier, booking, f"service-{target}", notes=notes)
        if target == SERVICE_COMPLETED:
            dispatch_booking_notification(self.notifier, booking, "booking-completed")
        return booking

    def update_provider_notes(self, booking_id: int, notes: str, actor: User) -> Booking:
        booking = self._get_existing(booking_id)
        if not (actor.role == "admin" or actor.id == booking.provider_id):
            raise AuthorizationError()

        booking.provider_notes = notes
        return self.repo.save(self.db, booking)

    def _cancel(self, booking: Booking, actor: User, reason: Optional[str], now) -> None:
        booking.status = CANCELLED
        booking.cancelled_at = now
        booking.cancellation_reason = reason
        booking.cancelled_by_id = actor.id

    def _authorize_status_change(self, booking: Booking, target: str, actor: User) -> None:
        if actor.role == "admin":
            return

        is_provider = actor.id == booking.provider_id
        if target in (CONFIRMED, REJECTED) and is_provider:
            return
        if target == CANCELLED:
            if is_provider:
                return
            if actor.id == booking.customer_id and self.customer_may_cancel(booking):
                return

        logger.warning(f"⚠️ User {actor.id} may not move booking {booking.id} to {target}")
        raise AuthorizationError()

    def customer_may_cancel(self, booking: Booking) -> bool:
        if booking.status == PENDING:
            return True
        if booking.status == CONFIRMED:
            return booking.service_status in CANCEL_POLICIES[self.cancel_policy]
        return False

    def _refresh_provider_stats(self, provider_id: int) -> None:
        # Derived counters; a failure here leaves the committed booking intact
        try:
            ProviderRepository.refresh_provider_stats(self.db, provider_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to refresh stats for provider {provider_id}: {e}")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_booking(self, booking_id: int, actor: User) -> Booking:
        booking = self._get_existing(booking_id)
        if not self._is_party(booking, actor):
            raise AuthorizationError()
        return booking

    def get_booking_by_code(self, booking_code: str, actor: User) -> Booking:
        booking = self.repo.get_booking_by_code(self.db, booking_code.upper())
        if not booking:
            raise NotFoundError("Booking not found")
        if not self._is_party(booking, actor):
            raise AuthorizationError()
        return booking

    def list_bookings(
        self, actor: User, status: Optional[str] = None, page: int = 1, limit: int = 10
    ) -> dict:
        """List the caller's bookings: own for customers, assigned for providers, all for admins"""
        scope = self._scope(actor)
        bookings, total = self.repo.list_bookings(self.db, status=status, page=page, limit=limit, **scope)
        return {
            "bookings": bookings,
            "page": page,
            "pages": math.ceil(total / limit) if limit else 0,
            "total": total,
            "limit": limit,
        }

    def status_counts(self, actor: User, provider_id: Optional[int] = None) -> dict:
        if provider_id is not None:
            if actor.role != "admin" and actor.id != provider_id:
                raise AuthorizationError()
            return self.repo.get_status_counts(self.db, provider_id=provider_id)
        return self.repo.get_status_counts(self.db, **self._scope(actor))

    def can_review(self, booking_id: int, customer_id: int) -> bool:
        """True iff the customer owns the completed booking and has not reviewed it yet"""
        booking = self.repo.get_booking_by_id(self.db, booking_id)
        if not booking or booking.customer_id != customer_id:
            return False
        if not is_completed(booking):
            return False
        return not self.repo.has_review(self.db, booking_id)

    def _get_existing(self, booking_id: int) -> Booking:
        booking = self.repo.get_booking_by_id(self.db, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    @staticmethod
    def _is_party(booking: Booking, actor: User) -> bool:
        return actor.role == "admin" or actor.id in (booking.customer_id, booking.provider_id)

    @staticmethod
    def _scope(actor: User) -> dict:
        if actor.role == "admin":
            return {}
        if actor.role == "provider":
            return {"provider_id": actor.id}
        return {"customer_id": actor.id}


def is_completed(booking: Booking) -> bool:
    return booking.status == COMPLETED and booking.service_status == SERVICE_COMPLETED
