"""
Booking Notification Service
Renders status-change messages for customers and hands them to a sender.
Delivery failures are logged and reported, never raised to the caller.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from ..email_templates import booking_status_template, service_status_template
from ..models import Booking
from ..shared.sanitization import sanitize_dict

logger = logging.getLogger(__name__)

BOOKING_TEMPLATE_KINDS = {
    "booking-received": "received",
    "booking-confirmed": "confirmed",
    "booking-rejected": "rejected",
    # Renderable for other senders only: the primary status never becomes
    # in-progress, so progress is announced as service-in-progress
    "booking-in-progress": "in-progress",
    "booking-completed": "completed",
    "booking-cancelled": "cancelled",
}

SERVICE_TEMPLATE_KINDS = {
    "service-not-started": "not-started",
    "service-on-the-way": "on-the-way",
    "service-in-progress": "in-progress",
    "service-completed": "completed",
    "service-cancelled": "cancelled",
}

TEMPLATE_KINDS = set(BOOKING_TEMPLATE_KINDS) | set(SERVICE_TEMPLATE_KINDS)


@dataclass
class NotificationResult:
    success: bool
    error: Optional[str] = None


class NotificationSender(Protocol):
    def notify(self, recipient_email: str, template_kind: str, context: dict) -> NotificationResult:
        ...


def render_notification(template_kind: str, context: dict) -> tuple[str, str]:
    """Return (subject, mjml) for a template kind"""
    # Reasons, notes and service names are provider-written text
    context = sanitize_dict(context)
    if template_kind in BOOKING_TEMPLATE_KINDS:
        return booking_status_template(BOOKING_TEMPLATE_KINDS[template_kind], context)
    if template_kind in SERVICE_TEMPLATE_KINDS:
        return service_status_template(SERVICE_TEMPLATE_KINDS[template_kind], context)
    raise ValueError(f"Unknown notification template: {template_kind}")


class EmailNotificationSender:
    """Delivers notifications by email through Resend"""

    def __init__(self, send_func=None):
        if send_func is None:
            from ..email_service import send_email

            send_func = send_email
        self._send = send_func

    def notify(self, recipient_email: str, template_kind: str, context: dict) -> NotificationResult:
        try:
            subject, mjml_content = render_notification(template_kind, context)
            self._send(to=recipient_email, subject=subject, mjml_content=mjml_content)
            return NotificationResult(success=True)
        except Exception as e:
            return NotificationResult(success=False, error=str(e))


def get_notification_sender() -> NotificationSender:
    """Dependency injection for the notification sender"""
    return EmailNotificationSender()


def build_booking_context(booking: Booking, **extra) -> dict:
    """Snapshot of the booking fields the templates render"""
    context = {
        "booking_code": booking.booking_code,
        "customer_name": booking.customer_first_name or "Customer",
        "scheduled_date": booking.scheduled_date.strftime("%d %b %Y"),
        "scheduled_time": booking.scheduled_time,
        "total": booking.total,
        "status": booking.status,
        "service_status": booking.service_status,
        "items": [
            {"name": item.service_name, "quantity": item.quantity, "unit_price": item.unit_price}
            for item in booking.items
        ],
    }
    context.update({k: v for k, v in extra.items() if v is not None})
    return context


def dispatch_booking_notification(
    sender: Optional[NotificationSender],
    booking: Booking,
    template_kind: str,
    **extra,
) -> NotificationResult:
    """
    Notify the booking's customer about a committed change.

    Must be called after the transaction commits. Any failure is logged as a
    warning and returned, so the caller's outcome never depends on delivery.
    """
    if sender is None:
        logger.debug(f"ℹ️ No notification sender configured, skipping {template_kind}")
        return NotificationResult(success=False, error="No notification sender configured")

    recipient = booking.customer_email
    if not recipient:
        logger.warning(f"⚠️ No customer email for booking {booking.booking_code}")
        return NotificationResult(success=False, error="No customer email")

    try:
        logger.info(f"📧 Sending {template_kind} notification for booking {booking.booking_code}")
        result = sender.notify(recipient, template_kind, build_booking_context(booking, **extra))
    except Exception as e:
        result = NotificationResult(success=False, error=str(e))

    if result.success:
        logger.info(f"✅ {template_kind} notification sent for booking {booking.booking_code}")
    else:
        logger.warning(
            f"⚠️ {template_kind} notification failed for booking {booking.booking_code}: {result.error}"
        )
    return result
