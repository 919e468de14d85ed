import pytest

from homeease.domain.bookings.service import BookingService
from homeease.services.notification_service import (
    TEMPLATE_KINDS,
    EmailNotificationSender,
    NotificationResult,
    build_booking_context,
    dispatch_booking_notification,
    render_notification,
)
from tests.conftest import FailingNotifier, RecordingNotifier, make_booking

CONTEXT = {
    "booking_code": "HEM2X9K1ABCDE",
    "customer_name": "Asha",
    "scheduled_date": "21 Oct 2026",
    "scheduled_time": "10:00 AM",
    "total": 1050.0,
    "items": [{"name": "Deep Cleaning", "quantity": 1, "unit_price": 1000.0}],
}


class RefusingNotifier:
    def notify(self, recipient_email, template_kind, context):
        return NotificationResult(success=False, error="mailbox full")


class TestTemplates:
    @pytest.mark.parametrize("kind", sorted(TEMPLATE_KINDS))
    def test_every_kind_renders(self, kind):
        subject, mjml = render_notification(kind, CONTEXT)

        assert subject
        assert "<mjml>" in mjml
        assert "HEM2X9K1ABCDE" in mjml

    def test_unknown_kind_is_rejected(self):
        with pytest.raises(ValueError):
            render_notification("booking-teleported", CONTEXT)

    def test_rejection_reason_is_rendered(self):
        _, mjml = render_notification("booking-rejected", {**CONTEXT, "reason": "No technician free"})

        assert "No technician free" in mjml

    def test_provider_notes_are_rendered(self):
        _, mjml = render_notification("service-on-the-way", {**CONTEXT, "notes": "Reaching by 10:20"})

        assert "Reaching by 10:20" in mjml

    def test_booking_and_service_kinds(self):
        assert "booking-rejected" in TEMPLATE_KINDS
        assert "service-not-started" in TEMPLATE_KINDS
        assert len(TEMPLATE_KINDS) == 11


class TestEmailSender:
    def test_sends_rendered_template(self):
        sent = []
        sender = EmailNotificationSender(send_func=lambda **kwargs: sent.append(kwargs))

        result = sender.notify("asha@example.com", "booking-confirmed", CONTEXT)

        assert result.success is True
        assert sent[0]["to"] == "asha@example.com"
        assert sent[0]["subject"] == "Booking Confirmed - We're Coming!"
        assert "HEM2X9K1ABCDE" in sent[0]["mjml_content"]

    def test_transport_failure_becomes_result(self):
        def broken_send(**kwargs):
            raise ConnectionError("resend unreachable")

        result = EmailNotificationSender(send_func=broken_send).notify("asha@example.com", "booking-received", CONTEXT)

        assert result.success is False
        assert "resend unreachable" in result.error


class TestDispatch:
    def test_context_comes_from_booking_snapshot(self, booking_service, customer, deep_clean):
        booking = make_booking(booking_service, customer, deep_clean)

        context = build_booking_context(booking, reason="Because")

        assert context["booking_code"] == booking.booking_code
        assert context["customer_name"] == "Asha"
        assert context["total"] == 1050
        assert context["items"] == [{"name": "Deep Cleaning", "quantity": 1, "unit_price": 1000}]
        assert context["reason"] == "Because"

    def test_sender_exception_is_swallowed(self, booking_service, customer, pipe_repair):
        booking = make_booking(booking_service, customer, pipe_repair)

        result = dispatch_booking_notification(FailingNotifier(), booking, "booking-confirmed")

        assert result.success is False
        assert "SMTP relay unreachable" in result.error

    def test_failed_result_is_returned(self, booking_service, customer, pipe_repair, caplog):
        booking = make_booking(booking_service, customer, pipe_repair)

        result = dispatch_booking_notification(RefusingNotifier(), booking, "booking-confirmed")

        assert result.error == "mailbox full"
        assert "notification failed" in caplog.text

    def test_without_sender(self, booking_service, customer, pipe_repair):
        booking = make_booking(booking_service, customer, pipe_repair)

        assert dispatch_booking_notification(None, booking, "booking-received").success is False

    def test_recipient_is_booking_email(self, booking_service, customer, pipe_repair):
        booking = make_booking(booking_service, customer, pipe_repair)
        notifier = RecordingNotifier()

        dispatch_booking_notification(notifier, booking, "service-on-the-way", notes="Ten minutes away")

        recipient, kind, context = notifier.sent[0]
        assert recipient == "asha@example.com"
        assert kind == "service-on-the-way"
        assert context["notes"] == "Ten minutes away"

    def test_failures_never_block_transitions(self, db, customer, provider, pipe_repair):
        service = BookingService(db, FailingNotifier())
        booking = make_booking(service, customer, pipe_repair)

        confirmed = service.transition_status(booking.id, "confirmed", provider)

        assert confirmed.status == "confirmed"


class TestEscaping:
    def test_rejection_reason_markup_is_escaped(self):
        reason = '<a href="http://evil.example/pay">Pay here</a>'

        _, mjml = render_notification("booking-rejected", {**CONTEXT, "reason": reason})

        assert reason not in mjml
        assert "&lt;a href=&quot;http://evil.example/pay&quot;&gt;Pay here&lt;/a&gt;" in mjml

    def test_provider_notes_markup_is_escaped(self):
        _, mjml = render_notification("service-on-the-way", {**CONTEXT, "notes": "<script>x()</script>"})

        assert "<script>" not in mjml
        assert "&lt;script&gt;x()&lt;/script&gt;" in mjml

    def test_service_names_are_escaped(self):
        items = [{"name": "<b>Deep</b> Cleaning", "quantity": 1, "unit_price": 1000.0}]

        _, mjml = render_notification("booking-confirmed", {**CONTEXT, "items": items})

        assert "<b>Deep</b>" not in mjml
        assert "&lt;b&gt;Deep&lt;/b&gt; Cleaning" in mjml

    def test_context_is_not_mutated(self):
        context = {**CONTEXT, "reason": "<i>busy</i>"}

        render_notification("booking-cancelled", context)

        assert context["reason"] == "<i>busy</i>"


class TestProgressNotifications:
    def test_in_progress_is_announced_on_the_service_track(self, booking_service, notifier, customer, provider, pipe_repair):
        booking = make_booking(booking_service, customer, pipe_repair)
        booking_service.transition_status(booking.id, "confirmed", provider)

        booking_service.transition_service_status(booking.id, "in-progress", provider)

        assert notifier.kinds[-1] == "service-in-progress"
        assert "booking-in-progress" not in notifier.kinds

    def test_booking_in_progress_still_renders(self):
        subject, mjml = render_notification("booking-in-progress", CONTEXT)

        assert subject
        assert "HEM2X9K1ABCDE" in mjml
