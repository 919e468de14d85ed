"""
MJML Email Templates
Booking and service status emails sent to HomeEase customers
"""

from typing import Optional

from .config import FRONTEND_URL, SUPPORT_EMAIL, SUPPORT_PHONE

THEME = {
    "primary": "#1f2937",
    "background": "#f3f4f6",
    "card_bg": "#ffffff",
    "text_primary": "#111827",
    "text_secondary": "#374151",
    "text_muted": "#6b7280",
    "border": "#e5e7eb",
    "success": "#10b981",
    "info": "#3b82f6",
    "warning": "#f59e0b",
    "danger": "#ef4444",
}

BOOKING_STATUS_MESSAGES = {
    "received": {
        "subject": "Booking Received - We'll Confirm Soon!",
        "message": "Your booking has been received and is being processed.",
        "color": THEME["warning"],
    },
    "confirmed": {
        "subject": "Booking Confirmed - We're Coming!",
        "message": "Great news! Your booking has been confirmed.",
        "color": THEME["success"],
    },
    "rejected": {
        "subject": "Booking Declined",
        "message": "Unfortunately the provider could not accept your booking.",
        "color": THEME["danger"],
    },
    "in-progress": {
        "subject": "Service Started - We're On Our Way!",
        "message": "Our service provider is on the way to your location.",
        "color": THEME["info"],
    },
    "completed": {
        "subject": "Service Completed - Thank You!",
        "message": "Your service has been completed successfully.",
        "color": THEME["success"],
    },
    "cancelled": {
        "subject": "Booking Cancelled",
        "message": "Your booking has been cancelled.",
        "color": THEME["danger"],
    },
}

SERVICE_STATUS_MESSAGES = {
    "not-started": {
        "subject": "Service Scheduled - We'll Be There Soon!",
        "message": "Your service is scheduled and our team is preparing.",
        "icon": "📅",
    },
    "on-the-way": {
        "subject": "Service Provider On The Way!",
        "message": "Our service provider is on the way to your location.",
        "icon": "🚗",
    },
    "in-progress": {
        "subject": "Service In Progress",
        "message": "Our team has arrived and is working on your service.",
        "icon": "🔧",
    },
    "completed": {
        "subject": "Service Completed Successfully!",
        "message": "Your service has been completed successfully.",
        "icon": "✅",
    },
    "cancelled": {
        "subject": "Service Cancelled",
        "message": "Your service has been cancelled.",
        "icon": "❌",
    },
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
    accent_color: str = THEME["primary"],
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{accent_color}"
              color="#ffffff"
              font-weight="600"
              border-radius="6px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="{THEME['primary']}" padding="20px">
          <mj-column>
            <mj-text align="center" font-size="24px" font-weight="700" color="#ffffff">
              🏠 HomeEase
            </mj-text>
            <mj-text align="center" font-size="14px" color="#d1d5db" padding="0">
              Your Home Service Partner
            </mj-text>
          </mj-column>
        </mj-section>

        <mj-section background-color="{THEME['card_bg']}" padding="30px 30px 20px 30px">
          <mj-column>
            <mj-text font-size="22px" font-weight="600" color="{THEME['text_primary']}" padding="0 0 16px 0">
              {title}
            </mj-text>
            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="{THEME['text_muted']}">
              Need help? Contact us at {SUPPORT_EMAIL} or call {SUPPORT_PHONE}
            </mj-text>
            <mj-text align="center" font-size="12px" color="{THEME['text_muted']}" padding="0">
              © HomeEase. All rights reserved.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _booking_details_section(context: dict, accent_color: str) -> str:
    items_html = "".join(
        f"""<li style="border-left: 3px solid {accent_color}; padding: 6px 10px; margin: 4px 0;">
          <strong>{item['name']}</strong> &middot; Qty: {item['quantity']} | Price: ₹{item['unit_price']:g}
        </li>"""
        for item in context.get("items", [])
    )
    return f"""
    <mj-text font-size="14px" color="{THEME['text_muted']}" padding="16px 0 0 0">
      <strong>Booking ID:</strong> {context['booking_code']}<br/>
      <strong>Scheduled:</strong> {context['scheduled_date']} at {context['scheduled_time']}<br/>
      <strong>Total Amount:</strong> ₹{context['total']:g} (cash on service)
    </mj-text>
    <mj-text font-size="14px" padding="8px 0 0 0">
      <ul style="list-style: none; padding: 0; margin: 0;">{items_html}</ul>
    </mj-text>
    """


def booking_status_template(status: str, context: dict) -> tuple[str, str]:
    """Return (subject, mjml) for a primary booking status change"""
    info = BOOKING_STATUS_MESSAGES[status]
    badge = status.replace("-", " ").upper()

    extra = ""
    if status == "confirmed":
        extra = """
        <mj-text padding="16px 0 0 0">
          <strong>What's Next?</strong><br/>
          • Our service provider will contact you before arriving<br/>
          • Please ensure someone is available at the scheduled time<br/>
          • Have the service area ready for our team
        </mj-text>
        """
    elif context.get("reason") and status in ("rejected", "cancelled"):
        extra = f"""
        <mj-text padding="16px 0 0 0">
          <strong>Reason:</strong> {context['reason']}
        </mj-text>
        """

    content = f"""
    <mj-text>Hi {context['customer_name']}! 👋</mj-text>
    <mj-text>{info['message']}</mj-text>
    <mj-text align="center" font-weight="700" color="{info['color']}">{badge}</mj-text>
    {_booking_details_section(context, info['color'])}
    {extra}
    """

    cta_url = f"{FRONTEND_URL}/bookings"
    cta_label = "Rate Your Experience" if status == "completed" else "View Booking"

    mjml = get_base_template(
        title="Booking Status Update",
        preview_text=info["subject"],
        content_sections=content,
        cta_url=cta_url,
        cta_label=cta_label,
        accent_color=info["color"],
    )
    return info["subject"], mjml


def service_status_template(service_status: str, context: dict) -> tuple[str, str]:
    """Return (subject, mjml) for a service progress update"""
    info = SERVICE_STATUS_MESSAGES[service_status]

    extra = ""
    if service_status == "on-the-way":
        extra = """
        <mj-text>
          <strong>📍 Estimated Arrival:</strong> 15-30 minutes<br/>
          Please ensure someone is available to receive our service provider.
        </mj-text>
        """
    elif service_status == "completed":
        extra = """
        <mj-text>
          We hope you're satisfied with our service! Your feedback means a lot to us.
        </mj-text>
        """

    notes = ""
    if context.get("notes"):
        notes = f"""
        <mj-text font-size="14px" color="{THEME['text_muted']}">Note from your provider: {context['notes']}</mj-text>
        """

    content = f"""
    <mj-text align="center" font-size="48px">{info['icon']}</mj-text>
    <mj-text>Hi {context['customer_name']}!</mj-text>
    <mj-text>{info['message']}</mj-text>
    <mj-text font-size="14px" color="{THEME['text_muted']}">
      <strong>Booking ID:</strong> {context['booking_code']}
    </mj-text>
    {extra}
    {notes}
    """

    mjml = get_base_template(
        title="Service Status Update",
        preview_text=info["subject"],
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/bookings",
        cta_label="Track Your Service",
    )
    return info["subject"], mjml
