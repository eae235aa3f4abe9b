from __future__ import annotations

import json
import logging
from html import escape

from ..domain.notifications import BookingConfirmation, ConfirmationNotifier
from ..utils.time import BusinessCalendar

logger = logging.getLogger(__name__)

_mail_logger = logging.getLogger("mail")


def render_confirmation_html(confirmation: BookingConfirmation, calendar: BusinessCalendar) -> str:
    starts = calendar.to_local(confirmation.starts_at).isoformat()
    ends = calendar.to_local(confirmation.ends_at).isoformat()
    return (
        "<h2>Booking Confirmed</h2>"
        f"<p>Hello {escape(confirmation.customer_name)},</p>"
        "<p>Your booking is confirmed.</p>"
        "<ul>"
        f"<li>Bay: {escape(confirmation.bay_name)}</li>"
        f"<li>Service: {escape(confirmation.service_name)}</li>"
        f"<li>Start: {starts}</li>"
        f"<li>End: {ends}</li>"
        f"<li>Code: {confirmation.confirmation_code}</li>"
        "</ul>"
    )


class LoggingEmailNotifier(ConfirmationNotifier):
    """Simulated mail transport: the rendered message is written to the `mail` logger as JSON."""

    def __init__(self, *, site_name: str, sender: str, calendar: BusinessCalendar) -> None:
        self.site_name = site_name
        self.sender = sender
        self.calendar = calendar

    async def send_confirmation(self, confirmation: BookingConfirmation) -> None:
        message = {
            "from": f'"{self.site_name}" <{self.sender}>',
            "to": confirmation.customer_email,
            "subject": "Your Booking Confirmation",
            "html": render_confirmation_html(confirmation, self.calendar),
            "booking_id": confirmation.booking_id,
        }
        _mail_logger.info(json.dumps(message, ensure_ascii=True))


async def deliver_confirmation(notifier: ConfirmationNotifier, confirmation: BookingConfirmation) -> bool:
    """Best-effort send. Failures are logged and reported as False, never raised."""
    try:
        await notifier.send_confirmation(confirmation)
    except Exception:
        logger.exception(
            "confirmation delivery failed for booking %s to %s",
            confirmation.booking_id,
            confirmation.customer_email,
        )
        return False
    return True
