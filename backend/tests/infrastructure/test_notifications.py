import json
import logging
from datetime import datetime
from typing import List

import pytest
from app.domain.notifications import BookingConfirmation
from app.infrastructure import notifications
from app.utils.time import BusinessCalendar


def _confirmation() -> BookingConfirmation:
    return BookingConfirmation(
        booking_id=7,
        confirmation_code="0A1B2C3D4E",
        customer_name="Pat <Golfer>",
        customer_email="pat@example.com",
        bay_name="Bay 1",
        service_name="Golf 1 Hour",
        starts_at=datetime(2099, 7, 15, 14),
        ends_at=datetime(2099, 7, 15, 15),
    )


def _calendar() -> BusinessCalendar:
    return BusinessCalendar.from_name("America/Toronto", open_hour=9, close_hour=17)


def test_render_uses_business_zone_and_escapes() -> None:
    html = notifications.render_confirmation_html(_confirmation(), _calendar())
    assert "Start: 2099-07-15T10:00:00-04:00" in html
    assert "Pat &lt;Golfer&gt;" in html
    assert "Code: 0A1B2C3D4E" in html


@pytest.mark.asyncio
async def test_logging_notifier_writes_json(monkeypatch: pytest.MonkeyPatch) -> None:
    messages: List[str] = []

    class DummyLogger:
        def info(self, message: str) -> None:
            messages.append(message)

    monkeypatch.setattr(notifications, "_mail_logger", DummyLogger())
    notifier = notifications.LoggingEmailNotifier(site_name="Golf Center", sender="no-reply@example.com", calendar=_calendar())
    await notifier.send_confirmation(_confirmation())

    assert len(messages) == 1
    payload = json.loads(messages[0])
    assert payload["to"] == "pat@example.com"
    assert payload["from"] == '"Golf Center" <no-reply@example.com>'
    assert payload["subject"] == "Your Booking Confirmation"
    assert payload["booking_id"] == 7


@pytest.mark.asyncio
async def test_deliver_confirmation_swallows_send_failure(caplog: pytest.LogCaptureFixture) -> None:
    class BrokenNotifier:
        async def send_confirmation(self, confirmation: BookingConfirmation) -> None:
            raise ConnectionError("smtp down")

    with caplog.at_level(logging.ERROR, logger="app.infrastructure.notifications"):
        delivered = await notifications.deliver_confirmation(BrokenNotifier(), _confirmation())

    assert delivered is False
    assert "confirmation delivery failed for booking 7" in caplog.text


@pytest.mark.asyncio
async def test_deliver_confirmation_reports_success() -> None:
    sent: List[int] = []

    class RecordingNotifier:
        async def send_confirmation(self, confirmation: BookingConfirmation) -> None:
            sent.append(confirmation.booking_id)

    assert await notifications.deliver_confirmation(RecordingNotifier(), _confirmation()) is True
    assert sent == [7]
