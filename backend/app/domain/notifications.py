from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True)
class BookingConfirmation:
    booking_id: int
    confirmation_code: str
    customer_name: str
    customer_email: str
    bay_name: str
    service_name: str
    starts_at: datetime
    ends_at: datetime


class ConfirmationNotifier(Protocol):
    async def send_confirmation(self, confirmation: BookingConfirmation) -> None: ...
