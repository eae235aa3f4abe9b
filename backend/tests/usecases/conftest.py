import asyncio
from datetime import datetime
from typing import Dict, List, Optional

import pytest
from app.domain.errors import ConflictError
from app.models import Bay, BayType, Booking, BookingStatus, Customer, Service
from app.utils.time import BusinessCalendar


class FakeStore:
    """In-memory catalog + booking store. Inserts are checked and applied without yielding."""

    def __init__(self) -> None:
        self.services: Dict[int, Service] = {
            1: Service(id=1, name="Golf 1 Hour", slug="golf-1h", duration_minutes=60, price_cents=4000),
            2: Service(id=2, name="Golf 2.5 Hours", slug="golf-2-5-hours", duration_minutes=150, price_cents=9500),
        }
        self.bays: Dict[int, Bay] = {
            1: Bay(id=1, name="Bay 1", type=BayType.STANDARD, capacity=4),
            2: Bay(id=2, name="Prime A", type=BayType.PRIME, capacity=10),
        }
        self.customers: Dict[str, Customer] = {}
        self.bookings: List[Booking] = []
        self.upsert_calls = 0

    async def get_service(self, service_id: int) -> Optional[Service]:
        return self.services.get(service_id)

    async def get_bay(self, bay_id: int) -> Optional[Bay]:
        return self.bays.get(bay_id)

    async def list_services(self) -> List[Service]:
        return list(self.services.values())

    async def list_bays(self) -> List[Bay]:
        return list(self.bays.values())

    async def list_confirmed_between(self, bay_id: int, start: datetime, end: datetime) -> List[Booking]:
        return [
            b
            for b in self.bookings
            if b.bay_id == bay_id and b.status == BookingStatus.CONFIRMED and b.start_time < end and b.end_time > start
        ]

    async def upsert_customer(self, *, full_name: str, email: str, phone: str) -> Customer:
        self.upsert_calls += 1
        # let concurrent commits interleave before the insert
        await asyncio.sleep(0)
        customer = self.customers.get(email)
        if customer is None:
            now = datetime(2026, 1, 1)
            customer = Customer(
                id=len(self.customers) + 1,
                full_name=full_name,
                email=email,
                phone=phone,
                created_at=now,
                updated_at=now,
            )
            self.customers[email] = customer
        else:
            customer.full_name = full_name
            customer.phone = phone
        return customer

    async def create_confirmed(
        self,
        *,
        bay_id: int,
        service_id: int,
        customer_id: int,
        start_time: datetime,
        end_time: datetime,
        confirmation_code: str,
    ) -> Booking:
        for b in self.bookings:
            if (
                b.bay_id == bay_id
                and b.status == BookingStatus.CONFIRMED
                and start_time < b.end_time
                and end_time > b.start_time
            ):
                raise ConflictError("slot no longer available")
        booking = Booking(
            id=len(self.bookings) + 1,
            bay_id=bay_id,
            service_id=service_id,
            customer_id=customer_id,
            start_time=start_time,
            end_time=end_time,
            status=BookingStatus.CONFIRMED,
            confirmation_code=confirmation_code,
            checked_in=False,
            cancel_reason=None,
            created_at=start_time,
            updated_at=start_time,
        )
        self.bookings.append(booking)
        return booking

    async def get_for_update(self, booking_id: int) -> Optional[Booking]:
        return next((b for b in self.bookings if b.id == booking_id), None)

    async def save(self, booking: Booking) -> Booking:
        return booking

    async def list_starting_between(self, start: datetime, end: datetime) -> List[Booking]:
        return sorted((b for b in self.bookings if start <= b.start_time < end), key=lambda b: b.start_time)


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def calendar() -> BusinessCalendar:
    return BusinessCalendar.from_name("America/Toronto", open_hour=9, close_hour=17)
