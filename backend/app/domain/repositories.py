from __future__ import annotations

from datetime import datetime
from typing import Protocol

from ..models import Bay, Booking, Customer, Service


class CatalogRepository(Protocol):
    async def get_service(self, service_id: int) -> Service | None: ...

    async def get_bay(self, bay_id: int) -> Bay | None: ...

    async def list_services(self) -> list[Service]: ...

    async def list_bays(self) -> list[Bay]: ...


class BookingRepository(Protocol):
    async def list_confirmed_between(self, bay_id: int, start: datetime, end: datetime) -> list[Booking]: ...

    async def upsert_customer(self, *, full_name: str, email: str, phone: str) -> Customer: ...

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
        """Insert a CONFIRMED booking or raise ConflictError on overlap."""
        ...

    async def get_for_update(self, booking_id: int) -> Booking | None: ...

    async def save(self, booking: Booking) -> Booking: ...

    async def list_starting_between(self, start: datetime, end: datetime) -> list[Booking]: ...
