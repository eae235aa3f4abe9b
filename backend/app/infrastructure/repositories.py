from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from ..domain.errors import ConflictError, ServerError
from ..domain.repositories import BookingRepository, CatalogRepository
from ..models import OVERLAP_CONSTRAINT, Bay, Booking, BookingStatus, Customer, Service
from ..utils.time import utc_now_naive

logger = logging.getLogger(__name__)


class SqlAlchemyCatalogRepository(CatalogRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_service(self, service_id: int) -> Service | None:
        return await self.session.get(Service, service_id)

    async def get_bay(self, bay_id: int) -> Bay | None:
        return await self.session.get(Bay, bay_id)

    async def list_services(self) -> List[Service]:
        rows = await self.session.scalars(select(Service).order_by(Service.duration_minutes, Service.id))
        return list(rows.all())

    async def list_bays(self) -> List[Bay]:
        rows = await self.session.scalars(select(Bay).order_by(Bay.id))
        return list(rows.all())


class SqlAlchemyBookingRepository(BookingRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_confirmed_between(self, bay_id: int, start: datetime, end: datetime) -> List[Booking]:
        stmt = (
            select(Booking)
            .where(
                Booking.bay_id == bay_id,
                Booking.status == BookingStatus.CONFIRMED,
                Booking.start_time < end,
                Booking.end_time > start,
            )
            .order_by(Booking.start_time)
        )
        rows = await self.session.scalars(stmt)
        return list(rows.all())

    async def upsert_customer(self, *, full_name: str, email: str, phone: str) -> Customer:
        now = utc_now_naive()
        customer = await self.session.scalar(select(Customer).where(Customer.email == email).with_for_update())
        if customer is None:
            customer = Customer(full_name=full_name, email=email, phone=phone, created_at=now, updated_at=now)
            self.session.add(customer)
        else:
            customer.full_name = full_name
            customer.phone = phone
            customer.updated_at = now
        try:
            await self.session.flush()
        except SQLAlchemyError as exc:
            raise ServerError("failed to upsert customer") from exc
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
        # Serialise commits per bay, then re-check against committed rows.
        await self.session.scalar(select(Bay.id).where(Bay.id == bay_id).with_for_update())
        clash = await self.session.scalar(
            select(Booking.id)
            .where(
                Booking.bay_id == bay_id,
                Booking.status == BookingStatus.CONFIRMED,
                Booking.start_time < end_time,
                Booking.end_time > start_time,
            )
            .limit(1)
        )
        if clash is not None:
            logger.info("bay %s already booked over %s-%s", bay_id, start_time, end_time)
            raise ConflictError("slot no longer available")

        now = utc_now_naive()
        booking = Booking(
            bay_id=bay_id,
            service_id=service_id,
            customer_id=customer_id,
            start_time=start_time,
            end_time=end_time,
            status=BookingStatus.CONFIRMED,
            confirmation_code=confirmation_code,
            checked_in=False,
            created_at=now,
            updated_at=now,
        )
        self.session.add(booking)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            if OVERLAP_CONSTRAINT in str(exc.orig):
                logger.info("overlap constraint rejected booking on bay %s", bay_id)
                raise ConflictError("slot no longer available") from exc
            raise ServerError("failed to insert booking") from exc
        except SQLAlchemyError as exc:
            raise ServerError("failed to insert booking") from exc
        return booking

    async def get_for_update(self, booking_id: int) -> Optional[Booking]:
        result = await self.session.scalar(select(Booking).where(Booking.id == booking_id).with_for_update())
        return result if isinstance(result, Booking) else None

    async def save(self, booking: Booking) -> Booking:
        self.session.add(booking)
        await self.session.flush()
        return booking

    async def list_starting_between(self, start: datetime, end: datetime) -> List[Booking]:
        stmt = (
            select(Booking)
            .options(
                joinedload(Booking.customer),
                joinedload(Booking.bay),
                joinedload(Booking.service),
            )
            .where(Booking.start_time >= start, Booking.start_time < end)
            .order_by(Booking.start_time, Booking.id)
        )
        rows = await self.session.scalars(stmt)
        return list(rows.unique().all())
