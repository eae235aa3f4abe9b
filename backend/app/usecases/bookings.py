import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from ..domain.errors import BookingNotFoundError, ValidationError
from ..domain.notifications import BookingConfirmation
from ..domain.repositories import BookingRepository, CatalogRepository
from ..domain.services import BookingState, generate_confirmation_code, should_cancel, should_check_in
from ..models import Bay, Booking, BookingStatus, Customer, Service
from ..utils.time import BusinessCalendar, to_utc_naive

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommittedBooking:
    booking: Booking
    customer: Customer
    service: Service
    bay: Bay

    def confirmation(self) -> BookingConfirmation:
        return BookingConfirmation(
            booking_id=self.booking.id,
            confirmation_code=self.booking.confirmation_code,
            customer_name=self.customer.full_name,
            customer_email=self.customer.email,
            bay_name=self.bay.name,
            service_name=self.service.name,
            starts_at=self.booking.start_time,
            ends_at=self.booking.end_time,
        )


def _require(value: Optional[str], field: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"{field} is required")
    return cleaned


async def commit_booking(
    catalog_repo: CatalogRepository,
    booking_repo: BookingRepository,
    *,
    full_name: str,
    email: str,
    phone: str,
    service_id: int,
    bay_id: int,
    starts_at: datetime,
) -> CommittedBooking:
    """
    Reserve [starts_at, starts_at + duration) on a bay for a customer.

    Must run inside the caller's transaction: the customer upsert and the
    booking insert commit or roll back together. The repository raises
    ConflictError when a confirmed booking already overlaps the interval.
    """
    full_name = _require(full_name, "full_name")
    email = _require(email, "email").lower()
    phone = _require(phone, "phone")
    if starts_at.tzinfo is None:
        raise ValidationError("starts_at must be timezone-aware")
    starts_at = to_utc_naive(starts_at)

    service = await catalog_repo.get_service(service_id)
    if service is None:
        raise ValidationError("invalid service")
    bay = await catalog_repo.get_bay(bay_id)
    if bay is None:
        raise ValidationError("invalid bay")

    ends_at = starts_at + timedelta(minutes=service.duration_minutes)
    code = generate_confirmation_code()

    customer = await booking_repo.upsert_customer(full_name=full_name, email=email, phone=phone)
    booking = await booking_repo.create_confirmed(
        bay_id=bay.id,
        service_id=service.id,
        customer_id=customer.id,
        start_time=starts_at,
        end_time=ends_at,
        confirmation_code=code,
    )
    logger.info("booking %s confirmed on bay %s at %s", booking.id, bay.id, starts_at)
    return CommittedBooking(booking=booking, customer=customer, service=service, bay=bay)


async def cancel_booking(
    booking_repo: BookingRepository,
    *,
    booking_id: int,
    reason: Optional[str] = None,
    now: datetime,
) -> tuple[Booking, BookingStatus]:
    """Cancel a confirmed booking. Returns the booking and the status it had before."""
    booking = await booking_repo.get_for_update(booking_id)
    if booking is None:
        raise BookingNotFoundError("booking not found")
    previous = booking.status
    # Idempotent: already canceled returns as-is
    if not should_cancel(BookingState(status=booking.status, checked_in=booking.checked_in)):
        return booking, previous

    booking.status = BookingStatus.CANCELED
    booking.cancel_reason = reason
    booking.updated_at = now
    return await booking_repo.save(booking), previous


async def check_in_booking(
    booking_repo: BookingRepository,
    *,
    booking_id: int,
    now: datetime,
) -> tuple[Booking, bool]:
    """Mark a confirmed booking as checked in. The flag tells whether it was newly set."""
    booking = await booking_repo.get_for_update(booking_id)
    if booking is None:
        raise BookingNotFoundError("booking not found")
    if not should_check_in(BookingState(status=booking.status, checked_in=booking.checked_in)):
        return booking, False

    booking.checked_in = True
    booking.updated_at = now
    return await booking_repo.save(booking), True


async def list_bookings_for_day(
    booking_repo: BookingRepository,
    calendar: BusinessCalendar,
    *,
    day: date,
) -> list[Booking]:
    start, end = calendar.day_bounds(day)
    return await booking_repo.list_starting_between(start, end)
