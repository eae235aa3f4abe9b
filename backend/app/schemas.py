from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from .domain.services import TimeSlot
from .models import Bay, BayType, Booking, BookingStatus, Service
from .utils.time import BusinessCalendar


class ServiceRead(BaseModel):
    service_id: int
    name: str
    slug: str
    duration_minutes: int
    price_cents: int

    @classmethod
    def from_db(cls, *, service: Service) -> "ServiceRead":
        return cls(
            service_id=service.id,
            name=service.name,
            slug=service.slug,
            duration_minutes=service.duration_minutes,
            price_cents=service.price_cents,
        )


class BayRead(BaseModel):
    bay_id: int
    name: str
    type: BayType
    capacity: int

    @classmethod
    def from_db(cls, *, bay: Bay) -> "BayRead":
        return cls(bay_id=bay.id, name=bay.name, type=bay.type, capacity=bay.capacity)


class SlotRead(BaseModel):
    starts_at: datetime
    ends_at: datetime
    available: bool

    @classmethod
    def from_domain(cls, *, slot: TimeSlot, calendar: BusinessCalendar) -> "SlotRead":
        return cls(
            starts_at=calendar.to_local(slot.starts_at),
            ends_at=calendar.to_local(slot.ends_at),
            available=slot.available,
        )


class AvailabilityRead(BaseModel):
    slots: list[SlotRead]


class BookingCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    full_name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    phone: str = Field(min_length=1, max_length=50)
    service_id: int = Field(ge=1)
    bay_id: int = Field(ge=1)
    starts_at: datetime


class BookingCommitted(BaseModel):
    booking_id: int
    confirmation_code: str


class BookingCancel(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class AdminBookingAction(BaseModel):
    action: Literal["checkin", "cancel"]
    comment: Optional[str] = Field(default=None, max_length=500)


class BookingRead(BaseModel):
    booking_id: int
    bay_id: int
    service_id: int
    customer_id: int
    starts_at: datetime
    ends_at: datetime
    status: BookingStatus
    confirmation_code: str
    checked_in: bool
    cancel_reason: Optional[str] = None

    @classmethod
    def from_db(cls, *, booking: Booking, calendar: BusinessCalendar) -> "BookingRead":
        return cls(
            booking_id=booking.id,
            bay_id=booking.bay_id,
            service_id=booking.service_id,
            customer_id=booking.customer_id,
            starts_at=calendar.to_local(booking.start_time),
            ends_at=calendar.to_local(booking.end_time),
            status=booking.status,
            confirmation_code=booking.confirmation_code,
            checked_in=booking.checked_in,
            cancel_reason=booking.cancel_reason,
        )


class AdminBookingRead(BookingRead):
    customer_name: str
    customer_email: str
    bay_name: str
    service_name: str
    duration_minutes: int

    @classmethod
    def from_joined(cls, *, booking: Booking, calendar: BusinessCalendar) -> "AdminBookingRead":
        base = BookingRead.from_db(booking=booking, calendar=calendar)
        return cls(
            **base.model_dump(),
            customer_name=booking.customer.full_name,
            customer_email=booking.customer.email,
            bay_name=booking.bay.name,
            service_name=booking.service.name,
            duration_minutes=booking.service.duration_minutes,
        )
