from datetime import date, datetime
from typing import List

from ..domain.repositories import BookingRepository, CatalogRepository
from ..domain.services import Interval, TimeSlot, build_slots
from ..models import Bay, Service
from ..utils.time import BusinessCalendar


async def compute_availability(
    catalog_repo: CatalogRepository,
    booking_repo: BookingRepository,
    calendar: BusinessCalendar,
    *,
    service_id: int,
    bay_id: int,
    day: date,
    now: datetime,
) -> List[TimeSlot]:
    """
    Candidate slots for one service on one bay for a business-zone day.

    `now` is naive UTC. An unknown service yields an empty list.
    The result is a fresh snapshot; commits re-validate on their own.
    """
    service = await catalog_repo.get_service(service_id)
    if service is None:
        return []

    opens, closes = calendar.opening_window(day)
    bookings = await booking_repo.list_confirmed_between(bay_id, opens, closes)
    return build_slots(
        opens=opens,
        closes=closes,
        duration_minutes=service.duration_minutes,
        busy=[Interval(b.start_time, b.end_time) for b in bookings],
        now=now,
        same_day=calendar.today(now) == day,
    )


async def list_services(catalog_repo: CatalogRepository) -> List[Service]:
    return await catalog_repo.list_services()


async def list_bays(catalog_repo: CatalogRepository) -> List[Bay]:
    return await catalog_repo.list_bays()
