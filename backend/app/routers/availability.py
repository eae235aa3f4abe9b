from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_calendar, get_session
from ..infrastructure.repositories import SqlAlchemyBookingRepository, SqlAlchemyCatalogRepository
from ..schemas import AvailabilityRead, BayRead, ServiceRead, SlotRead
from ..usecases import availability as availability_usecase
from ..utils.time import BusinessCalendar, utc_now_naive

router = APIRouter(prefix="", tags=["availability"])


@router.get("/availability", response_model=AvailabilityRead)
async def get_availability(
    service_id: int = Query(..., ge=1),
    bay_id: int = Query(..., ge=1),
    day: date = Query(..., alias="date", description="Business-zone calendar day (YYYY-MM-DD)"),
    session: AsyncSession = Depends(get_session),
    calendar: BusinessCalendar = Depends(get_calendar),
) -> AvailabilityRead:
    catalog_repo = SqlAlchemyCatalogRepository(session)
    booking_repo = SqlAlchemyBookingRepository(session)
    slots = await availability_usecase.compute_availability(
        catalog_repo,
        booking_repo,
        calendar,
        service_id=service_id,
        bay_id=bay_id,
        day=day,
        now=utc_now_naive(),
    )
    return AvailabilityRead(slots=[SlotRead.from_domain(slot=s, calendar=calendar) for s in slots])


@router.get("/services", response_model=List[ServiceRead])
async def list_services(session: AsyncSession = Depends(get_session)) -> list[ServiceRead]:
    rows = await availability_usecase.list_services(SqlAlchemyCatalogRepository(session))
    return [ServiceRead.from_db(service=s) for s in rows]


@router.get("/bays", response_model=List[BayRead])
async def list_bays(session: AsyncSession = Depends(get_session)) -> list[BayRead]:
    rows = await availability_usecase.list_bays(SqlAlchemyCatalogRepository(session))
    return [BayRead.from_db(bay=b) for b in rows]
