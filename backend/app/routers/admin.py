from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_calendar, get_session, require_admin
from ..domain.errors import BookingNotFoundError, InvalidTransitionError
from ..infrastructure.repositories import SqlAlchemyBookingRepository
from ..schemas import AdminBookingAction, AdminBookingRead, BookingRead
from ..usecases import bookings as booking_usecase
from ..utils.audit_log import emit_audit_log
from ..utils.time import BusinessCalendar, utc_now_naive

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/bookings", response_model=List[AdminBookingRead])
async def list_bookings(
    day: Optional[date] = Query(default=None, alias="date", description="Business-zone day, defaults to today"),
    session: AsyncSession = Depends(get_session),
    calendar: BusinessCalendar = Depends(get_calendar),
) -> list[AdminBookingRead]:
    booking_repo = SqlAlchemyBookingRepository(session)
    target = day or calendar.today(utc_now_naive())
    rows = await booking_usecase.list_bookings_for_day(booking_repo, calendar, day=target)
    return [AdminBookingRead.from_joined(booking=b, calendar=calendar) for b in rows]


@router.post("/bookings/{booking_id}/action", response_model=BookingRead)
async def apply_action(
    payload: AdminBookingAction,
    booking_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    calendar: BusinessCalendar = Depends(get_calendar),
    admin_id: str = Depends(require_admin),
) -> BookingRead:
    booking_repo = SqlAlchemyBookingRepository(session)
    now = utc_now_naive()
    try:
        async with session.begin():
            if payload.action == "checkin":
                before = None
                booking, changed = await booking_usecase.check_in_booking(booking_repo, booking_id=booking_id, now=now)
                action = "booking.checked_in"
            else:
                booking, before = await booking_usecase.cancel_booking(
                    booking_repo,
                    booking_id=booking_id,
                    reason=payload.comment,
                    now=now,
                )
                changed = before != booking.status
                action = "booking.cancelled"
            # Repeated actions are no-ops and leave no audit record
            if changed:
                try:
                    emit_audit_log(
                        action=action,  # type: ignore[arg-type]
                        initiator="admin",
                        booking_id=booking.id,
                        bay_id=booking.bay_id,
                        service_id=booking.service_id,
                        customer_id=booking.customer_id,
                        starts_at=booking.start_time,
                        status_from=before,
                        status_to=booking.status,
                        message=payload.comment,
                        extra={"admin": admin_id},
                    )
                except RuntimeError as exc:
                    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed") from exc
    except BookingNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="booking not found")
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))

    return BookingRead.from_db(booking=booking, calendar=calendar)
