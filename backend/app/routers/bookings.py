import logging
from typing import Any, Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, HTTPException, Path, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_calendar, get_notifier, get_session
from ..domain.errors import BookingNotFoundError, ConflictError, ServerError, ValidationError
from ..domain.notifications import ConfirmationNotifier
from ..infrastructure.notifications import deliver_confirmation
from ..infrastructure.repositories import SqlAlchemyBookingRepository, SqlAlchemyCatalogRepository
from ..models import BookingStatus
from ..schemas import BookingCancel, BookingCommitted, BookingCreate, BookingRead
from ..usecases import bookings as booking_usecase
from ..utils.audit_log import emit_audit_log
from ..utils.time import BusinessCalendar, utc_now_naive

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["bookings"])

CONFLICT_DETAIL = "That time was just booked. Pick another slot."


def _audit(**kwargs: Any) -> None:
    try:
        emit_audit_log(**kwargs)
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed") from exc


@router.post("/bookings", response_model=BookingCommitted, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
    notifier: ConfirmationNotifier = Depends(get_notifier),
) -> BookingCommitted:
    catalog_repo = SqlAlchemyCatalogRepository(session)
    booking_repo = SqlAlchemyBookingRepository(session)
    try:
        async with session.begin():
            committed = await booking_usecase.commit_booking(
                catalog_repo,
                booking_repo,
                full_name=payload.full_name,
                email=payload.email,
                phone=payload.phone,
                service_id=payload.service_id,
                bay_id=payload.bay_id,
                starts_at=payload.starts_at,
            )
            _audit(
                action="booking.created",
                initiator="customer",
                booking_id=committed.booking.id,
                bay_id=committed.bay.id,
                service_id=committed.service.id,
                customer_id=committed.customer.id,
                starts_at=committed.booking.start_time,
                status_from=None,
                status_to=BookingStatus.CONFIRMED,
            )
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except ConflictError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=CONFLICT_DETAIL)
    except (ServerError, SQLAlchemyError):
        logger.exception("booking commit failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")

    background_tasks.add_task(deliver_confirmation, notifier, committed.confirmation())
    return BookingCommitted(
        booking_id=committed.booking.id,
        confirmation_code=committed.booking.confirmation_code,
    )


@router.post("/bookings/{booking_id}/cancel", response_model=BookingRead)
async def cancel_booking(
    booking_id: int = Path(..., ge=1),
    payload: Optional[BookingCancel] = Body(default=None),
    session: AsyncSession = Depends(get_session),
    calendar: BusinessCalendar = Depends(get_calendar),
) -> BookingRead:
    booking_repo = SqlAlchemyBookingRepository(session)
    reason = payload.reason if payload is not None else None
    try:
        async with session.begin():
            booking, previous = await booking_usecase.cancel_booking(
                booking_repo,
                booking_id=booking_id,
                reason=reason,
                now=utc_now_naive(),
            )
            if previous != booking.status:
                _audit(
                    action="booking.cancelled",
                    initiator="customer",
                    booking_id=booking.id,
                    bay_id=booking.bay_id,
                    service_id=booking.service_id,
                    customer_id=booking.customer_id,
                    starts_at=booking.start_time,
                    status_from=previous,
                    status_to=booking.status,
                    message=reason,
                )
    except BookingNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="booking not found")
    except SQLAlchemyError:
        logger.exception("booking cancel failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")

    return BookingRead.from_db(booking=booking, calendar=calendar)
