import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable

from ..models import BookingStatus
from .errors import InvalidTransitionError, ValidationError


@dataclass(frozen=True)
class TimeSlot:
    starts_at: datetime
    ends_at: datetime
    available: bool


@dataclass(frozen=True)
class Interval:
    start: datetime
    end: datetime


def overlaps(start: datetime, end: datetime, other: Interval) -> bool:
    """Half-open overlap: touching intervals do not collide."""
    return start < other.end and end > other.start


def slot_grid(opens: datetime, closes: datetime, duration_minutes: int) -> list[Interval]:
    """
    Fixed-size candidate intervals anchored at `opens`.
    A trailing period shorter than the duration is dropped.
    """
    if duration_minutes <= 0:
        raise ValidationError("duration_minutes must be positive")
    step = timedelta(minutes=duration_minutes)
    grid: list[Interval] = []
    cursor = opens
    while cursor + step <= closes:
        grid.append(Interval(cursor, cursor + step))
        cursor += step
    return grid


def build_slots(
    *,
    opens: datetime,
    closes: datetime,
    duration_minutes: int,
    busy: Iterable[Interval],
    now: datetime,
    same_day: bool,
) -> list[TimeSlot]:
    """
    Pure availability computation. All datetimes are naive UTC.
    On the business day that is "today", slots starting at or before `now`
    are unavailable; other days ignore `now` entirely.
    """
    taken = list(busy)
    slots: list[TimeSlot] = []
    for candidate in slot_grid(opens, closes, duration_minutes):
        in_past = same_day and candidate.start <= now
        blocked = any(overlaps(candidate.start, candidate.end, b) for b in taken)
        slots.append(TimeSlot(candidate.start, candidate.end, available=not (in_past or blocked)))
    return slots


def generate_confirmation_code() -> str:
    # 10 hex chars; uniqueness is not enforced
    return secrets.token_hex(5).upper()


@dataclass(frozen=True)
class BookingState:
    status: BookingStatus
    checked_in: bool


def should_cancel(state: BookingState) -> bool:
    """Return False when already canceled (no-op), True when the transition applies."""
    return state.status == BookingStatus.CONFIRMED


def should_check_in(state: BookingState) -> bool:
    """Return False when already checked in (no-op). Raises for canceled bookings."""
    if state.status != BookingStatus.CONFIRMED:
        raise InvalidTransitionError("canceled bookings cannot be checked in")
    return not state.checked_in
