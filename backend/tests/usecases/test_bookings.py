import asyncio
import re
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
from app.domain.errors import BookingNotFoundError, ConflictError, InvalidTransitionError, ValidationError
from app.models import BookingStatus
from app.usecases import bookings as uc

TORONTO = ZoneInfo("America/Toronto")
NOW = datetime(2026, 10, 19, 12, 0)


def _start(hour: int = 10, minute: int = 0) -> datetime:
    return datetime(2099, 7, 15, hour, minute, tzinfo=TORONTO)


async def _commit(store, *, email="pat@example.com", name="Pat Golfer", phone="555-0100", **overrides):
    kwargs = dict(service_id=1, bay_id=1, starts_at=_start())
    kwargs.update(overrides)
    return await uc.commit_booking(store, store, full_name=name, email=email, phone=phone, **kwargs)


@pytest.mark.asyncio
async def test_commit_creates_confirmed_booking(store) -> None:
    committed = await _commit(store)
    booking = committed.booking
    assert booking.status == BookingStatus.CONFIRMED
    assert booking.start_time == datetime(2099, 7, 15, 14, 0)
    assert booking.end_time - booking.start_time == timedelta(minutes=60)
    assert re.fullmatch(r"[0-9A-F]{10}", booking.confirmation_code)
    assert committed.customer.email == "pat@example.com"

    confirmation = committed.confirmation()
    assert confirmation.booking_id == booking.id
    assert confirmation.bay_name == "Bay 1"
    assert confirmation.service_name == "Golf 1 Hour"


@pytest.mark.asyncio
async def test_commit_upserts_customer_by_email(store) -> None:
    await _commit(store, starts_at=_start(9))
    await _commit(store, email="PAT@example.com", name="Pat G.", phone="555-0199", starts_at=_start(11))
    assert len(store.customers) == 1
    customer = store.customers["pat@example.com"]
    assert customer.full_name == "Pat G."
    assert customer.phone == "555-0199"


@pytest.mark.asyncio
async def test_commit_rejects_unknown_service_without_side_effects(store) -> None:
    with pytest.raises(ValidationError):
        await _commit(store, service_id=42)
    with pytest.raises(ValidationError):
        await _commit(store, bay_id=42)
    assert store.upsert_calls == 0
    assert store.bookings == []


@pytest.mark.asyncio
async def test_commit_rejects_blank_fields_and_naive_start(store) -> None:
    with pytest.raises(ValidationError):
        await _commit(store, name="   ")
    with pytest.raises(ValidationError):
        await _commit(store, starts_at=datetime(2099, 7, 15, 14, 0))
    assert store.upsert_calls == 0


@pytest.mark.asyncio
async def test_commit_accepts_adjacent_interval(store) -> None:
    await _commit(store, starts_at=_start(10))
    await _commit(store, starts_at=_start(11))
    assert len(store.bookings) == 2


@pytest.mark.asyncio
async def test_commit_rejects_partial_overlap(store) -> None:
    await _commit(store, starts_at=_start(10))
    with pytest.raises(ConflictError):
        await _commit(store, starts_at=_start(10, 30))


@pytest.mark.asyncio
async def test_concurrent_commits_exactly_one_wins(store) -> None:
    results = await asyncio.gather(
        _commit(store, email="a@example.com"),
        _commit(store, email="b@example.com"),
        return_exceptions=True,
    )
    successes = [r for r in results if not isinstance(r, Exception)]
    conflicts = [r for r in results if isinstance(r, ConflictError)]
    assert len(successes) == 1
    assert len(conflicts) == 1
    confirmed = [b for b in store.bookings if b.status == BookingStatus.CONFIRMED]
    assert len(confirmed) == 1


@pytest.mark.asyncio
async def test_concurrent_commits_on_different_bays_all_succeed(store) -> None:
    results = await asyncio.gather(
        _commit(store, bay_id=1),
        _commit(store, bay_id=2),
    )
    assert {r.booking.bay_id for r in results} == {1, 2}


@pytest.mark.asyncio
async def test_no_confirmed_overlap_after_many_attempts(store) -> None:
    starts = [_start(9) + timedelta(minutes=15 * i) for i in range(20)]
    await asyncio.gather(*(_commit(store, starts_at=s) for s in starts), return_exceptions=True)
    confirmed = [b for b in store.bookings if b.status == BookingStatus.CONFIRMED]
    for i, a in enumerate(confirmed):
        for b in confirmed[i + 1 :]:
            assert not (a.start_time < b.end_time and a.end_time > b.start_time)


@pytest.mark.asyncio
async def test_cancel_is_one_way_and_idempotent(store) -> None:
    committed = await _commit(store)
    booking, previous = await uc.cancel_booking(store, booking_id=committed.booking.id, reason="sick", now=NOW)
    assert previous == BookingStatus.CONFIRMED
    assert booking.status == BookingStatus.CANCELED
    assert booking.cancel_reason == "sick"

    again, previous = await uc.cancel_booking(store, booking_id=committed.booking.id, now=NOW)
    assert previous == BookingStatus.CANCELED
    assert again.cancel_reason == "sick"


@pytest.mark.asyncio
async def test_cancel_missing_booking_raises(store) -> None:
    with pytest.raises(BookingNotFoundError):
        await uc.cancel_booking(store, booking_id=404, now=NOW)


@pytest.mark.asyncio
async def test_check_in_sets_sticky_flag(store) -> None:
    committed = await _commit(store)
    booking, changed = await uc.check_in_booking(store, booking_id=committed.booking.id, now=NOW)
    assert changed is True
    assert booking.checked_in is True
    assert booking.status == BookingStatus.CONFIRMED

    again, changed = await uc.check_in_booking(store, booking_id=committed.booking.id, now=NOW)
    assert again.checked_in is True
    assert changed is False


@pytest.mark.asyncio
async def test_check_in_rejected_after_cancel(store) -> None:
    committed = await _commit(store)
    await uc.cancel_booking(store, booking_id=committed.booking.id, now=NOW)
    with pytest.raises(InvalidTransitionError):
        await uc.check_in_booking(store, booking_id=committed.booking.id, now=NOW)


@pytest.mark.asyncio
async def test_list_bookings_for_day_uses_business_zone(store, calendar) -> None:
    await _commit(store, starts_at=_start(9))
    await _commit(store, starts_at=datetime(2099, 7, 16, 9, tzinfo=TORONTO))
    # 21:30 local on the 15th is already the 16th in UTC
    late = datetime(2099, 7, 16, 1, 30, tzinfo=timezone.utc)
    await _commit(store, starts_at=late, bay_id=2)

    rows = await uc.list_bookings_for_day(store, calendar, day=date(2099, 7, 15))
    assert [b.start_time for b in rows] == [datetime(2099, 7, 15, 13, 0), datetime(2099, 7, 16, 1, 30)]
