from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo


def to_utc_naive(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def utc_naive_to_local(dt: datetime, tz: ZoneInfo) -> datetime:
    return dt.replace(tzinfo=timezone.utc).astimezone(tz)


def utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class BusinessCalendar:
    """Wall-clock business hours in a fixed zone, converted per date to naive UTC."""

    tz: ZoneInfo
    open_hour: int
    close_hour: int

    @classmethod
    def from_name(cls, name: str, *, open_hour: int, close_hour: int) -> "BusinessCalendar":
        if open_hour >= close_hour:
            raise ValueError("open_hour must be earlier than close_hour")
        return cls(tz=ZoneInfo(name), open_hour=open_hour, close_hour=close_hour)

    def _local_instant(self, day: date, hour: int) -> datetime:
        # close_hour may be 24, meaning midnight at the end of `day`
        if hour == 24:
            day, hour = day + timedelta(days=1), 0
        return datetime(day.year, day.month, day.day, hour, tzinfo=self.tz)

    def opening_window(self, day: date) -> tuple[datetime, datetime]:
        """Return (open, close) for `day` as naive UTC instants.

        The zone offset is resolved for `day` itself, so DST transition days
        map 09:00 local to the correct UTC hour.
        """
        opens = to_utc_naive(self._local_instant(day, self.open_hour))
        closes = to_utc_naive(self._local_instant(day, self.close_hour))
        return opens, closes

    def day_bounds(self, day: date) -> tuple[datetime, datetime]:
        """Return local midnight-to-midnight for `day` as naive UTC instants."""
        return to_utc_naive(self._local_instant(day, 0)), to_utc_naive(self._local_instant(day, 24))

    def today(self, now_utc: datetime) -> date:
        return self.to_local(now_utc).date()

    def to_local(self, dt: datetime) -> datetime:
        return utc_naive_to_local(dt, self.tz)
