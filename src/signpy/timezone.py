# timezone.py
import logging
from datetime import datetime, date, time, timedelta, timezone
from typing import Optional, Sequence, Tuple
from zoneinfo import ZoneInfo

UTC = timezone.utc

DEFAULT_TIMEZONE = "America/Denver"

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def derive_utc_offsets(tz: ZoneInfo, year: int) -> Tuple[float, ...]:
    """Offsets (hours) the zone uses in a year, daylight offset first"""
    offsets = []
    for month in (7, 1):
        offset = datetime(year, month, 1, 12, tzinfo=tz).utcoffset()
        hours = offset.total_seconds() / 3600
        if hours not in offsets:
            offsets.append(hours)
    # Daylight time is the larger offset on either side of the meridian
    return tuple(sorted(offsets, reverse=True))


class VenueClock:
    """Converts between absolute instants and the venue's civil (wall-clock) time.

    Civil-to-absolute resolution probes a small set of candidate UTC offsets and
    keeps the first one whose instant formats back to the exact civil time asked
    for. The probe order decides which instant wins when a wall-clock time occurs
    twice (fall back), so it is part of the configuration rather than a constant.
    """

    def __init__(self, timezone_name: str = DEFAULT_TIMEZONE, utc_offsets: Optional[Sequence[float]] = None):
        self.logger = logging.getLogger(__name__)
        self.timezone_name = timezone_name
        self.tz = ZoneInfo(timezone_name)
        self.utc_offsets = tuple(utc_offsets) if utc_offsets else None

    def __repr__(self) -> str:
        return f"VenueClock({self.timezone_name!r}, utc_offsets={self.utc_offsets!r})"

    def offsets_for(self, year: int) -> Tuple[float, ...]:
        if self.utc_offsets:
            return self.utc_offsets
        return derive_utc_offsets(self.tz, year)

    def to_civil(self, instant: datetime) -> datetime:
        """Naive wall-clock datetime of an instant in venue time"""
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=UTC)
        return instant.astimezone(self.tz).replace(tzinfo=None)

    def civil_time(self, instant: datetime) -> time:
        return self.to_civil(instant).time()

    def civil_date(self, instant: datetime) -> date:
        return self.to_civil(instant).date()

    def civil_date_string(self, instant: datetime) -> str:
        return self.civil_date(instant).isoformat()

    def weekday_name(self, instant: datetime) -> str:
        return WEEKDAY_NAMES[self.civil_date(instant).weekday()]

    def to_instant(self, year: int, month: int, day: int, hour: int = 0, minute: int = 0, second: int = 0) -> datetime:
        """Absolute (UTC) instant for a civil date and time in venue time.

        Raises ValueError for dates that do not exist in the calendar.
        """
        target = datetime(year, month, day, hour, minute, second)

        for offset in self.offsets_for(year):
            candidate = (target - timedelta(hours=offset)).replace(tzinfo=UTC)
            if self.to_civil(candidate) == target:
                return candidate

        # No probe round-trips: the wall-clock time falls in a gap (spring
        # forward) or the probe set does not fit this zone.
        self.logger.debug(f"No UTC offset probe matched {target.isoformat()} in {self.timezone_name}")
        return target.replace(tzinfo=self.tz).astimezone(UTC)

    def combine(self, civil_day: date, wall_time: time) -> datetime:
        return self.to_instant(
            civil_day.year, civil_day.month, civil_day.day,
            wall_time.hour, wall_time.minute, wall_time.second
        )

    def midnight(self, instant: datetime) -> datetime:
        """Instant of venue midnight on the civil day containing `instant`"""
        return self.combine(self.civil_date(instant), time(0, 0))

    def now(self) -> datetime:
        return datetime.now(UTC)
