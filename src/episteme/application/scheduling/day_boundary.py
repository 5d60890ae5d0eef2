"""
Day boundary service.

Implements Anki-style "next day starts at" logic: a review day runs from the
configured rollover hour to the same hour on the next calendar day, so at
03:00 with a 04:00 rollover it is still "yesterday".
"""

from datetime import date, datetime, time, timedelta, tzinfo
from zoneinfo import ZoneInfo

from episteme.domain.constants import DEFAULT_DAY_START_HOUR


class DayBoundary:
    """
    Maps timestamps to review-day indices.

    Aware timestamps are converted to *tz* when one is configured and to the
    system's local zone otherwise, so an instant gets the same day index
    whatever offset it was written in. Naive timestamps are taken as local
    wall-clock time.
    """

    def __init__(self, day_start_hour: int = DEFAULT_DAY_START_HOUR, tz: tzinfo | str | None = None):
        if not 0 <= day_start_hour <= 23:
            raise ValueError(f"day_start_hour must be within 0..23, got {day_start_hour}")
        self.day_start_hour = day_start_hour
        self.tz = ZoneInfo(tz) if isinstance(tz, str) else tz

    def _local(self, timestamp: datetime) -> datetime:
        if timestamp.tzinfo is None:
            return timestamp
        if self.tz is not None:
            return timestamp.astimezone(self.tz)
        return timestamp.astimezone()

    def day_index(self, timestamp: datetime) -> int:
        """Ordinal of the review day *timestamp* belongs to."""
        shifted = self._local(timestamp) - timedelta(hours=self.day_start_hour)
        return shifted.date().toordinal()

    def review_date(self, timestamp: datetime) -> date:
        return date.fromordinal(self.day_index(timestamp))

    def today_boundary(self, now: datetime) -> datetime:
        """Start of the review day containing *now*."""
        local = self._local(now)
        return datetime.combine(
            self.review_date(now), time(self.day_start_hour), tzinfo=local.tzinfo
        )

    def tomorrow_boundary(self, now: datetime) -> datetime:
        """End of "today": the rollover that starts the next review day."""
        local = self._local(now)
        tomorrow = self.review_date(now) + timedelta(days=1)
        return datetime.combine(tomorrow, time(self.day_start_hour), tzinfo=local.tzinfo)

    def is_before_tomorrow_boundary(self, due: datetime, now: datetime) -> bool:
        return self.day_index(due) < self.day_index(now) + 1

    def today_key(self, now: datetime) -> str:
        """YYYY-MM-DD of the current review day (not the UTC date)."""
        return self.review_date(now).isoformat()

    def is_timestamp_today(self, timestamp: datetime, now: datetime) -> bool:
        return self.day_index(timestamp) == self.day_index(now)
