from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone as dt_timezone

import pytz

DEFAULT_TIMEZONE = "UTC"


class TimezoneUtils:
    """Timestamps are stored as naive UTC and surfaced as aware UTC."""

    @staticmethod
    def validate_timezone(tz_name: str | None) -> bool:
        return bool(tz_name) and tz_name in pytz.all_timezones_set

    @staticmethod
    def utc_now() -> datetime:
        return datetime.now(dt_timezone.utc)

    @staticmethod
    def ensure_timezone_aware(dt: datetime | None) -> datetime | None:
        """Naive values are taken to be UTC already."""
        if dt is None or dt.tzinfo is not None:
            return dt
        return dt.replace(tzinfo=dt_timezone.utc)

    @staticmethod
    def to_storage(dt: datetime | None) -> datetime | None:
        """Normalize a datetime to naive UTC for the database columns."""
        if dt is None:
            return None
        return TimezoneUtils.ensure_timezone_aware(dt).astimezone(dt_timezone.utc).replace(tzinfo=None)

    @staticmethod
    def day_bounds(day: date, tz_name: str = DEFAULT_TIMEZONE) -> tuple[datetime, datetime]:
        """[start, end) of a local calendar day, as naive UTC storage values."""
        if not TimezoneUtils.validate_timezone(tz_name):
            raise ValueError(f"Invalid timezone: {tz_name}")
        tz = pytz.timezone(tz_name)
        start_local = tz.localize(datetime.combine(day, time.min))
        end_local = tz.localize(datetime.combine(day + timedelta(days=1), time.min))
        return TimezoneUtils.to_storage(start_local), TimezoneUtils.to_storage(end_local)
