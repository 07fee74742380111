# utils/timezone_utils.py
from datetime import date, datetime, timedelta, timezone
from typing import Optional

# getTimezoneOffset() never leaves this range
MAX_OFFSET_MINUTES = 14 * 60


def convert_utc_to_user_timezone(
    utc_datetime: datetime,
    timezone_offset_minutes: Optional[int] = None
) -> datetime:
    """
    Convert UTC datetime to user's timezone.

    Args:
        utc_datetime: DateTime in UTC (naive or aware)
        timezone_offset_minutes: Offset from UTC in minutes (from Date.getTimezoneOffset())
                                 Negative for ahead of UTC (e.g., -120 for UTC+2)
                                 Positive for behind UTC (e.g., 300 for UTC-5)

    Returns:
        DateTime in user's timezone (naive)

    Example:
        UTC: 12:00, offset: -120 (UTC+2) -> Result: 14:00
    """
    if utc_datetime.tzinfo is not None:
        utc_datetime = utc_datetime.astimezone(timezone.utc).replace(tzinfo=None)

    if timezone_offset_minutes is None:
        return utc_datetime

    # getTimezoneOffset() is negative ahead of UTC, so subtract it
    return utc_datetime - timedelta(minutes=timezone_offset_minutes)


def get_user_today(
    timezone_offset_minutes: Optional[int] = None,
    now: Optional[datetime] = None
) -> date:
    """
    Calendar date for the user right now.

    Args:
        timezone_offset_minutes: Same convention as convert_utc_to_user_timezone
        now: UTC instant to evaluate at, defaults to the current time

    Raises:
        ValueError: offset outside +/- 14 hours
    """
    if timezone_offset_minutes is not None and abs(timezone_offset_minutes) > MAX_OFFSET_MINUTES:
        raise ValueError(f"Timezone offset out of range: {timezone_offset_minutes}")

    if now is None:
        now = datetime.now(timezone.utc)
    return convert_utc_to_user_timezone(now, timezone_offset_minutes).date()
