import os
from datetime import datetime, date, timezone
from typing import Optional, Union
import pytz
from dotenv import load_dotenv

load_dotenv()

# Calendar days (attendance, reports) are cut in this timezone.
# DB timestamps stay naive UTC.
LOCAL_TZ_NAME = os.getenv("APP_TIMEZONE", "Asia/Kolkata")
LOCAL_TZ = pytz.timezone(LOCAL_TZ_NAME)

def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)

def utc_to_local(utc_dt: Optional[datetime]) -> Optional[datetime]:
    if utc_dt is None:
        return None
    if utc_dt.tzinfo is None:
        utc_dt = utc_dt.replace(tzinfo=timezone.utc)
    return utc_dt.astimezone(LOCAL_TZ)

def ensure_utc_naive(dt: Optional[datetime]) -> Optional[datetime]:
    # Naive input is assumed to already be UTC
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)

def local_date(utc_dt: Optional[datetime] = None) -> date:
    """Calendar day of a UTC timestamp (default: now), i.e. the timestamp truncated to local midnight."""
    return utc_to_local(utc_dt or utc_now()).date()

def truncate_to_date(value: Union[datetime, date]) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value

def inclusive_day_count(start: Union[datetime, date], end: Union[datetime, date]) -> int:
    return (truncate_to_date(end) - truncate_to_date(start)).days + 1

