from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from btcfolio.config.settings import settings
from btcfolio.config.logging import get_logger

logger = get_logger(__name__)


def local_timezone(name: Optional[str] = None):
    """Configured display timezone (TZ), UTC when the name is invalid."""
    name = name or settings.TZ
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Invalid timezone {name}, falling back to UTC")
        return timezone.utc


def format_date(value: datetime, fmt: str = "%d/%m/%Y", tz_name: Optional[str] = None) -> str:
    """Records are stored in UTC; render them in the user's timezone."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(local_timezone(tz_name)).strftime(fmt)


def format_datetime(value: datetime, tz_name: Optional[str] = None) -> str:
    return format_date(value, "%d/%m/%Y %H:%M", tz_name)
