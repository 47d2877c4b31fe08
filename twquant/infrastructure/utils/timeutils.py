from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

EXCHANGE_TZ = "Asia/Taipei"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def exchange_now(tz_name: str = EXCHANGE_TZ, now: Optional[datetime] = None) -> datetime:
    """Current time in the exchange's local zone (naive `now` is read as UTC)."""
    now = now or utc_now()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(ZoneInfo(tz_name))


def exchange_today(tz_name: str = EXCHANGE_TZ, now: Optional[datetime] = None) -> date:
    return exchange_now(tz_name, now).date()
