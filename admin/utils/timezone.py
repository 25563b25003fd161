"""
B-Go Admin — Timezone Utility
UTC → Manila conversion for the dashboard pages.
"""
from datetime import datetime, timezone

from bgo.config import settings


def to_local(dt) -> datetime:
    """Convert a Firestore UTC datetime to operating local time."""
    if dt is None:
        return None
    if not hasattr(dt, "astimezone"):
        return dt
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(settings.local_tz)


def fmt_datetime(dt, fmt: str = "%Y-%m-%d %H:%M") -> str:
    local = to_local(dt)
    if local is None:
        return "—"
    if not hasattr(local, "strftime"):
        return str(local)
    return local.strftime(fmt)


def today() -> str:
    return datetime.now(settings.local_tz).date().isoformat()
