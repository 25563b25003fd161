"""
B-Go Admin — Dashboard Summaries
Headline trip totals, the seven-day revenue trend and the conductor online count.
"""
import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from datetime import date as date_cls, datetime, timedelta

from bgo.config import settings
from bgo.database import conductors_ref
from bgo.services.cache import TTLCache
from bgo.services.remittance import remittance_service
from bgo.services.revenue import load_revenue_data
from bgo.services.trips import count_unique_trips

logger = logging.getLogger("bgo-api")

FILTER_TODAY = "today"
FILTER_CUSTOM = "custom"
FILTER_ALL = "all"
TRIP_FILTERS = (FILTER_TODAY, FILTER_CUSTOM, FILTER_ALL)

TREND_DAYS = 7
CONDUCTORS_KEY = "conductors_summary"

summary_cache = TTLCache(settings.CONDUCTOR_CACHE_TTL_MINUTES)


def _on_conductors_changed(changed_ids: set):
    summary_cache.invalidate(CONDUCTORS_KEY)


remittance_service.add_change_handler(_on_conductors_changed)


def _today() -> date_cls:
    return datetime.now(settings.local_tz).date()


def _all_tickets(data: dict) -> list[dict]:
    return data["conductor_trips"] + data["pre_booking_trips"] + data["pre_ticketing"]


def resolve_filter_date(period: str = FILTER_TODAY, custom_date: str | None = None) -> str | None:
    """Date the trip summary covers; None means every recorded date."""
    if period not in TRIP_FILTERS:
        raise ValueError(f"Unknown filter: {period!r} (expected one of {', '.join(TRIP_FILTERS)})")
    if period == FILTER_ALL:
        return None
    if period == FILTER_CUSTOM and custom_date:
        return date_cls.fromisoformat(custom_date).isoformat()
    return _today().isoformat()


def get_trip_summary(period: str = FILTER_TODAY, custom_date: str | None = None) -> dict:
    """
    Trips, fare and passengers across every conductor for today, a custom
    date, or all dates.

    A trip is a conductor/date/slot with at least one counted ticket in any
    channel. The most common route is the most frequent "from → to" pair.
    """
    date = resolve_filter_date(period, custom_date)
    data = load_revenue_data(date)
    tickets = _all_tickets(data)

    total_trips = count_unique_trips(tickets)
    routes = Counter(f"{t.get('from') or 'Unknown'} → {t.get('to') or 'Unknown'}" for t in tickets)
    most_common = routes.most_common(1)

    return {
        "filter": period,
        "date": date,
        "total_trips": total_trips,
        "total_fare": data["total_revenue"],
        "avg_passengers": round(data["total_passengers"] / total_trips, 2) if total_trips else 0,
        "most_common_route": most_common[0][0] if most_common else "N/A",
        "breakdown": {
            "actual_trips": total_trips,
            "total_tickets": len(tickets),
            "conductors_processed": len({t.get("conductor_id") for t in tickets}),
        },
    }


def get_revenue_trend(days: int = TREND_DAYS, end: date_cls | None = None) -> list[dict]:
    """Revenue and trip count for each of the last `days` days, oldest first."""
    end = end or _today()
    dates = [end - timedelta(days=offset) for offset in range(days - 1, -1, -1)]

    with ThreadPoolExecutor(max_workers=settings.FANOUT_WORKERS) as executor:
        results = list(executor.map(lambda d: load_revenue_data(d.isoformat()), dates))

    return [
        {
            "date": day.isoformat(),
            "day": day.strftime("%a"),
            "revenue": data["total_revenue"],
            "trips": count_unique_trips(_all_tickets(data)),
        }
        for day, data in zip(dates, results)
    ]


def get_conductors_summary() -> dict:
    cached = summary_cache.get(CONDUCTORS_KEY)
    if cached is not None:
        return cached

    try:
        conductors = [
            d.to_dict() or {} for d in conductors_ref().stream()
            if (d.to_dict() or {}).get("status") != "deleted"
        ]
    except Exception as e:
        logger.error(f"Error fetching conductors summary: {e}")
        return summary_cache.peek(CONDUCTORS_KEY, {
            "total_conductors": 0, "online_conductors": 0,
            "offline_conductors": 0, "online_percentage": 0,
        })

    total = len(conductors)
    online = sum(1 for c in conductors if c.get("isOnline"))
    summary = {
        "total_conductors": total,
        "online_conductors": online,
        "offline_conductors": total - online,
        "online_percentage": round(online / total * 100, 1) if total else 0,
    }
    summary_cache.set(CONDUCTORS_KEY, summary)
    remittance_service.watcher.start()
    return summary
