"""
B-Go Admin — Daily Revenue
Walks conductors -> dailyTrips -> trip slots and splits the tickets into the
three revenue channels.
"""
import logging
from concurrent.futures import ThreadPoolExecutor

from bgo.config import settings
from bgo.database import CHANNEL_TICKETS, CHANNEL_PRE_BOOKINGS, CHANNEL_PRE_TICKETS
from bgo.database import conductors_ref, daily_trips_ref
from bgo.services.cache import TTLCache
from bgo.services.remittance import remittance_service
from bgo.services.trips import fetch_trip_channels, trip_slot_names, is_date_id

logger = logging.getLogger("bgo-api")

TICKET_TYPE_CONDUCTOR = "conductor"
TICKET_TYPE_PRE_BOOK = "pre-book"
TICKET_TYPE_PRE_TICKET = "pre-ticket"
TICKET_TYPES = ("", TICKET_TYPE_CONDUCTOR, TICKET_TYPE_PRE_BOOK, TICKET_TYPE_PRE_TICKET)

ROUTES_KEY = "available_routes"

revenue_cache = TTLCache(settings.REVENUE_CACHE_TTL_MINUTES)
routes_cache = TTLCache(settings.DATES_CACHE_TTL_MINUTES)


def _cache_key(date, route) -> str:
    return f"{date or 'all'}|{route or ''}"


def _on_conductors_changed(changed_ids: set):
    def touches(_key, value):
        tickets = value["conductor_trips"] + value["pre_booking_trips"] + value["pre_ticketing"]
        return any(t.get("conductor_id") in changed_ids for t in tickets)

    dropped = revenue_cache.invalidate_where(touches)
    if dropped:
        logger.info(f"Conductor change invalidated revenue for: {', '.join(dropped)}")


remittance_service.add_change_handler(_on_conductors_changed)


# ══════════════════════════════════════════════════
# Metrics
# ══════════════════════════════════════════════════

def calculate_revenue_metrics(conductor_trips: list, pre_booking_trips: list, pre_ticketing: list) -> dict:
    conductor_revenue = sum(t["fare"] for t in conductor_trips)
    pre_booking_revenue = sum(t["fare"] for t in pre_booking_trips)
    pre_ticketing_revenue = sum(t["fare"] for t in pre_ticketing)
    total_revenue = conductor_revenue + pre_booking_revenue + pre_ticketing_revenue
    total_passengers = sum(
        t["passengers"] for t in conductor_trips + pre_booking_trips + pre_ticketing
    )
    return {
        "total_revenue": total_revenue,
        "total_passengers": total_passengers,
        "average_fare": total_revenue / total_passengers if total_passengers > 0 else 0,
        "conductor_revenue": conductor_revenue,
        "pre_booking_revenue": pre_booking_revenue,
        "pre_ticketing_revenue": pre_ticketing_revenue,
    }


def _includes(ticket_type: str, channel: str) -> bool:
    return not ticket_type or ticket_type == channel


def filter_by_ticket_type(data: dict, ticket_type: str = "") -> dict:
    """Keep only the requested channel ('' keeps all) and recompute metrics."""
    conductor = data["conductor_trips"] if _includes(ticket_type, TICKET_TYPE_CONDUCTOR) else []
    pre_booking = data["pre_booking_trips"] if _includes(ticket_type, TICKET_TYPE_PRE_BOOK) else []
    pre_ticket = data["pre_ticketing"] if _includes(ticket_type, TICKET_TYPE_PRE_TICKET) else []
    return {
        **data,
        "conductor_trips": conductor,
        "pre_booking_trips": pre_booking,
        "pre_ticketing": pre_ticket,
        **calculate_revenue_metrics(conductor, pre_booking, pre_ticket),
    }


def prepare_pie_chart_data(conductor_revenue: float, pre_booking_revenue: float, pre_ticketing_revenue: float) -> list[dict]:
    return [
        {"name": "Conductor Trips", "value": conductor_revenue or 0, "color": "#8884d8"},
        {"name": "Pre-booking", "value": pre_booking_revenue or 0, "color": "#ffc658"},
        {"name": "Pre-ticketing", "value": pre_ticketing_revenue or 0, "color": "#82ca9d"},
    ]


def prepare_route_revenue_data(*ticket_lists) -> list[dict]:
    """Revenue and passengers per "from → to" route, highest revenue first."""
    routes: dict = {}
    for tickets in ticket_lists:
        for ticket in tickets:
            route = f"{ticket.get('from')} → {ticket.get('to')}"
            bucket = routes.setdefault(route, {"route": route, "revenue": 0.0, "passengers": 0})
            bucket["revenue"] += ticket["fare"]
            bucket["passengers"] += ticket["passengers"]
    return sorted(routes.values(), key=lambda r: r["revenue"], reverse=True)


# ══════════════════════════════════════════════════
# Loading
# ══════════════════════════════════════════════════

def _tag(tickets: list, conductor_id: str, date: str, trip: str, direction: str) -> list:
    return [
        {**t, "conductor_id": conductor_id, "date": date, "trip_number": trip, "trip_direction": direction}
        for t in tickets
    ]


def _collect_day(conductor_id: str, date_doc_id: str, daily_data: dict, route: str | None) -> dict:
    collected = {CHANNEL_TICKETS: [], CHANNEL_PRE_BOOKINGS: [], CHANNEL_PRE_TICKETS: []}
    for trip in trip_slot_names(daily_data):
        slot = daily_data[trip]
        direction = slot.get("direction") or ""
        if route and direction != route:
            continue
        channels = fetch_trip_channels(conductor_id, date_doc_id, trip)
        for channel, result in channels.items():
            collected[channel].extend(_tag(result["tickets"], conductor_id, date_doc_id, trip, direction))
    return collected


def _empty_collection() -> dict:
    return {CHANNEL_TICKETS: [], CHANNEL_PRE_BOOKINGS: [], CHANNEL_PRE_TICKETS: []}


def _collect_conductor(conductor_id: str, date: str | None, route: str | None) -> dict:
    collected = _empty_collection()
    if date:
        snap = daily_trips_ref(conductor_id).document(date).get()
        day_docs = [(date, snap.to_dict() or {})] if snap.exists else []
    else:
        day_docs = [
            (d.id, d.to_dict() or {})
            for d in daily_trips_ref(conductor_id).stream()
            if is_date_id(d.id)
        ]
    for date_id, data in day_docs:
        for channel, tickets in _collect_day(conductor_id, date_id, data, route).items():
            collected[channel].extend(tickets)
    return collected


def load_revenue_data(date: str | None = None, route: str | None = None, strict: bool = False) -> dict:
    """
    Revenue for one date (or every date when None), optionally restricted to
    trip slots whose direction equals route. Read failures degrade to empty
    totals unless strict, in which case they propagate.
    """
    date = date.strip() if date else None
    key = _cache_key(date, route)
    cached = revenue_cache.get(key)
    if cached is not None:
        return cached

    failed = []

    def collect(conductor_id):
        try:
            return _collect_conductor(conductor_id, date, route)
        except Exception as e:
            if strict:
                raise
            logger.error(f"Error collecting revenue for conductor {conductor_id}: {e}")
            failed.append(conductor_id)
            return _empty_collection()

    conductor_trips, pre_booking_trips, pre_ticketing = [], [], []
    try:
        conductor_ids = [doc.id for doc in conductors_ref().stream()]
        with ThreadPoolExecutor(max_workers=settings.FANOUT_WORKERS) as executor:
            results = list(executor.map(collect, conductor_ids))
    except Exception as e:
        if strict:
            raise
        logger.error(f"Error loading revenue data for {key}: {e}")
        results = []

    for collected in results:
        conductor_trips.extend(collected[CHANNEL_TICKETS])
        pre_booking_trips.extend(collected[CHANNEL_PRE_BOOKINGS])
        pre_ticketing.extend(collected[CHANNEL_PRE_TICKETS])

    data = {
        "date": date,
        "route": route,
        "conductor_trips": conductor_trips,
        "pre_booking_trips": pre_booking_trips,
        "pre_ticketing": pre_ticketing,
        **calculate_revenue_metrics(conductor_trips, pre_booking_trips, pre_ticketing),
    }
    # Partial results are served but never cached
    if results and not failed:
        revenue_cache.set(key, data)
    return data


def get_available_routes() -> list[str]:
    """Distinct trip directions recorded on any daily-trip document."""
    cached = routes_cache.get(ROUTES_KEY)
    if cached is not None:
        return cached

    routes = set()
    try:
        for conductor in conductors_ref().stream():
            for day in daily_trips_ref(conductor.id).stream():
                data = day.to_dict() or {}
                for trip in trip_slot_names(data):
                    direction = data[trip].get("direction")
                    if direction:
                        routes.add(direction)
    except Exception as e:
        logger.error(f"Error fetching available routes: {e}")
        return routes_cache.peek(ROUTES_KEY, [])

    result = sorted(routes)
    routes_cache.set(ROUTES_KEY, result)
    return result


def get_daily_report(date: str | None = None, route: str | None = None, ticket_type: str = "") -> dict:
    """Daily view: filtered channels, metrics, pie and route breakdown."""
    data = filter_by_ticket_type(load_revenue_data(date, route), ticket_type)
    return {
        **data,
        "ticket_type": ticket_type,
        "pie_chart": prepare_pie_chart_data(
            data["conductor_revenue"], data["pre_booking_revenue"], data["pre_ticketing_revenue"]
        ),
        "route_revenue": prepare_route_revenue_data(
            data["conductor_trips"], data["pre_booking_trips"], data["pre_ticketing"]
        ),
    }
