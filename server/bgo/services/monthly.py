"""
B-Go Admin — Monthly Revenue
Reruns the daily aggregation for every day of a month and sums the results.
"""
import calendar
import logging
import re
from concurrent.futures import ThreadPoolExecutor

from bgo.config import settings
from bgo.services.remittance import remittance_service
from bgo.services.revenue import load_revenue_data, filter_by_ticket_type

logger = logging.getLogger("bgo-api")

MONTH_RE = re.compile(r"^\d{4}-\d{2}$")
DAILY_REVENUE_TARGET = 3000


def is_valid_month(month: str) -> bool:
    if not month or not MONTH_RE.match(month):
        return False
    return 1 <= int(month[5:7]) <= 12


def get_days_in_month(month: str) -> int:
    if not is_valid_month(month):
        return 0
    year, mon = int(month[:4]), int(month[5:7])
    return calendar.monthrange(year, mon)[1]


def previous_month(month: str) -> str:
    year, mon = int(month[:4]), int(month[5:7])
    if mon == 1:
        return f"{year - 1}-12"
    return f"{year}-{mon - 1:02d}"


def month_dates(month: str) -> list[str]:
    return [f"{month}-{day:02d}" for day in range(1, get_days_in_month(month) + 1)]


def empty_monthly_data() -> dict:
    return {
        "total_monthly_revenue": 0,
        "total_monthly_passengers": 0,
        "average_monthly_fare": 0,
        "conductor_monthly_revenue": 0,
        "pre_booking_monthly_revenue": 0,
        "pre_ticketing_monthly_revenue": 0,
        "daily_breakdown": [],
        "route_monthly_data": [],
        "monthly_growth": 0,
        "average_daily_revenue": 0,
    }


def _load_days(month: str, route: str | None, ticket_type: str, strict: bool = False) -> list[dict]:
    """Filtered daily data for each day of the month, in day order."""
    with ThreadPoolExecutor(max_workers=settings.FANOUT_WORKERS) as executor:
        days = list(executor.map(lambda d: load_revenue_data(d, route, strict), month_dates(month)))
    return [filter_by_ticket_type(day, ticket_type) for day in days]


def _month_revenue(month: str, route: str | None, ticket_type: str) -> float:
    """Strict sum of a month's revenue; any failed read raises."""
    return sum(day["total_revenue"] for day in _load_days(month, route, ticket_type, strict=True))


def calculate_simple_growth(current_revenue: float, daily_breakdown: list | None = None) -> float:
    """Fallback growth against a fixed daily target, capped to [-50, 100]."""
    if current_revenue == 0:
        return 0
    if daily_breakdown:
        target = DAILY_REVENUE_TARGET * len(daily_breakdown)
        growth = (current_revenue - target) / target * 100
        return max(-50, min(100, growth))
    return 5 if current_revenue > 0 else 0


def growth_percentage(current: float, previous: float) -> float:
    if previous == 0:
        return 100 if current > 0 else 0
    return (current - previous) / previous * 100


def calculate_monthly_growth(month: str, route: str | None, current_revenue: float, ticket_type: str = "",
                             daily_breakdown: list | None = None) -> float:
    """Growth against the same computation run on the previous month."""
    try:
        previous = _month_revenue(previous_month(month), route, ticket_type)
    except Exception as e:
        logger.warning(f"Previous month unavailable for {month}, using simple growth: {e}")
        return calculate_simple_growth(current_revenue, daily_breakdown)
    return growth_percentage(current_revenue, previous)


def load_monthly_data(month: str, route: str | None = None, ticket_type: str = "") -> dict:
    if not is_valid_month(month):
        raise ValueError(f"Invalid month: {month!r} (expected YYYY-MM)")

    totals = empty_monthly_data()
    routes: dict = {}

    for day_number, day in enumerate(_load_days(month, route, ticket_type), 1):
        if day["total_revenue"] <= 0:
            continue

        totals["total_monthly_revenue"] += day["total_revenue"]
        totals["total_monthly_passengers"] += day["total_passengers"]
        totals["conductor_monthly_revenue"] += day["conductor_revenue"]
        totals["pre_booking_monthly_revenue"] += day["pre_booking_revenue"]
        totals["pre_ticketing_monthly_revenue"] += day["pre_ticketing_revenue"]

        for ticket in day["conductor_trips"] + day["pre_booking_trips"] + day["pre_ticketing"]:
            origin, destination = ticket.get("from"), ticket.get("to")
            if not origin or not destination or "N/A" in (origin, destination):
                continue
            if ticket["fare"] <= 0:
                continue
            name = f"{origin} → {destination}"
            bucket = routes.setdefault(name, {
                "route": name,
                "revenue": 0.0,
                "passengers": 0,
                "trip_direction": ticket.get("trip_direction") or "N/A",
            })
            bucket["revenue"] += ticket["fare"]
            bucket["passengers"] += ticket["passengers"]

        totals["daily_breakdown"].append({
            "date": f"{month}-{day_number:02d}",
            "day": day_number,
            "total_revenue": day["total_revenue"],
            "total_passengers": day["total_passengers"],
            "conductor_revenue": day["conductor_revenue"],
            "pre_booking_revenue": day["pre_booking_revenue"],
            "pre_ticketing_revenue": day["pre_ticketing_revenue"],
            "average_fare": day["average_fare"],
        })

    revenue = totals["total_monthly_revenue"]
    passengers = totals["total_monthly_passengers"]
    breakdown_days = len(totals["daily_breakdown"])

    totals["route_monthly_data"] = sorted(
        (r for r in routes.values() if r["revenue"] > 0),
        key=lambda r: r["revenue"],
        reverse=True,
    )
    totals["average_monthly_fare"] = revenue / passengers if passengers > 0 else 0
    totals["average_daily_revenue"] = revenue / breakdown_days if breakdown_days else 0
    totals["monthly_growth"] = calculate_monthly_growth(
        month, route, revenue, ticket_type, totals["daily_breakdown"]
    )
    totals.update({"month": month, "route": route, "ticket_type": ticket_type})
    return totals


def get_available_months() -> list[str]:
    months = {date[:7] for date in remittance_service.get_available_dates()}
    return sorted(months, reverse=True)


def format_growth_display(growth: float) -> str:
    sign = "+" if growth >= 0 else ""
    return f"{sign}{growth:.1f}%"


def get_top_routes(route_monthly_data: list | None, limit: int = 5) -> list:
    if not isinstance(route_monthly_data, list):
        return []
    return route_monthly_data[:limit]
