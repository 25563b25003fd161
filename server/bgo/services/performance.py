"""
B-Go Admin — Conductor Performance
Per-conductor revenue, passenger and load metrics built on the daily revenue
aggregation, plus fleet-wide totals and chart rows.
"""
import logging

from bgo.database import conductors_ref
from bgo.services.revenue import load_revenue_data
from bgo.services.trips import count_unique_trips

logger = logging.getLogger("bgo-api")

DEFAULT_CAPACITY = 27
CHART_LIMIT = 10

# (revenue list key, metric prefix)
CHANNEL_GROUPS = (
    ("conductor_trips", "conductor_trips"),
    ("pre_booking_trips", "pre_booking"),
    ("pre_ticketing", "pre_ticketing"),
)


def _conductor_row(conductor_id: str, data: dict) -> dict:
    row = {
        "conductor_id": conductor_id,
        "conductor_name": data.get("name") or f"Conductor {conductor_id}",
        "bus_number": data.get("busNumber") or "N/A",
        "capacity": data.get("capacity") or DEFAULT_CAPACITY,
        "current_passengers": data.get("currentPassengers") or data.get("passengerCount") or 0,
        "last_seen": data.get("lastSeen"),
        # Only an explicit False marks a conductor offline
        "is_online": data.get("isOnline") is not False,
        "tickets": [],
    }
    for _, prefix in CHANNEL_GROUPS:
        row.update({f"{prefix}_revenue": 0.0, f"{prefix}_passengers": 0, f"{prefix}_count": 0})
    return row


def _finish_row(row: dict) -> dict:
    total_revenue = sum(row[f"{p}_revenue"] for _, p in CHANNEL_GROUPS)
    total_passengers = sum(row[f"{p}_passengers"] for _, p in CHANNEL_GROUPS)
    total_tickets = sum(row[f"{p}_count"] for _, p in CHANNEL_GROUPS)
    total_trips = count_unique_trips(row["tickets"])
    capacity = row["capacity"]
    row.update({
        "total_revenue": total_revenue,
        "total_passengers": total_passengers,
        "total_tickets": total_tickets,
        "total_trips": total_trips,
        "average_fare": total_revenue / total_passengers if total_passengers > 0 else 0,
        "average_passengers_per_trip": total_passengers / total_trips if total_trips > 0 else 0,
        "utilization_rate": row["current_passengers"] / capacity * 100 if capacity else 0,
    })
    return row


def fetch_conductor_performance(date: str | None = None) -> list[dict]:
    """
    One row per active conductor for a date (every date when None), highest
    revenue first. Conductors without tickets are included with zero totals.
    """
    try:
        docs = [d for d in conductors_ref().stream() if (d.to_dict() or {}).get("status") != "deleted"]
    except Exception as e:
        logger.error(f"Error fetching conductors for performance: {e}")
        return []

    rows = {doc.id: _conductor_row(doc.id, doc.to_dict() or {}) for doc in docs}
    revenue = load_revenue_data(date)

    for list_key, prefix in CHANNEL_GROUPS:
        for ticket in revenue[list_key]:
            row = rows.get(ticket.get("conductor_id"))
            if row is None:
                continue
            row[f"{prefix}_revenue"] += ticket["fare"]
            row[f"{prefix}_passengers"] += ticket["passengers"]
            row[f"{prefix}_count"] += 1
            row["tickets"].append(ticket)

    performance = [_finish_row(row) for row in rows.values()]
    performance.sort(key=lambda r: r["total_revenue"], reverse=True)
    logger.info(f"Conductor performance {date or 'all'}: {len(performance)} conductors")
    return performance


def calculate_overall_metrics(conductor_data: list[dict]) -> dict:
    count = len(conductor_data)
    total_current = sum(c.get("current_passengers") or 0 for c in conductor_data)
    total_capacity = sum(c.get("capacity") or 0 for c in conductor_data)
    total_revenue = sum(c.get("total_revenue") or 0 for c in conductor_data)
    return {
        "total_current_passengers": total_current,
        "total_capacity": total_capacity,
        "active_conductors": sum(1 for c in conductor_data if c.get("is_online")),
        "total_conductors": count,
        "overall_utilization": total_current / total_capacity * 100 if total_capacity > 0 else 0,
        "average_revenue": total_revenue / count if count else 0,
        "average_passengers": total_current / count if count else 0,
        "total_trips": sum(c.get("total_trips") or 0 for c in conductor_data),
        "total_revenue": total_revenue,
        "total_passengers_from_trips": sum(c.get("total_passengers") or 0 for c in conductor_data),
    }


def prepare_conductor_chart_data(conductor_data: list[dict], limit: int = CHART_LIMIT) -> list[dict]:
    """Online conductors in their existing order, capped at limit."""
    return [
        {
            "name": c["conductor_name"],
            "passengers": c["current_passengers"],
            "utilization": c["utilization_rate"],
        }
        for c in conductor_data if c.get("is_online")
    ][:limit]


def get_performance_report(date: str | None = None) -> dict:
    conductors = fetch_conductor_performance(date)
    return {
        "date": date,
        "conductors": conductors,
        "overall_metrics": calculate_overall_metrics(conductors),
        "chart_data": prepare_conductor_chart_data(conductors),
    }
