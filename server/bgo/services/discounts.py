"""
B-Go Admin — Discount Report
Senior / PWD / student discounts per trip and per ticket, from remittance data.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date as date_cls, datetime, timedelta

from bgo.config import settings
from bgo.services.remittance import remittance_service
from bgo.services.tickets import (
    DISCOUNTED_FARE_TYPES, parse_ticket_discount_breakdown, discounted_passenger_count,
)

logger = logging.getLogger("bgo-api")

FARE_TYPE_LABELS = {"senior": "Senior", "pwd": "PWD", "student": "Student"}


def dates_in_range(start: str, end: str) -> list[str]:
    current = date_cls.fromisoformat(start)
    last = date_cls.fromisoformat(end)
    dates = []
    while current <= last:
        dates.append(current.isoformat())
        current += timedelta(days=1)
    return dates


def ticket_category(ticket: dict) -> str:
    doc_type = str(ticket.get("document_type") or ticket.get("ticket_type") or "").lower()
    source = str(ticket.get("source") or "").lower()
    if doc_type == "preticket" or "pre-ticketing" in source:
        return "Pre-Ticket"
    if doc_type == "prebooking" or "pre-booking" in source:
        return "Pre-Booking"
    return "Conductor Ticket"


def _sort_key(value, fallback_date: str) -> datetime:
    """Naive local datetime so Firestore timestamps and bare dates compare."""
    if not isinstance(value, datetime):
        return datetime.fromisoformat(fallback_date)
    if value.tzinfo is not None:
        value = value.astimezone(settings.local_tz).replace(tzinfo=None)
    return value


def _process_trip(trip: dict, bus_number: str, trips_out: list, tickets_out: list):
    stats = {
        "senior": 0.0, "pwd": 0.0, "student": 0.0,
        "senior_revenue": 0.0, "pwd_revenue": 0.0, "student_revenue": 0.0,
        "total_discount": 0.0, "total_revenue": 0.0,
        "total_discounted_pax": 0,
    }
    has_discount = False

    for ticket in trip.get("tickets") or []:
        revenue = parse_ticket_discount_breakdown(ticket)
        discounts = {t: revenue[t] * settings.DISCOUNT_RATE_ON_PAID for t in DISCOUNTED_FARE_TYPES}
        ticket_discount = sum(discounts.values())
        ticket_revenue = sum(revenue.values())

        for fare_type in DISCOUNTED_FARE_TYPES:
            stats[f"{fare_type}_revenue"] += revenue[fare_type]
        stats["total_revenue"] += ticket_revenue

        if ticket_discount <= 0:
            continue

        has_discount = True
        for fare_type in DISCOUNTED_FARE_TYPES:
            stats[fare_type] += discounts[fare_type]
        stats["total_discount"] += ticket_discount
        stats["total_discounted_pax"] += discounted_passenger_count(ticket)

        timestamp = ticket.get("timestamp") or trip.get("start_time")
        tickets_out.append({
            "unique_key": f"{trip['date']}-{trip['trip_number']}-{ticket.get('id')}",
            "id": ticket.get("id"),
            "trip_id": trip["trip_number"],
            "date": trip["date"],
            "date_time": _sort_key(timestamp, trip["date"]),
            "route": f"{ticket.get('from') or 'N/A'} → {ticket.get('to') or 'N/A'}",
            "bus_number": bus_number,
            "conductor": trip["conductor_id"],
            "type_string": ", ".join(FARE_TYPE_LABELS[t] for t in DISCOUNTED_FARE_TYPES if discounts[t] > 0),
            "gross": ticket_revenue + ticket_discount,
            "discount": ticket_discount,
            "paid": ticket_revenue,
            "ticket_category": ticket_category(ticket),
        })

    if has_discount:
        tickets = trip.get("tickets") or []
        first = tickets[0] if tickets else None
        trips_out.append({
            "id": f"{trip['conductor_id']}-{trip['trip_number']}-{trip['date']}",
            "trip_id": trip.get("trip_number") or "N/A",
            "date": trip["date"],
            "date_time": _sort_key(trip.get("start_time"), trip["date"]),
            "route": f"{first.get('from')} → {first.get('to')}" if first else "Multiple/Mixed",
            "direction": trip.get("trip_direction") or "N/A",
            "bus_number": bus_number,
            "breakdown": stats,
            "total_discount": stats["total_discount"],
            "total_revenue": stats["total_revenue"],
            "total_discounted_pax": stats["total_discounted_pax"],
        })


def fetch_discount_report(start: str | None = None, end: str | None = None) -> dict:
    """Discounted trips and tickets between start and end (or every known date)."""
    try:
        if start and end:
            dates = dates_in_range(start, end)
        else:
            dates = remittance_service.get_available_dates()
        if not dates:
            return {"trips": [], "tickets": []}

        with ThreadPoolExecutor(max_workers=settings.FANOUT_WORKERS) as executor:
            per_date = list(executor.map(remittance_service.get_remittance_data, dates))
        trips = [trip for entries in per_date for trip in entries]

        bus_numbers = {}
        for conductor_id in {t["conductor_id"] for t in trips if t.get("conductor_id")}:
            details = remittance_service.get_conductor_details(conductor_id)
            bus_numbers[conductor_id] = details.get("bus_number") or "N/A"

        processed_trips, processed_tickets = [], []
        for trip in trips:
            bus = bus_numbers.get(trip["conductor_id"]) or (trip.get("trip_data") or {}).get("busNumber") or "N/A"
            _process_trip(trip, str(bus), processed_trips, processed_tickets)

        processed_trips.sort(key=lambda t: t["date_time"], reverse=True)
        processed_tickets.sort(key=lambda t: t["date_time"], reverse=True)
        return {"trips": processed_trips, "tickets": processed_tickets}
    except Exception as e:
        logger.error(f"Error generating discount report: {e}")
        return {"trips": [], "tickets": []}


def calculate_discount_stats(trips: list[dict]) -> dict:
    stats = {
        "total_discount": 0.0, "total_paid": 0.0,
        "senior_discount": 0.0, "senior_paid": 0.0,
        "pwd_discount": 0.0, "pwd_paid": 0.0,
        "student_discount": 0.0, "student_paid": 0.0,
        "trip_count": len(trips),
    }
    for trip in trips:
        breakdown = trip["breakdown"]
        stats["total_discount"] += trip["total_discount"]
        stats["total_paid"] += trip["total_revenue"]
        for fare_type in DISCOUNTED_FARE_TYPES:
            stats[f"{fare_type}_discount"] += breakdown[fare_type]
            stats[f"{fare_type}_paid"] += breakdown.get(f"{fare_type}_revenue", 0)
    return stats
