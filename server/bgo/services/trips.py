"""
B-Go Admin — Trip Walker
Reads conductors/{id}/dailyTrips/{date} and the per-trip ticket channels.
"""
import logging
import re
from concurrent.futures import ThreadPoolExecutor

from bgo.config import settings
from bgo.database import (
    CHANNEL_TICKETS, CHANNEL_PRE_BOOKINGS, CHANNEL_PRE_TICKETS, CHANNELS,
    daily_trips_ref, trip_channel_ref,
)
from bgo.services.tickets import CONDUCTOR, PRE_BOOKING, PRE_TICKET, NORMALIZERS

logger = logging.getLogger("bgo-api")

DATE_ID_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

CHANNEL_KIND = {
    CHANNEL_TICKETS: CONDUCTOR,
    CHANNEL_PRE_BOOKINGS: PRE_BOOKING,
    CHANNEL_PRE_TICKETS: PRE_TICKET,
}


def trip_number_key(trip_name: str) -> int:
    digits = re.sub(r"\D", "", trip_name or "")
    return int(digits) if digits else 0


def trip_slot_names(daily_data: dict) -> list[str]:
    """Map fields named trip* on a daily-trip document, in trip order."""
    names = [
        key for key, value in (daily_data or {}).items()
        if key.startswith("trip") and isinstance(value, dict)
    ]
    return sorted(names, key=trip_number_key)


def candidate_trip_slots() -> list[str]:
    return [f"trip{i}" for i in range(1, settings.MAX_TRIP_SLOTS + 1)]


def is_date_id(value: str) -> bool:
    return bool(DATE_ID_RE.match(value or ""))


# ══════════════════════════════════════════════════
# Channel reads
# ══════════════════════════════════════════════════

def fetch_channel(conductor_id: str, date: str, trip: str, channel: str) -> dict:
    """
    Read one ticket channel of a trip slot.
    A failed read degrades to an empty channel.
    """
    normalize = NORMALIZERS[CHANNEL_KIND[channel]]
    tickets = []
    try:
        for doc in trip_channel_ref(conductor_id, date, trip, channel).stream():
            ticket = normalize(doc.id, doc.to_dict() or {})
            if ticket is not None:
                tickets.append(ticket)
    except Exception as e:
        logger.error(f"Failed to read {channel} for {conductor_id}/{date}/{trip}: {e}")
        tickets = []

    return {
        "tickets": tickets,
        "total_revenue": sum(t["fare"] for t in tickets),
        "total_passengers": sum(t["passengers"] for t in tickets),
    }


def fetch_trip_channels(conductor_id: str, date: str, trip: str) -> dict:
    """Read all three channels of a trip slot concurrently."""
    with ThreadPoolExecutor(max_workers=len(CHANNELS)) as executor:
        results = list(executor.map(
            lambda channel: fetch_channel(conductor_id, date, trip, channel),
            CHANNELS,
        ))
    return dict(zip(CHANNELS, results))


def trip_document_type(channels: dict) -> str:
    """preTicket > preBooking > conductorTicket; Regular when empty."""
    if channels[CHANNEL_PRE_TICKETS]["tickets"]:
        return "preTicket"
    if channels[CHANNEL_PRE_BOOKINGS]["tickets"]:
        return "preBooking"
    if channels[CHANNEL_TICKETS]["tickets"]:
        return "conductorTicket"
    return "Regular"


def build_trip(trip_name: str, slot: dict, channels: dict) -> dict:
    conductor_tickets = channels[CHANNEL_TICKETS]["tickets"]
    pre_bookings = channels[CHANNEL_PRE_BOOKINGS]["tickets"]
    pre_tickets = channels[CHANNEL_PRE_TICKETS]["tickets"]
    tickets = conductor_tickets + pre_bookings + pre_tickets

    return {
        "trip_number": trip_name,
        "trip_direction": slot.get("direction") or "Unknown Direction",
        "start_time": slot.get("startTime"),
        "end_time": slot.get("endTime"),
        "is_complete": bool(slot.get("isComplete")),
        "place_collection": slot.get("placeCollection"),
        "total_revenue": sum(c["total_revenue"] for c in channels.values()),
        "total_passengers": sum(c["total_passengers"] for c in channels.values()),
        "ticket_count": len(tickets),
        "tickets": tickets,
        "conductor_tickets": conductor_tickets,
        "pre_bookings": pre_bookings,
        "pre_tickets": pre_tickets,
        "document_type": trip_document_type(channels),
        "data": slot,
    }


def get_trip_data(conductor_id: str, date: str, daily_data: dict | None = None) -> list[dict]:
    """All trip slots of a conductor's day, each with its merged tickets."""
    try:
        if daily_data is None:
            snap = daily_trips_ref(conductor_id).document(date).get()
            if not snap.exists:
                return []
            daily_data = snap.to_dict() or {}

        trips = []
        for name in trip_slot_names(daily_data):
            channels = fetch_trip_channels(conductor_id, date, name)
            trips.append(build_trip(name, daily_data[name], channels))
        return trips
    except Exception as e:
        logger.error(f"Failed to read trips for {conductor_id}/{date}: {e}")
        return []


# ══════════════════════════════════════════════════
# Existence checks
# ══════════════════════════════════════════════════

def trip_has_any_documents(conductor_id: str, date: str, trip: str) -> bool:
    """True if any channel of the slot holds at least one document."""
    for channel in CHANNELS:
        try:
            if list(trip_channel_ref(conductor_id, date, trip, channel).limit(1).stream()):
                return True
        except Exception as e:
            logger.warning(f"Existence check of {channel} failed for {conductor_id}/{date}/{trip}: {e}")
    return False


def trip_has_counted_tickets(conductor_id: str, date: str, trip: str) -> bool:
    """
    Trip-count rule: any conductor ticket document, or a scanned
    pre-booking / pre-ticket.
    """
    try:
        if list(trip_channel_ref(conductor_id, date, trip, CHANNEL_TICKETS).limit(1).stream()):
            return True
        for channel in (CHANNEL_PRE_BOOKINGS, CHANNEL_PRE_TICKETS):
            for doc in trip_channel_ref(conductor_id, date, trip, channel).stream():
                if (doc.to_dict() or {}).get("scannedAt"):
                    return True
    except Exception as e:
        logger.warning(f"Trip count check failed for {conductor_id}/{date}/{trip}: {e}")
    return False


def count_unique_trips(records: list[dict]) -> int:
    """Unique conductorId_date_tripNumber keys among records that carry both ids."""
    keys = set()
    for record in records:
        conductor_id = record.get("conductor_id")
        trip = record.get("trip_number")
        if conductor_id and trip:
            keys.add(f"{conductor_id}_{record.get('date') or 'unknown-date'}_{trip}")
    return len(keys)
