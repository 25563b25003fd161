"""
B-Go Admin — Ticket Channels
Classification and normalization of the three ticket-issuance channels:
conductor-issued tickets, scanned pre-bookings and scanned pre-tickets.
"""
import json
import logging
import re

from bgo.config import settings

logger = logging.getLogger("bgo-api")

CONDUCTOR = "conductor"
PRE_BOOKING = "preBooking"
PRE_TICKET = "preTicket"
CHANNEL_KINDS = (CONDUCTOR, PRE_BOOKING, PRE_TICKET)

FARE_TYPES = ("regular", "pwd", "senior", "student")
DISCOUNTED_FARE_TYPES = ("senior", "pwd", "student")

_FARE_TYPE_RE = re.compile(r"(Senior|Student|PWD|Regular)", re.IGNORECASE)
_AMOUNT_RE = re.compile(r"(\d+\.?\d*)\s*PHP")
_PERCENT_RE = re.compile(r"(\d+)%")


def _to_float(value) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _to_int(value) -> int:
    try:
        return int(float(value or 0))
    except (TypeError, ValueError):
        return 0


def classify_channel(data: dict, source: str = "") -> str:
    """
    Map a ticket document onto exactly one revenue channel.

    documentType wins over ticketType; a source hint such as
    "pre-ticketing" or "preBookings" is used when neither names a channel.
    """
    for key in ("documentType", "ticketType"):
        value = str(data.get(key) or "").replace("-", "").replace("_", "").lower()
        if value == "preticket":
            return PRE_TICKET
        if value == "prebooking":
            return PRE_BOOKING

    hint = (source or data.get("source") or "").replace("-", "").replace("_", "").lower()
    if "preticket" in hint:
        return PRE_TICKET
    if "prebook" in hint:
        return PRE_BOOKING
    return CONDUCTOR


def format_ticket_type(document_type: str) -> str:
    if document_type == PRE_TICKET:
        return "Pre-Ticket"
    if document_type == PRE_BOOKING:
        return "Pre-Booking"
    return "Conductor Ticket"


# ══════════════════════════════════════════════════
# Normalization
# ══════════════════════════════════════════════════

def normalize_conductor_ticket(ticket_id: str, data: dict) -> dict | None:
    """Conductor-issued ticket, or None when the row does not count."""
    if not (data.get("totalFare") and data.get("quantity")):
        return None
    if classify_channel(data) != CONDUCTOR:
        # Stray pre-booking / pre-ticket rows are read from their own channel
        return None

    document_type = data.get("documentType") or data.get("ticketType") or "Regular"
    return {
        "id": ticket_id,
        "from": data.get("from") or "N/A",
        "to": data.get("to") or "N/A",
        "fare": _to_float(data.get("totalFare")),
        "passengers": _to_int(data.get("quantity")),
        "timestamp": data.get("timestamp"),
        "document_type": document_type,
        "ticket_type": data.get("ticketType") or data.get("documentType") or "Regular",
        "channel": CONDUCTOR,
        "discount_amount": _to_float(data.get("discountAmount")),
        "discount_breakdown": data.get("discountBreakdown") or [],
        "discount_list": data.get("discountList") or [],
        "fare_per_passenger": data.get("farePerPassenger") or [],
        "start_km": data.get("startKm"),
        "end_km": data.get("endKm"),
        "total_km": data.get("totalKm"),
        "source": "dailyTrips",
    }


def normalize_pre_booking(booking_id: str, data: dict) -> dict | None:
    """Pre-booking; only scanned (boarded) bookings count."""
    if not data.get("scannedAt"):
        return None
    if not (data.get("totalFare") and data.get("quantity")):
        return None

    return {
        "id": booking_id,
        "from": data.get("from") or "N/A",
        "to": data.get("to") or "N/A",
        "fare": _to_float(data.get("totalFare")),
        "passengers": _to_int(data.get("quantity")),
        "timestamp": data.get("scannedAt"),
        "document_type": PRE_BOOKING,
        "ticket_type": data.get("ticketType") or PRE_BOOKING,
        "channel": PRE_BOOKING,
        "discount_amount": _to_float(data.get("discountAmount")),
        "discount_breakdown": data.get("discountBreakdown") or [],
        "discount_list": data.get("discountList") or [],
        "fare_per_passenger": data.get("farePerPassenger") or data.get("passengerFares") or [],
        "start_km": data.get("fromKm"),
        "end_km": data.get("toKm"),
        "total_km": data.get("totalKm"),
        "bus_number": data.get("busNumber"),
        "conductor_name": data.get("conductorName"),
        "route": data.get("route"),
        "direction": data.get("direction"),
        "status": data.get("status"),
        "payment_method": data.get("paymentMethod"),
        "user_id": data.get("userId"),
        "pre_booking_id": data.get("preBookingId"),
        "created_at": data.get("createdAt"),
        "paid_at": data.get("paidAt"),
        "source": "preBookings",
    }


def parse_qr_data(ticket_id: str, qr_data) -> dict | None:
    """Decode a pre-ticket QR payload (JSON string or map)."""
    if not qr_data:
        return None
    if isinstance(qr_data, dict):
        return qr_data
    if isinstance(qr_data, str):
        try:
            parsed = json.loads(qr_data)
        except ValueError as e:
            logger.warning(f"Failed to parse qrData for pre-ticket {ticket_id}: {e}")
            return None
        return parsed if isinstance(parsed, dict) else None
    return None


def parse_breakdown_entry(entry) -> dict:
    """
    Turn "Passenger 1: Senior (20% off) — 12.00 PHP" into a breakdown object.
    The discount is recovered from the paid fare: fare / (1 - pct) - fare.
    """
    if isinstance(entry, dict):
        return entry

    text = str(entry)
    type_match = _FARE_TYPE_RE.search(text)
    amount_match = _AMOUNT_RE.search(text)
    percent_match = _PERCENT_RE.search(text)

    fare = float(amount_match.group(1)) if amount_match else 0.0
    percent = int(percent_match.group(1)) if percent_match else 0
    discount = 0.0
    if 0 < percent < 100:
        discount = fare / (1 - percent / 100) - fare

    return {
        "type": type_match.group(1) if type_match else "Regular",
        "count": 1,
        "discount": discount,
        "fare": fare,
        "discountPercent": percent,
    }


def _breakdown_from_fare_types(source: dict) -> list:
    regular_fare = _to_float(source.get("fare")) or settings.DEFAULT_REGULAR_FARE
    fares = source.get("passengerFares") or []
    breakdown = []
    for index, fare_type in enumerate(source.get("fareTypes") or []):
        passenger_fare = _to_float(fares[index]) if index < len(fares) else 0.0
        discounted = fare_type != "Regular"
        discount = regular_fare - passenger_fare if discounted else 0.0
        breakdown.append({
            "type": fare_type,
            "count": 1,
            "discount": discount,
            "fare": passenger_fare,
            "originalFare": regular_fare,
            "discountPercent": round(discount / regular_fare * 100) if discounted else 0,
        })
    return breakdown


def normalize_pre_ticket(ticket_id: str, data: dict) -> dict | None:
    """
    Pre-ticket; only scanned tickets count. Fields embedded in qrData take
    precedence over the document's own fields.
    """
    if not data.get("scannedAt"):
        return None

    parsed = parse_qr_data(ticket_id, data.get("qrData"))
    source = parsed or data

    raw_fare = source.get("amount") or source.get("totalFare") or data.get("totalFare")
    if not raw_fare:
        return None
    fare = _to_float(raw_fare)
    passengers = _to_int(source.get("quantity") or data.get("quantity"))

    breakdown = []
    if isinstance(source.get("discountBreakdown"), list):
        breakdown = [parse_breakdown_entry(e) for e in source["discountBreakdown"]]

    fare_per_passenger = []
    if isinstance(source.get("fareTypes"), list) and source.get("passengerFares"):
        fare_per_passenger = source["passengerFares"]
        if not breakdown:
            breakdown = _breakdown_from_fare_types(source)
    if not fare_per_passenger:
        fare_per_passenger = data.get("farePerPassenger") or data.get("passengerFares") or []

    discount_amount = _to_float(data.get("discountAmount"))
    if not discount_amount:
        discount_amount = sum(_to_float(item.get("discount")) for item in breakdown)

    return {
        "id": ticket_id,
        "from": source.get("from") or data.get("from") or "N/A",
        "to": source.get("to") or data.get("to") or "N/A",
        "fare": fare,
        "passengers": passengers,
        "timestamp": data.get("scannedAt"),
        "document_type": PRE_TICKET,
        "ticket_type": source.get("ticketType") or data.get("ticketType") or PRE_TICKET,
        "channel": PRE_TICKET,
        "discount_amount": discount_amount,
        "discount_breakdown": breakdown,
        "discount_list": source.get("fareTypes") or data.get("discountList") or [],
        "fare_per_passenger": fare_per_passenger,
        "start_km": source.get("fromKm") or data.get("fromKm") or data.get("startKm") or 0,
        "end_km": source.get("toKm") or data.get("toKm") or data.get("endKm") or 0,
        "total_km": source.get("totalKm") or data.get("totalKm") or 0,
        "route": source.get("route") or data.get("route"),
        "direction": source.get("direction") or data.get("direction"),
        "scanned_at": data.get("scannedAt"),
        "scanned_by": data.get("scannedBy"),
        "status": data.get("status"),
        "qr_data_parsed": parsed,
        "place_collection": source.get("placeCollection") or data.get("placeCollection"),
        "time": source.get("time") or data.get("time"),
        "source": "preTickets",
    }


NORMALIZERS = {
    CONDUCTOR: normalize_conductor_ticket,
    PRE_BOOKING: normalize_pre_booking,
    PRE_TICKET: normalize_pre_ticket,
}


# ══════════════════════════════════════════════════
# Fare-type breakdown
# ══════════════════════════════════════════════════

def fare_type_of(desc) -> str:
    """Fare type named by a breakdown entry (string or object form)."""
    if isinstance(desc, dict):
        text = str(desc.get("type") or "Regular").lower()
    else:
        text = str(desc).lower()

    if "pwd" in text:
        return "pwd"
    if "senior" in text:
        return "senior"
    if "student" in text:
        return "student"
    return "regular"


def parse_ticket_discount_breakdown(ticket: dict) -> dict:
    """
    Paid revenue per fare type for a single ticket.

    Uses per-passenger fares when present; otherwise splits the ticket fare
    evenly across the passengers named in the breakdown.
    """
    breakdown = {fare_type: 0.0 for fare_type in FARE_TYPES}

    quantity = _to_int(ticket.get("passengers") or ticket.get("quantity"))
    entries = ticket.get("discount_breakdown") or ticket.get("discountBreakdown") or []
    fares = (
        ticket.get("fare_per_passenger")
        or ticket.get("farePerPassenger")
        or ticket.get("passengerFares")
        or []
    )

    if fares and entries:
        for index, desc in enumerate(entries):
            if index >= len(fares):
                logger.warning(
                    f"Ticket {ticket.get('id', 'unknown')}: discount breakdown longer than passenger fares"
                )
                break
            fare = _to_float(fares[index])
            if isinstance(desc, dict) and desc.get("fare") is not None:
                fare = _to_float(desc.get("fare"))
            breakdown[fare_type_of(desc)] += fare
        return breakdown

    if fares:
        breakdown["regular"] = sum(_to_float(f) for f in fares)
        return breakdown

    total_fare = _to_float(ticket.get("fare") or ticket.get("totalFare") or ticket.get("amount"))
    counts = {fare_type: 0 for fare_type in FARE_TYPES}
    for desc in entries:
        counts[fare_type_of(desc)] += 1
    if not entries:
        counts["regular"] = quantity

    average = total_fare / quantity if quantity > 0 else 0.0
    for fare_type in FARE_TYPES:
        breakdown[fare_type] = counts[fare_type] * average
    return breakdown


def discounted_passenger_count(ticket: dict) -> int:
    entries = ticket.get("discount_breakdown") or []
    if not entries:
        return 1
    return sum(1 for e in entries if fare_type_of(e) in DISCOUNTED_FARE_TYPES)
