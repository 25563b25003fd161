"""
Tests for server/bgo/services/tickets.py
Covers: channel classification, per-channel normalization, qrData parsing,
breakdown strings and the per-fare-type revenue split.
"""
import pytest
from datetime import datetime, timezone

from bgo.services.tickets import (
    CONDUCTOR, PRE_BOOKING, PRE_TICKET,
    classify_channel, normalize_conductor_ticket, normalize_pre_booking, normalize_pre_ticket,
    parse_qr_data, parse_breakdown_entry, parse_ticket_discount_breakdown,
    discounted_passenger_count, format_ticket_type,
)

SCANNED = datetime(2025, 3, 10, 2, 0, tzinfo=timezone.utc)


# ═══════════════════════════════════════
# Classification
# ═══════════════════════════════════════

class TestClassifyChannel:

    def test_document_type_wins(self):
        assert classify_channel({"documentType": "preTicket", "ticketType": "preBooking"}) == PRE_TICKET

    def test_ticket_type_variants(self):
        assert classify_channel({"ticketType": "pre-booking"}) == PRE_BOOKING
        assert classify_channel({"ticketType": "pre_ticket"}) == PRE_TICKET

    def test_source_hint(self):
        assert classify_channel({}, source="Pre-ticketing") == PRE_TICKET
        assert classify_channel({"source": "preBookings"}) == PRE_BOOKING

    def test_defaults_to_conductor(self):
        assert classify_channel({"documentType": "conductorTicket"}) == CONDUCTOR
        assert classify_channel({}) == CONDUCTOR

    def test_format_ticket_type(self):
        assert format_ticket_type(PRE_TICKET) == "Pre-Ticket"
        assert format_ticket_type("anything") == "Conductor Ticket"


# ═══════════════════════════════════════
# Normalization
# ═══════════════════════════════════════

class TestNormalizeConductorTicket:

    def test_counts_fare_and_quantity(self):
        t = normalize_conductor_ticket("1", {"totalFare": "45", "quantity": 3, "from": "A", "to": "B"})
        assert t["fare"] == 45.0
        assert t["passengers"] == 3
        assert t["channel"] == CONDUCTOR
        assert t["source"] == "dailyTrips"

    def test_missing_fare_is_skipped(self):
        assert normalize_conductor_ticket("1", {"quantity": 1}) is None

    def test_stray_pre_ticket_row_is_skipped(self):
        assert normalize_conductor_ticket("1", {"totalFare": 20, "quantity": 1, "documentType": "preTicket"}) is None


class TestNormalizePreBooking:

    def test_unscanned_booking_does_not_count(self):
        assert normalize_pre_booking("pb", {"totalFare": 30, "quantity": 1}) is None

    def test_scanned_booking(self):
        b = normalize_pre_booking("pb", {"totalFare": 30, "quantity": 2, "scannedAt": SCANNED, "busNumber": 7})
        assert b["fare"] == 30.0
        assert b["timestamp"] == SCANNED
        assert b["channel"] == PRE_BOOKING
        assert b["bus_number"] == 7


class TestNormalizePreTicket:

    def test_unscanned_pre_ticket_does_not_count(self):
        assert normalize_pre_ticket("pt", {"totalFare": 30, "quantity": 1}) is None

    def test_qr_data_takes_precedence(self):
        data = {
            "scannedAt": SCANNED,
            "totalFare": 99,
            "from": "Doc From",
            "qrData": '{"amount": 28, "quantity": 1, "from": "QR From", "to": "QR To"}',
        }
        t = normalize_pre_ticket("pt", data)
        assert t["fare"] == 28.0
        assert t["from"] == "QR From"
        assert t["to"] == "QR To"
        assert t["qr_data_parsed"]["amount"] == 28

    def test_bad_qr_json_falls_back_to_document(self):
        data = {"scannedAt": SCANNED, "totalFare": 40, "quantity": 2, "qrData": "{not json"}
        t = normalize_pre_ticket("pt", data)
        assert t["fare"] == 40.0
        assert t["passengers"] == 2
        assert t["qr_data_parsed"] is None

    def test_fare_types_build_breakdown(self):
        data = {
            "scannedAt": SCANNED,
            "qrData": {"amount": 43, "quantity": 2, "fare": 15,
                       "fareTypes": ["Regular", "Student"], "passengerFares": [15, 12]},
        }
        t = normalize_pre_ticket("pt", data)
        assert t["fare_per_passenger"] == [15, 12]
        assert [b["type"] for b in t["discount_breakdown"]] == ["Regular", "Student"]
        assert t["discount_amount"] == pytest.approx(3.0)


class TestParseQrData:

    def test_dict_passthrough(self):
        assert parse_qr_data("x", {"a": 1}) == {"a": 1}

    def test_non_object_json(self):
        assert parse_qr_data("x", "[1, 2]") is None

    def test_empty(self):
        assert parse_qr_data("x", "") is None


# ═══════════════════════════════════════
# Breakdown
# ═══════════════════════════════════════

class TestParseBreakdownEntry:

    def test_senior_string(self):
        entry = parse_breakdown_entry("Passenger 1: Senior (20% off) — 12.00 PHP")
        assert entry["type"] == "Senior"
        assert entry["fare"] == 12.0
        assert entry["discountPercent"] == 20
        assert entry["discount"] == pytest.approx(3.0)

    def test_regular_without_amount(self):
        entry = parse_breakdown_entry("Passenger 2: Regular")
        assert entry["type"] == "Regular"
        assert entry["discount"] == 0.0

    def test_object_passthrough(self):
        obj = {"type": "PWD", "fare": 10}
        assert parse_breakdown_entry(obj) is obj


class TestParseTicketDiscountBreakdown:

    def test_per_passenger_fares_with_breakdown(self):
        ticket = {
            "id": "t1", "fare": 63, "passengers": 2,
            "discount_breakdown": ["Passenger 1: Regular", "Passenger 2: Senior (20% off)"],
            "fare_per_passenger": [35, 28],
        }
        revenue = parse_ticket_discount_breakdown(ticket)
        assert revenue == {"regular": 35.0, "pwd": 0.0, "senior": 28.0, "student": 0.0}

    def test_breakdown_longer_than_fares_stops(self):
        ticket = {
            "fare": 50, "passengers": 3,
            "discount_breakdown": ["Senior", "Student", "PWD"],
            "fare_per_passenger": [20, 15],
        }
        revenue = parse_ticket_discount_breakdown(ticket)
        assert revenue["senior"] == 20.0
        assert revenue["student"] == 15.0
        assert revenue["pwd"] == 0.0

    def test_fares_without_breakdown_are_regular(self):
        revenue = parse_ticket_discount_breakdown({"fare_per_passenger": [15, 15, 20]})
        assert revenue["regular"] == 50.0

    def test_even_split_by_counts(self):
        ticket = {"fare": 40, "passengers": 2, "discount_breakdown": ["Senior", "Student"]}
        revenue = parse_ticket_discount_breakdown(ticket)
        assert revenue["senior"] == 20.0
        assert revenue["student"] == 20.0

    def test_no_breakdown_is_all_regular(self):
        revenue = parse_ticket_discount_breakdown({"fare": 45, "passengers": 3})
        assert revenue["regular"] == 45.0
        assert sum(revenue.values()) == 45.0

    def test_zero_passengers_is_zero(self):
        revenue = parse_ticket_discount_breakdown({"fare": 45, "passengers": 0})
        assert sum(revenue.values()) == 0.0


class TestDiscountedPassengerCount:

    def test_counts_discounted_entries(self):
        ticket = {"discount_breakdown": ["Regular", "Senior", "PWD"]}
        assert discounted_passenger_count(ticket) == 2

    def test_no_breakdown_counts_one(self):
        assert discounted_passenger_count({}) == 1
