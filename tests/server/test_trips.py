"""
Tests for server/bgo/services/trips.py
Covers: trip slot discovery, channel reads, trip assembly, trip-count checks.
"""
from unittest.mock import patch

from bgo.database import CHANNEL_TICKETS, CHANNEL_PRE_BOOKINGS, trip_channel_ref
from bgo.services.trips import (
    trip_slot_names, trip_number_key, is_date_id, fetch_channel, get_trip_data,
    trip_has_any_documents, trip_has_counted_tickets, count_unique_trips,
)

from firestore_fake import conductor_ticket, scanned_booking, scanned_pre_ticket

DATE = "2025-03-10"


class TestSlotNames:

    def test_only_trip_maps_in_numeric_order(self):
        daily = {"trip10": {}, "trip2": {}, "trip1": {}, "tripCount": 3, "date": DATE}
        assert trip_slot_names(daily) == ["trip1", "trip2", "trip10"]

    def test_empty(self):
        assert trip_slot_names(None) == []

    def test_trip_number_key(self):
        assert trip_number_key("trip12") == 12
        assert trip_number_key("") == 0

    def test_is_date_id(self):
        assert is_date_id("2025-03-10")
        assert not is_date_id("summary")


class TestFetchChannel:

    def test_normalizes_and_totals(self, seed):
        seed.conductor("c1")
        seed.trip("c1", DATE, tickets={"1": conductor_ticket(30, 2), "2": conductor_ticket(15), "3": {"quantity": 1}})
        result = fetch_channel("c1", DATE, "trip1", CHANNEL_TICKETS)
        assert len(result["tickets"]) == 2
        assert result["total_revenue"] == 45.0
        assert result["total_passengers"] == 3

    def test_unscanned_bookings_are_dropped(self, seed):
        seed.conductor("c1")
        unscanned = {"totalFare": 40, "quantity": 1}
        seed.trip("c1", DATE, pre_bookings={"pb1": unscanned, "pb2": scanned_booking(25)})
        result = fetch_channel("c1", DATE, "trip1", CHANNEL_PRE_BOOKINGS)
        assert [t["id"] for t in result["tickets"]] == ["pb2"]
        assert result["total_revenue"] == 25.0

    def test_failed_read_degrades_to_empty(self, seed):
        seed.conductor("c1")
        seed.trip("c1", DATE, tickets={"1": conductor_ticket(30)})
        with patch("bgo.services.trips.trip_channel_ref", side_effect=RuntimeError("unavailable")):
            result = fetch_channel("c1", DATE, "trip1", CHANNEL_TICKETS)
        assert result == {"tickets": [], "total_revenue": 0, "total_passengers": 0}


class TestGetTripData:

    def test_merges_all_channels(self, seed):
        seed.conductor("c1")
        seed.trip(
            "c1", DATE, "trip1", direction="Batangas → Lipa", placeCollection="Terminal",
            tickets={"1": conductor_ticket(30)},
            pre_bookings={"pb": scanned_booking(20)},
            pre_tickets={"pt": scanned_pre_ticket(10)},
        )
        seed.trip("c1", DATE, "trip2", direction="Lipa → Batangas", isComplete=False,
                  tickets={"1": conductor_ticket(15)})

        trips = get_trip_data("c1", DATE)
        assert [t["trip_number"] for t in trips] == ["trip1", "trip2"]

        first = trips[0]
        assert first["total_revenue"] == 60.0
        assert first["ticket_count"] == 3
        assert first["document_type"] == "preTicket"
        assert first["place_collection"] == "Terminal"
        assert first["is_complete"] is True

        second = trips[1]
        assert second["document_type"] == "conductorTicket"
        assert second["trip_direction"] == "Lipa → Batangas"
        assert second["is_complete"] is False

    def test_one_failed_channel_keeps_the_others(self, seed):
        seed.conductor("c1")
        seed.trip(
            "c1", DATE, "trip1",
            tickets={"1": conductor_ticket(30)},
            pre_bookings={"pb": scanned_booking(20)},
            pre_tickets={"pt": scanned_pre_ticket(10)},
        )

        def flaky_channel_ref(conductor_id, date, trip, channel):
            if channel == CHANNEL_PRE_BOOKINGS:
                raise RuntimeError("unavailable")
            return trip_channel_ref(conductor_id, date, trip, channel)

        with patch("bgo.services.trips.trip_channel_ref", side_effect=flaky_channel_ref):
            trips = get_trip_data("c1", DATE)

        assert trips[0]["total_revenue"] == 40.0
        assert trips[0]["ticket_count"] == 2
        assert trips[0]["document_type"] == "preTicket"

    def test_missing_day_is_empty(self, seed):
        seed.conductor("c1")
        assert get_trip_data("c1", DATE) == []


class TestTripPresence:

    def test_any_documents_counts_unscanned(self, seed):
        seed.conductor("c1")
        seed.trip("c1", DATE, pre_bookings={"pb": {"totalFare": 10, "quantity": 1}})
        assert trip_has_any_documents("c1", DATE, "trip1") is True
        assert trip_has_counted_tickets("c1", DATE, "trip1") is False

    def test_scanned_pre_ticket_counts(self, seed):
        seed.conductor("c1")
        seed.trip("c1", DATE, pre_tickets={"pt": scanned_pre_ticket(10)})
        assert trip_has_counted_tickets("c1", DATE, "trip1") is True

    def test_empty_slot(self, seed):
        seed.conductor("c1")
        seed.trip("c1", DATE)
        assert trip_has_any_documents("c1", DATE, "trip1") is False


class TestCountUniqueTrips:

    def test_duplicates_collapse(self):
        records = [
            {"conductor_id": "c1", "date": DATE, "trip_number": "trip1"},
            {"conductor_id": "c1", "date": DATE, "trip_number": "trip1"},
            {"conductor_id": "c1", "date": DATE, "trip_number": "trip2"},
            {"conductor_id": "c2", "date": DATE, "trip_number": "trip1"},
        ]
        assert count_unique_trips(records) == 3

    def test_records_without_ids_are_ignored(self):
        assert count_unique_trips([{"conductor_id": "c1"}, {"trip_number": "trip1"}]) == 0
