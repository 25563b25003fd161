"""
Tests for server/bgo/services/revenue.py
Covers: channel partition, metrics, route and ticket-type filters, caching,
conductor-change invalidation.
"""
from unittest.mock import patch

import pytest

from bgo.services.remittance import remittance_service
from bgo.services.revenue import (
    TICKET_TYPE_CONDUCTOR, TICKET_TYPE_PRE_BOOK,
    calculate_revenue_metrics, filter_by_ticket_type, load_revenue_data,
    get_available_routes, get_daily_report, prepare_route_revenue_data, revenue_cache,
)

from firestore_fake import conductor_ticket, scanned_booking, scanned_pre_ticket

DATE = "2025-03-10"


@pytest.fixture
def fleet(seed):
    """Two conductors, two directions, all three channels."""
    seed.conductor("c1")
    seed.conductor("c2")
    seed.trip("c1", DATE, "trip1", direction="Batangas → Lipa",
              tickets={"1": conductor_ticket(30, 2), "2": conductor_ticket(15)},
              pre_bookings={"pb": scanned_booking(40, 2), "pb-unscanned": {"totalFare": 99, "quantity": 1}},
              pre_tickets={"pt": scanned_pre_ticket(25)})
    seed.trip("c2", DATE, "trip1", direction="Lipa → Batangas",
              tickets={"1": conductor_ticket(20)})
    seed.trip("c2", "2025-03-11", "trip1", direction="Lipa → Batangas",
              tickets={"1": conductor_ticket(50)})
    return seed


class TestMetrics:

    def test_total_is_sum_of_channels(self):
        m = calculate_revenue_metrics(
            [{"fare": 10, "passengers": 1}],
            [{"fare": 20, "passengers": 2}],
            [{"fare": 30, "passengers": 3}],
        )
        assert m["total_revenue"] == m["conductor_revenue"] + m["pre_booking_revenue"] + m["pre_ticketing_revenue"]
        assert m["total_passengers"] == 6
        assert m["average_fare"] == 10

    def test_average_fare_without_passengers_is_zero(self):
        m = calculate_revenue_metrics([], [], [])
        assert m["average_fare"] == 0
        assert m["total_revenue"] == 0

    def test_route_revenue_sorted_desc(self):
        routes = prepare_route_revenue_data(
            [{"from": "A", "to": "B", "fare": 10, "passengers": 1}],
            [{"from": "C", "to": "D", "fare": 30, "passengers": 2},
             {"from": "A", "to": "B", "fare": 5, "passengers": 1}],
        )
        assert [r["route"] for r in routes] == ["C → D", "A → B"]
        assert routes[1]["revenue"] == 15


class TestLoadRevenueData:

    def test_partition_by_channel(self, fleet):
        data = load_revenue_data(DATE)
        assert data["conductor_revenue"] == 65.0
        assert data["pre_booking_revenue"] == 40.0
        assert data["pre_ticketing_revenue"] == 25.0
        assert data["total_revenue"] == 130.0
        assert data["total_passengers"] == 7

    def test_tickets_carry_trip_context(self, fleet):
        data = load_revenue_data(DATE)
        ticket = next(t for t in data["pre_booking_trips"] if t["id"] == "pb")
        assert ticket["conductor_id"] == "c1"
        assert ticket["trip_number"] == "trip1"
        assert ticket["trip_direction"] == "Batangas → Lipa"
        assert ticket["date"] == DATE

    def test_route_filter_matches_slot_direction(self, fleet):
        data = load_revenue_data(DATE, "Lipa → Batangas")
        assert data["total_revenue"] == 20.0
        assert data["pre_booking_trips"] == []

    def test_failed_read_degrades_to_zero(self, fleet):
        with patch("bgo.services.revenue.daily_trips_ref", side_effect=RuntimeError("unavailable")):
            data = load_revenue_data(DATE)
        assert data["total_revenue"] == 0
        assert len(revenue_cache) == 0

    def test_degraded_result_not_served_to_strict_read(self, fleet):
        with patch("bgo.services.revenue.daily_trips_ref", side_effect=RuntimeError("unavailable")):
            load_revenue_data(DATE)
        assert load_revenue_data(DATE, strict=True)["total_revenue"] > 0

    def test_failed_read_raises_when_strict(self, fleet):
        with patch("bgo.services.revenue.daily_trips_ref", side_effect=RuntimeError("unavailable")):
            with pytest.raises(RuntimeError):
                load_revenue_data(DATE, strict=True)
        assert len(revenue_cache) == 0

    def test_all_dates(self, fleet):
        assert load_revenue_data(None)["total_revenue"] == 180.0

    def test_result_is_cached(self, fleet):
        first = load_revenue_data(DATE)
        fleet.trip("c1", DATE, "trip2", tickets={"1": conductor_ticket(100)})
        assert load_revenue_data(DATE)["total_revenue"] == first["total_revenue"]

        revenue_cache.clear()
        assert load_revenue_data(DATE)["total_revenue"] == first["total_revenue"] + 100

    def test_conductor_change_invalidates(self, fleet, fake_db):
        load_revenue_data(DATE)
        remittance_service.get_remittance_data(DATE)  # starts the conductors listener
        fake_db.fire_snapshot(["c1"])  # priming snapshot
        fake_db.fire_snapshot(["c1"])
        assert len(revenue_cache) == 0

    def test_unrelated_conductor_change_keeps_cache(self, fleet, fake_db):
        load_revenue_data("2025-03-11")
        remittance_service.get_remittance_data(DATE)
        fake_db.fire_snapshot(["c1"])
        fake_db.fire_snapshot(["c1"])
        assert len(revenue_cache) == 1


class TestTicketTypeFilter:

    def test_conductor_only(self, fleet):
        data = filter_by_ticket_type(load_revenue_data(DATE), TICKET_TYPE_CONDUCTOR)
        assert data["total_revenue"] == 65.0
        assert data["pre_booking_trips"] == []
        assert data["pre_ticketing"] == []

    def test_empty_keeps_everything(self, fleet):
        data = load_revenue_data(DATE)
        assert filter_by_ticket_type(data, "")["total_revenue"] == data["total_revenue"]

    def test_daily_report_has_chart_data(self, fleet):
        report = get_daily_report(DATE, None, TICKET_TYPE_PRE_BOOK)
        assert report["ticket_type"] == TICKET_TYPE_PRE_BOOK
        assert [p["value"] for p in report["pie_chart"]] == [0, 40.0, 0]
        assert report["route_revenue"][0]["revenue"] == 40.0


class TestAvailableRoutes:

    def test_distinct_sorted_directions(self, fleet):
        assert get_available_routes() == ["Batangas → Lipa", "Lipa → Batangas"]
