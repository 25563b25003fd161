"""
Tests for server/bgo/services/performance.py
Covers: per-conductor channel totals, load metrics, fleet totals, chart rows.
"""
from unittest.mock import patch

import pytest

from bgo.services.performance import (
    DEFAULT_CAPACITY, fetch_conductor_performance, calculate_overall_metrics,
    prepare_conductor_chart_data, get_performance_report,
)

from firestore_fake import conductor_ticket, scanned_booking, scanned_pre_ticket

DATE = "2025-03-10"


@pytest.fixture
def crew(seed):
    seed.conductor("c1", name="Juan", busNumber=12, isOnline=True, currentPassengers=18, capacity=30)
    seed.conductor("c2", name="Pedro", busNumber=3, passengerCount=5)
    seed.conductor("gone", status="deleted")
    seed.trip("c1", DATE, "trip1", tickets={"1": conductor_ticket(30, 2)},
              pre_bookings={"pb": scanned_booking(20)})
    seed.trip("c1", DATE, "trip2", pre_tickets={"pt": scanned_pre_ticket(10)})
    seed.trip("c2", DATE, "trip1", tickets={"1": conductor_ticket(15)})
    seed.trip("c1", "2025-03-11", "trip1", tickets={"1": conductor_ticket(40)})
    return seed


class TestFetchConductorPerformance:

    def test_sorted_by_revenue_without_deleted(self, crew):
        rows = fetch_conductor_performance(DATE)
        assert [r["conductor_id"] for r in rows] == ["c1", "c2"]

    def test_channel_totals(self, crew):
        juan = fetch_conductor_performance(DATE)[0]
        assert juan["conductor_trips_revenue"] == 30.0
        assert juan["conductor_trips_passengers"] == 2
        assert juan["pre_booking_revenue"] == 20.0
        assert juan["pre_booking_count"] == 1
        assert juan["pre_ticketing_revenue"] == 10.0
        assert juan["total_revenue"] == 60.0
        assert juan["total_passengers"] == 4
        assert juan["total_tickets"] == 3
        assert juan["total_trips"] == 2
        assert len(juan["tickets"]) == 3

    def test_averages_and_utilization(self, crew):
        juan, pedro = fetch_conductor_performance(DATE)
        assert juan["average_fare"] == 15.0
        assert juan["average_passengers_per_trip"] == 2.0
        assert juan["utilization_rate"] == pytest.approx(60.0)
        assert pedro["capacity"] == DEFAULT_CAPACITY
        assert pedro["current_passengers"] == 5
        assert pedro["utilization_rate"] == pytest.approx(5 / 27 * 100)

    def test_all_dates(self, crew):
        assert fetch_conductor_performance(None)[0]["total_revenue"] == 100.0

    def test_conductor_without_tickets_has_zero_row(self, crew):
        crew.conductor("c3", name="Ana")
        ana = next(r for r in fetch_conductor_performance(DATE) if r["conductor_id"] == "c3")
        assert ana["total_revenue"] == 0
        assert ana["total_trips"] == 0
        assert ana["average_fare"] == 0
        assert ana["average_passengers_per_trip"] == 0

    def test_missing_online_flag_counts_as_online(self, seed):
        seed.db.collection("conductors").document("c9").set({"name": "Nora"})
        row = fetch_conductor_performance(DATE)[0]
        assert row["is_online"] is True
        assert row["bus_number"] == "N/A"

    def test_unreadable_conductors(self, crew):
        with patch("bgo.services.performance.conductors_ref", side_effect=RuntimeError("down")):
            assert fetch_conductor_performance(DATE) == []


class TestOverallMetrics:

    def test_totals(self, crew):
        metrics = calculate_overall_metrics(fetch_conductor_performance(DATE))
        assert metrics["total_conductors"] == 2
        assert metrics["active_conductors"] == 1
        assert metrics["total_current_passengers"] == 23
        assert metrics["total_capacity"] == 30 + DEFAULT_CAPACITY
        assert metrics["overall_utilization"] == pytest.approx(23 / 57 * 100)
        assert metrics["total_revenue"] == 75.0
        assert metrics["average_revenue"] == 37.5
        assert metrics["average_passengers"] == 11.5
        assert metrics["total_trips"] == 3
        assert metrics["total_passengers_from_trips"] == 5

    def test_empty(self):
        metrics = calculate_overall_metrics([])
        assert metrics["overall_utilization"] == 0
        assert metrics["average_revenue"] == 0
        assert metrics["total_conductors"] == 0


class TestChartData:

    def test_only_online_conductors(self, crew):
        chart = prepare_conductor_chart_data(fetch_conductor_performance(DATE))
        assert chart == [{"name": "Juan", "passengers": 18, "utilization": pytest.approx(60.0)}]

    def test_limit(self):
        rows = [
            {"conductor_name": f"C{i}", "current_passengers": i, "utilization_rate": 0, "is_online": True}
            for i in range(12)
        ]
        assert [r["name"] for r in prepare_conductor_chart_data(rows, limit=3)] == ["C0", "C1", "C2"]


def test_performance_report(crew):
    report = get_performance_report(DATE)
    assert report["date"] == DATE
    assert report["overall_metrics"]["total_conductors"] == 2
    assert len(report["chart_data"]) == 1
