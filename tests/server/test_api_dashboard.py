"""
Integration tests for /api/v1/dashboard/* endpoints
via TestClient with fully mocked Firestore.

Covers:
  - /dashboard/trips filters and validation
  - /dashboard/revenue-trend, /dashboard/conductors
  - /dashboard/performance
"""
import pytest

from firestore_fake import conductor_ticket, scanned_booking

PREFIX = "/api/v1/dashboard"
DATE = "2025-03-10"


@pytest.fixture
def fleet(seed):
    seed.conductor("c1", name="Juan", isOnline=True, currentPassengers=9)
    seed.conductor("c2", name="Pedro")
    seed.trip("c1", DATE, "trip1", tickets={"1": conductor_ticket(30)},
              pre_bookings={"pb": scanned_booking(20)})
    seed.trip("c2", DATE, "trip1", tickets={"1": conductor_ticket(15)})
    return seed


class TestTrips:

    def test_custom_date(self, client, fleet):
        body = client.get(f"{PREFIX}/trips", params={"filter": "custom", "date": DATE}).json()
        assert body["total_trips"] == 2
        assert body["total_fare"] == 65.0

    def test_all(self, client, fleet):
        assert client.get(f"{PREFIX}/trips", params={"filter": "all"}).json()["total_fare"] == 65.0

    def test_unknown_filter(self, client, fleet):
        assert client.get(f"{PREFIX}/trips", params={"filter": "week"}).status_code == 400

    def test_invalid_date(self, client, fleet):
        resp = client.get(f"{PREFIX}/trips", params={"filter": "custom", "date": "10-03-2025"})
        assert resp.status_code == 400


class TestSummaries:

    def test_revenue_trend(self, client, fleet):
        trend = client.get(f"{PREFIX}/revenue-trend").json()["trend"]
        assert len(trend) == 7
        assert trend[0]["date"] < trend[-1]["date"]

    def test_conductors(self, client, fleet):
        body = client.get(f"{PREFIX}/conductors").json()
        assert body["total_conductors"] == 2
        assert body["online_conductors"] == 1


class TestPerformance:

    def test_report(self, client, fleet):
        body = client.get(f"{PREFIX}/performance", params={"date": DATE}).json()
        assert [c["conductor_id"] for c in body["conductors"]] == ["c1", "c2"]
        assert body["conductors"][0]["total_revenue"] == 50.0
        assert body["conductors"][0]["tickets"][0]["timestamp"].endswith("+08:00")
        assert body["overall_metrics"]["total_revenue"] == 65.0
        assert body["chart_data"] == [
            {"name": "Juan", "passengers": 9, "utilization": pytest.approx(9 / 27 * 100)},
        ]

    def test_invalid_date(self, client, fleet):
        assert client.get(f"{PREFIX}/performance", params={"date": "yesterday"}).status_code == 400
