"""
Tests for the order and courier tracking endpoints.
"""
import asyncio
import logging
import random

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import FakeDirections
from courier_tracker.config.directions import DirectionsConfig
from courier_tracker.exceptions import DirectionsError, GeocodingError, InvalidRouteData
from courier_tracker.main import _cleanup_loop, create_app
from courier_tracker.models.route import Route
from courier_tracker.services.courier_registry import CourierRegistry
from courier_tracker.services.directions_service import DirectionsService
from courier_tracker.services.order_service import DRIVER_POOL, OrderService

ORDER = {"from": "Alexanderplatz, Berlin", "to": "Tempelhof, Berlin"}


@pytest.fixture
def client(order_service, tmp_path):
    with TestClient(create_app(order_service=order_service, client_dist_dir=str(tmp_path))) as test_client:
        yield test_client


def client_for(directions, clock, tmp_path) -> TestClient:
    service = OrderService(CourierRegistry(), directions, speed_multiplier=20, clock=clock, rng=random.Random(1))
    return TestClient(create_app(order_service=service, client_dist_dir=str(tmp_path)))


# ============================================================
# POST /order TESTS
# ============================================================

class TestCreateOrder:
    """Test suite for POST /order."""

    def test_create_order(self, client, fake_directions):
        response = client.post("/order", json=ORDER)

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "created"
        assert (data["name"], data["licensePlate"]) in {(d.name, d.license_plate) for d in DRIVER_POOL}
        assert fake_directions.calls == [("Alexanderplatz, Berlin", "Tempelhof, Berlin")]

        route_info = data["routeInfo"]
        assert route_info["startAddress"] == "Alexanderplatz, Berlin"
        assert route_info["endAddress"] == "Tempelhof, Berlin"
        assert route_info["totalDistance"] == "12 km"
        assert route_info["totalDuration"] == "10 minutes"
        assert route_info["startCoords"] == [52.5, 13.4]
        assert route_info["endCoords"] == [52.53, 13.43]

        waypoints = route_info["waypoints"]
        assert [w["name"] for w in waypoints] == ["Main Street", "Oak Avenue", "-"]
        assert waypoints[0]["instruction"] == "Head north on Main Street"
        assert waypoints[0]["coordinates"] == [[13.4, 52.5], [13.41, 52.51], [13.42, 52.52]]
        assert waypoints[2]["coordinates"] == [[13.43, 52.53]]

    def test_addresses_are_trimmed(self, client, fake_directions):
        response = client.post("/order", json={"from": "  Alexanderplatz ", "to": "Tempelhof  "})
        assert response.status_code == 200
        assert fake_directions.calls == [("Alexanderplatz", "Tempelhof")]

    @pytest.mark.parametrize("payload", [
        {"from": "Alexanderplatz"},
        {"to": "Tempelhof"},
        {"from": "", "to": "Tempelhof"},
        {"from": "Alexanderplatz", "to": "   "},
        {},
    ])
    def test_missing_address(self, client, fake_directions, payload):
        response = client.post("/order", json=payload)

        assert response.status_code == 400
        assert response.json() == {"error": "Missing from or to address"}
        assert fake_directions.calls == []

    def test_missing_body(self, client, fake_directions):
        response = client.post("/order")

        assert response.status_code == 400
        assert response.json() == {"error": "Missing from or to address"}
        assert fake_directions.calls == []

    def test_non_json_body(self, client, fake_directions):
        response = client.post("/order", content=b"from=here", headers={"Content-Type": "application/json"})

        assert response.status_code == 400
        assert response.json() == {"error": "Missing from or to address"}
        assert fake_directions.calls == []

    def test_non_string_address(self, client, fake_directions):
        response = client.post("/order", json={"from": 5, "to": "Tempelhof"})

        assert response.status_code == 400
        assert response.json() == {"error": "Missing from or to address"}
        assert fake_directions.calls == []

    def test_geocoding_failure(self, clock, tmp_path):
        directions = FakeDirections(error=GeocodingError("Could not geocode address: Atlantis"))
        with client_for(directions, clock, tmp_path) as client:
            response = client.post("/order", json=ORDER)

        assert response.status_code == 400
        assert response.json() == {"error": "Could not geocode addresses"}

    def test_directions_failure(self, clock, tmp_path):
        directions = FakeDirections(error=DirectionsError("No route found"))
        with client_for(directions, clock, tmp_path) as client:
            response = client.post("/order", json=ORDER)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to create order"}

    def test_geocoder_outage_is_a_server_error(self, clock, tmp_path):
        async def no_sleep(seconds):
            return None

        directions = DirectionsService(
            api_key="test-key",
            base_url="https://ors.test",
            transport=httpx.MockTransport(lambda request: httpx.Response(503)),
            sleep=no_sleep,
        )
        with client_for(directions, clock, tmp_path) as client:
            response = client.post("/order", json=ORDER)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to create order"}

    def test_invalid_route_data(self, clock, tmp_path):
        directions = FakeDirections(error=InvalidRouteData("Route has no steps"))
        with client_for(directions, clock, tmp_path) as client:
            response = client.post("/order", json=ORDER)

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid route data")

    def test_zero_duration_route(self, sample_route, clock, tmp_path):
        instant = Route(geometry=sample_route.geometry, steps=sample_route.steps, total_duration_seconds=0)
        with client_for(FakeDirections(route=instant), clock, tmp_path) as client:
            response = client.post("/order", json=ORDER)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to create order"}


# ============================================================
# GET /couriers/{id} TESTS
# ============================================================

class TestGetCourier:
    """Test suite for GET /couriers/{id}."""

    def test_in_progress_at_start(self, client):
        courier_id = client.post("/order", json=ORDER).json()["id"]

        response = client.get(f"/couriers/{courier_id}")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == courier_id
        assert data["status"] == "in_progress"
        assert data["position"] == {
            "lat": 52.5,
            "lng": 13.4,
            "progress": 0,
            "currentStep": 1,
            "totalSteps": 4,
            "address": "Main Street",
            "timeLeft": "30 seconds",
        }
        assert data["routeInfo"]["totalDistance"] == "12 km"

    def test_progress_advances_with_clock(self, client, clock):
        courier_id = client.post("/order", json=ORDER).json()["id"]
        clock.advance(15000)

        position = client.get(f"/couriers/{courier_id}").json()["position"]

        assert position["progress"] == 50
        assert position["currentStep"] == 2
        assert position["timeLeft"] == "15 seconds"

    def test_completed(self, client, clock):
        courier_id = client.post("/order", json=ORDER).json()["id"]
        clock.advance(30000)

        first = client.get(f"/couriers/{courier_id}").json()
        clock.advance(600000)
        second = client.get(f"/couriers/{courier_id}").json()

        assert first["status"] == "completed"
        assert first["position"] == {
            "lat": 52.53,
            "lng": 13.43,
            "progress": 100,
            "currentStep": 4,
            "totalSteps": 4,
            "address": "Tempelhof, Berlin",
            "timeLeft": "0 minutes",
        }
        assert second == first

    def test_unknown_courier(self, client):
        response = client.get("/couriers/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"error": "Driver not found"}


# ============================================================
# HEALTH AND STATIC CLIENT TESTS
# ============================================================

class TestAppSurface:
    """Health endpoint, error envelope and the bundled tracking client."""

    def test_health(self, client):
        client.post("/order", json=ORDER)

        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["registry"] == {"couriers": 1, "active": 1, "arrived": 0}
        assert data["directions"]["requests"] == 1

    def test_unknown_path_without_client(self, client):
        response = client.get("/nothing/here")

        assert response.status_code == 404
        assert response.json() == {"error": "Not Found"}

    def test_lifespan_closes_directions(self, order_service, fake_directions, tmp_path):
        with TestClient(create_app(order_service=order_service, client_dist_dir=str(tmp_path))):
            assert not fake_directions.closed
        assert fake_directions.closed

    def test_startup_warns_without_api_key(self, order_service, tmp_path, monkeypatch, caplog):
        monkeypatch.setattr(DirectionsConfig, "API_KEY", "")
        caplog.set_level(logging.INFO, logger="courier_tracker.main")

        with TestClient(create_app(order_service=order_service, client_dist_dir=str(tmp_path))):
            pass

        assert "OPENROUTE_API_KEY is not set" in caplog.text
        assert "'API_KEY': ''" in caplog.text

    @pytest.mark.asyncio
    async def test_cleanup_loop_survives_failures(self, caplog):
        class FailingRegistry:
            calls = 0

            def cleanup(self):
                self.calls += 1
                if self.calls == 1:
                    raise RuntimeError("store unavailable")
                raise asyncio.CancelledError()

        registry = FailingRegistry()
        with pytest.raises(asyncio.CancelledError):
            await _cleanup_loop(registry, interval=0)

        assert registry.calls == 2
        assert "Registry cleanup failed: store unavailable" in caplog.text

    def test_serves_built_client(self, order_service, tmp_path):
        (tmp_path / "index.html").write_text("<html>tracker</html>")
        (tmp_path / "assets").mkdir()
        (tmp_path / "assets" / "app.js").write_text("console.log('tracker')")

        with TestClient(create_app(order_service=order_service, client_dist_dir=str(tmp_path))) as client:
            assert client.get("/").text == "<html>tracker</html>"
            assert client.get("/assets/app.js").text == "console.log('tracker')"
            assert client.get("/track/some-courier").text == "<html>tracker</html>"
            assert client.get("/health").json()["status"] == "ok"
