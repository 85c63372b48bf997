"""
Tests for the FastAPI Endpoints

Uses the FastAPI TestClient with the background scheduler disabled;
the engine is stepped explicitly through /control/tick.

Run with: pytest tests/test_api.py -v
"""

import time

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from core.settings import PressSettings
from engine import PressSimulator


@pytest.fixture
def client():
    simulator = PressSimulator(PressSettings(), random_seed=3)
    app = create_app(simulator=simulator, start_scheduler=False)
    with TestClient(app) as test_client:
        yield test_client


class TestSystemEndpoints:
    """Test root and health endpoints."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Press Digital Twin API"
        assert data["api_base"] == "/api/v1"

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["scheduler"] == "disabled"
        assert data["components"]["simulator"] == "ok"

    def test_live(self, client):
        assert client.get("/live").json() == {"alive": True}


class TestMonitoringEndpoints:
    """Test read-only endpoints."""

    def test_initial_status(self, client):
        response = client.get("/api/v1/status")
        assert response.status_code == 200
        data = response.json()
        assert data["phase"] == "IDLE"
        assert data["status"] == "Idle"
        assert data["running"] is True
        assert data["tick_count"] == 0
        assert data["total_cycles"] == 124
        assert data["reject_count"] == 3

    def test_metrics_in_range(self, client):
        client.post("/api/v1/control/tick", params={"count": 30})
        data = client.get("/api/v1/metrics").json()
        assert 5 <= data["health_index"] <= 100
        assert 50 <= data["oee"] <= 100

    def test_telemetry(self, client):
        client.post("/api/v1/control/tick", params={"count": 5})
        data = client.get("/api/v1/telemetry").json()
        assert data["count"] == 5
        assert data["capacity"] == 60
        timestamps = [s["timestamp"] for s in data["samples"]]
        assert timestamps == sorted(timestamps)
        assert data["samples"][-1]["phase"] == "CLOSING"

    def test_telemetry_capped(self, client):
        client.post("/api/v1/control/tick", params={"count": 75})
        data = client.get("/api/v1/telemetry").json()
        assert data["count"] == 60

    def test_telemetry_limit(self, client):
        client.post("/api/v1/control/tick", params={"count": 20})
        data = client.get("/api/v1/telemetry", params={"limit": 5}).json()
        assert data["count"] == 5

    def test_alerts_bounded_and_ordered(self, client):
        client.post("/api/v1/control/tick", params={"count": 90})
        data = client.get("/api/v1/alerts").json()
        assert data["count"] <= 10
        ranks = {"critical": 3, "warning": 2, "info": 1}
        severities = [ranks[a["severity"]] for a in data["alerts"]]
        assert severities == sorted(severities, reverse=True)

    def test_heating_raises_temperature_alert(self, client):
        client.post("/api/v1/control/tick", params={"count": 10})
        data = client.get("/api/v1/alerts").json()
        assert any(a["cause"] == "temperature_low" for a in data["alerts"])


class TestControlEndpoints:
    """Test operator controls."""

    def test_manual_tick(self, client):
        response = client.post("/api/v1/control/tick", params={"count": 5})
        assert response.status_code == 200
        data = response.json()
        assert data["phase"] == "CLOSING"
        assert data["tick_count"] == 5

    def test_tick_count_validated(self, client):
        assert client.post("/api/v1/control/tick", params={"count": 0}).status_code == 422

    def test_pause(self, client):
        response = client.post("/api/v1/control/running", json={"running": False})
        assert response.status_code == 200
        assert response.json()["status"] == "Stopped"
        assert client.post("/api/v1/control/tick").status_code == 409
        assert client.get("/api/v1/metrics").json()["availability"] == 0.7

    def test_resume(self, client):
        client.post("/api/v1/control/running", json={"running": False})
        client.post("/api/v1/control/running", json={"running": True})
        assert client.post("/api/v1/control/tick").status_code == 200

    def test_get_config(self, client):
        data = client.get("/api/v1/control/config").json()
        assert data["target_temp"] == 165.0
        assert data["phase_durations"]["HEATING"] == 15

    def test_update_config(self, client):
        response = client.put("/api/v1/control/config", json={"target_temp": 170})
        assert response.status_code == 200
        assert response.json()["target_temp"] == 170.0
        assert client.get("/api/v1/control/config").json()["target_temp"] == 170.0

    def test_update_phase_duration(self, client):
        response = client.put(
            "/api/v1/control/config", json={"phase_durations": {"HEATING": 20}}
        )
        assert response.status_code == 200
        assert response.json()["phase_durations"]["HEATING"] == 20
        assert response.json()["phase_durations"]["IDLE"] == 5

    def test_zero_tolerance_rejected(self, client):
        response = client.put("/api/v1/control/config", json={"tolerance_pct": 0})
        assert response.status_code == 400
        body = response.json()
        assert body["message"]["validation"]["status"] == "rejected"
        assert client.get("/api/v1/control/config").json()["tolerance_pct"] == 10.0

    def test_inverted_vibration_rejected(self, client):
        response = client.put("/api/v1/control/config", json={"vibration_safe": 6})
        assert response.status_code == 400

    def test_zero_phase_duration_rejected(self, client):
        response = client.put(
            "/api/v1/control/config", json={"phase_durations": {"COOLING": 0}}
        )
        assert response.status_code == 400

    def test_unknown_phase_rejected(self, client):
        response = client.put(
            "/api/v1/control/config", json={"phase_durations": {"CURING": 3}}
        )
        assert response.status_code == 422

    def test_empty_update_rejected(self, client):
        assert client.put("/api/v1/control/config", json={}).status_code == 422

    def test_reset(self, client):
        client.post("/api/v1/control/tick", params={"count": 12})
        data = client.post("/api/v1/control/reset").json()
        assert data["tick_count"] == 0
        assert data["phase"] == "IDLE"
        assert client.get("/api/v1/telemetry").json()["count"] == 0


class TestNonFiniteConfig:
    """NaN and Infinity in a JSON body are refused before reaching the engine."""

    @pytest.mark.parametrize("raw", [
        '{"tolerance_pct": NaN}',
        '{"target_temp": Infinity}',
        '{"vibration_warning": NaN}',
        '{"dedup_window_s": -Infinity}',
    ])
    def test_rejected(self, client, raw):
        response = client.put(
            "/api/v1/control/config",
            content=raw,
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 422
        config = client.get("/api/v1/control/config").json()
        assert config["tolerance_pct"] == 10.0
        assert config["target_temp"] == 165.0

    def test_alerts_still_fire_after_rejection(self, client):
        client.put(
            "/api/v1/control/config",
            content='{"tolerance_pct": NaN}',
            headers={"Content-Type": "application/json"},
        )
        client.post("/api/v1/control/tick", params={"count": 20})
        data = client.get("/api/v1/alerts").json()
        assert any(a["cause"] == "temperature_low" for a in data["alerts"])


class TestSchedulerFailure:
    """/health reports a scheduler that died on an unexpected error."""

    @pytest.mark.filterwarnings("ignore::pytest.PytestUnhandledThreadExceptionWarning")
    def test_health_reports_failed(self):
        simulator = PressSimulator(
            PressSettings(tick_interval_s=0.01), random_seed=3
        )

        def broken_tick():
            raise RuntimeError("tick failed")

        simulator.tick = broken_tick
        app = create_app(simulator=simulator, start_scheduler=True)
        with TestClient(app) as test_client:
            scheduler = test_client.app.state.scheduler
            deadline = time.monotonic() + 5.0
            while scheduler.is_alive and time.monotonic() < deadline:
                time.sleep(0.01)
            data = test_client.get("/health").json()
        assert data["scheduler"] == "failed"
        assert data["status"] == "degraded"


class TestMeasuredCycleTimeField:
    """Status exposes the wall-clock cycle duration."""

    def test_present_in_status(self, client):
        data = client.get("/api/v1/status").json()
        assert data["measured_cycle_time"] == 0
