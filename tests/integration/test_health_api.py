"""
Health API integration tests

GET/HEAD /api/health across the agent lifecycle.
"""

import pytest
from fastapi.testclient import TestClient

from agent_chat import __version__
from agent_chat.domain.models import AgentHealth, HealthStatus
from agent_chat.infrastructure.config import AppConfig
from agent_chat.presentation.web.routers.health import determine_overall_status


@pytest.mark.integration
class TestHealthEndpoint:
    """GET /api/health"""

    def test_degraded_before_first_chat(self, app_factory):
        app = app_factory()

        with TestClient(app) as client:
            response = client.get("/api/health")

        # initializing is degraded, which still answers 200
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "degraded"
        assert body["services"]["agent"]["status"] == "initializing"
        assert body["services"]["agent"]["error"] == "Agent not initialized"
        assert body["version"] == __version__
        assert body["uptime"] >= 0
        assert body["environment"]["appEnv"] == "test"
        assert set(body["environment"]) == {"appEnv", "platform", "arch", "pythonVersion"}
        assert response.headers["Cache-Control"] == "no-cache, no-store, must-revalidate"

    def test_healthy_after_chat(self, app_factory):
        app = app_factory()

        with TestClient(app) as client:
            client.post("/api/chat", json={"message": "hello"})
            response = client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["services"]["agent"]["status"] == "healthy"
        assert "error" not in body["services"]["agent"]

    def test_unhealthy_agent_returns_503(self, app_factory):
        app = app_factory(tools_factory=lambda: [])

        with TestClient(app) as client:
            client.post("/api/chat", json={"message": "hello"})
            response = client.get("/api/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"
        assert response.json()["services"]["agent"]["error"] == "Agent has no tools"

    def test_metrics_outside_production(self, app_factory):
        app = app_factory()

        with TestClient(app) as client:
            client.post("/api/chat", json={"message": "hello"})
            metrics = client.get("/api/health").json()["metrics"]

        assert set(metrics) == {"cpuUsage", "analytics", "circuitBreaker", "errors"}
        assert metrics["circuitBreaker"] == {"state": "closed", "failureCount": 0}
        assert metrics["analytics"]["totalRequests"] == 1
        assert set(metrics["errors"]) == {"error_counts", "recent_errors", "total_errors"}

    def test_production_metrics_opt_in(self, app_factory):
        app = app_factory(config=AppConfig(api_key="test-key", environment="production"))

        with TestClient(app) as client:
            plain = client.get("/api/health").json()
            detailed = client.get("/api/health", params={"metrics": "true"}).json()

        assert "metrics" not in plain
        assert "metrics" in detailed


@pytest.mark.integration
class TestHealthProbe:
    """HEAD /api/health"""

    def test_probe_follows_agent_health(self, app_factory):
        app = app_factory()

        with TestClient(app) as client:
            before = client.head("/api/health")
            client.post("/api/chat", json={"message": "hello"})
            after = client.head("/api/health")

        assert before.status_code == 503
        assert after.status_code == 200
        assert after.content == b""


@pytest.mark.unit
class TestDetermineOverallStatus:
    """determine_overall_status()"""

    @pytest.mark.parametrize(
        "status, expected",
        [
            (HealthStatus.HEALTHY, "healthy"),
            (HealthStatus.INITIALIZING, "degraded"),
            (HealthStatus.UNHEALTHY, "unhealthy"),
        ],
    )
    def test_mapping(self, status, expected):
        health = AgentHealth(status=status, last_health_check=0)

        assert determine_overall_status(health) == expected
