"""
Tests for the cache monitoring and verification endpoints.

Drives the application through FastAPI's TestClient so the lifespan
builds the cache, sweeper and verification service.
"""

from urllib.parse import quote

import pytest
from fastapi.testclient import TestClient

from alumni_registry.core.config import Settings
from alumni_registry.domain.cache.exceptions import ProducerError
from alumni_registry.main import create_app

GRADUATE = {"studentId": "GRW-001", "fullName": "Amina Yusuf"}


class TestCacheMonitoringAPI:
    """Test /monitoring/cache endpoints."""

    @pytest.fixture
    def settings(self):
        return Settings(ENVIRONMENT="test", CACHE_WARMUP_INTERVAL_SECONDS=0)

    @pytest.fixture
    def client(self, settings, clock):
        app = create_app(settings=settings, clock=clock)
        with TestClient(app) as client:
            yield client

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["environment"] == "test"
        assert body["cache_sweeper_running"] is True

    def test_snapshot(self, client):
        client.app.state.cache.set("students", "detail_1", {"id": 1})

        response = client.get("/monitoring/cache")

        assert response.status_code == 200
        body = response.json()
        assert set(body["namespaces"]) == {
            "users",
            "students",
            "dashboard",
            "audit",
            "academic",
            "verify",
        }
        assert body["namespaces"]["students"]["entries"] == 1
        assert body["total_entries"] == 1
        assert body["refreshes_in_flight"] == 0
        assert "timestamp" in body

    def test_namespace_stats(self, client):
        cache = client.app.state.cache
        cache.set("dashboard", "stats_basic", {"totalStudents": 10})

        response = client.get("/monitoring/cache/dashboard")

        assert response.status_code == 200
        body = response.json()
        assert body["namespace"] == "dashboard"
        assert body["entries"] == 1
        assert body["max_entries"] == 50
        assert body["capacity_utilization_percent"] == 2.0

    def test_unknown_namespace_is_404(self, client):
        response = client.get("/monitoring/cache/reports")

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "CACHE_NAMESPACE_NOT_FOUND"

    def test_invalidate_key(self, client):
        cache = client.app.state.cache
        cache.set("users", "admin@example.edu", {"id": 1})

        response = client.delete(
            f"/monitoring/cache/users/{quote('admin@example.edu')}"
        )

        assert response.status_code == 200
        assert response.json() == {
            "operation": "invalidate",
            "namespace": "users",
            "removed": 1,
        }
        assert cache.stats("users").entries == 0

    def test_invalidate_absent_key(self, client):
        response = client.delete("/monitoring/cache/users/nobody")
        assert response.status_code == 200
        assert response.json()["removed"] == 0

    def test_invalidate_unknown_namespace(self, client):
        response = client.delete("/monitoring/cache/reports/k")
        assert response.status_code == 404

    def test_clear_namespace(self, client):
        cache = client.app.state.cache
        cache.set("academic", "departments", [])
        cache.set("academic", "faculties", [])

        response = client.post("/monitoring/cache/academic/clear")

        assert response.status_code == 200
        assert response.json()["removed"] == 2
        assert cache.stats("academic").entries == 0

    def test_sweep(self, client, clock):
        cache = client.app.state.cache
        cache.set("verify", "verify_GRW-001", {"found": False})
        cache.set("academic", "departments", [])
        clock.advance(61)

        response = client.post("/monitoring/cache/sweep")

        assert response.status_code == 200
        assert response.json() == {"operation": "sweep", "namespace": "*", "removed": 1}
        assert cache.stats("academic").entries == 1


class TestVerificationAPI:
    """Test /verify endpoint."""

    @pytest.fixture
    def lookups(self):
        return []

    @pytest.fixture
    def client(self, lookups):
        async def lookup(identifier):
            lookups.append(identifier)
            return GRADUATE if identifier == "GRW-001" else None

        app = create_app(
            settings=Settings(ENVIRONMENT="test"), verification_lookup=lookup
        )
        with TestClient(app) as client:
            yield client

    def test_verify_found(self, client):
        response = client.get("/verify/grw-001")

        assert response.status_code == 200
        assert response.json() == {
            "found": True,
            "identifier": "GRW-001",
            "record": GRADUATE,
        }

    def test_verify_not_found_is_cached(self, client, lookups):
        first = client.get("/verify/GRW-404")
        second = client.get("/verify/GRW-404")

        assert first.json()["found"] is False
        assert second.json() == first.json()
        assert lookups == ["GRW-404"]

    def test_producer_error_is_503(self):
        async def lookup(identifier):
            raise ProducerError("Graduate database unavailable", source="students")

        app = create_app(
            settings=Settings(ENVIRONMENT="test"), verification_lookup=lookup
        )
        with TestClient(app) as client:
            response = client.get("/verify/GRW-001")
            stats = client.get("/monitoring/cache/verify").json()

        assert response.status_code == 503
        assert response.json()["detail"]["error"] == "CACHE_PRODUCER_ERROR"
        assert stats["entries"] == 0

    def test_verify_without_lookup_is_503(self):
        app = create_app(settings=Settings(ENVIRONMENT="test"))
        with TestClient(app) as client:
            response = client.get("/verify/GRW-001")
        assert response.status_code == 503


class TestWarmupAtStartup:
    """Test loaders passed to create_app run during startup."""

    def test_loaders_preload_cache(self):
        async def faculties():
            return [{"id": 1, "name": "Engineering"}]

        app = create_app(
            settings=Settings(ENVIRONMENT="test", CACHE_WARMUP_INTERVAL_SECONDS=0),
            warmup_loaders=[("academic", "faculties", faculties)],
        )
        with TestClient(app) as client:
            body = client.get("/monitoring/cache/academic").json()

        assert body["entries"] == 1
