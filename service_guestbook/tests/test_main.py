"""
Unit tests for the Guestbook HTTP surface.
"""

import pytest
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from shared.config import ServiceConfig
from shared.test_helpers import FakeStore, FakeCache, TestDataFactory, TestEnvironment
from service_guestbook.app.main import GuestbookService, create_app
from service_guestbook.app.entries.service import LISTING_KEY, COUNTER_KEY, encode_entries


class TestGuestbookService:
    """Test cases for GuestbookService routes."""

    @pytest.fixture
    def store(self):
        return FakeStore(TestDataFactory.create_test_entries())

    @pytest.fixture
    def cache(self):
        return FakeCache()

    @pytest.fixture
    def config(self):
        return ServiceConfig("guestbook", **TestEnvironment.get_mock_config())

    @pytest.fixture
    def service(self, config, store, cache):
        return GuestbookService(config, store=store, cache=cache)

    @pytest.fixture
    def client(self, service):
        with TestClient(service.app) as client:
            yield client

    def test_lifespan_starts_and_stops_adapters(self, service, store, cache):
        with TestClient(service.app):
            assert store.calls == ["start"]
            assert ("start", "") in cache.calls

        assert store.calls[-1] == "stop"
        assert cache.calls[-1] == ("stop", "")

    def test_health_all_healthy(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "database": "healthy", "cache": "healthy"}

    def test_health_database_down(self, client, store):
        store.fail.add("ping")

        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "degraded"
        assert data["database"] == "unhealthy"
        assert data["cache"] == "healthy"

    def test_list_entries_miss_then_hit(self, client, cache):
        first = client.get("/api/entries")
        second = client.get("/api/entries")

        assert first.status_code == 200
        assert first.headers["X-Cache"] == "MISS"
        assert second.headers["X-Cache"] == "HIT"
        assert first.json() == second.json()
        assert first.json()[0]["name"] == "Test User"
        assert cache.ttls[LISTING_KEY] == 30

    def test_list_entries_cache_hit(self, client, cache):
        cache.values[LISTING_KEY] = encode_entries([TestDataFactory.create_entry(1, "Cached", "hello")])

        response = client.get("/api/entries")

        assert response.headers["X-Cache"] == "HIT"
        assert len(response.json()) == 1
        assert response.json()[0]["name"] == "Cached"

    def test_list_entries_corrupt_cache(self, client, cache):
        cache.values[LISTING_KEY] = "garbage"

        response = client.get("/api/entries")

        assert response.status_code == 500
        assert response.json()["code"] == "CACHE_CORRUPTED"

    def test_list_entries_store_down(self, client, store):
        store.fail.add("list")

        response = client.get("/api/entries")

        assert response.status_code == 500
        assert response.json()["code"] == "STORE_ERROR"

    def test_list_entries_cache_down(self, client, cache):
        cache.fail.add("*")

        response = client.get("/api/entries")

        assert response.status_code == 200
        assert response.headers["X-Cache"] == "MISS"
        assert len(response.json()) == 2

    def test_create_entry(self, client, cache):
        cache.values[LISTING_KEY] = "[]"

        response = client.post("/api/entries", json={"name": "Test User", "message": "Test message"})

        assert response.status_code == 201
        data = response.json()
        assert data["id"] == 3
        assert data["name"] == "Test User"
        assert data["message"] == "Test message"
        assert "created_at" in data
        assert LISTING_KEY not in cache.values
        assert cache.values[COUNTER_KEY] == "1"
        assert "X-Degraded-Effects" not in response.headers

    @pytest.mark.parametrize("payload", [
        {"name": "", "message": "Test"},
        {"name": "Test", "message": ""},
        {"name": "", "message": ""},
        {},
    ])
    def test_create_entry_invalid_data(self, client, store, payload):
        response = client.post("/api/entries", json=payload)

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
        assert "insert" not in store.calls

    def test_create_entry_invalid_json(self, client):
        response = client.post(
            "/api/entries",
            content="invalid json",
            headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_create_entry_store_down(self, client, store, cache):
        store.fail.add("insert")

        response = client.post("/api/entries", json={"name": "B", "message": "yo"})

        assert response.status_code == 500
        assert response.json()["code"] == "STORE_ERROR"
        assert COUNTER_KEY not in cache.values

    def test_create_entry_cache_down(self, client, cache):
        cache.fail.add("*")

        response = client.post("/api/entries", json={"name": "B", "message": "yo"})

        assert response.status_code == 201
        assert response.headers["X-Degraded-Effects"] == "invalidate_listing,increment_counter"

    def test_stats(self, client, cache):
        cache.values[COUNTER_KEY] = "50"

        response = client.get("/api/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["total_entries_db"] == 2
        assert data["total_entries_created"] == 50
        assert data["cache_available"] is True
        assert isinstance(data["cache_info"], dict)
        assert data["cache_info"]["keyspace_hits"] == 4

    def test_stats_cache_down_omits_cache_fields(self, client, cache):
        cache.fail.add("*")

        response = client.get("/api/stats")

        assert response.status_code == 200
        data = response.json()
        assert data == {"total_entries_db": 2, "cache_available": False}

    def test_cors_preflight(self, client):
        response = client.options(
            "/api/entries",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            }
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert "POST" in response.headers["access-control-allow-methods"]

    def test_cors_simple_request(self, client):
        response = client.get("/api/entries", headers={"Origin": "http://localhost:3000"})

        assert response.headers["access-control-allow-origin"] == "*"

    def test_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    def test_unknown_route(self, client):
        assert client.get("/invalid").status_code == 404

    def test_metrics_endpoint(self, client):
        client.get("/api/entries")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "cache_lookups_total" in response.text
        assert "http_requests_total" in response.text

    def test_create_app_with_fakes(self, store, cache):
        app = create_app(store=store, cache=cache)

        with TestClient(app) as client:
            assert client.get("/health").json()["status"] == "healthy"

    def test_health_when_database_unreachable_at_startup(self, config, cache):
        with patch(
            "service_guestbook.app.persistence.postgres.asyncpg.create_pool",
            new_callable=AsyncMock,
            side_effect=OSError("connection refused")
        ):
            service = GuestbookService(config, cache=cache)

            with TestClient(service.app) as client:
                health = client.get("/health")
                entries = client.get("/api/entries")

        assert health.status_code == 200
        assert health.json() == {"status": "degraded", "database": "unhealthy", "cache": "healthy"}
        assert entries.status_code == 500
        assert entries.json()["code"] == "STORE_ERROR"

    def test_cors_options_without_origin(self, client):
        response = client.options("/api/entries")

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"
        assert response.headers["access-control-allow-headers"] == "Content-Type"

    def test_cors_header_without_origin(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"

    def test_unhandled_exception_uses_error_response(self, service):
        @service.app.get("/boom")
        async def boom():
            raise RuntimeError("kaboom")

        with TestClient(service.app, raise_server_exceptions=False) as client:
            response = client.get("/boom", headers={"X-Request-ID": "req-500"})

        assert response.status_code == 500
        assert response.json() == {
            "request_id": "req-500",
            "code": "INTERNAL_ERROR",
            "message": "Internal server error",
            "details": {},
        }
        assert response.headers["X-Request-ID"] == "req-500"
        assert service.metrics.get_value("errors_total", error_type="INTERNAL_ERROR", service="guestbook") == 1.0
