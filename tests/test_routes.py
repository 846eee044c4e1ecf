"""Tests for the HTTP interface."""

from datetime import datetime

import httpx
import pytest
from fastapi.testclient import TestClient

from mapscache.config import Settings
from mapscache.container import build_components
from mapscache.interfaces.http.app import create_app


class FakeProvider:
    def __init__(self):
        self.payload = {"status": "OK", "results": [{"formatted_address": "London"}]}
        self.text = None
        self.calls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        if self.text is not None:
            return httpx.Response(200, text=self.text)
        return httpx.Response(200, json=self.payload)


@pytest.fixture
def test_settings(tmp_path, monkeypatch) -> Settings:
    """Create settings using actual Settings class with test environment."""
    monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "test-key-123")
    monkeypatch.setenv("CACHE_SNAPSHOT_PATH", str(tmp_path / "cache.json"))
    monkeypatch.setenv("LEDGER_PATH", str(tmp_path / "usage.json"))
    monkeypatch.setenv("DAILY_BUDGET", "25")
    return Settings()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


def build_app(settings: Settings, provider: FakeProvider):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(provider))
    return create_app(settings, build_components(settings, http_client=http_client))


@pytest.fixture
def test_client(test_settings, provider):
    with TestClient(build_app(test_settings, provider)) as client:
        yield client


class TestHealthRoutes:
    def test_root_health_check(self, test_client: TestClient) -> None:
        response = test_client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        datetime.fromisoformat(data["timestamp"])
        assert "X-Request-ID" in response.headers


class TestUsageRoutes:
    def test_usage_report(self, test_client: TestClient) -> None:
        response = test_client.get("/v1/usage")

        assert response.status_code == 200
        data = response.json()
        assert data["usage"]["counters_by_category"]["geocoding"] == 0
        assert data["usage"]["budget"]["daily_budget"] == 25
        assert data["cache"]["size"] == 0

    def test_get_and_set_budget(self, test_client: TestClient) -> None:
        assert test_client.get("/v1/usage/budget").json()["daily_budget"] == 25

        response = test_client.put("/v1/usage/budget", json={"amount": 100})

        assert response.status_code == 200
        assert response.json()["daily_budget"] == 100
        assert test_client.get("/v1/usage/budget").json()["daily_budget"] == 100

    def test_negative_budget_is_rejected(self, test_client: TestClient) -> None:
        response = test_client.put("/v1/usage/budget", json={"amount": -1})

        assert response.status_code == 422
        assert response.json()["error"]["type"] == "invalid_request_error"

    def test_map_load_is_recorded(self, test_client: TestClient) -> None:
        assert test_client.post("/v1/usage/map-load").status_code == 200
        usage = test_client.get("/v1/usage").json()["usage"]
        assert usage["counters_by_category"]["map_load"] == 1


class TestCacheRoutes:
    def test_geocode_is_cached(self, test_client: TestClient, provider: FakeProvider) -> None:
        first = test_client.get("/v1/geocode", params={"address": "London"})
        second = test_client.get("/v1/geocode", params={"address": "london"})

        assert first.status_code == second.status_code == 200
        assert second.json() == {"results": [{"formatted_address": "London"}]}
        assert provider.calls == 1

        stats = test_client.get("/v1/cache/stats").json()
        assert stats["cache"]["size"] == 1
        assert stats["cache"]["hits"] == 1
        assert stats["in_flight"] == 0

    def test_clear_cache(self, test_client: TestClient, provider: FakeProvider) -> None:
        test_client.get("/v1/geocode", params={"address": "London"})

        response = test_client.post("/v1/cache/clear")

        assert response.json() == {"status": "cache_cleared"}
        assert test_client.get("/v1/cache/stats").json()["cache"]["size"] == 0
        test_client.get("/v1/geocode", params={"address": "London"})
        assert provider.calls == 2

    def test_reverse_geocode(self, test_client: TestClient) -> None:
        response = test_client.get("/v1/geocode", params={"lat": 51.5, "lng": -0.12})
        assert response.status_code == 200


class TestErrorResponses:
    def test_budget_exceeded_returns_429(
        self, test_client: TestClient, provider: FakeProvider
    ) -> None:
        test_client.put("/v1/usage/budget", json={"amount": 0})
        test_client.post("/v1/usage/map-load")

        response = test_client.get("/v1/geocode", params={"address": "London"})

        assert response.status_code == 429
        error = response.json()["error"]
        assert error["type"] == "budget_exceeded_error"
        assert error["details"]["category"] == "geocoding"
        assert provider.calls == 0

    def test_upstream_error_returns_502(
        self, test_client: TestClient, provider: FakeProvider
    ) -> None:
        provider.payload = {"status": "OVER_QUERY_LIMIT"}

        response = test_client.get("/v1/places/search", params={"query": "pizza"})

        assert response.status_code == 502
        error = response.json()["error"]
        assert error["type"] == "upstream_error"
        assert error["details"]["provider_status"] == "OVER_QUERY_LIMIT"

    def test_non_json_provider_body_returns_502(
        self, test_client: TestClient, provider: FakeProvider
    ) -> None:
        provider.text = "<html>gateway error</html>"

        response = test_client.get("/v1/geocode", params={"address": "London"})

        assert response.status_code == 502
        assert response.json()["error"]["type"] == "upstream_error"

    def test_missing_geocode_parameters(self, test_client: TestClient) -> None:
        response = test_client.get("/v1/geocode")
        assert response.status_code == 400

    def test_invalid_query_parameters(self, test_client: TestClient) -> None:
        response = test_client.get(
            "/v1/places/autocomplete", params={"input": "piz", "lat": 200, "lng": 0}
        )
        assert response.status_code == 422


class TestLifespan:
    def test_cache_snapshot_survives_restart(self, test_settings, provider) -> None:
        with TestClient(build_app(test_settings, provider)) as client:
            client.get("/v1/geocode", params={"address": "London"})
            client.get("/v1/geocode", params={"address": "London"})

        with TestClient(build_app(test_settings, provider)) as client:
            assert client.get("/v1/cache/stats").json()["cache"]["size"] == 1
            client.get("/v1/geocode", params={"address": "London"})

        assert provider.calls == 1

    def test_ledger_survives_restart(self, test_settings, provider) -> None:
        with TestClient(build_app(test_settings, provider)) as client:
            client.post("/v1/usage/map-load")

        with TestClient(build_app(test_settings, provider)) as client:
            usage = client.get("/v1/usage").json()["usage"]

        assert usage["counters_by_category"]["map_load"] == 1
