"""HTTP tests for /api/search."""

from unittest.mock import AsyncMock

import pytest

from directory_search.core.config import settings
from directory_search.core.exceptions import RepositoryException
from directory_search.ratelimit.limiter import RateLimiter
from directory_search.repositories.service_repository import ServiceRepository
from directory_search.services.search import search_executor

pytestmark = pytest.mark.integration


class FilteredQueriesFail(ServiceRepository):
    def search(self, spec, max_results):
        if not spec.is_fallback:
            raise RepositoryException("connection reset")
        return super().search(spec, max_results)


class AlwaysFails(ServiceRepository):
    def search(self, spec, max_results):
        raise RepositoryException("database unavailable")


class TestSearchEndpoint:
    def test_state_keyword_search(self, client, seeded_services):
        res = client.post("/api/search", json={"query": "groomer in indiana"})
        assert res.status_code == 200
        body = res.json()
        assert body["success"] is True
        assert [r["name"] for r in body["results"]] == ["Bark Avenue Salon", "Happy Paws Grooming"]
        assert all(r["distance"] is None for r in body["results"])
        assert all(r["isExactMatch"] is False for r in body["results"])
        meta = body["metadata"]
        assert meta["originalQuery"] == "groomer in indiana"
        assert meta["resultCount"] == 2
        assert meta["totalCount"] == 2
        assert meta["searchType"] == "service"
        assert meta["location"]["state"] == "IN"
        assert meta["parsedQuery"]["entities"]["services"] == ["groomer"]

    def test_device_location_search(self, client, seeded_services):
        res = client.post(
            "/api/search", json={"query": "dog park", "userLocation": {"lat": 39.9, "lng": -86.0}}
        )
        assert res.status_code == 200
        results = res.json()["results"]
        assert [r["name"] for r in results] == ["Central Bark Dog Park", "Carmel Dog Park"]
        assert results[0]["distance"] < results[1]["distance"]
        assert res.json()["metadata"]["searchRadius"] == 10

    def test_geolocation_error_reported_in_location(self, client, seeded_services):
        res = client.post(
            "/api/search",
            json={"query": "vet", "userLocation": {"geolocationError": "permission_denied"}},
        )
        assert res.status_code == 200
        location = res.json()["metadata"]["location"]
        assert location["source"] == "default"
        assert location["error"]["type"] == "permission_denied"

    @pytest.mark.parametrize(
        "payload",
        [{}, {"query": ""}, {"query": 42}, {"query": None}, ["groomer"]],
    )
    def test_missing_or_invalid_query(self, client, payload):
        res = client.post("/api/search", json=payload)
        assert res.status_code == 400
        assert res.json()["error"] == "Search query is required and must be a string"

    def test_missing_body(self, client):
        res = client.post("/api/search")
        assert res.status_code == 400
        assert res.json()["error"] == "Search query is required and must be a string"

    def test_malformed_user_location(self, client):
        res = client.post("/api/search", json={"query": "vet", "userLocation": {"lat": 500}})
        assert res.status_code == 400
        assert res.json()["error"] == "Invalid search request"
        assert "lat" in res.json()["message"]

    def test_store_error_returns_fallback_results(self, client, seeded_services, monkeypatch):
        monkeypatch.setattr(search_executor, "ServiceRepository", FilteredQueriesFail)
        res = client.post("/api/search", json={"query": "verified groomer in indiana"})
        assert res.status_code == 200
        body = res.json()
        assert body["metadata"]["searchType"] == "fallback"
        assert len(body["results"]) > 0

    def test_store_down_returns_500(self, client, seeded_services, monkeypatch):
        monkeypatch.setattr(search_executor, "ServiceRepository", AlwaysFails)
        res = client.post("/api/search", json={"query": "groomer"})
        assert res.status_code == 500
        body = res.json()
        assert body["error"] == "Search failed"
        assert {"message", "details", "timestamp"} <= set(body)


class TestRateLimit:
    def test_eleventh_request_is_rejected_before_pipeline(self, app, client, seeded_services, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_enabled", True)
        app.state.rate_limiters = {"search": RateLimiter("search", 10, 60, namespace="test")}
        pipeline = app.state.search_pipeline
        spy = AsyncMock(wraps=pipeline.search)
        monkeypatch.setattr(pipeline, "search", spy)

        for _ in range(10):
            res = client.post("/api/search", json={"query": "vet"})
            assert res.status_code == 200
        assert res.headers["X-RateLimit-Remaining"] == "0"

        res = client.post("/api/search", json={"query": "vet"})
        assert res.status_code == 429
        assert res.json()["error"] == "Too many requests. Please try again later."
        assert res.json()["message"].startswith("Rate limit exceeded. Try again in")
        assert int(res.headers["Retry-After"]) >= 1
        assert spy.await_count == 10

    def test_clients_are_limited_separately(self, app, client, seeded_services, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_enabled", True)
        app.state.rate_limiters = {"search": RateLimiter("search", 1, 60, namespace="test")}

        def search(token: str) -> int:
            return client.post("/api/search", json={"query": "vet"}, headers={"X-Session-Token": token}).status_code

        assert search("alpha") == 200
        assert search("alpha") == 429
        assert search("beta") == 200

    def test_rotating_forwarded_for_does_not_reset_the_limit(self, app, client, seeded_services, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_enabled", True)
        app.state.rate_limiters = {"search": RateLimiter("search", 1, 60, namespace="test")}

        assert client.post("/api/search", json={"query": "vet"}, headers={"X-Forwarded-For": "1.1.1.1"}).status_code == 200
        assert client.post("/api/search", json={"query": "vet"}, headers={"X-Forwarded-For": "2.2.2.2"}).status_code == 429

    def test_invalid_body_still_counts(self, app, client, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_enabled", True)
        app.state.rate_limiters = {"search": RateLimiter("search", 1, 60, namespace="test")}
        assert client.post("/api/search", json={}).status_code == 400
        assert client.post("/api/search", json={}).status_code == 429


class TestSuggestionsEndpoint:
    def test_suggestions(self, client, seeded_services):
        res = client.get("/api/search", params={"q": "groom"})
        assert res.status_code == 200
        body = res.json()
        assert body["success"] is True
        assert "groomer" in body["suggestions"]
        assert len(body["suggestions"]) <= 10

    @pytest.mark.parametrize("params", [{}, {"q": ""}, {"q": "   "}])
    def test_query_parameter_required(self, client, params):
        res = client.get("/api/search", params=params)
        assert res.status_code == 400
        assert res.json()["error"] == "Query parameter is required"

    def test_unexpected_error(self, app, client, monkeypatch):
        monkeypatch.setattr(
            app.state.search_pipeline.executor,
            "get_search_suggestions",
            AsyncMock(side_effect=RuntimeError("boom")),
        )
        res = client.get("/api/search", params={"q": "vet"})
        assert res.status_code == 500
        assert res.json() == {"error": "Failed to get suggestions"}
