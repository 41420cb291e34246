import pytest
import requests

from directory_search.core.config import ConfigError
from directory_search.jobs import search_server
from directory_search.jobs.hybrid_search import (
    GeolocationError,
    HybridSearchResponse,
    LocationNotFoundError,
)
from directory_search.models import CanonicalResult, LocationStatus
from directory_search.vendors.google_places import GooglePlacesError
from directory_search.vendors.nominatim import GeocodingError


class DummyHybrid:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def search(self, query, user_agent=""):
        self.calls.append((query, user_agent))
        if self.error is not None:
            raise self.error
        result = CanonicalResult(id="local-static:a", name="Parents Circle", source="local-static", relevance_score=7.0)
        return HybridSearchResponse(
            results=[result],
            sources={"google": True, "osm": True, "local": True},
            failed_sources=["public-geodata"],
            response_time_ms=12,
        )


class DummyPlaces:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def search(self, request, user_agent=""):
        self.calls.append((request, user_agent))
        if self.error is not None:
            raise self.error
        return {"results": [], "totalResults": 0, "cacheHit": True, "responseTime": 3, "source": "google_places"}


@pytest.fixture
def services(monkeypatch):
    dummy = search_server.Services(hybrid=DummyHybrid(), places=DummyPlaces())
    monkeypatch.setattr(search_server, "_services", dummy)
    return dummy


@pytest.fixture
def client():
    return search_server.app.test_client()


def test_root_and_health(client, services):
    assert client.get("/").status_code == 200
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.get_json()["status"] == "ok"


def test_search_returns_ranked_envelope(client, services):
    response = client.post(
        "/search",
        json={"query": "parents", "location": {"lat": 30, "lng": -97}},
        headers={"User-Agent": "pytest-agent"},
    )

    assert response.status_code == 200
    body = response.get_json()
    assert body["totalResults"] == 1
    assert body["results"][0]["relevanceScore"] == 7.0
    assert body["failedSources"] == ["public-geodata"]
    query, user_agent = services.hybrid.calls[0]
    assert query.query == "parents"
    assert user_agent == "pytest-agent"


def test_search_accepts_empty_body(client, services):
    assert client.post("/search").status_code == 200


def test_search_rejects_invalid_payload(client, services):
    response = client.post("/search", json={"minRating": 9})

    assert response.status_code == 400
    body = response.get_json()
    assert body["errorCode"] == "invalid_request"
    assert body["results"] == []
    assert body["totalResults"] == 0
    assert client.post("/search", json=["not", "an", "object"]).status_code == 400


def test_search_geolocation_denied(client, services):
    services.hybrid.error = GeolocationError(LocationStatus.DENIED)

    response = client.post("/search", json={"locationStatus": "denied"})

    assert response.status_code == 400
    assert response.get_json()["errorCode"] == "geolocation_denied"


def test_search_location_not_found(client, services):
    services.hybrid.error = LocationNotFoundError("Atlantis")

    response = client.post("/search", json={"locationQuery": "Atlantis"})

    assert response.status_code == 400
    body = response.get_json()
    assert body["errorCode"] == "location_not_found"
    assert "Atlantis" in body["error"]
    assert services.hybrid.calls[0][0].location_query == "Atlantis"


@pytest.mark.parametrize("error", [GeocodingError("bad payload"), requests.ConnectionError("refused")])
def test_search_geocoding_failure_is_upstream_error(client, services, error):
    services.hybrid.error = error

    response = client.post("/search", json={"locationQuery": "Austin"})

    assert response.status_code == 502
    assert response.get_json()["errorCode"] == "geocoding_failed"


def test_search_unexpected_failure_returns_error_envelope(client, services):
    services.hybrid.error = RuntimeError("boom")

    response = client.post("/search", json={"query": "aba"})

    assert response.status_code == 500
    body = response.get_json()
    assert body["errorCode"] == "search_failed"
    assert body["results"] == []


def test_places_search_success(client, services):
    response = client.post("/places/search", json={"query": "aba", "type": "autocomplete"})

    assert response.status_code == 200
    assert response.get_json()["cacheHit"] is True
    assert services.places.calls[0][0].search_type == "autocomplete"


def test_places_search_requires_query(client, services):
    response = client.post("/places/search", json={})

    assert response.status_code == 400
    assert services.places.calls == []


@pytest.mark.parametrize(
    "error, status, code",
    [
        (ConfigError("GOOGLE_PLACES_API_KEY must be set"), 500, "configuration_error"),
        (GooglePlacesError("REQUEST_DENIED"), 502, "upstream_error"),
        (RuntimeError("boom"), 500, "search_failed"),
    ],
)
def test_places_search_error_mapping(client, services, error, status, code):
    services.places.error = error

    response = client.post("/places/search", json={"query": "aba"})

    assert response.status_code == status
    assert response.get_json()["errorCode"] == code


def test_build_services_without_database(monkeypatch, settings):
    monkeypatch.setattr(search_server.db, "is_available", lambda: False)

    built = search_server.build_services(settings)

    names = [adapter.name for adapter in built.hybrid._adapters]
    assert names == ["remote-places", "public-geodata", "local-static"]
    assert isinstance(built.places, search_server.PlacesSearchService)
    assert built.hybrid._geocoder.keywords == {
        "url": settings.nominatim_url,
        "timeout": settings.source_timeout_seconds,
    }
