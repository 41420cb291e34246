import pytest

from directory_search.vendors import google_places


class DummyResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload or {}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise RuntimeError("http error")

    def json(self):
        return self._payload


class DummySession:
    def __init__(self):
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        return self.response


@pytest.fixture(autouse=True)
def patch_session(monkeypatch):
    session = DummySession()
    monkeypatch.setattr(google_places, "_SESSION", session)
    return session


def test_text_search_success(patch_session):
    patch_session.response = DummyResponse(payload={"status": "OK", "results": []})
    payload = google_places.text_search("aba therapy", "key")
    assert payload["status"] == "OK"
    url, params, timeout = patch_session.calls[0]
    assert url.endswith("/textsearch/json")
    assert params["query"] == "aba therapy"
    assert params["type"] == google_places.AUTISM_PLACE_TYPES
    assert "location" not in params
    assert timeout == 10


def test_text_search_biases_by_location(patch_session):
    patch_session.response = DummyResponse(payload={"status": "OK", "results": []})
    google_places.text_search("aba", "key", location={"lat": 40.7, "lng": -74.0}, radius=5000.0, timeout=3)
    _, params, timeout = patch_session.calls[0]
    assert params["location"] == "40.7,-74.0"
    assert params["radius"] == "5000"
    assert timeout == 3


def test_zero_results_is_not_an_error(patch_session):
    patch_session.response = DummyResponse(payload={"status": "ZERO_RESULTS", "results": []})
    assert google_places.text_search("nothing", "key")["results"] == []


def test_text_search_error_status(patch_session):
    patch_session.response = DummyResponse(payload={"status": "INVALID_REQUEST", "error_message": "bad"})
    with pytest.raises(google_places.GooglePlacesError, match="bad"):
        google_places.text_search("aba", "key")


def test_http_error_propagates(patch_session):
    patch_session.response = DummyResponse(status_code=503)
    with pytest.raises(RuntimeError):
        google_places.text_search("aba", "key")


def test_nearby_search_params(patch_session):
    patch_session.response = DummyResponse(payload={"status": "OK", "results": [{"name": "Acme"}]})
    payload = google_places.nearby_search("autism", "key", {"lat": 1.0, "lng": 2.0}, 1500)
    url, params, _ = patch_session.calls[0]
    assert url.endswith("/nearbysearch/json")
    assert params["keyword"] == "autism"
    assert params["radius"] == "1500"
    assert payload["results"][0]["name"] == "Acme"


def test_autocomplete_returns_predictions(patch_session):
    patch_session.response = DummyResponse(
        payload={"status": "OK", "predictions": [{"place_id": "p1", "description": "Acme Therapy"}]}
    )
    predictions = google_places.autocomplete("acm", "key")
    assert predictions == [{"place_id": "p1", "description": "Acme Therapy"}]
    assert patch_session.calls[0][1]["input"] == "acm"


def test_place_details_success(patch_session):
    patch_session.response = DummyResponse(payload={"status": "OK", "result": {"name": "Acme"}})
    result = google_places.place_details("pid", "key")
    assert result["name"] == "Acme"
    assert "formatted_phone_number" in patch_session.calls[0][1]["fields"]


def test_place_details_error(patch_session):
    patch_session.response = DummyResponse(payload={"status": "OVER_QUERY_LIMIT", "error_message": "limit"})
    with pytest.raises(google_places.GooglePlacesError):
        google_places.place_details("pid", "key")
