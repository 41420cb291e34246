import threading
from dataclasses import replace
from datetime import timedelta

import pytest

from directory_search.core.cache import InMemoryCacheStore, build_cache_key
from directory_search.models import (
    CatalogEntry,
    Coordinates,
    GeodataElement,
    RemotePlaceRecord,
    ResultKind,
    SearchQuery,
)
from directory_search.sources import local_catalog, public_geodata, remote_places
from directory_search.vendors import google_places, overpass

PLACE = {"place_id": "abc", "name": "Acme Therapy", "formatted_address": "1 Main St"}


class ExplodingCache(InMemoryCacheStore):
    def put(self, key, value, ttl, **metadata):
        raise RuntimeError("cache unavailable")


@pytest.fixture
def text_search_calls(monkeypatch):
    calls = []

    def fake_text_search(**kwargs):
        calls.append(kwargs)
        return {"status": "OK", "results": [PLACE]}

    monkeypatch.setattr(google_places, "text_search", fake_text_search)
    return calls


def _query(**kwargs):
    defaults = {"query": "aba", "location": Coordinates(40.0, -74.0), "radius_meters": 5000}
    defaults.update(kwargs)
    return SearchQuery(**defaults)


# ---------- remote places ----------


def test_remote_places_cache_hit_skips_live_call(settings, text_search_calls):
    store = InMemoryCacheStore()
    query = _query()
    key = build_cache_key("text_search", "aba", {"lat": 40.0, "lng": -74.0}, 5000, None)
    store.put(key, [PLACE], timedelta(hours=1))

    outcome = remote_places.RemotePlacesSource(store, settings).fetch(query)

    assert outcome.cache_hit is True
    assert outcome.records == [RemotePlaceRecord(PLACE)]
    assert text_search_calls == []


def test_remote_places_live_fetch_stores_and_tracks_usage(
    settings, text_search_calls, immediate_executor, recording_sink
):
    store = InMemoryCacheStore()
    source = remote_places.RemotePlacesSource(store, settings, immediate_executor, recording_sink)

    outcome = source.fetch(_query())

    assert outcome.ok and outcome.cache_hit is False
    assert [r.payload["name"] for r in outcome.records] == ["Acme Therapy"]
    call = text_search_calls[0]
    assert call["api_key"] == "test-key"
    assert call["location"] == {"lat": 40.0, "lng": -74.0}
    assert call["timeout"] == settings.source_timeout_seconds
    assert recording_sink.usage == [("google_places", "text_search", 0.032)]

    again = source.fetch(_query())
    assert again.cache_hit is True
    assert len(text_search_calls) == 1


def test_remote_places_cache_write_failure_does_not_fail_source(settings, text_search_calls, caplog):
    with caplog.at_level("WARNING"):
        outcome = remote_places.RemotePlacesSource(ExplodingCache(), settings).fetch(_query())

    assert len(outcome.records) == 1
    assert "Failed to cache text_search results" in caplog.text


def test_remote_places_without_key_scans_nearby_cache(settings, text_search_calls):
    store = InMemoryCacheStore()
    store.put("other", [PLACE, "junk"], timedelta(hours=1), location_lat=40.01, location_lng=-74.01)
    source = remote_places.RemotePlacesSource(store, replace(settings, google_api_key=""))

    outcome = source.fetch(_query())

    assert text_search_calls == []
    assert outcome.cache_hit is True
    assert [r.payload["place_id"] for r in outcome.records] == ["abc"]


def test_remote_places_empty_query_without_location_is_empty(settings, text_search_calls):
    outcome = remote_places.RemotePlacesSource(InMemoryCacheStore(), settings).fetch(_query(query="", location=None))

    assert outcome.records == []
    assert outcome.ok
    assert text_search_calls == []


def test_remote_places_live_fetch_disabled(settings, text_search_calls):
    source = remote_places.RemotePlacesSource(InMemoryCacheStore(), replace(settings, places_live_fetch=False))

    source.fetch(_query())

    assert text_search_calls == []


def test_remote_places_propagates_api_errors(settings, monkeypatch):
    def failing(**kwargs):
        raise google_places.GooglePlacesError("REQUEST_DENIED")

    monkeypatch.setattr(google_places, "text_search", failing)

    with pytest.raises(google_places.GooglePlacesError):
        remote_places.RemotePlacesSource(InMemoryCacheStore(), settings).fetch(_query())


def test_remote_places_rejects_malformed_cache_entry(settings):
    store = InMemoryCacheStore()
    key = build_cache_key("text_search", "aba", {"lat": 40.0, "lng": -74.0}, 5000, None)
    store.put(key, {"results": []}, timedelta(hours=1))

    with pytest.raises(ValueError):
        remote_places.RemotePlacesSource(store, settings).fetch(_query())


def test_remote_places_enabled_flag(settings):
    source = remote_places.RemotePlacesSource(InMemoryCacheStore(), settings)

    assert source.enabled(_query())
    assert not source.enabled(_query(include_google=False))


# ---------- public geodata ----------


def test_build_records_keeps_tagged_elements_and_caps():
    elements = [
        {"type": "node", "id": 1, "lat": 1.0, "lon": 1.0, "tags": {"name": "A"}},
        {"type": "way", "id": 2, "nodes": [3], "tags": {"name": "B"}},
        {"type": "node", "id": 3, "lat": 2.0, "lon": 2.0},
        {"type": "node", "id": 4, "lat": 3.0, "lon": 3.0, "tags": {"name": "C"}},
    ]

    records = public_geodata.build_records(elements, overpass.SUPPORT_GROUPS, cap=2)

    assert [r.element["id"] for r in records] == [1, 2]
    assert all(isinstance(r, GeodataElement) for r in records)
    assert records[1].nodes_by_id[3]["lat"] == 2.0
    assert records[0].category == overpass.SUPPORT_GROUPS


def test_geodata_requires_location(settings):
    source = public_geodata.PublicGeodataSource(settings)

    assert source.enabled(_query())
    assert not source.enabled(_query(location=None))
    assert not source.enabled(_query(include_osm=False))


def test_geodata_fetch_resolves_category(settings, monkeypatch):
    calls = []

    def fake_fetch(lat, lon, radius, category, url, timeout):
        calls.append((lat, lon, radius, category, url, timeout))
        return [{"type": "node", "id": 9, "lat": lat, "lon": lon, "tags": {"name": "Hall"}}]

    monkeypatch.setattr(overpass, "fetch_elements", fake_fetch)

    outcome = public_geodata.PublicGeodataSource(settings).fetch(_query(category="Support Groups"))

    assert calls == [(40.0, -74.0, 5000, "Support Groups", settings.overpass_url, 2.0)]
    assert outcome.records[0].category == "Support Groups"


def test_geodata_unmatched_category_skips_query(settings, monkeypatch):
    calls = []
    monkeypatch.setattr(overpass, "fetch_elements", lambda *args, **kwargs: calls.append(args) or [])

    outcome = public_geodata.PublicGeodataSource(settings).fetch(_query(category="Legal Aid"))

    assert calls == []
    assert outcome.records == []
    assert outcome.error is None


def test_geodata_newer_request_supersedes_older(settings, monkeypatch):
    started = threading.Event()
    release = threading.Event()
    inflight = public_geodata.InflightRequests()
    source = public_geodata.PublicGeodataSource(settings, inflight=inflight)

    def slow_fetch(lat, lon, radius, category, url, timeout):
        started.set()
        release.wait(5)
        return []

    monkeypatch.setattr(overpass, "fetch_elements", slow_fetch)
    errors = []

    def first_request():
        try:
            source.fetch(_query(session_id="s1"))
        except public_geodata.SupersededRequestError as exc:
            errors.append(exc)

    worker = threading.Thread(target=first_request)
    worker.start()
    assert started.wait(5)

    newer = inflight.begin("s1")
    release.set()
    worker.join(5)

    assert len(errors) == 1
    assert not newer.is_set()


def test_geodata_finish_clears_session(settings, monkeypatch):
    inflight = public_geodata.InflightRequests()
    monkeypatch.setattr(overpass, "fetch_elements", lambda *args, **kwargs: [])

    public_geodata.PublicGeodataSource(settings, inflight=inflight).fetch(_query(session_id="s1"))

    assert inflight._current == {}


# ---------- local catalog ----------


def test_default_catalog_covers_every_kind():
    entries = local_catalog.default_catalog()
    kinds = {entry.kind for entry in entries}

    assert kinds == {ResultKind.PROVIDER, ResultKind.ORGANIZATION, ResultKind.RESOURCE}
    assert all(isinstance(entry, CatalogEntry) for entry in entries)


def test_local_catalog_returns_all_entries():
    entries = [CatalogEntry(kind=ResultKind.RESOURCE, payload={"id": "r", "title": "Guide"})]
    source = local_catalog.LocalCatalogSource(entries)

    outcome = source.fetch(_query(query="anything"))

    assert outcome.records == entries
    assert outcome.records is not entries
    assert not source.enabled(_query(include_local=False))
