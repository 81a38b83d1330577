from __future__ import annotations
import httpx
import pytest

from app import create_app
from client import ResilientClient
from errors import NotFoundError, StorageError, ValidationError
from extensions import db

BASE = "http://api.test/api/v1"

def _client(handler) -> ResilientClient:
    return ResilientClient(BASE, transport=httpx.MockTransport(handler))

def test_direct_candidate_wins_first():
    seen = []
    def handler(request: httpx.Request):
        seen.append(str(request.url))
        return httpx.Response(200, json={"kind": "aggregate", "data": {
            "id": 7, "lat": 1, "long": 2, "info": "A", "numberOfDoors": 1}})
    with _client(handler) as api:
        rec = api.fetch_aggregate(7)
    assert rec.id == "7" and rec.labels == ["A"]
    assert seen == [f"{BASE}/aggregates/7"]

def test_falls_through_to_query_then_list():
    seen = []
    def handler(request: httpx.Request):
        seen.append((request.url.path, dict(request.url.params)))
        if request.url.path.endswith("/aggregates/7"):
            return httpx.Response(404, json={"error": "not found"})
        if "id" in request.url.params:
            return httpx.Response(200, text="<html>oops</html>")
        return httpx.Response(200, json=[{"id": 3, "lat": 0, "long": 0},
                                         {"id": 7, "Latitude": 12.5, "Long": 77.1}])
    with _client(handler) as api:
        rec = api.fetch_aggregate(7)
    assert (rec.lat, rec.long) == (12.5, 77.1)
    assert [p for p, _ in seen] == ["/api/v1/aggregates/7", "/api/v1/aggregates", "/api/v1/aggregates"]
    assert seen[1][1] == {"id": "7"} and seen[2][1] == {}

def test_all_candidates_fail_keeps_last_cause():
    calls = []
    def handler(request: httpx.Request):
        calls.append(request)
        if len(calls) < 3:
            return httpx.Response(500, text="boom")
        raise httpx.ConnectError("refused", request=request)
    with _client(handler) as api:
        with pytest.raises(NotFoundError) as ei:
            api.fetch_aggregate(1)
    assert len(calls) == 3
    assert isinstance(ei.value.__cause__, httpx.ConnectError)

def test_missing_coordinates_use_configured_default():
    def handler(request):
        return httpx.Response(200, json={"id": 2, "info": "x", "numberOfDoors": 1})
    api = ResilientClient(BASE, transport=httpx.MockTransport(handler), default_location=(1.0, 2.0))
    rec = api.fetch_aggregate(2)
    api.close()
    assert (rec.lat, rec.long, rec.needs_correction) == (1.0, 2.0, True)

def test_write_errors_are_mapped():
    def handler(request: httpx.Request):
        if request.method == "PUT":
            return httpx.Response(404, json={"error": "Building 9 not found"})
        if request.method == "POST":
            return httpx.Response(400, json={"error": "Invalid coordinates"})
        return httpx.Response(503, text="unavailable")
    with _client(handler) as api:
        with pytest.raises(NotFoundError, match="Building 9"):
            api.update_aggregate(9, {})
        with pytest.raises(ValidationError, match="Invalid coordinates"):
            api.create_aggregate({})
        with pytest.raises(StorageError):
            api.delete_aggregate(9)

@pytest.mark.parametrize("body", [
    {"kind": "aggregates", "data": [{"id": 1, "lat": 1, "long": 2}, {"id": 2, "lat": 3, "long": 4}]},
    {"buildings": [{"id": 1, "lat": 1, "long": 2}, {"id": 2, "lat": 3, "long": 4}]},
    [{"id": 1, "lat": 1, "long": 2}, {"_id": 2, "lat": 3, "long": 4}],
])
def test_list_recent_reads_every_shape(body):
    with _client(lambda request: httpx.Response(200, json=body)) as api:
        assert [r.id for r in api.list_recent()] == ["1", "2"]

def test_list_recent_skips_items_without_id():
    body = [{"lat": 1, "long": 2}, "junk", {"id": 3, "lat": 5, "long": 6}]
    with _client(lambda request: httpx.Response(200, json=body)) as api:
        records = api.list_recent()
    assert [r.id for r in records] == ["3"]

def test_list_recent_malformed_body_is_storage_error():
    with _client(lambda request: httpx.Response(200, text="<html>")) as api:
        with pytest.raises(StorageError):
            api.list_recent()

def test_candidate_without_id_falls_through():
    def handler(request: httpx.Request):
        if request.url.path.endswith("/aggregates/4"):
            return httpx.Response(200, json={"kind": "aggregate", "data": {"lat": 1, "long": 2}})
        return httpx.Response(200, json={"buildings": [{"id": 4, "lat": 7, "long": 8}]})
    with _client(handler) as api:
        rec = api.fetch_aggregate(4)
    assert (rec.id, rec.lat, rec.long) == ("4", 7.0, 8.0)

# ---- against the real app ----
@pytest.fixture()
def live():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        api = ResilientClient("http://testserver/api/v1", transport=httpx.WSGITransport(app=app))
        yield api
        api.close()
        db.session.remove()
        db.drop_all()

def test_end_to_end_against_app(live):
    bid = live.create_aggregate({"lat": 11.0168, "long": 76.9558, "numberOfDoors": 2,
                                 "info": "1/F, 2/F", "congregationId": 1, "language": "Tamil",
                                 "address": "Race Course Rd"})
    rec = live.fetch_aggregate(bid)
    assert rec.labels == ["1/F", "2/F"]
    assert (rec.pin_color, rec.pin_image) == (2, "/pins/pin2.png")

    live.update_aggregate(bid, {"lat": 11.0, "long": 77.0, "numberOfDoors": 1, "info": "G",
                                "address": "Race Course Rd"})
    assert live.fetch_aggregate(bid).labels == ["G"]
    assert [r.id for r in live.list_recent()] == [str(bid)]

    assert live.delete_aggregate(bid) == bid
    with pytest.raises(NotFoundError):
        live.fetch_aggregate(bid)
