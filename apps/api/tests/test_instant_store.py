import json

import httpx
import pytest

from family_sharing.core.config import settings
from family_sharing.core.errors import UpstreamError
from family_sharing.store.base import StoreConflict
from family_sharing.store.instant import InstantStore, instant_http_client
from family_sharing.store.query import FAMILIES, FAMILY_INVITATIONS, Link, Query, Update


def _store(handler):
    return InstantStore(instant_http_client(transport=httpx.MockTransport(handler)))


def test_query_sends_instaql_with_admin_headers(monkeypatch):
    monkeypatch.setattr(settings, "instant_app_id", "app-123")
    monkeypatch.setattr(settings, "instant_admin_token", "admin-secret")
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"families": [{"id": "fam-1", "ownerId": "user-a", "name": "Home"}]})

    rows = _store(handler).query(
        Query(FAMILIES, where={"ownerId": "user-a"}, include=(Query("invitations", where={"status": "pending"}),))
    )

    assert rows == [{"id": "fam-1", "ownerId": "user-a", "name": "Home"}]
    assert seen["path"] == "/admin/query"
    assert seen["headers"]["Authorization"] == "Bearer admin-secret"
    assert seen["headers"]["App-Id"] == "app-123"
    assert seen["body"] == {
        "query": {
            "families": {
                "$": {"where": {"ownerId": "user-a"}},
                "invitations": {"$": {"where": {"status": "pending"}}},
            }
        }
    }


def test_query_with_no_rows_returns_empty_list():
    store = _store(lambda request: httpx.Response(200, json={}))
    assert store.query(Query(FAMILY_INVITATIONS, where={"token": "t"})) == []


def test_transact_sends_steps():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"status": "ok"})

    _store(handler).transact(
        [
            Update(FAMILY_INVITATIONS, "inv-1", {"status": "pending"}),
            Link(FAMILY_INVITATIONS, "inv-1", {"family": "fam-1"}),
        ]
    )

    assert seen["path"] == "/admin/transact"
    assert seen["body"] == {
        "steps": [
            ["update", "familyInvitations", "inv-1", {"status": "pending"}],
            ["link", "familyInvitations", "inv-1", {"family": "fam-1"}],
        ]
    }


def test_uniqueness_violation_maps_to_conflict():
    store = _store(lambda request: httpx.Response(400, json={"type": "record-not-unique", "message": "dup"}))
    with pytest.raises(StoreConflict):
        store.transact([Update(FAMILIES, "fam-1", {"ownerId": "user-a"})])


def test_other_failures_are_upstream_errors():
    store = _store(lambda request: httpx.Response(500, text="boom"))
    with pytest.raises(UpstreamError) as exc_info:
        store.query(Query(FAMILIES))
    assert not isinstance(exc_info.value, StoreConflict)

    with pytest.raises(UpstreamError):
        store.transact([Update(FAMILIES, "fam-1", {"ownerId": "user-a"})])


def test_unreachable_store_is_an_upstream_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(UpstreamError):
        _store(handler).query(Query(FAMILIES))


def test_non_json_answer_is_an_upstream_error():
    store = _store(lambda request: httpx.Response(200, text="<html>gateway</html>"))
    with pytest.raises(UpstreamError):
        store.query(Query(FAMILIES))
