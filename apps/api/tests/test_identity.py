import json

import httpx
import pytest

from family_sharing.core.auth import require_identity
from family_sharing.core.config import settings
from family_sharing.core.errors import AuthenticationError, UpstreamError
from family_sharing.services.identity import Identity, IdentityVerifier, MagicCodeClient
from family_sharing.store.instant import instant_http_client


def _client(handler):
    return instant_http_client(transport=httpx.MockTransport(handler))


def test_verify_returns_identity(monkeypatch):
    monkeypatch.setattr(settings, "instant_app_id", "app-123")
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"user": {"id": "user-a", "email": "a@x.com", "refresh_token": "rt"}})

    identity = IdentityVerifier(_client(handler)).verify("rt-owner")

    assert identity == Identity(id="user-a", email="a@x.com")
    assert seen["path"] == "/runtime/auth/verify_refresh_token"
    assert seen["body"] == {"app-id": "app-123", "refresh-token": "rt-owner"}


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(401, json={"message": "expired"}),
        httpx.Response(400, text="bad token"),
        httpx.Response(200, json={"user": {"id": "user-a"}}),
        httpx.Response(200, json={}),
    ],
)
def test_verify_rejects_unusable_answers(response):
    assert IdentityVerifier(_client(lambda request: response)).verify("rt") is None


def test_verify_transport_failure_is_upstream_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(UpstreamError):
        IdentityVerifier(_client(handler)).verify("rt")


def test_require_identity_maps_rejection_to_authentication_error():
    verifier = IdentityVerifier(_client(lambda request: httpx.Response(401)))
    with pytest.raises(AuthenticationError) as exc_info:
        require_identity("rt", verifier)
    assert exc_info.value.message == "Invalid or expired token"
    assert exc_info.value.status_code == 401


def test_send_code_posts_to_admin_api(monkeypatch):
    monkeypatch.setattr(settings, "instant_admin_token", "admin-secret")
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"sent": True})

    MagicCodeClient(_client(handler)).send_code("a@x.com")

    assert seen == {"path": "/admin/send_magic_code", "auth": "Bearer admin-secret", "body": {"email": "a@x.com"}}


def test_send_code_failure_is_upstream_error():
    client = MagicCodeClient(_client(lambda request: httpx.Response(500)))
    with pytest.raises(UpstreamError) as exc_info:
        client.send_code("a@x.com")
    assert exc_info.value.message == "Failed to send magic code"


def test_verify_code_returns_session_payload():
    session = {"user": {"id": "user-a", "email": "a@x.com", "refresh_token": "rt-new"}}
    client = MagicCodeClient(_client(lambda request: httpx.Response(200, json=session)))
    assert client.verify_code("a@x.com", "123456") == session


def test_verify_code_rejection_is_authentication_error():
    client = MagicCodeClient(_client(lambda request: httpx.Response(400, json={"message": "bad code"})))
    with pytest.raises(AuthenticationError) as exc_info:
        client.verify_code("a@x.com", "000000")
    assert exc_info.value.message == "Invalid code"


def test_non_json_answers_are_upstream_errors():
    def garbled(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    with pytest.raises(UpstreamError):
        IdentityVerifier(_client(garbled)).verify("rt")
    with pytest.raises(UpstreamError):
        MagicCodeClient(_client(garbled)).verify_code("a@x.com", "123456")
