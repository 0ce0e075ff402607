from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx

from family_sharing.core.config import settings
from family_sharing.core.errors import UpstreamError
from family_sharing.store.base import StoreConflict
from family_sharing.store.query import Query, Step

logger = logging.getLogger(__name__)


def instant_http_client(timeout: float | None = None, transport: httpx.BaseTransport | None = None) -> httpx.Client:
    return httpx.Client(
        base_url=settings.instant_api_url,
        timeout=httpx.Timeout(timeout if timeout is not None else settings.upstream_timeout_seconds),
        transport=transport,
    )


def admin_headers() -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {settings.instant_admin_token}",
        "App-Id": settings.instant_app_id,
    }


def json_body(resp: httpx.Response, source: str) -> Any:
    try:
        return resp.json()
    except ValueError as exc:
        logger.error("%s answered %s with a non-JSON body", source, resp.status_code)
        raise UpstreamError(f"{source} returned an unreadable response") from exc


def _is_uniqueness_error(resp: httpx.Response) -> bool:
    if resp.status_code != 400:
        return False
    try:
        payload = resp.json()
    except ValueError:
        return "record-not-unique" in resp.text
    return payload.get("type") == "record-not-unique" if isinstance(payload, dict) else False


class InstantStore:
    """`DataStore` backed by the InstantDB admin API."""

    def __init__(self, client: httpx.Client):
        self.client = client

    def _post(self, path: str, body: dict[str, Any]) -> httpx.Response:
        try:
            return self.client.post(path, json=body, headers=admin_headers())
        except httpx.HTTPError as exc:
            raise UpstreamError(f"instantdb unreachable: {exc.__class__.__name__}") from exc

    def query(self, q: Query) -> list[dict[str, Any]]:
        resp = self._post("/admin/query", {"query": q.to_wire()})
        if not resp.is_success:
            logger.error("instantdb query on %s failed with status %s", q.entity, resp.status_code)
            raise UpstreamError(f"instantdb query failed ({resp.status_code})")
        payload = json_body(resp, "instantdb")
        rows = payload.get(q.entity) if isinstance(payload, dict) else None
        return rows or []

    def transact(self, steps: Sequence[Step]) -> None:
        resp = self._post("/admin/transact", {"steps": [step.to_wire() for step in steps]})
        if _is_uniqueness_error(resp):
            raise StoreConflict("write conflicts with an existing record")
        if not resp.is_success:
            logger.error("instantdb transact failed with status %s", resp.status_code)
            raise UpstreamError(f"instantdb transact failed ({resp.status_code})")
