from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from family_sharing.core.config import settings
from family_sharing.core.errors import AuthenticationError, UpstreamError
from family_sharing.store.instant import admin_headers, json_body

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    id: str
    email: str


class IdentityVerifier:
    """Exchanges a refresh token for the user it belongs to, via the InstantDB runtime API."""

    def __init__(self, client: httpx.Client):
        self.client = client

    def verify(self, refresh_token: str) -> Identity | None:
        try:
            resp = self.client.post(
                "/runtime/auth/verify_refresh_token",
                json={"app-id": settings.instant_app_id, "refresh-token": refresh_token},
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as exc:
            raise UpstreamError("identity provider unreachable") from exc

        if not resp.is_success:
            logger.info("refresh token rejected by identity provider (status %s)", resp.status_code)
            return None

        payload = json_body(resp, "identity provider")
        user = (payload.get("user") if isinstance(payload, dict) else None) or {}
        if not user.get("id") or not user.get("email"):
            return None
        return Identity(id=str(user["id"]), email=str(user["email"]))


class MagicCodeClient:
    """Relays magic-code sign-in to the InstantDB admin API."""

    def __init__(self, client: httpx.Client):
        self.client = client

    def send_code(self, email: str) -> None:
        try:
            resp = self.client.post("/admin/send_magic_code", json={"email": email}, headers=admin_headers())
        except httpx.HTTPError as exc:
            raise UpstreamError("identity provider unreachable") from exc
        if not resp.is_success:
            logger.error("send_magic_code failed with status %s", resp.status_code)
            raise UpstreamError("Failed to send magic code", context={"status": resp.status_code})

    def verify_code(self, email: str, code: str) -> dict[str, Any]:
        try:
            resp = self.client.post(
                "/admin/verify_magic_code",
                json={"email": email, "code": code},
                headers=admin_headers(),
            )
        except httpx.HTTPError as exc:
            raise UpstreamError("identity provider unreachable") from exc
        if not resp.is_success:
            logger.info("magic code rejected (status %s)", resp.status_code)
            raise AuthenticationError("Invalid code")
        return json_body(resp, "identity provider")
