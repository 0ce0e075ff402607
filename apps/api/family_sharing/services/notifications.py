"""
Best-effort invitation email.

Delivery outcome is reported as a boolean and never raises: an invitation that has
been committed stays committed whatever happens here.
"""

from __future__ import annotations

import html
import logging
from collections.abc import Iterator
from typing import Protocol, runtime_checkable

import httpx

from family_sharing.core.config import settings

logger = logging.getLogger(__name__)


@runtime_checkable
class Notifier(Protocol):
    def send(self, to_email: str, subject: str, html_body: str) -> bool: ...


class ResendNotifier:
    def __init__(self, client: httpx.Client, api_key: str, from_address: str):
        self.client = client
        self.api_key = api_key
        self.from_address = from_address

    def send(self, to_email: str, subject: str, html_body: str) -> bool:
        try:
            resp = self.client.post(
                "/emails",
                json={"from": self.from_address, "to": to_email, "subject": subject, "html": html_body},
                headers={"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"},
            )
        except httpx.HTTPError as exc:
            logger.warning("email channel unreachable: %s", exc.__class__.__name__)
            return False
        if not resp.is_success:
            logger.warning("email channel rejected message (status %s)", resp.status_code)
        return resp.is_success


class LogNotifier:
    """Used when no mail channel is configured; nothing is delivered."""

    def send(self, to_email: str, subject: str, html_body: str) -> bool:
        logger.warning("no email channel configured; invitation email not sent")
        return False


def get_notifier() -> Iterator[Notifier]:
    if not settings.resend_api_key:
        yield LogNotifier()
        return
    with httpx.Client(
        base_url=settings.resend_api_url, timeout=httpx.Timeout(settings.upstream_timeout_seconds)
    ) as client:
        yield ResendNotifier(client, settings.resend_api_key, settings.invite_from_address)


def render_invitation_email(inviter_email: str, share_link: str, ttl_days: int) -> tuple[str, str]:
    inviter = html.escape(inviter_email)
    link = html.escape(share_link, quote=True)
    subject = f"{inviter_email} invited you to view their family on Mighty"
    body = f"""
        <div style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
          <h2 style="color: #7C3AED;">You're invited to Mighty!</h2>
          <p>{inviter} has invited you to view their family's activities on Mighty.</p>
          <p>As a viewer, you'll be able to see all scheduled activities, but you won't be able to make changes.</p>
          <p style="margin: 30px 0;">
            <a href="{link}" style="background-color: #7C3AED; color: white; padding: 12px 24px; text-decoration: none; border-radius: 8px; display: inline-block;">Accept Invitation</a>
          </p>
          <p style="color: #666; font-size: 14px;">This invitation expires in {ttl_days} days.</p>
          <p style="color: #666; font-size: 14px;">If you don't have the Mighty app, download it from the App Store first.</p>
        </div>
    """
    return subject, body


def send_invitation_email(
    notifier: Notifier, to_email: str, inviter_email: str, share_link: str, ttl_days: int
) -> bool:
    subject, body = render_invitation_email(inviter_email, share_link, ttl_days)
    try:
        return bool(notifier.send(to_email, subject, body))
    except Exception:
        logger.exception("invitation email dispatch failed")
        return False
