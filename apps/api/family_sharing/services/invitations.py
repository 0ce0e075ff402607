"""
Invitation lifecycle.

    (none) --create--> pending --accept--> accepted
                          |---revoke--> revoked
                          `---expiresAt passed, accessed--> expired

Expiry is lazy: an invitation is marked expired by the first access after its
deadline, never by a sweep. Every transition out of `pending` clears the pending
key so a new invitation for the same address can be created afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from email_validator import EmailNotValidError, validate_email

from family_sharing.core.config import settings
from family_sharing.core.errors import (
    AlreadyMemberError,
    AuthorizationError,
    ConflictError,
    ExpiredError,
    InvalidStateError,
    NotFoundError,
    SelfInviteError,
    UpstreamError,
    ValidationError,
)
from family_sharing.models.entities import InvitationStatusEnum, RoleEnum
from family_sharing.services.family_directory import (
    find_owned_family,
    get_family,
    require_owned_family,
    resolve_or_create_family,
)
from family_sharing.services.identity import Identity
from family_sharing.services.membership import add_member_steps, find_member_by_email
from family_sharing.services.notifications import Notifier, send_invitation_email
from family_sharing.services.tokens import new_id, new_invite_token
from family_sharing.store.base import DataStore, StoreConflict
from family_sharing.store.query import FAMILY_INVITATIONS, Link, Query, Update
from family_sharing.store.records import InvitationRecord, isoformat, utcnow

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class InviteResult:
    invitation_id: str
    email_sent: bool
    share_link: str


@dataclass(frozen=True)
class AcceptResult:
    family_id: str
    role: RoleEnum


def normalize_email(email: str) -> str:
    return email.strip().lower()


def pending_key(family_id: str, email: str) -> str:
    return f"{family_id}:{email}"


def share_link_for(token: str) -> str:
    return f"{settings.share_link_base}{token}"


def _find_pending(store: DataStore, family_id: str, email: str) -> InvitationRecord | None:
    rows = store.query(
        Query(
            FAMILY_INVITATIONS,
            where={"family": family_id, "email": email, "status": InvitationStatusEnum.pending.value},
        )
    )
    return InvitationRecord.model_validate(rows[0]) if rows else None


def _find_by_token(store: DataStore, token: str) -> InvitationRecord | None:
    rows = store.query(Query(FAMILY_INVITATIONS, where={"token": token}))
    return InvitationRecord.model_validate(rows[0]) if rows else None


def _find_by_id(store: DataStore, invitation_id: str) -> InvitationRecord | None:
    rows = store.query(Query(FAMILY_INVITATIONS, where={"id": invitation_id}))
    return InvitationRecord.model_validate(rows[0]) if rows else None


def _write_pending(
    store: DataStore, invitation_id: str, family_id: str, email: str, inviter: Identity, token: str, now: datetime
) -> None:
    store.transact(
        [
            Update(
                FAMILY_INVITATIONS,
                invitation_id,
                {
                    "token": token,
                    "email": email,
                    "role": RoleEnum.viewer.value,
                    "status": InvitationStatusEnum.pending.value,
                    "pendingKey": pending_key(family_id, email),
                    "expiresAt": isoformat(now + timedelta(days=settings.invitation_ttl_days)),
                    "createdAt": isoformat(now),
                    "inviterId": inviter.id,
                    "familyId": family_id,
                },
            ),
            Link(FAMILY_INVITATIONS, invitation_id, {"family": family_id}),
        ]
    )


def invite(store: DataStore, notifier: Notifier, owner: Identity, email: str) -> InviteResult:
    invitee_email = normalize_email(email)
    try:
        validate_email(invitee_email, check_deliverability=False)
    except EmailNotValidError:
        raise ValidationError("A valid email is required", field="email") from None
    if invitee_email == normalize_email(owner.email):
        raise SelfInviteError()

    family_id = resolve_or_create_family(store, owner)

    if find_member_by_email(store, family_id, invitee_email) is not None:
        raise AlreadyMemberError()

    # Upsert keyed on the pending (family, email) pair: a re-invite overwrites the
    # existing row in place, which invalidates the previously issued token.
    existing = _find_pending(store, family_id, invitee_email)
    invitation_id = existing.id if existing is not None else new_id()
    token = new_invite_token()
    now = utcnow()
    try:
        _write_pending(store, invitation_id, family_id, invitee_email, owner, token, now)
    except StoreConflict:
        winner = _find_pending(store, family_id, invitee_email)
        if winner is None or winner.id == invitation_id:
            raise UpstreamError("pending invitation write conflicted with no competing invitation") from None
        logger.info("pending invitation for family %s created concurrently; overwriting %s", family_id, winner.id)
        invitation_id = winner.id
        _write_pending(store, invitation_id, family_id, invitee_email, owner, token, now)

    logger.info(
        "%s invitation %s for family %s",
        "refreshed" if existing is not None else "created",
        invitation_id,
        family_id,
    )

    share_link = share_link_for(token)
    email_sent = send_invitation_email(
        notifier, invitee_email, owner.email, share_link, settings.invitation_ttl_days
    )
    if not email_sent:
        logger.warning("invitation %s committed but email was not sent", invitation_id)
    return InviteResult(invitation_id=invitation_id, email_sent=email_sent, share_link=share_link)


def accept(store: DataStore, accepter: Identity, token: str) -> AcceptResult:
    invitation = _find_by_token(store, token)
    if invitation is None:
        raise NotFoundError("Invitation not found")

    if invitation.status != InvitationStatusEnum.pending:
        raise InvalidStateError(status=invitation.status.value)

    now = utcnow()
    if invitation.is_expired(now):
        store.transact(
            [Update(FAMILY_INVITATIONS, invitation.id, {"status": InvitationStatusEnum.expired.value, "pendingKey": None})]
        )
        logger.info("invitation %s expired on access", invitation.id)
        raise ExpiredError()

    # The token alone authorizes acceptance; the accepter's email is not compared
    # to the invited address.
    family = get_family(store, invitation.family_id)
    if family is None:
        raise NotFoundError("Family not found")
    if family.owner_id == accepter.id:
        raise ConflictError("You already own this family")

    member_id, steps = add_member_steps(family.id, invitation.id, accepter, invitation.role, now)
    steps.append(
        Update(
            FAMILY_INVITATIONS,
            invitation.id,
            {
                "status": InvitationStatusEnum.accepted.value,
                "pendingKey": None,
                "acceptedAt": isoformat(now),
            },
        )
    )
    try:
        store.transact(steps)
    except StoreConflict:
        # Either a concurrent accept of this invitation committed first, or the
        # accepter already belongs to the family.
        current = _find_by_id(store, invitation.id)
        if current is None or current.status != InvitationStatusEnum.pending:
            logger.info("invitation %s left pending before accept by %s committed", invitation.id, accepter.id)
            raise InvalidStateError(status=current.status.value if current else None) from None
        raise ConflictError("You are already a member of this family") from None

    logger.info("invitation %s accepted; member %s joined family %s", invitation.id, member_id, family.id)
    return AcceptResult(family_id=family.id, role=invitation.role)


def revoke(store: DataStore, owner: Identity, invitation_id: str) -> None:
    family = require_owned_family(store, owner)

    invitation = _find_by_id(store, invitation_id)
    if invitation is None:
        raise NotFoundError("Invitation not found")
    if invitation.family_id != family.id:
        logger.warning("owner %s tried to revoke invitation %s of another family", owner.id, invitation_id)
        raise AuthorizationError("This invitation does not belong to your family")

    # Unconditional: accepted and expired invitations are forced to revoked too.
    store.transact(
        [Update(FAMILY_INVITATIONS, invitation_id, {"status": InvitationStatusEnum.revoked.value, "pendingKey": None})]
    )
    logger.info("invitation %s revoked (was %s)", invitation_id, invitation.status.value)


def list_pending(store: DataStore, owner: Identity) -> list[InvitationRecord]:
    """Pending invitations of the owner's family. Logically expired ones are still listed."""
    family = find_owned_family(store, owner.id, pending_invitations=True)
    if family is None:
        return []
    return family.invitations
