from __future__ import annotations

import logging
from datetime import datetime

from family_sharing.core.errors import AuthorizationError, NotFoundError
from family_sharing.models.entities import RoleEnum
from family_sharing.services.family_directory import require_owned_family
from family_sharing.services.identity import Identity
from family_sharing.services.tokens import new_id
from family_sharing.store.base import DataStore
from family_sharing.store.query import FAMILY_MEMBERS, Delete, Link, Query, Step, Update
from family_sharing.store.records import MemberRecord, isoformat

logger = logging.getLogger(__name__)


def membership_key(family_id: str, user_id: str) -> str:
    return f"{family_id}:{user_id}"


def find_member_by_email(store: DataStore, family_id: str, email: str) -> MemberRecord | None:
    rows = store.query(Query(FAMILY_MEMBERS, where={"family": family_id, "email": email}))
    return MemberRecord.model_validate(rows[0]) if rows else None


def get_member(store: DataStore, member_id: str) -> MemberRecord | None:
    rows = store.query(Query(FAMILY_MEMBERS, where={"id": member_id}, include=(Query("family"),)))
    return MemberRecord.model_validate(rows[0]) if rows else None


def add_member_steps(
    family_id: str, invitation_id: str, identity: Identity, role: RoleEnum, now: datetime
) -> tuple[str, list[Step]]:
    member_id = new_id()
    stamp = isoformat(now)
    return member_id, [
        Update(
            FAMILY_MEMBERS,
            member_id,
            {
                "userId": identity.id,
                "email": identity.email.lower(),
                "role": role.value,
                "membershipKey": membership_key(family_id, identity.id),
                "invitationId": invitation_id,
                "joinedAt": stamp,
                "updatedAt": stamp,
            },
        ),
        Link(FAMILY_MEMBERS, member_id, {"family": family_id}),
    ]


def remove_member(store: DataStore, identity: Identity, member_id: str) -> None:
    family = require_owned_family(store, identity)

    member = get_member(store, member_id)
    if member is None:
        raise NotFoundError("Member not found")
    if member.family_id != family.id:
        logger.warning("owner %s tried to remove member %s of another family", identity.id, member_id)
        raise AuthorizationError("This member does not belong to your family")

    store.transact([Delete(FAMILY_MEMBERS, member_id)])
    logger.info("removed member %s from family %s", member_id, family.id)
