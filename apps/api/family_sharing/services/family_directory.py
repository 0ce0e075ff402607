from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from family_sharing.core.errors import AuthorizationError, UpstreamError
from family_sharing.models.entities import InvitationStatusEnum, RoleEnum
from family_sharing.services.identity import Identity
from family_sharing.services.tokens import new_id
from family_sharing.store.base import DataStore, StoreConflict
from family_sharing.store.query import FAMILIES, Query, Update
from family_sharing.store.records import FamilyRecord, isoformat, utcnow

logger = logging.getLogger(__name__)

OWNER_MEMBER_ID = "owner"


@dataclass(frozen=True)
class MemberView:
    id: str
    user_id: str | None
    email: str
    role: RoleEnum
    joined_at: datetime | None
    is_owner: bool


@dataclass(frozen=True)
class MembersView:
    family_id: str | None
    members: list[MemberView] = field(default_factory=list)


def find_owned_family(
    store: DataStore,
    owner_id: str,
    *,
    members: bool = False,
    pending_invitations: bool = False,
) -> FamilyRecord | None:
    include: list[Query] = []
    if members:
        include.append(Query("members"))
    if pending_invitations:
        include.append(Query("invitations", where={"status": InvitationStatusEnum.pending.value}))
    rows = store.query(Query(FAMILIES, where={"ownerId": owner_id}, include=tuple(include)))
    if not rows:
        return None
    if len(rows) > 1:
        logger.warning("owner %s has %d families; using the oldest", owner_id, len(rows))
    return FamilyRecord.model_validate(rows[0])


def get_family(store: DataStore, family_id: str) -> FamilyRecord | None:
    rows = store.query(Query(FAMILIES, where={"id": family_id}))
    return FamilyRecord.model_validate(rows[0]) if rows else None


def require_owned_family(store: DataStore, identity: Identity) -> FamilyRecord:
    family = find_owned_family(store, identity.id)
    if family is None:
        raise AuthorizationError("You don't have a family to manage")
    return family


def resolve_or_create_family(store: DataStore, identity: Identity) -> str:
    family = find_owned_family(store, identity.id)
    if family is not None:
        return family.id

    family_id = new_id()
    now = isoformat(utcnow())
    fields: dict[str, Any] = {
        "ownerId": identity.id,
        "name": f"{identity.email}'s Family",
        "createdAt": now,
        "updatedAt": now,
    }
    try:
        store.transact([Update(FAMILIES, family_id, fields)])
    except StoreConflict:
        # A concurrent first use created the owner's family between our read and write.
        family = find_owned_family(store, identity.id)
        if family is None:
            raise UpstreamError("family creation conflicted but no family was found") from None
        logger.info("family for owner %s created concurrently; reusing %s", identity.id, family.id)
        return family.id

    logger.info("created family %s for owner %s", family_id, identity.id)
    return family_id


def get_members_view(store: DataStore, identity: Identity) -> MembersView:
    family = find_owned_family(store, identity.id, members=True)
    if family is None:
        return MembersView(family_id=None, members=[])

    owner = MemberView(
        id=OWNER_MEMBER_ID,
        user_id=identity.id,
        email=identity.email,
        role=RoleEnum.admin,
        joined_at=family.created_at,
        is_owner=True,
    )
    members = [
        MemberView(
            id=m.id,
            user_id=m.user_id,
            email=m.email,
            role=m.role,
            joined_at=m.joined_at,
            is_owner=False,
        )
        for m in family.members
    ]
    return MembersView(family_id=family.id, members=[owner, *members])
