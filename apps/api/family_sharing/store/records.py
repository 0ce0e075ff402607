"""Parsed views of the rows returned by `DataStore.query`."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from family_sharing.models.entities import InvitationStatusEnum, RoleEnum


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    @field_validator("*", mode="after")
    @classmethod
    def _assume_utc(cls, value):
        # Stores may hand back naive timestamps; they are always UTC.
        if isinstance(value, datetime) and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class FamilyRef(_Record):
    id: str


class MemberRecord(_Record):
    id: str
    user_id: str | None = None
    email: str
    role: RoleEnum = RoleEnum.viewer
    invitation_id: str | None = None
    joined_at: datetime | None = None
    updated_at: datetime | None = None
    family: list[FamilyRef] = []

    @property
    def family_id(self) -> str | None:
        return self.family[0].id if self.family else None


class InvitationRecord(_Record):
    id: str
    token: str
    email: str
    role: RoleEnum = RoleEnum.viewer
    status: InvitationStatusEnum
    expires_at: datetime
    created_at: datetime | None = None
    accepted_at: datetime | None = None
    inviter_id: str | None = None
    family_id: str

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at < now


class FamilyRecord(_Record):
    id: str
    owner_id: str
    name: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    members: list[MemberRecord] = []
    invitations: list[InvitationRecord] = []


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def isoformat(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()
