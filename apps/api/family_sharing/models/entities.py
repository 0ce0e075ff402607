from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import DateTime, Enum as SqlEnum, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from family_sharing.models.base import Base


class RoleEnum(str, Enum):
    admin = "admin"
    viewer = "viewer"


class InvitationStatusEnum(str, Enum):
    pending = "pending"
    accepted = "accepted"
    expired = "expired"
    revoked = "revoked"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Family(Base):
    __tablename__ = "families"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    # One family per owner; a concurrent second create fails on insert.
    owner_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)


class FamilyMember(Base):
    __tablename__ = "family_members"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    family_id: Mapped[str] = mapped_column(ForeignKey("families.id"), nullable=False)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[RoleEnum] = mapped_column(SqlEnum(RoleEnum), nullable=False, default=RoleEnum.viewer)
    # "{family_id}:{user_id}"
    membership_key: Mapped[str] = mapped_column(String(300), nullable=False, unique=True)
    # The invitation this membership was created from; one member per invitation.
    invitation_id: Mapped[str] = mapped_column(String(36), nullable=False, unique=True)
    joined_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    __table_args__ = (Index("ix_family_members_family_email", "family_id", "email"),)


class FamilyInvitation(Base):
    __tablename__ = "family_invitations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    family_id: Mapped[str] = mapped_column(ForeignKey("families.id"), nullable=False)
    token: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[RoleEnum] = mapped_column(SqlEnum(RoleEnum), nullable=False, default=RoleEnum.viewer)
    status: Mapped[InvitationStatusEnum] = mapped_column(
        SqlEnum(InvitationStatusEnum), nullable=False, default=InvitationStatusEnum.pending
    )
    # "{family_id}:{email}" while pending, NULL otherwise.
    pending_key: Mapped[str | None] = mapped_column(String(300), unique=True)
    inviter_id: Mapped[str] = mapped_column(String(255), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime)

    __table_args__ = (Index("ix_family_invitations_family_status", "family_id", "status"),)
