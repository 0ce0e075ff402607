from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class FamilyRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class InviteRequest(FamilyRequest):
    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value


class AcceptInviteRequest(FamilyRequest):
    token: str = Field(min_length=1)


class RevokeInviteRequest(FamilyRequest):
    model_config = ConfigDict(populate_by_name=True)

    invitation_id: str = Field(alias="invitationId", min_length=1)


class RemoveMemberRequest(FamilyRequest):
    model_config = ConfigDict(populate_by_name=True)

    member_id: str = Field(alias="memberId", min_length=1)


class _CamelResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InviteResponse(_CamelResponse):
    success: bool = True
    invitation_id: str
    email_sent: bool
    share_link: str


class AcceptInviteResponse(_CamelResponse):
    success: bool = True
    family_id: str
    role: str


class FamilyMemberResponse(_CamelResponse):
    id: str
    user_id: str | None
    email: str
    role: str
    joined_at: datetime | None
    is_owner: bool


class FamilyMembersResponse(_CamelResponse):
    members: list[FamilyMemberResponse]
    is_owner: bool = True
    family_id: str | None


class InvitationResponse(_CamelResponse):
    id: str
    email: str
    role: str
    status: str
    expires_at: datetime
    created_at: datetime | None
    inviter_id: str | None
    family_id: str
    is_expired: bool


class InvitationListResponse(_CamelResponse):
    invitations: list[InvitationResponse]


class SuccessResponse(BaseModel):
    success: bool = True
