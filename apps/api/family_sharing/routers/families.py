from fastapi import APIRouter, Depends

from family_sharing.core.auth import get_identity_verifier, require_identity
from family_sharing.services import family_directory, invitations, membership
from family_sharing.services.identity import IdentityVerifier
from family_sharing.services.notifications import Notifier, get_notifier
from family_sharing.schemas.families import (
    AcceptInviteRequest,
    AcceptInviteResponse,
    FamilyMemberResponse,
    FamilyMembersResponse,
    FamilyRequest,
    InvitationListResponse,
    InvitationResponse,
    InviteRequest,
    InviteResponse,
    RemoveMemberRequest,
    RevokeInviteRequest,
    SuccessResponse,
)
from family_sharing.store import DataStore, get_store
from family_sharing.store.records import utcnow

router = APIRouter(prefix="/v1/family", tags=["family"])


@router.post("/invite", response_model=InviteResponse)
def invite_member(
    payload: InviteRequest,
    store: DataStore = Depends(get_store),
    notifier: Notifier = Depends(get_notifier),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
):
    owner = require_identity(payload.refresh_token, verifier)
    result = invitations.invite(store, notifier, owner, payload.email)
    return InviteResponse(
        invitation_id=result.invitation_id,
        email_sent=result.email_sent,
        share_link=result.share_link,
    )


@router.post("/accept-invite", response_model=AcceptInviteResponse)
def accept_invite(
    payload: AcceptInviteRequest,
    store: DataStore = Depends(get_store),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
):
    accepter = require_identity(payload.refresh_token, verifier)
    result = invitations.accept(store, accepter, payload.token)
    return AcceptInviteResponse(family_id=result.family_id, role=result.role.value)


@router.post("/members", response_model=FamilyMembersResponse)
def list_members(
    payload: FamilyRequest,
    store: DataStore = Depends(get_store),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
):
    identity = require_identity(payload.refresh_token, verifier)
    view = family_directory.get_members_view(store, identity)
    return FamilyMembersResponse(
        members=[
            FamilyMemberResponse(
                id=m.id,
                user_id=m.user_id,
                email=m.email,
                role=m.role.value,
                joined_at=m.joined_at,
                is_owner=m.is_owner,
            )
            for m in view.members
        ],
        is_owner=True,
        family_id=view.family_id,
    )


@router.post("/invitations", response_model=InvitationListResponse)
def list_invitations(
    payload: FamilyRequest,
    store: DataStore = Depends(get_store),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
):
    owner = require_identity(payload.refresh_token, verifier)
    now = utcnow()
    return InvitationListResponse(
        invitations=[
            InvitationResponse(
                id=item.id,
                email=item.email,
                role=item.role.value,
                status=item.status.value,
                expires_at=item.expires_at,
                created_at=item.created_at,
                inviter_id=item.inviter_id,
                family_id=item.family_id,
                is_expired=item.is_expired(now),
            )
            for item in invitations.list_pending(store, owner)
        ]
    )


@router.post("/revoke-invite", response_model=SuccessResponse)
def revoke_invite(
    payload: RevokeInviteRequest,
    store: DataStore = Depends(get_store),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
):
    owner = require_identity(payload.refresh_token, verifier)
    invitations.revoke(store, owner, payload.invitation_id)
    return SuccessResponse()


@router.post("/remove-member", response_model=SuccessResponse)
def remove_member(
    payload: RemoveMemberRequest,
    store: DataStore = Depends(get_store),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
):
    owner = require_identity(payload.refresh_token, verifier)
    membership.remove_member(store, owner, payload.member_id)
    return SuccessResponse()
