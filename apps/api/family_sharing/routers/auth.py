from __future__ import annotations

from fastapi import APIRouter, Depends

from family_sharing.core.auth import get_magic_code_client
from family_sharing.schemas.auth import SendCodeRequest, VerifyCodeRequest
from family_sharing.services.identity import MagicCodeClient

router = APIRouter(prefix="/v1/auth", tags=["auth"])


@router.post("/send-code")
def send_code(payload: SendCodeRequest, client: MagicCodeClient = Depends(get_magic_code_client)):
    client.send_code(str(payload.email))
    return {"success": True}


@router.post("/verify")
def verify_code(payload: VerifyCodeRequest, client: MagicCodeClient = Depends(get_magic_code_client)):
    """
    Exchanges a magic code for the provider's session payload.

    The response carries the refresh token that every /v1/family call expects.
    """
    return client.verify_code(str(payload.email), payload.code)
