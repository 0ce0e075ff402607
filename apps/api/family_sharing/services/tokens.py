from __future__ import annotations

import secrets
import uuid

INVITE_TOKEN_BYTES = 32


def new_invite_token() -> str:
    """256-bit bearer secret, hex encoded (64 chars). Uniqueness is enforced by the store."""
    return secrets.token_hex(INVITE_TOKEN_BYTES)


def new_id() -> str:
    return str(uuid.uuid4())
