from __future__ import annotations

from collections.abc import Iterator

from family_sharing.core.errors import AuthenticationError
from family_sharing.services.identity import Identity, IdentityVerifier, MagicCodeClient
from family_sharing.store.instant import instant_http_client


def get_identity_verifier() -> Iterator[IdentityVerifier]:
    with instant_http_client() as client:
        yield IdentityVerifier(client)


def get_magic_code_client() -> Iterator[MagicCodeClient]:
    with instant_http_client() as client:
        yield MagicCodeClient(client)


def require_identity(refresh_token: str, verifier: IdentityVerifier) -> Identity:
    """
    Auth boundary.

    Every family operation carries the caller's refresh token in its body. A token the
    identity provider does not accept stops the request here, before any store access.
    """
    identity = verifier.verify(refresh_token)
    if identity is None:
        raise AuthenticationError()
    return identity
