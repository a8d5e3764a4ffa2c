"""Bearer-token authentication for chat routes.

Identity is the pair (``X-Username`` header, ``Authorization: Bearer``
token). Token issuance happens elsewhere; here a token is only checked for
existence under the user's token key.

Usage:
    @router.delete("/rooms/{room_id}")
    def delete_room(identity: Annotated[Identity, Depends(require_identity)]):
        ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header

from chatrooms.core.config import settings
from chatrooms.core.dependencies import get_token_verifier
from chatrooms.core.errors import AuthenticationAppError, AuthorizationAppError
from chatrooms.core.logging import hash_identifier
from chatrooms.services.token_service import TokenVerifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    username: str
    token: str

    @property
    def is_admin(self) -> bool:
        return self.username == settings.chat.admin_username.lower()


def parse_bearer(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header.

    Examples:
        >>> parse_bearer("Bearer abc123")
        'abc123'
        >>> parse_bearer("Basic abc123") is None
        True
        >>> parse_bearer(None) is None
        True
    """
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer "):].strip()
    return token or None


def optional_identity(
    tokens: Annotated[TokenVerifier, Depends(get_token_verifier)],
    authorization: Annotated[str | None, Header()] = None,
    x_username: Annotated[str | None, Header(alias="X-Username")] = None,
) -> Identity | None:
    """Verified identity when valid credentials are present, otherwise None."""
    token = parse_bearer(authorization)
    if not token or not x_username:
        return None
    username = x_username.strip().lower()
    if not tokens.verify(username, token):
        return None
    logger.debug("auth.success", extra={"user_hash": hash_identifier(username)})
    return Identity(username=username, token=token)


def require_identity(
    identity: Annotated[Identity | None, Depends(optional_identity)],
    authorization: Annotated[str | None, Header()] = None,
    x_username: Annotated[str | None, Header(alias="X-Username")] = None,
) -> Identity:
    """FastAPI dependency that rejects unauthenticated requests with 401.

    Raises:
        AuthenticationAppError: Missing credentials or a token that does not
            belong to the claimed username.
    """
    if not parse_bearer(authorization) or not x_username:
        logger.warning("auth.missing_credentials")
        raise AuthenticationAppError(
            code="missing_credentials",
            message="Unauthorized - missing credentials",
        )
    if identity is None:
        logger.warning("auth.invalid_token", extra={"user_hash": hash_identifier(x_username.strip().lower())})
        raise AuthenticationAppError(
            code="invalid_token",
            message="Unauthorized - invalid token",
        )
    return identity


def require_admin(identity: Annotated[Identity, Depends(require_identity)]) -> Identity:
    if not identity.is_admin:
        raise AuthorizationAppError(code="admin_required", message="Forbidden - admin required")
    return identity
