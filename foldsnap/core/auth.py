"""Authentication module exposing the FastAPI capability dependency.

Public interface:
    ``require_auth``          -- returns AuthContext or raises 401.
    ``require_media_manager`` -- returns AuthContext, raises 403 unless the
                                 caller may manage the media library.

When ``settings.auth_enabled`` is False every request is an anonymous admin
so the development workflow is unbroken.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings
from .token_factory import decode_token
from ..exceptions import AuthenticationError, ForbiddenError

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)

# Roles that may upload and organise media.
MEDIA_MANAGER_ROLES = frozenset({"admin", "editor", "author"})


@dataclass(frozen=True)
class AuthContext:
    """Resolved authentication context available to every endpoint."""

    user_id: str
    role: str

    @property
    def can_manage_media(self) -> bool:
        return self.role in MEDIA_MANAGER_ROLES


_ANONYMOUS = AuthContext(user_id="anonymous", role="admin")


def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthContext:
    """Require a valid token and return the caller's AuthContext.

    When ``AUTH_ENABLED=false`` returns the anonymous admin context.
    """
    if not settings.auth_enabled:
        return _ANONYMOUS

    if credentials is None:
        raise AuthenticationError("Missing authentication token")

    payload = decode_token(
        credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm
    )
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    return AuthContext(user_id=payload.sub, role=payload.role)


def require_media_manager(
    auth: AuthContext = Depends(require_auth),
) -> AuthContext:
    """Require the caller to hold the media-management capability. Raises 403 otherwise."""
    if not auth.can_manage_media:
        logger.warning(
            "Media management denied",
            extra={"user_id": auth.user_id, "role": auth.role},
        )
        raise ForbiddenError()
    return auth
