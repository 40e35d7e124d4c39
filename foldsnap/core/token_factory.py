"""Bearer tokens shared between the host CMS and the FoldSnap API.

The CMS that owns the media library knows who is logged in and which role
they hold; FoldSnap only needs to know whether that role may manage media.
The CMS (or an operator, for scripted access) signs a short-lived token with
the shared ``JWT_SECRET_KEY`` carrying the user's login as ``sub`` and their
CMS role as ``role``; ``core.auth`` checks the role on every request.

Tokens use the compact JWS layout with HS256 so any standard JWT library on
the CMS side can mint them. The ``iss`` claim must be ``foldsnap``, which
keeps tokens minted for other services on the same secret from being
accepted here.
"""

import base64
import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

TOKEN_ISSUER = "foldsnap"


@dataclass(frozen=True)
class TokenPayload:
    sub: str
    role: str
    exp: datetime


def create_token(
    subject: str,
    role: str,
    secret: str,
    algorithm: str = "HS256",
    expires_hours: int = 24,
) -> str:
    """Mint a token for a CMS user.

    Args:
        subject: The user's login in the host CMS.
        role: The user's CMS role (``admin``, ``editor``, ``author``, ...).
        secret: The ``JWT_SECRET_KEY`` shared with the API.
        algorithm: Only HS256 is accepted.
        expires_hours: Lifetime; negative values yield an already expired token.
    """
    if algorithm != "HS256":
        raise ValueError(f"Unsupported algorithm: {algorithm}")

    issued_at = int(time.time())
    claims = {
        "sub": subject,
        "role": role,
        "iat": issued_at,
        "exp": issued_at + int(expires_hours * 3600),
        "iss": TOKEN_ISSUER,
    }

    signing_input = b".".join(
        _b64encode(json.dumps(part, separators=(",", ":")).encode())
        for part in ({"alg": "HS256", "typ": "JWT"}, claims)
    )
    return (signing_input + b"." + _b64encode(_sign(secret, signing_input))).decode()


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> Optional[TokenPayload]:
    """Return the payload of a valid FoldSnap token, otherwise ``None``.

    A wrong signature, another issuer, an expired ``exp`` or anything that
    does not parse all count as invalid; the auth dependency turns ``None``
    into a 401.
    """
    if algorithm != "HS256":
        return None
    try:
        header_b64, claims_b64, signature_b64 = token.encode().split(b".")
    except ValueError:
        return None

    try:
        expected = _sign(secret, header_b64 + b"." + claims_b64)
        if not hmac.compare_digest(expected, _b64decode(signature_b64)):
            return None

        claims = json.loads(_b64decode(claims_b64))
        if not isinstance(claims, dict) or claims.get("iss") != TOKEN_ISSUER:
            return None

        exp = claims.get("exp", 0)
        if time.time() > exp:
            return None

        return TokenPayload(
            sub=str(claims.get("sub", "")),
            role=str(claims.get("role", "")),
            exp=datetime.fromtimestamp(exp, tz=timezone.utc),
        )
    except (ValueError, TypeError, OverflowError, OSError):
        # binascii.Error and json.JSONDecodeError are both ValueErrors.
        return None


def _sign(secret: str, signing_input: bytes) -> bytes:
    return hmac.new(secret.encode(), signing_input, hashlib.sha256).digest()


def _b64encode(data: bytes) -> bytes:
    return base64.urlsafe_b64encode(data).rstrip(b"=")


def _b64decode(data: bytes) -> bytes:
    return base64.urlsafe_b64decode(data + b"=" * (-len(data) % 4))
