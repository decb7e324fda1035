"""
JWT verification utilities.

WHY: Token issuance lives in another service. This module is the thin
adapter that turns a bearer token into a PrincipalContext:
1. Signature and expiry verification (python-jose)
2. Claim extraction, accepting both claim spellings the issuer has used
3. Consistent authentication errors (OWASP A07)
"""

from datetime import datetime, timedelta
from typing import Dict, Any, Optional
from jose import jwt, JWTError

from ticketdesk.core.config import settings
from ticketdesk.core.exceptions import (
    AuthenticationError,
    TokenExpiredError,
    TokenInvalidError,
)
from ticketdesk.core.principal import PrincipalContext


# Claim names accepted for each identifier, in lookup order
USER_ID_CLAIMS = ("sub", "user_id", "userId")
ORG_ID_CLAIMS = ("org_id", "organization_id", "organizationId")


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token.

    WHY: Not exposed over HTTP. Used by tests and operator tooling to mint
    tokens the verification path accepts.

    Args:
        data: Claims to encode (sub, org_id, ...)
        expires_delta: Optional custom expiration time

    Returns:
        JWT token string
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.JWT_EXPIRATION_MINUTES)

    to_encode.update(
        {
            "exp": expire,
            "iat": datetime.utcnow(),
            "nbf": datetime.utcnow(),
        }
    )

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def verify_token(token: str) -> Dict[str, Any]:
    """
    Verify and decode a JWT token.

    Args:
        token: JWT token string

    Returns:
        Decoded token payload

    Raises:
        TokenExpiredError: If token has expired
        TokenInvalidError: If token is malformed or signature invalid
    """
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )

    except jwt.ExpiredSignatureError:
        raise TokenExpiredError(message="Token has expired")

    except JWTError as e:
        raise TokenInvalidError(
            message="Invalid token",
            error=str(e),
        )


def _claim_as_id(payload: Dict[str, Any], names: tuple) -> Optional[int]:
    """
    Read the first present claim from ``names`` as a positive integer id.

    WHY: ``sub`` is a string per RFC 7519, so numeric strings are accepted.
    """
    for name in names:
        value = payload.get(name)
        if value is None:
            continue
        try:
            parsed = int(value)
        except (TypeError, ValueError):
            return None
        return parsed if parsed > 0 else None
    return None


def principal_from_payload(payload: Dict[str, Any]) -> PrincipalContext:
    """
    Build a PrincipalContext from a verified token payload.

    Args:
        payload: Decoded JWT claims

    Returns:
        PrincipalContext with user and organization ids

    Raises:
        AuthenticationError: If either identifier is missing or malformed
    """
    principal = PrincipalContext(
        user_id=_claim_as_id(payload, USER_ID_CLAIMS),
        organization_id=_claim_as_id(payload, ORG_ID_CLAIMS),
    )
    if not principal.is_complete:
        raise AuthenticationError(message="Invalid token: missing user or organization")
    return principal


def principal_from_token(token: str) -> PrincipalContext:
    """Verify a bearer token and return the principal it speaks for."""
    return principal_from_payload(verify_token(token))
