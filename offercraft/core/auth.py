"""
JWT token handling.

WHY: Users sign in through the platform's auth service, which issues
HS256 tokens carrying user_id, tenant_id and role. This API only needs
to verify those tokens; create_access_token exists for service-to-service
calls and tests.
"""

from datetime import datetime, timedelta
from typing import Dict, Any, Optional
from jose import jwt, JWTError, ExpiredSignatureError

from offercraft.core.config import settings
from offercraft.core.exceptions import TokenExpiredError, TokenInvalidError


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed JWT access token.

    Args:
        data: Claims to encode (user_id, tenant_id, role)
        expires_delta: Optional custom expiration time

    Returns:
        JWT token string

    Example:
        >>> token = create_access_token({"user_id": 1, "tenant_id": 1, "role": "ADMIN"})
        >>> verify_token(token)["tenant_id"]
        1
    """
    to_encode = data.copy()
    now = datetime.utcnow()
    expire = now + (expires_delta or timedelta(minutes=settings.JWT_EXPIRATION_MINUTES))
    to_encode.update({"exp": expire, "iat": now, "nbf": now})

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def verify_token(token: str) -> Dict[str, Any]:
    """
    Verify and decode a JWT token.

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
    except ExpiredSignatureError:
        # Separate error so the frontend can refresh instead of re-login
        raise TokenExpiredError()
    except JWTError as e:
        raise TokenInvalidError(error=str(e))
