"""
FastAPI dependencies for authentication and request metadata.

WHY: Dependencies provide reusable authentication logic that can be
injected into route handlers, so every authenticated route receives the
same TenantContext built the same way.
"""

from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from offercraft.core.auth import verify_token
from offercraft.core.context import TenantContext
from offercraft.core.exceptions import AuthenticationError, TokenInvalidError
from offercraft.models.user import UserRole


# auto_error=False so a missing header goes through our 401 format
security = HTTPBearer(auto_error=False)


async def get_tenant_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> TenantContext:
    """
    Build the TenantContext from the bearer token.

    Usage:
        @router.get("/offers")
        async def list_offers(ctx: TenantContext = Depends(get_tenant_context)):
            ...

    Raises:
        AuthenticationError: If the header is missing
        TokenExpiredError / TokenInvalidError: If the token can't be trusted
    """
    if credentials is None:
        raise AuthenticationError(message="Missing bearer token")

    payload = verify_token(credentials.credentials)

    user_id = payload.get("user_id")
    tenant_id = payload.get("tenant_id")
    if not user_id or not tenant_id:
        raise TokenInvalidError(message="Invalid token: missing user_id or tenant_id")

    try:
        role = UserRole(payload.get("role", UserRole.MEMBER.value))
    except ValueError:
        raise TokenInvalidError(message="Invalid token: unknown role")

    return TenantContext(user_id=int(user_id), tenant_id=int(tenant_id), role=role)


def get_client_ip(request: Request) -> Optional[str]:
    """
    Get the caller's IP, honoring X-Forwarded-For from the load balancer.

    WHY: Signatures record the signer's IP as evidence of acceptance.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def get_user_agent(request: Request) -> Optional[str]:
    """Get the caller's user agent header."""
    return request.headers.get("user-agent")
