"""
Tests for JWT verification and the tenant context dependency.

WHY: Every tenant-scoped query trusts the tenant_id decoded here, so:
1. Valid tokens must produce the right TenantContext
2. Expired, tampered or incomplete tokens must be rejected
"""

import pytest
from datetime import timedelta
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from offercraft.core.auth import create_access_token, verify_token
from offercraft.core.config import settings
from offercraft.core.deps import get_tenant_context
from offercraft.core.exceptions import (
    AuthenticationError,
    TokenExpiredError,
    TokenInvalidError,
)
from offercraft.models.user import UserRole


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestTokens:
    """Test token creation and verification."""

    def test_round_trip_claims(self):
        token = create_access_token({"user_id": 5, "tenant_id": 9, "role": "ADMIN"})
        payload = verify_token(token)

        assert payload["user_id"] == 5
        assert payload["tenant_id"] == 9
        assert "exp" in payload

    def test_expired_token(self):
        token = create_access_token({"user_id": 1, "tenant_id": 1}, expires_delta=timedelta(seconds=-10))
        with pytest.raises(TokenExpiredError):
            verify_token(token)

    def test_wrong_signature(self):
        token = jwt.encode({"user_id": 1, "tenant_id": 1}, "other-secret", algorithm=settings.JWT_ALGORITHM)
        with pytest.raises(TokenInvalidError):
            verify_token(token)

    def test_garbage(self):
        with pytest.raises(TokenInvalidError):
            verify_token("not-a-jwt")


@pytest.mark.asyncio
class TestTenantContextDependency:
    """Test get_tenant_context."""

    async def test_builds_context(self):
        token = create_access_token({"user_id": "3", "tenant_id": "4", "role": "ADMIN"})
        ctx = await get_tenant_context(_credentials(token))

        assert ctx.user_id == 3
        assert ctx.tenant_id == 4
        assert ctx.role == UserRole.ADMIN
        assert ctx.is_admin

    async def test_role_defaults_to_member(self):
        token = create_access_token({"user_id": 3, "tenant_id": 4})
        ctx = await get_tenant_context(_credentials(token))
        assert ctx.role == UserRole.MEMBER

    async def test_missing_header(self):
        with pytest.raises(AuthenticationError):
            await get_tenant_context(None)

    async def test_missing_tenant_claim(self):
        token = create_access_token({"user_id": 3})
        with pytest.raises(TokenInvalidError):
            await get_tenant_context(_credentials(token))

    async def test_unknown_role(self):
        token = create_access_token({"user_id": 3, "tenant_id": 4, "role": "ROOT"})
        with pytest.raises(TokenInvalidError):
            await get_tenant_context(_credentials(token))
