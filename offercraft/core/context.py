"""
Request tenant context.

WHY: Every service operation on tenant-owned data takes a TenantContext as
its first argument. Making it a required parameter (instead of ambient
request state) means a query can't be written without deciding whose
data it is for.
"""

from dataclasses import dataclass

from offercraft.models.user import UserRole


@dataclass(frozen=True)
class TenantContext:
    """
    Identity of the caller, as asserted by the auth layer.

    Attributes:
        user_id: Acting user
        tenant_id: Tenant whose data the request may touch
        role: Caller's role within the tenant
    """

    user_id: int
    tenant_id: int
    role: UserRole = UserRole.MEMBER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
