"""
User model.

WHY: Users are the tenant members who author offers and versions. The
tenant_id ensures every user belongs to exactly one tenant.
"""

import enum
from sqlalchemy import Column, Integer, String, Enum, ForeignKey, Boolean
from sqlalchemy.orm import relationship

from offercraft.models.base import Base, TimestampMixin, PrimaryKeyMixin


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    WHY: Roles are issued by the auth service and carried in the
    TenantContext; the enum keeps stored values consistent.
    """

    ADMIN = "ADMIN"  # Tenant administrator
    MEMBER = "MEMBER"  # Regular tenant member


class User(Base, PrimaryKeyMixin, TimestampMixin):
    """
    User model representing members of a tenant.

    WHY: Offers record their creator and versions record their author,
    so both need a stable user reference inside the tenant.
    """

    __tablename__ = "users"

    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)

    role = Column(
        Enum(UserRole, name="userrole", native_enum=False, length=16),
        nullable=False,
        default=UserRole.MEMBER,
    )

    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)

    # WHY: Deactivated users keep their authored history
    is_active = Column(Boolean, default=True, nullable=False)

    tenant = relationship("Tenant", back_populates="users")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
