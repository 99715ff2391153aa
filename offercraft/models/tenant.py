"""
Tenant model.

WHY: Tenants represent isolated customer organizations. Each tenant has its
own clients, offers, templates and numbering, and every tenant-owned query
is scoped by tenant_id.
"""

from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship

from offercraft.models.base import Base, TimestampMixin, PrimaryKeyMixin, JSONType


class Tenant(Base, PrimaryKeyMixin, TimestampMixin):
    """
    Tenant model representing a customer organization.

    WHY: Multi-tenancy requires strict data isolation between tenants.
    The tenant_id is used throughout the system to scope all queries and
    prevent cross-tenant data access.
    """

    __tablename__ = "tenants"

    name = Column(String(255), nullable=False, index=True)

    # WHY: JSON allows per-tenant configuration (branding, defaults)
    # without schema changes
    settings = Column(JSONType, nullable=False, default=dict)

    # WHY: is_active allows soft-deletion of tenants while preserving history
    is_active = Column(Boolean, nullable=False, default=True)

    users = relationship("User", back_populates="tenant", lazy="raise")
    clients = relationship("Client", back_populates="tenant", lazy="raise")
    offers = relationship("Offer", back_populates="tenant", lazy="raise")

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, name={self.name})>"
