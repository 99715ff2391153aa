"""
Client model.

WHAT: SQLAlchemy model for the customers a tenant sends offers to.

WHY: Every offer is addressed to exactly one client of the same tenant.
The client's email is the default recipient when an offer is sent.
"""

import enum
from typing import Optional, TYPE_CHECKING

from sqlalchemy import Integer, String, Text, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship, Mapped, mapped_column

from offercraft.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from offercraft.models.tenant import Tenant


class ClientStatus(str, enum.Enum):
    """Client lifecycle status."""

    LEAD = "LEAD"
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class Client(Base, TimestampMixin):
    """
    Client (customer company) owned by a tenant.

    Attributes:
        id: Primary key
        tenant_id: Owning tenant
        company_name: Display name used on offers and emails
        email: Default recipient for sent offers
        vat_number: Client's VAT registration number
        phone: Contact phone
        status: Lifecycle status
        notes: Internal notes
    """

    __tablename__ = "clients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    vat_number: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    status: Mapped[ClientStatus] = mapped_column(
        SQLEnum(ClientStatus, name="clientstatus", native_enum=False, length=16),
        nullable=False,
        default=ClientStatus.LEAD,
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    tenant: Mapped["Tenant"] = relationship("Tenant", back_populates="clients")

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, company_name={self.company_name})>"
