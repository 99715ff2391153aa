"""
Offer activity models.

WHAT: Append-only event log attached to each offer.

WHY: The activity log gives users a timeline of what happened to an
offer (created, sent, viewed, signed, restored...) and who did it.
Public-link actions (view, reject, sign) have no actor.

HOW: One row per event with a type tag, a human-readable message and
free-form JSON details. Rows are never updated or deleted.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any

from sqlalchemy import (
    Integer,
    Text,
    DateTime,
    ForeignKey,
    Index,
    Enum as SQLEnum,
)
from sqlalchemy.orm import Mapped, mapped_column

from offercraft.models.base import Base, JSONType


class OfferActivityType(str, Enum):
    """Offer activity event types."""

    CREATED = "CREATED"
    UPDATED = "UPDATED"
    SENT = "SENT"
    VIEWED = "VIEWED"
    SIGNED = "SIGNED"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"
    STATUS_CHANGED = "STATUS_CHANGED"
    VERSION_CREATED = "VERSION_CREATED"
    RESTORED = "RESTORED"
    DUPLICATED = "DUPLICATED"


class OfferActivity(Base):
    """
    Single offer activity event.

    Attributes:
        tenant_id: Owning tenant
        offer_id: Offer the event belongs to
        type: Event type
        message: Human-readable description
        actor_id: Acting user, None for public-link actions
        extra_data: Type-specific details (old/new status, version...)
        created_at: Event time
    """

    __tablename__ = "offer_activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    offer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("offers.id", ondelete="CASCADE"), nullable=False
    )

    type: Mapped[OfferActivityType] = mapped_column(
        SQLEnum(OfferActivityType, name="offeractivitytype", native_enum=False, length=32),
        nullable=False,
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)

    actor_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    # "metadata" is reserved on declarative classes
    extra_data: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        "metadata", JSONType, nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_offer_activities_offer_id", "offer_id"),
        Index("ix_offer_activities_tenant_created", "tenant_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<OfferActivity(id={self.id}, type={self.type}, offer_id={self.offer_id})>"
