"""
Offer version model.

WHAT: Immutable snapshots of an offer's content.

WHY: Version history enables:
- Restoring an earlier state of an offer
- Audit trail of what was offered when
- Safe experimentation (every restore backs up first)

HOW: Each snapshot stores a tagged JSON payload (kind + schema_version)
of the offer's content scalars and section/article tree. Version numbers
are contiguous per offer and protected by a unique constraint.
"""

from datetime import datetime
from typing import Optional, Dict, Any, TYPE_CHECKING

from sqlalchemy import (
    Integer,
    String,
    DateTime,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from offercraft.models.base import Base, JSONType

if TYPE_CHECKING:
    from offercraft.models.user import User


class OfferVersion(Base):
    """
    Snapshot of an offer at a point in time.

    Attributes:
        id: Primary key
        tenant_id: Owning tenant (denormalized for scoped queries)
        offer_id: Snapshotted offer
        version: Per-offer number, contiguous from 1
        payload: Tagged snapshot structure (see schemas.version)
        author_id: User who created the snapshot
        change_note: Optional description of the change
        created_at: When the snapshot was taken
    """

    __tablename__ = "offer_versions"
    __table_args__ = (
        UniqueConstraint("offer_id", "version", name="uq_offer_versions_offer_version"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    offer_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("offers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)
    payload: Mapped[Dict[str, Any]] = mapped_column(JSONType, nullable=False)

    author_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    change_note: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    author: Mapped[Optional["User"]] = relationship("User", lazy="selectin")

    def __repr__(self) -> str:
        return f"<OfferVersion(id={self.id}, offer_id={self.offer_id}, version={self.version})>"
