"""
Offer number sequence model.

WHY: Offer numbers (OFR-YYYYMM-NNNN) restart every month per tenant and
must never repeat, even under concurrent creation. Counting existing
offers is racy; a single counter row per (tenant, year, month) that is
incremented atomically is not.
"""

from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint

from offercraft.models.base import Base, PrimaryKeyMixin


class OfferNumberSequence(Base, PrimaryKeyMixin):
    """Monthly offer number counter for one tenant."""

    __tablename__ = "offer_number_sequences"
    __table_args__ = (
        UniqueConstraint("tenant_id", "year", "month", name="uq_offer_number_sequences_period"),
    )

    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    last_value = Column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return (
            f"<OfferNumberSequence(tenant_id={self.tenant_id}, "
            f"period={self.year}-{self.month:02d}, last={self.last_value})>"
        )
