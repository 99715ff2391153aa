"""
Offer template model.

WHAT: Reusable offer skeletons owned by a tenant.

WHY: Most tenants send variations of the same few offers. Templates hold
the standard sections, articles and terms so a new offer starts from a
known-good structure instead of a blank page.

HOW: Sections are stored as a tagged JSON structure with the same
section/article shape used by version snapshots; it is validated with
pydantic before an offer is built from it.
"""

from typing import Optional, Dict, Any

from sqlalchemy import Integer, String, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from offercraft.models.base import Base, TimestampMixin, JSONType


class OfferTemplate(Base, TimestampMixin):
    """
    Offer template.

    Attributes:
        tenant_id: Owning tenant
        name: Template name
        description: Internal description
        category: Optional grouping shown as a filter
        validity_days: Days until an offer built from this template expires
        terms: Default terms and conditions
        sections: Tagged section/article structure
    """

    __tablename__ = "offer_templates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    validity_days: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    terms: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sections: Mapped[Dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)

    def __repr__(self) -> str:
        return f"<OfferTemplate(id={self.id}, name={self.name})>"
