"""
Offer model for priced client proposals.

WHAT: SQLAlchemy models for the offer aggregate: Offer, OfferSection, Article.

WHY: Offers are the business documents this system exists for:
1. Group priced line items into titled sections
2. Carry computed totals that are signed and exported
3. Move through a status lifecycle (draft, sent, viewed, accepted...)
4. Keep an auditable version history

HOW: Uses SQLAlchemy 2.0 with:
- Offer as aggregate root owning sections, sections owning articles
- Ordered, eagerly loaded (selectin) child collections for async access
- Numeric(12, 2) columns for every amount
- Delete-orphan cascades so a section tree can be replaced wholesale
"""

import secrets
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, List, TYPE_CHECKING
from sqlalchemy import (
    Integer,
    String,
    Text,
    Date,
    DateTime,
    ForeignKey,
    Numeric,
    UniqueConstraint,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from offercraft.models.base import Base

if TYPE_CHECKING:
    from offercraft.models.client import Client
    from offercraft.models.tenant import Tenant
    from offercraft.models.signature import Signature


def new_share_token() -> str:
    """Unguessable token for an offer's public link."""
    return secrets.token_urlsafe(32)


class OfferStatus(str, Enum):
    """
    Offer lifecycle status.

    WHY: Tracks an offer through the sales process:
    - DRAFT: Being created/edited, not visible to client
    - PENDING_APPROVAL: Waiting for internal sign-off before sending
    - SENT: Sent to client for review
    - VIEWED: Client has opened the shared link
    - ACCEPTED: Client signed the offer
    - REJECTED: Client declined the offer
    - WON / LOST: Business outcome recorded for reporting
    - EXPIRED: valid_until passed without acceptance

    Allowed transitions live in offercraft.services.offer_state.
    """

    DRAFT = "DRAFT"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    SENT = "SENT"
    VIEWED = "VIEWED"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    WON = "WON"
    LOST = "LOST"
    EXPIRED = "EXPIRED"


TERMINAL_STATUSES = frozenset(
    {
        OfferStatus.ACCEPTED,
        OfferStatus.REJECTED,
        OfferStatus.WON,
        OfferStatus.LOST,
        OfferStatus.EXPIRED,
    }
)

# Content can change only before the client has received the offer
EDITABLE_STATUSES = frozenset({OfferStatus.DRAFT, OfferStatus.PENDING_APPROVAL})


class Offer(Base):
    """
    Offer aggregate root.

    Attributes:
        id: Primary key
        tenant_id: Owning tenant
        client_id: Addressed client (same tenant)
        created_by_id: User who created the offer
        offer_number: Human-readable number, OFR-YYYYMM-NNNN, unique per tenant
        title: Offer title
        status: Current lifecycle status
        currency: ISO 4217 currency code
        valid_until: Last day the offer can be accepted
        executive_summary: Intro text shown to the client
        terms_and_conditions: Terms text
        subtotal: Sum of article line totals (before discount)
        discount_total: Sum of article discounts
        vat_total: Sum of article VAT amounts
        total: Sum of article totals
        sent_at / viewed_at / accepted_at / rejected_at: Status timestamps
        rejection_reason: Reason given by the client when rejecting
        share_token: Unguessable token in the client's share link
    """

    __tablename__ = "offers"
    __table_args__ = (
        UniqueConstraint("tenant_id", "offer_number", name="uq_offers_tenant_number"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    tenant_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    client_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("clients.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    created_by_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    offer_number: Mapped[str] = mapped_column(String(32), nullable=False)
    # Capability for the unauthenticated share link
    share_token: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, index=True, default=new_share_token
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)

    status: Mapped[OfferStatus] = mapped_column(
        SQLEnum(OfferStatus, name="offerstatus", native_enum=False, length=32),
        nullable=False,
        default=OfferStatus.DRAFT,
        index=True,
    )

    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="EUR")
    valid_until: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    executive_summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    terms_and_conditions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Computed totals, always rewritten by pricing.recompute_offer
    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    discount_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    vat_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    # Status timestamps
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    viewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    accepted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    rejected_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    # Relationships
    # WHY: selectin loading keeps the whole tree available without lazy IO,
    # which async sessions can't do implicitly
    sections: Mapped[List["OfferSection"]] = relationship(
        "OfferSection",
        back_populates="offer",
        order_by="[OfferSection.sort_order, OfferSection.id]",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    client: Mapped["Client"] = relationship("Client", lazy="selectin")
    tenant: Mapped["Tenant"] = relationship("Tenant", back_populates="offers")
    signature: Mapped[Optional["Signature"]] = relationship(
        "Signature",
        back_populates="offer",
        uselist=False,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Offer(id={self.id}, number={self.offer_number}, status={self.status})>"

    @property
    def articles(self) -> List["Article"]:
        """All articles across sections, in display order."""
        return [article for section in self.sections for article in section.articles]

    @property
    def is_terminal(self) -> bool:
        """True once the offer can no longer change status."""
        return self.status in TERMINAL_STATUSES

    @property
    def is_editable(self) -> bool:
        """
        Check if offer content can be edited.

        WHY: Once sent, the offer is a record of what the client saw and
        may sign; its content must stay as it was.
        """
        return self.status in EDITABLE_STATUSES

    def is_past_validity(self, today: Optional[date] = None) -> bool:
        """
        Check if the validity deadline has passed.

        Returns:
            True if valid_until is set and earlier than today
        """
        if self.valid_until is None:
            return False
        today = today or datetime.utcnow().date()
        return self.valid_until < today


class OfferSection(Base):
    """
    Titled group of articles inside an offer.

    WHY: Sections structure long offers (e.g. "Design", "Development")
    and are ordered by sort_order.
    """

    __tablename__ = "offer_sections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    offer_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("offers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    offer: Mapped["Offer"] = relationship("Offer", back_populates="sections")
    articles: Mapped[List["Article"]] = relationship(
        "Article",
        back_populates="section",
        order_by="[Article.sort_order, Article.id]",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<OfferSection(id={self.id}, title={self.title})>"


class Article(Base):
    """
    Priced line item.

    Attributes:
        quantity: Non-negative amount of units
        unit: Unit label (pcs, h, m2...)
        unit_price: Non-negative price per unit
        vat_rate: VAT percentage (0-100)
        discount_percent: Percentage discount (0-100)
        discount_fixed: Fixed discount in currency units
        total: Computed line total incl. VAT; never stored stale
    """

    __tablename__ = "articles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    section_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("offer_sections.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    unit: Mapped[str] = mapped_column(String(32), nullable=False, default="pcs")

    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, default=Decimal("1"))
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    vat_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("0.00"))
    discount_percent: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("0.00"))
    discount_fixed: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    section: Mapped["OfferSection"] = relationship("OfferSection", back_populates="articles")

    def __repr__(self) -> str:
        return f"<Article(id={self.id}, name={self.name}, total={self.total})>"
