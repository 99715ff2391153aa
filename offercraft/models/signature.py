"""
Signature model.

WHY: A client accepts an offer by signing it through the shared link.
Only one signature may ever exist per offer, enforced by a unique
constraint on offer_id.
"""

from datetime import datetime
from typing import Optional, TYPE_CHECKING

from sqlalchemy import Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship, Mapped, mapped_column

from offercraft.models.base import Base

if TYPE_CHECKING:
    from offercraft.models.offer import Offer


class Signature(Base):
    """
    Client signature on an offer.

    Attributes:
        offer_id: Signed offer (unique)
        signer_name: Name typed by the signer
        signer_email: Email of the signer
        signature_data: Opaque signature payload (e.g. drawn image data URL)
        signed_at: Time of signing
        ip_address: Request IP of the signer
        user_agent: Request user agent of the signer
    """

    __tablename__ = "signatures"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    offer_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("offers.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    signer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    signer_email: Mapped[str] = mapped_column(String(255), nullable=False)
    signature_data: Mapped[str] = mapped_column(Text, nullable=False)
    signed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    offer: Mapped["Offer"] = relationship("Offer", back_populates="signature")

    def __repr__(self) -> str:
        return f"<Signature(id={self.id}, offer_id={self.offer_id}, signer={self.signer_email})>"
