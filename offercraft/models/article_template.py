"""
Article template model.

WHAT: Catalog entries (products and services with a standard price) that
a tenant picks articles from.

WHY: The same hourly rates and products appear on most offers. Keeping
them in a catalog avoids retyping names and prices on every offer.

HOW: Templates are soft-deleted (is_active=False) so catalog history
stays readable; offers copy the values and never reference the template.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, Integer, Numeric, String, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from offercraft.models.base import Base, TimestampMixin


class ArticleTemplate(Base, TimestampMixin):
    """
    Article catalog entry.

    Attributes:
        tenant_id: Owning tenant
        name: Article name copied onto offers
        description: Article description
        category: Optional grouping shown as a filter
        unit: Unit label (pcs, h, ...)
        unit_price: Standard price per unit
        vat_rate: Standard VAT percentage
        is_active: False once deleted from the catalog
    """

    __tablename__ = "article_templates"

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
    unit: Mapped[str] = mapped_column(String(32), nullable=False, default="pcs")
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    vat_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("0"))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<ArticleTemplate(id={self.id}, name={self.name})>"
