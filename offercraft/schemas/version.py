"""
Offer version Pydantic schemas.

WHAT: The snapshot payload structure stored on every OfferVersion, plus
request/response models for the version API.

WHY: A snapshot is restored back into live rows, so its shape must be
checked before anything is deleted. A tagged, versioned pydantic model
(kind + schema_version) makes the payload self-describing and lets a
malformed or foreign payload fail validation instead of half-restoring.

HOW: Decimal fields are normalized to their column scale (money 2 dp,
quantity 3 dp) and dumped in JSON mode, so a snapshot taken right after
a restore is equal to the snapshot that was restored.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Literal, Dict, Any
from pydantic import BaseModel, Field, field_validator

from offercraft.core.money import quantize_to


SNAPSHOT_KIND = "offer_snapshot"
TEMPLATE_KIND = "offer_template"
SCHEMA_VERSION = 1


# ============================================================================
# Snapshot payload
# ============================================================================


class ArticleSnapshot(BaseModel):
    """One article as captured in a snapshot or template."""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    unit: str = "pcs"
    quantity: Decimal = Field(..., ge=0)
    unit_price: Decimal = Field(..., ge=0)
    vat_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    discount_percent: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    discount_fixed: Decimal = Field(default=Decimal("0"), ge=0)
    # Templates may omit totals; they are recomputed on use
    total: Decimal = Decimal("0")
    sort_order: int = 0

    @field_validator("quantity", mode="after")
    @classmethod
    def _quantity_scale(cls, value: Decimal) -> Decimal:
        return quantize_to(value, 3, "quantity")

    @field_validator(
        "unit_price", "vat_rate", "discount_percent", "discount_fixed", "total", mode="after"
    )
    @classmethod
    def _money_scale(cls, value: Decimal) -> Decimal:
        return quantize_to(value, 2)


class SectionSnapshot(BaseModel):
    """One section and its ordered articles."""

    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    sort_order: int = 0
    articles: List[ArticleSnapshot] = Field(default_factory=list)


class OfferContentSnapshot(BaseModel):
    """
    Offer content scalars.

    Status, numbering and validity are lifecycle data, not content, and
    are not captured.
    """

    title: str = Field(..., min_length=1, max_length=255)
    currency: str = Field(..., min_length=3, max_length=3)
    executive_summary: Optional[str] = None
    terms_and_conditions: Optional[str] = None
    subtotal: Decimal
    discount_total: Decimal
    vat_total: Decimal
    total: Decimal

    @field_validator("subtotal", "discount_total", "vat_total", "total", mode="after")
    @classmethod
    def _money_scale(cls, value: Decimal) -> Decimal:
        return quantize_to(value, 2)


class OfferSnapshot(BaseModel):
    """
    Tagged snapshot payload.

    Example:
        {"kind": "offer_snapshot", "schema_version": 1,
         "offer": {...}, "sections": [{"title": ..., "articles": [...]}]}
    """

    model_config = {"extra": "forbid"}

    kind: Literal["offer_snapshot"] = SNAPSHOT_KIND
    schema_version: Literal[1] = SCHEMA_VERSION
    offer: OfferContentSnapshot
    sections: List[SectionSnapshot] = Field(default_factory=list)


class TemplateContent(BaseModel):
    """Tagged section structure stored on OfferTemplate.sections."""

    kind: Literal["offer_template"] = TEMPLATE_KIND
    schema_version: Literal[1] = SCHEMA_VERSION
    sections: List[SectionSnapshot] = Field(default_factory=list)


# ============================================================================
# API schemas
# ============================================================================


class VersionCreateRequest(BaseModel):
    """Request body for taking a manual snapshot."""

    note: Optional[str] = Field(
        None,
        max_length=500,
        description="Description of what changed in this version",
    )


class VersionResponse(BaseModel):
    """Version metadata, as listed in the history."""

    id: int
    offer_id: int
    version: int
    author_id: Optional[int] = None
    change_note: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class VersionDetailResponse(VersionResponse):
    """Version metadata plus the full payload."""

    payload: Dict[str, Any]


class VersionListResponse(BaseModel):
    """Version history of one offer, newest first."""

    items: List[VersionResponse]
    total: int
