"""
Pydantic schemas for the template library.

WHAT: Request/response models for offer templates and the article catalog.

WHY: Offer templates carry a whole section/article tree, which is
validated with the same input models as offers so a template can always
be turned into an offer. Catalog prices are normalized to cents on input.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, field_validator

from offercraft.core.money import quantize_to
from offercraft.schemas.offer import SectionInput


# ============================================================================
# Offer templates
# ============================================================================


class OfferTemplateCreate(BaseModel):
    """
    Offer template creation request.

    With from_offer_id the sections are copied from that offer of the
    tenant and any sections given here are ignored.
    """

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=10000)
    category: Optional[str] = Field(None, max_length=100)
    validity_days: int = Field(30, ge=1, le=3650, description="Days an offer stays valid")
    terms: Optional[str] = None
    sections: List[SectionInput] = Field(default_factory=list)
    from_offer_id: Optional[int] = Field(None, gt=0, description="Save this offer as a template")


class OfferTemplateUpdate(BaseModel):
    """Omitted fields are left unchanged; sections replaces the whole tree."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=10000)
    category: Optional[str] = Field(None, max_length=100)
    validity_days: Optional[int] = Field(None, ge=1, le=3650)
    terms: Optional[str] = None
    sections: Optional[List[SectionInput]] = None


class OfferTemplateResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    validity_days: int
    terms: Optional[str] = None
    sections: Dict[str, Any]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class OfferTemplateListResponse(BaseModel):
    templates: List[OfferTemplateResponse]
    categories: List[str]


# ============================================================================
# Article catalog
# ============================================================================


class ArticleTemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=10000)
    category: Optional[str] = Field(None, max_length=100)
    unit: str = Field("pcs", min_length=1, max_length=32)
    unit_price: Decimal = Field(Decimal("0"), ge=0)
    vat_rate: Decimal = Field(Decimal("0"), ge=0, le=100)

    @field_validator("unit_price", "vat_rate", mode="after")
    @classmethod
    def _cents(cls, value: Decimal) -> Decimal:
        return quantize_to(value, 2)


class ArticleTemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=10000)
    category: Optional[str] = Field(None, max_length=100)
    unit: Optional[str] = Field(None, min_length=1, max_length=32)
    unit_price: Optional[Decimal] = Field(None, ge=0)
    vat_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    is_active: Optional[bool] = None

    @field_validator("unit_price", "vat_rate", mode="after")
    @classmethod
    def _cents(cls, value: Optional[Decimal]) -> Optional[Decimal]:
        return quantize_to(value, 2) if value is not None else None


class ArticleTemplateResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    unit: str
    unit_price: Decimal
    vat_rate: Decimal
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ArticleTemplateListResponse(BaseModel):
    templates: List[ArticleTemplateResponse]
    categories: List[str]
