"""
Pydantic schemas for offer endpoints.

WHAT: Request/response schemas for the offer API and the OfferDocument
read model.

WHY: Schemas define the API contract:
1. Validate incoming sections and articles before pricing
2. Document the API for OpenAPI/Swagger
3. Expose computed totals read-only (clients never send totals)

HOW: Uses Pydantic v2 with Field constraints for ranges; Decimal for every
amount so values are never rounded through floats.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, EmailStr, Field

from offercraft.models.activity import OfferActivityType
from offercraft.models.offer import OfferStatus


# ============================================================================
# Request Schemas
# ============================================================================


class ArticleInput(BaseModel):
    """
    Article (line item) input.

    Totals are not accepted; they are always computed server-side.
    """

    name: str = Field(..., min_length=1, max_length=255, description="Article name")
    description: Optional[str] = Field(None, max_length=10000)
    unit: str = Field("pcs", min_length=1, max_length=32, description="Unit label")
    quantity: Decimal = Field(Decimal("1"), ge=0, description="Quantity")
    unit_price: Decimal = Field(..., ge=0, description="Price per unit")
    vat_rate: Decimal = Field(Decimal("0"), ge=0, le=100, description="VAT percentage")
    discount_percent: Decimal = Field(Decimal("0"), ge=0, le=100, description="Discount percentage")
    discount_fixed: Decimal = Field(Decimal("0"), ge=0, description="Fixed discount amount")
    sort_order: Optional[int] = Field(None, description="Position; defaults to list order")

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Frontend development",
                "unit": "h",
                "quantity": "3",
                "unit_price": "20.00",
                "vat_rate": "21",
                "discount_percent": "10",
                "discount_fixed": "0",
            }
        }
    }


class SectionInput(BaseModel):
    """Section input with its articles."""

    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=10000)
    sort_order: Optional[int] = None
    articles: List[ArticleInput] = Field(default_factory=list)


class OfferCreate(BaseModel):
    """
    Offer creation request.

    Offers start in DRAFT; number and totals are assigned by the server.
    """

    client_id: int = Field(..., gt=0)
    title: str = Field(..., min_length=1, max_length=255)
    currency: Optional[str] = Field(None, min_length=3, max_length=3, description="ISO 4217 code")
    valid_until: Optional[date] = Field(None, description="Defaults to today + default validity")
    executive_summary: Optional[str] = None
    terms_and_conditions: Optional[str] = None
    sections: List[SectionInput] = Field(default_factory=list)


class OfferUpdate(BaseModel):
    """
    Offer update request.

    Omitted fields are left unchanged. When sections is given, it replaces
    the whole section/article tree.
    """

    client_id: Optional[int] = Field(None, gt=0)
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    valid_until: Optional[date] = None
    executive_summary: Optional[str] = None
    terms_and_conditions: Optional[str] = None
    sections: Optional[List[SectionInput]] = None


class OfferSendRequest(BaseModel):
    """Send request; recipient defaults to the client's email."""

    recipient: Optional[EmailStr] = None
    subject: Optional[str] = Field(None, max_length=500)
    message: Optional[str] = Field(None, max_length=20000)


class OfferDuplicateRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    client_id: Optional[int] = Field(None, gt=0)


class OfferFromTemplateRequest(BaseModel):
    template_id: int = Field(..., gt=0)
    client_id: int = Field(..., gt=0)
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)


class OfferRejectRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=5000)


# ============================================================================
# Response Schemas
# ============================================================================


class ArticleResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    unit: str
    quantity: Decimal
    unit_price: Decimal
    vat_rate: Decimal
    discount_percent: Decimal
    discount_fixed: Decimal
    total: Decimal
    sort_order: int

    model_config = {"from_attributes": True}


class SectionResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    sort_order: int
    articles: List[ArticleResponse] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class OfferSummary(BaseModel):
    """Offer list row (no tree)."""

    id: int
    offer_number: str
    title: str
    status: OfferStatus
    currency: str
    client_id: int
    valid_until: Optional[date] = None
    total: Decimal
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class OfferResponse(OfferSummary):
    """Full offer with its section/article tree."""

    share_token: str
    created_by_id: Optional[int] = None
    executive_summary: Optional[str] = None
    terms_and_conditions: Optional[str] = None
    subtotal: Decimal
    discount_total: Decimal
    vat_total: Decimal
    sent_at: Optional[datetime] = None
    viewed_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    sections: List[SectionResponse] = Field(default_factory=list)


class OfferListResponse(BaseModel):
    items: List[OfferSummary]
    total: int
    skip: int
    limit: int


class SendOfferResponse(BaseModel):
    offer: OfferResponse
    recipient: str
    share_link: str
    email_sent: bool


class ActivityResponse(BaseModel):
    id: int
    offer_id: int
    type: OfferActivityType
    message: str
    actor_id: Optional[int] = None
    extra_data: Optional[Dict[str, Any]] = None
    created_at: datetime

    model_config = {"from_attributes": True}


# ============================================================================
# Document read model
# ============================================================================


class DocumentClient(BaseModel):
    id: int
    company_name: str
    email: Optional[str] = None
    vat_number: Optional[str] = None
    phone: Optional[str] = None


class DocumentArticle(BaseModel):
    """Article with its full price breakdown."""

    name: str
    description: Optional[str] = None
    unit: str
    quantity: Decimal
    unit_price: Decimal
    vat_rate: Decimal
    discount_percent: Decimal
    discount_fixed: Decimal
    line_total: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    vat_amount: Decimal
    total: Decimal


class DocumentSection(BaseModel):
    title: str
    description: Optional[str] = None
    articles: List[DocumentArticle]
    total: Decimal


class DocumentTotalsResponse(BaseModel):
    subtotal: Decimal
    discount_total: Decimal
    vat_total: Decimal
    total: Decimal


class OfferDocument(BaseModel):
    """
    Self-contained offer document for export (PDF/DOCX renderers, public page).

    Every number a renderer prints is precomputed here.
    """

    offer_id: int
    offer_number: str
    title: str
    status: OfferStatus
    currency: str
    valid_until: Optional[date] = None
    executive_summary: Optional[str] = None
    terms_and_conditions: Optional[str] = None
    company_name: str
    client: DocumentClient
    sections: List[DocumentSection]
    totals: DocumentTotalsResponse
    signed: bool = False
    signer_name: Optional[str] = None
    signed_at: Optional[datetime] = None
