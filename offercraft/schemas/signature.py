"""
Pydantic schemas for the public signature endpoints.

WHY: Signing happens from the shared link without authentication, so the
request body is the only evidence captured besides IP and user agent.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from offercraft.models.offer import OfferStatus


class SignatureCreate(BaseModel):
    """Signature submitted from the public offer page."""

    signer_name: str = Field(..., min_length=1, max_length=255)
    signer_email: EmailStr
    signature_data: str = Field(..., min_length=1, description="Drawn signature (data URL) or typed name")


class SignatureStatusResponse(BaseModel):
    offer_id: int
    offer_number: str
    status: OfferStatus
    signed: bool
    signer_name: Optional[str] = None
    signer_email: Optional[str] = None
    signed_at: Optional[datetime] = None


class SignatureResponse(BaseModel):
    id: int
    offer_id: int
    signer_name: str
    signer_email: str
    signed_at: datetime

    model_config = {"from_attributes": True}
