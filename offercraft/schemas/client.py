"""Pydantic schemas for client endpoints."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from offercraft.models.client import ClientStatus


class ClientCreate(BaseModel):
    company_name: str = Field(..., min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    vat_number: Optional[str] = Field(None, max_length=64)
    phone: Optional[str] = Field(None, max_length=64)
    status: ClientStatus = ClientStatus.LEAD
    notes: Optional[str] = None


class ClientResponse(BaseModel):
    id: int
    company_name: str
    email: Optional[str] = None
    vat_number: Optional[str] = None
    phone: Optional[str] = None
    status: ClientStatus
    notes: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}
