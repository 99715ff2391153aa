"""
Public share-link API endpoints.

WHAT: Unauthenticated endpoints behind the link emailed to clients:
view, reject, signature status and signing.

WHY: Clients don't have accounts. The share token in the link is the only
credential, so these routes expose only what the client needs and never
draft offers. Sequential offer IDs are never accepted here.
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from offercraft.core.deps import get_client_ip, get_user_agent
from offercraft.db.session import get_db
from offercraft.schemas.offer import OfferDocument, OfferRejectRequest
from offercraft.schemas.signature import (
    SignatureCreate,
    SignatureResponse,
    SignatureStatusResponse,
)
from offercraft.services.offer_service import OfferService
from offercraft.services.signature_service import SignatureService


router = APIRouter(prefix="/public/offers", tags=["public"])


@router.get("/{share_token}", response_model=OfferDocument, summary="View shared offer")
async def view_offer(
    share_token: str,
    db: AsyncSession = Depends(get_db),
) -> OfferDocument:
    """
    Show the offer to the client and record the view.

    The first view of a SENT offer moves it to VIEWED.
    """
    service = OfferService(db)
    offer = await service.mark_viewed(share_token)
    return await service.build_document(offer)


@router.post("/{share_token}/reject", response_model=OfferDocument, summary="Reject shared offer")
async def reject_offer(
    share_token: str,
    data: OfferRejectRequest,
    db: AsyncSession = Depends(get_db),
) -> OfferDocument:
    service = OfferService(db)
    offer = await service.reject_offer(share_token, reason=data.reason)
    return await service.build_document(offer)


@router.get(
    "/{share_token}/signature",
    response_model=SignatureStatusResponse,
    summary="Signature status",
)
async def get_signature_status(
    share_token: str,
    db: AsyncSession = Depends(get_db),
) -> SignatureStatusResponse:
    return await SignatureService(db).get_signature_status(share_token)


@router.post(
    "/{share_token}/signature",
    response_model=SignatureResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Sign offer",
)
async def sign_offer(
    share_token: str,
    data: SignatureCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> SignatureResponse:
    """
    Sign and accept an offer.

    The signer's IP address and user agent are stored with the signature.
    """
    signature = await SignatureService(db).create_signature(
        share_token,
        signer_name=data.signer_name,
        signer_email=data.signer_email,
        signature_data=data.signature_data,
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request),
    )
    return SignatureResponse.model_validate(signature)
