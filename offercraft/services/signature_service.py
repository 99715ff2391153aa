"""
Signature Service.

WHAT: Public-link signing of offers.

WHY: A signature is the client's acceptance of the offer. It is the only
way an offer becomes ACCEPTED, and an offer can be signed at most once.

HOW: Signing validates the signer data, evaluates lazy expiry, refuses a
second signature with ConflictError, checks the SENT/VIEWED -> ACCEPTED
edge, then locks the offer row, repeats both checks and creates the
signature and accepts the offer in one savepoint. The unique constraint on
signatures.offer_id backs up the lock on databases without row locks.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from offercraft.core.exceptions import ConflictError, OfferNotFoundError, ValidationError
from offercraft.dao.signature import SignatureDAO
from offercraft.db.transaction import atomic
from offercraft.models.activity import OfferActivityType
from offercraft.models.offer import OfferStatus
from offercraft.models.signature import Signature
from offercraft.schemas.signature import SignatureStatusResponse
from offercraft.services import offer_state
from offercraft.services.activity_service import OfferActivityService
from offercraft.services.offer_service import OfferService


logger = logging.getLogger(__name__)

# Statuses in which the share link shows signature state
SIGNATURE_VISIBLE_STATUSES = (OfferStatus.SENT, OfferStatus.VIEWED, OfferStatus.ACCEPTED)


class SignatureService:
    """Service for offer signatures."""

    def __init__(self, session: AsyncSession, offer_service: Optional[OfferService] = None):
        self.session = session
        self.signature_dao = SignatureDAO(session)
        self.activity = OfferActivityService(session)
        self.offers = offer_service or OfferService(session)

    async def get_signature_status(self, share_token: str) -> SignatureStatusResponse:
        """
        Get whether an offer has been signed, and by whom.

        Raises:
            OfferNotFoundError: If the offer doesn't exist or isn't in a
                signable/signed status
        """
        offer = await self.offers.load_public(share_token)
        if offer.status not in SIGNATURE_VISIBLE_STATUSES:
            raise OfferNotFoundError(message="Offer not found or not available for signature")

        signature = offer.signature
        return SignatureStatusResponse(
            offer_id=offer.id,
            offer_number=offer.offer_number,
            status=offer.status,
            signed=signature is not None,
            signer_name=signature.signer_name if signature else None,
            signer_email=signature.signer_email if signature else None,
            signed_at=signature.signed_at if signature else None,
        )

    async def create_signature(
        self,
        share_token: str,
        signer_name: str,
        signer_email: str,
        signature_data: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Signature:
        """
        Sign an offer and accept it.

        Args:
            share_token: Share token of the offer being signed
            signer_name: Name of the signer
            signer_email: Email of the signer
            signature_data: Opaque signature payload
            ip_address: Signer's IP address
            user_agent: Signer's user agent

        Returns:
            Created Signature

        Raises:
            ValidationError: If a required field is blank
            OfferNotFoundError: If the offer doesn't exist
            ConflictError: If the offer is already signed
            InvalidTransitionError: If the offer isn't SENT or VIEWED
        """
        for field, value in (
            ("signer_name", signer_name),
            ("signer_email", signer_email),
            ("signature_data", signature_data),
        ):
            if value is None or not str(value).strip():
                raise ValidationError(message="Missing required signature data", field=field)

        offer = await self.offers.load_public(share_token)
        if offer.signature is not None:
            raise ConflictError(message="Offer has already been signed", offer_id=offer.id)
        offer_state.check_transition(offer.status, OfferStatus.ACCEPTED)

        async with atomic(self.session, "sign offer"):
            offer = await self.offers.lock(offer.id, offer.tenant_id)
            # another signer may have finished while we validated
            if offer.signature is not None:
                raise ConflictError(message="Offer has already been signed", offer_id=offer.id)
            offer_state.check_transition(offer.status, OfferStatus.ACCEPTED)

            offer_id = offer.id
            try:
                async with self.session.begin_nested():
                    signature = await self.signature_dao.create(
                        offer=offer,
                        signer_name=signer_name.strip(),
                        signer_email=signer_email.strip(),
                        signature_data=signature_data,
                        ip_address=ip_address,
                        user_agent=user_agent,
                        signed_at=datetime.utcnow(),
                    )
            except IntegrityError:
                raise ConflictError(message="Offer has already been signed", offer_id=offer_id)

            previous = offer_state.apply_transition(offer, OfferStatus.ACCEPTED)
            offer.accepted_at = signature.signed_at
            await self.session.flush()
            await self.activity.record_status_change(
                offer,
                previous,
                activity_type=OfferActivityType.SIGNED,
                message=f"Offer digitally signed by {signature.signer_name}",
                extra_data={"signer_email": signature.signer_email, "ip_address": ip_address},
            )

        logger.info("Offer signed", extra={"offer_id": offer.id})
        return signature
