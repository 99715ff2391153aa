"""
Offer status state machine.

WHAT: The single transition table for offer statuses and the function that
enforces it.

WHY: Status checks spread over route handlers drift apart (one endpoint
allows re-sending an accepted offer, another doesn't). Every status
change in the service layer goes through check_transition.

HOW: ALLOWED_TRANSITIONS maps each status to the set of statuses it may
move to. Terminal statuses map to the empty set.
"""

import logging
from typing import Dict, FrozenSet

from offercraft.core.exceptions import InvalidTransitionError
from offercraft.models.offer import Offer, OfferStatus, TERMINAL_STATUSES


logger = logging.getLogger(__name__)

# Pseudo target used when rejecting content edits
EDIT = "edit"

ALLOWED_TRANSITIONS: Dict[OfferStatus, FrozenSet[OfferStatus]] = {
    OfferStatus.DRAFT: frozenset(
        {OfferStatus.PENDING_APPROVAL, OfferStatus.SENT, OfferStatus.EXPIRED}
    ),
    OfferStatus.PENDING_APPROVAL: frozenset(
        {OfferStatus.DRAFT, OfferStatus.SENT, OfferStatus.EXPIRED}
    ),
    OfferStatus.SENT: frozenset(
        {
            OfferStatus.VIEWED,
            OfferStatus.ACCEPTED,
            OfferStatus.REJECTED,
            OfferStatus.EXPIRED,
        }
    ),
    OfferStatus.VIEWED: frozenset(
        {OfferStatus.ACCEPTED, OfferStatus.REJECTED, OfferStatus.EXPIRED}
    ),
    OfferStatus.ACCEPTED: frozenset(),
    OfferStatus.REJECTED: frozenset(),
    OfferStatus.WON: frozenset(),
    OfferStatus.LOST: frozenset(),
    OfferStatus.EXPIRED: frozenset(),
}


def is_terminal(status: OfferStatus) -> bool:
    """True if no transition leaves the status."""
    return status in TERMINAL_STATUSES


def can_transition(current: OfferStatus, target: OfferStatus) -> bool:
    """Check an edge against the transition table without raising."""
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def check_transition(current: OfferStatus, target: OfferStatus) -> None:
    """
    Validate a status change.

    Args:
        current: Current offer status
        target: Requested status

    Raises:
        InvalidTransitionError: If the edge is not in the transition table
    """
    if not can_transition(current, target):
        raise InvalidTransitionError(
            message=f"Cannot change offer status from {current.value} to {target.value}",
            current_state=current.value,
            requested_state=target.value,
        )


def check_editable(offer: Offer) -> None:
    """
    Validate that an offer's content may still change.

    Only DRAFT and PENDING_APPROVAL offers are editable; once sent, the
    client may be signing exactly this content.

    Raises:
        InvalidTransitionError: If the offer has already been sent
    """
    if not offer.is_editable:
        raise InvalidTransitionError(
            message=f"Offer in status {offer.status.value} can no longer be edited",
            current_state=offer.status.value,
            requested_state=EDIT,
        )


def apply_transition(offer: Offer, target: OfferStatus) -> OfferStatus:
    """
    Validate and apply a status change on an offer.

    WHY: Check first, mutate second, so a refused transition leaves the
    offer untouched. Timestamp side effects are set by the caller, which
    knows the context (send, view, sign, reject).

    Returns:
        The previous status
    """
    previous = offer.status
    check_transition(previous, target)
    offer.status = target
    logger.info(
        "Offer status changed",
        extra={"offer_id": offer.id, "from_status": previous.value, "to_status": target.value},
    )
    return previous
