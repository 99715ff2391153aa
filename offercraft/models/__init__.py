"""
Database models package.

WHY: Centralizing model imports ensures Alembic can discover all models
for migration generation and makes it easier to import models elsewhere.
"""

from offercraft.models.base import Base, TimestampMixin, PrimaryKeyMixin, JSONType
from offercraft.models.tenant import Tenant
from offercraft.models.user import User, UserRole
from offercraft.models.client import Client, ClientStatus
from offercraft.models.offer import (
    Offer,
    OfferSection,
    Article,
    OfferStatus,
    TERMINAL_STATUSES,
    EDITABLE_STATUSES,
)
from offercraft.models.offer_version import OfferVersion
from offercraft.models.signature import Signature
from offercraft.models.activity import OfferActivity, OfferActivityType
from offercraft.models.offer_sequence import OfferNumberSequence
from offercraft.models.offer_template import OfferTemplate
from offercraft.models.article_template import ArticleTemplate
from offercraft.models.payment import PaymentMilestone, PaymentStatus

__all__ = [
    "Base",
    "TimestampMixin",
    "PrimaryKeyMixin",
    "JSONType",
    "Tenant",
    "User",
    "UserRole",
    "Client",
    "ClientStatus",
    "Offer",
    "OfferSection",
    "Article",
    "OfferStatus",
    "TERMINAL_STATUSES",
    "EDITABLE_STATUSES",
    "OfferVersion",
    "Signature",
    "OfferActivity",
    "OfferActivityType",
    "OfferNumberSequence",
    "OfferTemplate",
    "ArticleTemplate",
    "PaymentMilestone",
    "PaymentStatus",
]
