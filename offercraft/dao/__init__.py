"""
Data Access Object (DAO) package.

WHY: DAOs provide a clean separation between database operations and business logic,
making the codebase more testable and maintainable.
"""

from offercraft.dao.base import BaseDAO
from offercraft.dao.client import ClientDAO
from offercraft.dao.offer import OfferDAO
from offercraft.dao.offer_version import OfferVersionDAO
from offercraft.dao.offer_sequence import OfferNumberSequenceDAO
from offercraft.dao.offer_template import OfferTemplateDAO
from offercraft.dao.article_template import ArticleTemplateDAO
from offercraft.dao.payment import PaymentMilestoneDAO
from offercraft.dao.activity import OfferActivityDAO
from offercraft.dao.signature import SignatureDAO

__all__ = [
    "BaseDAO",
    "ClientDAO",
    "OfferDAO",
    "OfferVersionDAO",
    "OfferNumberSequenceDAO",
    "OfferTemplateDAO",
    "ArticleTemplateDAO",
    "PaymentMilestoneDAO",
    "OfferActivityDAO",
    "SignatureDAO",
]
