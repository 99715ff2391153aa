"""Database package"""

from offercraft.db.session import AsyncSessionLocal, engine, get_db
from offercraft.db.transaction import atomic
from offercraft.models.base import Base

__all__ = ["Base", "AsyncSessionLocal", "engine", "get_db", "atomic"]
