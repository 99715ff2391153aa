"""
Savepoint helper for multi-step mutations.

WHY: Services flush several statements per operation (tree replacement,
activity rows, counters). Running them inside one SAVEPOINT means a
failure part-way leaves the request transaction exactly as it was before
the operation started.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from offercraft.core.exceptions import PersistenceError


logger = logging.getLogger(__name__)


@asynccontextmanager
async def atomic(session: AsyncSession, operation: str) -> AsyncIterator[None]:
    """
    Run a block inside a savepoint.

    Application exceptions roll the savepoint back and propagate unchanged;
    database errors are wrapped in PersistenceError.

    Usage:
        async with atomic(self.session, "restore offer"):
            ...
    """
    try:
        async with session.begin_nested():
            yield
    except SQLAlchemyError as e:
        logger.error(f"Database error during {operation}: {e}", extra={"operation": operation})
        raise PersistenceError(message=f"Could not {operation}", operation=operation) from e
