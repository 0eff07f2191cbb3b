"""
academia/services/transaction.py
Commit-or-rollback helper for multi-row writes
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from academia.errors import ErrorCode, conflict_from_integrity

logger = logging.getLogger(__name__)


@asynccontextmanager
async def atomic(
    db: AsyncSession,
    conflict_message: str = "Resource already exists",
    conflict_code: str = ErrorCode.CONFLICT,
) -> AsyncIterator[AsyncSession]:
    """
    Commit everything staged inside the block as one transaction.

    Any exception rolls the whole block back. A uniqueness violation raised
    by the database is re-raised as a 409 so a lost race looks the same to
    the caller as a failed pre-check.
    """
    try:
        yield db
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise conflict_from_integrity(e, conflict_message, conflict_code)
    except BaseException:
        await db.rollback()
        raise
