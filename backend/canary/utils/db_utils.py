"""Database utility functions."""
import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import OperationalError, InterfaceError
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

T = TypeVar('T')

TRANSIENT_ERRORS = (
    "database is locked",
    "connection refused",
    "connection reset",
    "connection closed",
    "server closed",
    "timeout",
    "too many clients",
)


def is_transient(error: Exception) -> bool:
    """Whether a driver error is worth retrying."""
    error_str = str(error).lower()
    return any(msg in error_str for msg in TRANSIENT_ERRORS)


async def retry_on_lock(
    session: AsyncSession,
    work: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay: float = 0.1,
) -> T:
    """Run a unit of work and commit it, retrying transient errors with exponential backoff.
    
    SQLite raises "database is locked" when a writer outlives the busy timeout;
    PostgreSQL can drop connections under load. The session is rolled back
    before each retry, so ``work`` must re-issue all of its statements.
    
    Args:
        session: Session the work runs in
        work: Async callable issuing the statements; its result is returned
        max_retries: Maximum number of attempts
        base_delay: Base delay in seconds (doubles with each retry)
        
    Raises:
        OperationalError: If all retries fail or the error is not transient
    """
    for attempt in range(max_retries):
        try:
            result = await work()
            await session.commit()
            return result
        except (OperationalError, InterfaceError) as e:
            await session.rollback()
            if not is_transient(e) or attempt == max_retries - 1:
                raise
            delay = base_delay * (2 ** attempt)
            logger.warning(f"Database transient error, retrying in {delay}s (attempt {attempt + 1}/{max_retries})")
            await asyncio.sleep(delay)
    raise RuntimeError("retry_on_lock called with max_retries < 1")
