"""
URL Registry Service

This service owns the mapping between original URLs and short identifiers:
- Create-or-reuse: one identifier per distinct URL
- Sequential assignment: identifiers are 1, 2, 3, ... in creation order
- Resolution: identifier back to the stored URL

Design Decisions:
- The next id is max(short_id) + 1. Nothing is ever deleted, so this equals
  count + 1, but it also never hands out an id that already exists
- Assignment runs under the instance-wide assignment lock
- Unique indexes on short_id and original_url catch writers in other
  processes; a conflict rolls back and the whole step is retried
- Storage failures are logged with full detail and surfaced as DatabaseError
"""

import asyncio
import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shorturl.core.exceptions import DatabaseError, ShortIdNotFoundError
from shorturl.core.lock_manager import get_assignment_lock
from shorturl.core.setting import settings
from shorturl.core.validators import MAX_SHORT_ID, ValidUrl
from shorturl.db.models import UrlMapping

logger = logging.getLogger(__name__)


class UrlRegistry:
    """
    Persistence-facing registry of URL mappings.

    Only this class assigns short identifiers. It expects URLs that already
    passed UrlValidator.
    """

    def __init__(
        self,
        session: AsyncSession,
        assignment_lock: Optional[asyncio.Lock] = None,
        max_retries: Optional[int] = None,
    ):
        """
        Initialize the registry.

        Args:
            session: Database session
            assignment_lock: Lock serializing id assignment (default: the
                instance-wide lock from lock_manager)
            max_retries: Attempts made when another writer claims the same
                id (default: settings.ID_ASSIGNMENT_MAX_RETRIES)
        """
        self.session = session
        self.assignment_lock = assignment_lock or get_assignment_lock()
        self.max_retries = (
            max_retries if max_retries is not None else settings.ID_ASSIGNMENT_MAX_RETRIES
        )

    async def _storage_error(self, action: str, error: Exception) -> DatabaseError:
        await self.session.rollback()
        logger.error(f"Failed to {action}: {error}", exc_info=True)
        return DatabaseError(f"Failed to {action}", original_error=error)

    async def get_by_url(self, original_url: str) -> Optional[UrlMapping]:
        """
        Find the mapping for an exact original URL.

        Returns:
            UrlMapping if found, None otherwise
        """
        statement = select(UrlMapping).where(UrlMapping.original_url == original_url).limit(1)
        result = await self.session.execute(statement)
        return result.scalars().first()

    async def get_by_short_id(self, short_id: int) -> Optional[UrlMapping]:
        statement = select(UrlMapping).where(UrlMapping.short_id == short_id)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def count(self) -> int:
        """
        Total number of mappings ever created.

        Raises:
            DatabaseError: If the store is unavailable
        """
        try:
            result = await self.session.execute(select(func.count(UrlMapping.id)))
            return result.scalar() or 0
        except SQLAlchemyError as e:
            raise await self._storage_error("count URL mappings", e)

    async def _next_short_id(self) -> int:
        result = await self.session.execute(select(func.max(UrlMapping.short_id)))
        return (result.scalar() or 0) + 1

    async def create_or_get(self, url: ValidUrl) -> UrlMapping:
        """
        Return the mapping for a URL, creating it if the URL is new.

        Re-submitting a known URL returns the stored mapping unchanged and
        consumes no identifier.

        Args:
            url: A URL approved by UrlValidator

        Returns:
            The existing or newly created UrlMapping

        Raises:
            DatabaseError: If the store is unavailable, a write fails, or the
                id could not be claimed within max_retries attempts
        """
        try:
            existing = await self.get_by_url(url)
        except SQLAlchemyError as e:
            raise await self._storage_error("look up URL mapping", e)
        if existing:
            return existing

        async with self.assignment_lock:
            for attempt in range(1, self.max_retries + 1):
                try:
                    # Another request may have stored the URL while we waited
                    existing = await self.get_by_url(url)
                    if existing:
                        return existing

                    short_id = await self._next_short_id()
                    mapping = UrlMapping(original_url=url, short_id=short_id)

                    self.session.add(mapping)
                    await self.session.flush()
                    await self.session.commit()

                    logger.info(f"Created short id {short_id} for {url}")
                    return mapping

                except IntegrityError:
                    # A writer in another process claimed the id or the URL
                    await self.session.rollback()
                    logger.warning(
                        f"Short id assignment conflict for {url} "
                        f"(attempt {attempt}/{self.max_retries}), retrying"
                    )
                except SQLAlchemyError as e:
                    raise await self._storage_error("create URL mapping", e)

        logger.error(f"Gave up assigning a short id for {url} after {self.max_retries} attempts")
        raise DatabaseError(
            f"Failed to assign a short id after {self.max_retries} attempts"
        )

    async def resolve(self, short_id: int) -> ValidUrl:
        """
        Look up the original URL for a short identifier.

        Raises:
            ShortIdNotFoundError: If no mapping has this identifier
            DatabaseError: If the store is unavailable
        """
        if short_id > MAX_SHORT_ID:
            # No stored id can be this large
            raise ShortIdNotFoundError(short_id)

        try:
            mapping = await self.get_by_short_id(short_id)
        except SQLAlchemyError as e:
            raise await self._storage_error("resolve short id", e)

        if mapping is None:
            raise ShortIdNotFoundError(short_id)
        return ValidUrl(mapping.original_url)
