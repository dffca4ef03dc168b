"""Listing lifecycle: expiration sweeps, forced expiry and renewal."""
import asyncio
import logging
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from terra.config import settings
from terra.db.models import Property
from terra.db.repositories import PropertyRepository
from terra.exceptions import NotFound, ValidationError, TransientStorageError
from terra.services.access import Caller, require_admin, require_owner_or_admin
from terra.services.clock import Clock, utcnow

logger = logging.getLogger(__name__)


class ListingLifecycle:
    """Keeps ``is_active`` consistent with ``expires_at``.

    Active -> Expired through ``sweep`` or ``force_expire``;
    Expired -> Active through ``renew``.
    """

    def __init__(self, properties: PropertyRepository):
        self.properties = properties

    async def sweep(self, now: datetime) -> int:
        """Deactivate every active listing whose expiry is before ``now``."""
        expired = await self.properties.expire_overdue(now)
        if expired:
            logger.info(f"Auto-expired {expired} listings at {now.isoformat()}")
        return expired

    async def _get(self, property_id: UUID) -> Property:
        prop = await self.properties.get(property_id)
        if not prop:
            raise NotFound("Property not found")
        return prop

    async def force_expire(self, caller: Caller, property_id: UUID, now: datetime) -> Property:
        require_admin(caller)
        prop = await self._get(property_id)
        prop.is_active = False
        prop.expires_at = now
        prop = await self.properties.save(prop)
        logger.info(f"Property {property_id} force-expired by {caller.id}")
        return prop

    async def renew(
        self,
        caller: Caller,
        property_id: UUID,
        now: datetime,
        duration_days: Optional[int] = None
    ) -> Property:
        """Reactivate a listing for ``duration_days`` from ``now``.

        Without an explicit duration the listing's stored duration is reused.
        """
        prop = await self._get(property_id)
        require_owner_or_admin(caller, prop.owner_id)

        if duration_days is not None:
            days = duration_days
        else:
            days = prop.duration_days or settings.default_listing_duration_days
        if days <= 0:
            raise ValidationError("duration_days must be positive")

        prop.is_active = True
        prop.duration_days = days
        prop.expires_at = now + timedelta(days=days)
        prop = await self.properties.save(prop)
        logger.info(f"Property {property_id} renewed for {days} days until {prop.expires_at.isoformat()}")
        return prop


class ExpirationJob:
    """Periodic driver for ``ListingLifecycle.sweep``.

    Sweeps once on ``start`` and then every ``interval`` seconds, each tick in
    its own session. A failed tick is logged and retried at the next one.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        interval: Optional[float] = None,
        clock: Clock = utcnow
    ):
        self._session_factory = session_factory
        self.interval = interval if interval is not None else settings.expiration_interval_seconds
        self._clock = clock
        self._task: Optional[asyncio.Task] = None

    async def run_once(self, now: Optional[datetime] = None) -> int:
        now = now or self._clock()
        try:
            async with self._session_factory() as session:
                return await ListingLifecycle(PropertyRepository(session)).sweep(now)
        except TransientStorageError as e:
            logger.error(f"Error running expiration job: {e}")
            return 0
        except Exception as e:
            logger.exception(f"Unexpected error running expiration job: {e}")
            return 0

    async def _loop(self):
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval)

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._loop())
            logger.info(f"Expiration job started (interval {self.interval}s)")
        return self._task

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Expiration job stopped")

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()
