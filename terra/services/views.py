"""Property view ingestion."""
import logging
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from terra.config import settings
from terra.db.models import PropertyView
from terra.db.repositories import PropertyRepository, PropertyViewRepository
from terra.exceptions import NotFound
from terra.services.clock import utcnow

logger = logging.getLogger(__name__)


class ViewIngestor:
    """Records property impressions into the append-only view log."""

    def __init__(
        self,
        properties: PropertyRepository,
        views: PropertyViewRepository,
        dedup_window_seconds: Optional[int] = None
    ):
        self.properties = properties
        self.views = views
        self.dedup_window_seconds = (
            settings.view_dedup_window_seconds
            if dedup_window_seconds is None else dedup_window_seconds
        )

    async def record_view(
        self,
        property_id: UUID,
        visitor_id: Optional[str] = None,
        user_id: Optional[UUID] = None,
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> UUID:
        """Append a view event and return its id.

        Raises:
            NotFound: the property does not exist
        """
        now = now or utcnow()
        if not await self.properties.get(property_id):
            raise NotFound("Property not found")

        visitor_id = visitor_id or None
        if visitor_id and self.dedup_window_seconds > 0:
            since = now - timedelta(seconds=self.dedup_window_seconds)
            previous = await self.views.find_since(property_id, visitor_id, since)
            if previous:
                logger.debug(f"Duplicate view of {property_id} by {visitor_id} within window")
                return previous.id

        view = await self.views.add(PropertyView(
            property_id=property_id,
            visitor_id=visitor_id,
            user_id=user_id or None,
            ip_address=ip or None,
            user_agent=user_agent or None,
            created_at=now
        ))
        return view.id

    async def record_view_quietly(self, property_id: UUID, **kwargs) -> Optional[UUID]:
        """Fire-and-forget variant: failures are logged, never raised."""
        try:
            return await self.record_view(property_id, **kwargs)
        except Exception as e:
            logger.warning(f"Error tracking view of {property_id}: {e}")
            return None
