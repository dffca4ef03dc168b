"""Engagement analytics over the property view log.

Every query is computed fresh from the log and scoped to the caller: sellers
and agents see their own listings, admins see everything.

``unique_visitors`` counts distinct visitor ids over the whole lifetime of the
scope, while the view counts are windowed. The asymmetry is kept on purpose.
"""
import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from terra.config import settings
from terra.db.repositories import PropertyRepository, PropertyViewRepository
from terra.exceptions import NotFound
from terra.schemas.models import (
    OverviewStats, TopProperty, RecentView, DashboardResponse,
    DailyCount, PropertyTimeSeries
)
from terra.services.access import Caller, owner_scope, require_manager, require_owner_or_admin
from terra.services.clock import start_of_day, start_of_month, trailing_days

logger = logging.getLogger(__name__)

HISTOGRAM_DAYS = 7


class AnalyticsService:
    """Read-only aggregator; takes no locks and keeps no rollups."""

    def __init__(self, properties: PropertyRepository, views: PropertyViewRepository):
        self.properties = properties
        self.views = views

    async def overview(self, caller: Caller, now: datetime) -> OverviewStats:
        scope = owner_scope(caller)
        logger.debug(f"Computing overview for {caller.role.value} {caller.id}")
        return OverviewStats(
            total_views=await self.views.count(scope),
            today_views=await self.views.count(scope, since=start_of_day(now)),
            week_views=await self.views.count(scope, since=now - timedelta(days=7)),
            month_views=await self.views.count(scope, since=start_of_month(now)),
            unique_visitors=await self.views.count_unique_visitors(scope),
            total_properties=await self.properties.count(scope)
        )

    async def top_properties(self, caller: Caller, n: Optional[int] = None) -> List[TopProperty]:
        """Most viewed listings, ties broken by property id; unviewed ones are left out."""
        scope = owner_scope(caller)
        rows = await self.views.top_properties(scope, settings.top_properties_limit if n is None else n)
        return [
            TopProperty(
                id=prop.id,
                title=prop.title,
                location=prop.location,
                cover_image=prop.images[0] if prop.images else None,
                images=prop.images or [],
                view_count=count
            )
            for prop, count in rows
        ]

    async def recent_activity(self, caller: Caller, n: Optional[int] = None) -> List[RecentView]:
        scope = owner_scope(caller)
        rows = await self.views.recent(scope, settings.recent_activity_limit if n is None else n)
        return [
            RecentView(
                id=view.id,
                property_id=view.property_id,
                property_title=title,
                property_location=location,
                visitor_id=view.visitor_id,
                viewed_at=view.created_at
            )
            for view, title, location in rows
        ]

    async def dashboard(self, caller: Caller, now: datetime) -> DashboardResponse:
        return DashboardResponse(
            overview=await self.overview(caller, now),
            top_properties=await self.top_properties(caller),
            recent_views=await self.recent_activity(caller)
        )

    async def property_time_series(
        self,
        caller: Caller,
        property_id: UUID,
        now: datetime
    ) -> PropertyTimeSeries:
        """Lifetime total plus a zero-filled daily histogram for the trailing week."""
        require_manager(caller)
        prop = await self.properties.get(property_id)
        if not prop:
            raise NotFound("Property not found")
        require_owner_or_admin(caller, prop.owner_id)

        days = trailing_days(now, HISTOGRAM_DAYS)
        since = datetime.combine(days[0], datetime.min.time())
        per_day = Counter(
            ts.date() for ts in await self.views.timestamps_for_property(property_id, since)
        )
        breakdown = [DailyCount(date=day, count=per_day.get(day, 0)) for day in days]

        return PropertyTimeSeries(
            property_id=property_id,
            total_views=await self.views.count_for_property(property_id),
            weekly_views=sum(bucket.count for bucket in breakdown),
            daily_breakdown=breakdown,
            is_active=prop.is_active,
            expires_at=prop.expires_at
        )
