"""View tracking and engagement analytics endpoints."""
import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response

from terra.api.deps import get_analytics, get_view_ingestor, require_manager
from terra.exceptions import TransientStorageError
from terra.schemas.models import (
    ViewEvent, TrackResponse, DashboardResponse, TopProperty, RecentView, PropertyTimeSeries
)
from terra.services.access import Caller
from terra.services.analytics import AnalyticsService
from terra.services.clock import utcnow
from terra.services.views import ViewIngestor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.post("/track", response_model=TrackResponse, status_code=201)
async def track_view(
    event: ViewEvent,
    request: Request,
    response: Response,
    ingestor: ViewIngestor = Depends(get_view_ingestor)
):
    """Record a property impression (public)."""
    try:
        view_id = await ingestor.record_view(
            event.property_id,
            visitor_id=event.visitor_id,
            user_id=event.user_id,
            ip=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent")
        )
    except TransientStorageError as e:
        logger.error(f"Error tracking view: {e}")
        response.status_code = 202
        return TrackResponse(success=False)
    return TrackResponse(success=True, view_id=view_id)


@router.get("/overview", response_model=DashboardResponse)
async def get_overview(
    caller: Caller = Depends(require_manager),
    analytics: AnalyticsService = Depends(get_analytics)
):
    """Overview counts, most viewed listings and the latest views."""
    return await analytics.dashboard(caller, utcnow())


@router.get("/top", response_model=List[TopProperty])
async def get_top_properties(
    limit: Optional[int] = Query(None, ge=1, le=100),
    caller: Caller = Depends(require_manager),
    analytics: AnalyticsService = Depends(get_analytics)
):
    return await analytics.top_properties(caller, limit)


@router.get("/recent", response_model=List[RecentView])
async def get_recent_activity(
    limit: Optional[int] = Query(None, ge=1, le=100),
    caller: Caller = Depends(require_manager),
    analytics: AnalyticsService = Depends(get_analytics)
):
    return await analytics.recent_activity(caller, limit)


@router.get("/property/{property_id}", response_model=PropertyTimeSeries)
async def get_property_analytics(
    property_id: UUID,
    caller: Caller = Depends(require_manager),
    analytics: AnalyticsService = Depends(get_analytics)
):
    """Lifetime views and a seven day breakdown for one listing."""
    return await analytics.property_time_series(caller, property_id, utcnow())
