"""Listing endpoints for the public browse and the seller dashboard."""
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Query, Request

from terra.api.deps import get_listing_service, get_lifecycle, get_view_ingestor, require_manager
from terra.db.models import PropertyCategory, TransactionType
from terra.schemas.models import (
    PropertyCreate, PropertyUpdate, PropertyResponse, RenewRequest, MessageResponse
)
from terra.services.access import Caller
from terra.services.clock import utcnow
from terra.services.lifecycle import ListingLifecycle
from terra.services.listings import ListingService
from terra.services.views import ViewIngestor

router = APIRouter(prefix="/api", tags=["properties"])


@router.get("/properties", response_model=List[PropertyResponse])
async def list_properties(
    category: Optional[PropertyCategory] = Query(None),
    transaction_type: Optional[TransactionType] = Query(None),
    min_price: Optional[Decimal] = Query(None),
    max_price: Optional[Decimal] = Query(None),
    listings: ListingService = Depends(get_listing_service)
):
    """Browse active listings."""
    return await listings.list_active(
        category=category.value if category else None,
        transaction_type=transaction_type.value if transaction_type else None,
        min_price=min_price,
        max_price=max_price
    )


@router.get("/properties/{property_id}", response_model=PropertyResponse)
async def get_property(
    property_id: UUID,
    request: Request,
    x_visitor_id: Optional[str] = Header(None),
    listings: ListingService = Depends(get_listing_service),
    ingestor: ViewIngestor = Depends(get_view_ingestor)
):
    """Get one listing; a request carrying a visitor id also counts as a view."""
    prop = PropertyResponse.model_validate(await listings.get_property(property_id))
    if x_visitor_id:
        await ingestor.record_view_quietly(
            property_id,
            visitor_id=x_visitor_id,
            ip=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent")
        )
    return prop


@router.get("/users/properties", response_model=List[PropertyResponse])
async def list_my_properties(
    caller: Caller = Depends(require_manager),
    listings: ListingService = Depends(get_listing_service)
):
    return await listings.list_owned(caller)


@router.post("/users/properties", response_model=PropertyResponse, status_code=201)
async def create_property(
    data: PropertyCreate,
    caller: Caller = Depends(require_manager),
    listings: ListingService = Depends(get_listing_service)
):
    return await listings.create_property(caller, data, utcnow())


@router.put("/users/properties/{property_id}", response_model=PropertyResponse)
async def update_property(
    property_id: UUID,
    data: PropertyUpdate,
    caller: Caller = Depends(require_manager),
    listings: ListingService = Depends(get_listing_service)
):
    return await listings.update_property(caller, property_id, data, utcnow())


@router.delete("/users/properties/{property_id}", response_model=MessageResponse)
async def delete_property(
    property_id: UUID,
    caller: Caller = Depends(require_manager),
    listings: ListingService = Depends(get_listing_service)
):
    await listings.delete_property(caller, property_id)
    return MessageResponse(message="Property deleted successfully")


@router.post("/users/properties/{property_id}/renew", response_model=PropertyResponse)
async def renew_property(
    property_id: UUID,
    data: RenewRequest,
    caller: Caller = Depends(require_manager),
    lifecycle: ListingLifecycle = Depends(get_lifecycle)
):
    """Reactivate an expired or expiring listing."""
    return await lifecycle.renew(caller, property_id, utcnow(), data.duration_days)
