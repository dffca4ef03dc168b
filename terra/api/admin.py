"""Admin moderation endpoints for listings, leads and user accounts."""
import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from terra.api.deps import (
    get_listing_service, get_lifecycle, get_lead_router, get_user_moderation, require_admin
)
from terra.schemas.models import (
    PropertyResponse, ExpirationCommand, SweepResponse, MessageResponse,
    LeadCreate, LeadResponse, LeadDetail, UserResponse, UserSummary, UserStatusUpdate
)
from terra.services.access import Caller
from terra.services.clock import utcnow
from terra.services.leads import LeadRouter
from terra.services.lifecycle import ListingLifecycle
from terra.services.listings import ListingService
from terra.services.users import UserModeration

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/properties", response_model=List[PropertyResponse])
async def list_all_properties(
    caller: Caller = Depends(require_admin),
    listings: ListingService = Depends(get_listing_service)
):
    return await listings.list_all(caller)


@router.post("/properties/sweep", response_model=SweepResponse)
async def sweep_expired(
    caller: Caller = Depends(require_admin),
    lifecycle: ListingLifecycle = Depends(get_lifecycle)
):
    """Run an expiration sweep now instead of waiting for the next tick."""
    now = utcnow()
    expired = await lifecycle.sweep(now)
    logger.info(f"Manual sweep by {caller.id} expired {expired} listings")
    return SweepResponse(expired=expired, swept_at=now)


@router.post("/properties/{property_id}/expire", response_model=PropertyResponse)
async def modify_expiration(
    property_id: UUID,
    command: ExpirationCommand,
    caller: Caller = Depends(require_admin),
    lifecycle: ListingLifecycle = Depends(get_lifecycle)
):
    """Expire a listing now, or extend it by ``duration_days``."""
    if command.action == "expire":
        return await lifecycle.force_expire(caller, property_id, utcnow())
    return await lifecycle.renew(caller, property_id, utcnow(), command.duration_days)


@router.delete("/properties/{property_id}", response_model=MessageResponse)
async def delete_property(
    property_id: UUID,
    caller: Caller = Depends(require_admin),
    listings: ListingService = Depends(get_listing_service)
):
    await listings.delete_property(caller, property_id)
    return MessageResponse(message="Property deleted successfully")


@router.get("/leads", response_model=List[LeadDetail])
async def list_all_leads(
    caller: Caller = Depends(require_admin),
    leads: LeadRouter = Depends(get_lead_router)
):
    return await leads.list_leads(caller)


@router.post("/leads", response_model=LeadResponse, status_code=201)
async def create_manual_lead(
    data: LeadCreate,
    caller: Caller = Depends(require_admin),
    leads: LeadRouter = Depends(get_lead_router)
):
    """Enter a lead by hand; unrouted leads are assigned to the admin."""
    return await leads.create_lead(
        name=data.name,
        email=data.email,
        phone=data.phone,
        message=data.message,
        property_id=data.property_id,
        seller_id=data.seller_id,
        entered_by=caller,
        now=utcnow()
    )


@router.delete("/leads/{lead_id}", response_model=MessageResponse)
async def delete_lead(
    lead_id: UUID,
    caller: Caller = Depends(require_admin),
    leads: LeadRouter = Depends(get_lead_router)
):
    await leads.delete_lead(caller, lead_id)
    return MessageResponse(message="Lead deleted successfully")


@router.get("/users", response_model=List[UserSummary])
async def list_users(
    caller: Caller = Depends(require_admin),
    moderation: UserModeration = Depends(get_user_moderation)
):
    return await moderation.list_users(caller)


@router.patch("/users/{user_id}/status", response_model=UserResponse)
async def update_user_status(
    user_id: UUID,
    data: UserStatusUpdate,
    caller: Caller = Depends(require_admin),
    moderation: UserModeration = Depends(get_user_moderation)
):
    """Enable or disable an account; disabled users are refused on every authenticated route."""
    return await moderation.set_active(caller, user_id, data.is_active)
