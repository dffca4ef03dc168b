"""Lead capture and seller inbox endpoints."""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from terra.api.deps import get_lead_router, require_manager
from terra.schemas.models import LeadCreate, LeadResponse, LeadDetail, LeadStatusUpdate
from terra.services.access import Caller
from terra.services.clock import utcnow
from terra.services.leads import LeadRouter

router = APIRouter(prefix="/api/leads", tags=["leads"])


@router.post("", response_model=LeadResponse, status_code=201)
async def create_lead(
    data: LeadCreate,
    leads: LeadRouter = Depends(get_lead_router)
):
    """Submit an inquiry from a property or contact form (public)."""
    return await leads.create_lead(
        name=data.name,
        email=data.email,
        phone=data.phone,
        message=data.message,
        property_id=data.property_id,
        seller_id=data.seller_id,
        now=utcnow()
    )


@router.get("", response_model=List[LeadDetail])
async def list_leads(
    caller: Caller = Depends(require_manager),
    leads: LeadRouter = Depends(get_lead_router)
):
    """Leads routed to the caller, or every lead for admins."""
    return await leads.list_leads(caller)


@router.patch("/{lead_id}/status", response_model=LeadResponse)
async def update_lead_status(
    lead_id: UUID,
    data: LeadStatusUpdate,
    caller: Caller = Depends(require_manager),
    leads: LeadRouter = Depends(get_lead_router)
):
    return await leads.update_status(caller, lead_id, data.status)
