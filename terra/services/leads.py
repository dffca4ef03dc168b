"""Lead capture and routing."""
import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from terra.db.models import Lead, LeadStatus, UserRole
from terra.db.repositories import LeadRepository, PropertyRepository, UserRepository
from terra.exceptions import NotFound, ValidationError
from terra.schemas.models import LeadDetail
from terra.services.access import Caller, MANAGER_ROLES, owner_scope, require_admin, require_owner_or_admin
from terra.services.clock import utcnow

logger = logging.getLogger(__name__)


class LeadRouter:
    """Routes inquiries to the seller who owns the listing."""

    def __init__(
        self,
        leads: LeadRepository,
        properties: PropertyRepository,
        users: UserRepository
    ):
        self.leads = leads
        self.properties = properties
        self.users = users

    async def _resolve_seller(
        self,
        property_id: Optional[UUID],
        seller_id: Optional[UUID],
        entered_by: Optional[Caller]
    ) -> tuple[Optional[UUID], Optional[UUID]]:
        """Pick the recipient: explicit seller, then listing owner, then whoever entered the lead by hand.

        Returns the (property_id, seller_id) to store; an unknown property is
        dropped so the lead becomes a general inquiry.
        """
        if seller_id:
            seller = await self.users.get(seller_id)
            if seller is None or UserRole(seller.role) not in MANAGER_ROLES:
                logger.warning(f"Lead references {seller_id}, which is not a seller, agent or admin; ignoring it")
                seller_id = None

        if property_id:
            prop = await self.properties.get(property_id)
            if prop is None:
                logger.info(f"Lead references unknown property {property_id}, storing as general inquiry")
                property_id = None
            elif not seller_id:
                seller_id = prop.owner_id

        if not seller_id and entered_by and entered_by.role in MANAGER_ROLES:
            seller_id = entered_by.id

        return property_id, seller_id

    async def create_lead(
        self,
        name: Optional[str],
        email: Optional[str],
        phone: Optional[str] = None,
        message: Optional[str] = None,
        property_id: Optional[UUID] = None,
        seller_id: Optional[UUID] = None,
        entered_by: Optional[Caller] = None,
        now: Optional[datetime] = None
    ) -> Lead:
        """
        Capture an inquiry with status NEW.

        Args:
            entered_by: the seller, agent or admin keying in a lead by hand;
                unrouted manual leads are assigned to them. Public
                submissions never set it.

        Raises:
            ValidationError: name or email missing
        """
        name = (name or "").strip()
        email = (email or "").strip()
        if not name or not email:
            raise ValidationError("Name and email are required")

        property_id, seller_id = await self._resolve_seller(property_id, seller_id, entered_by)

        lead = await self.leads.add(Lead(
            name=name,
            email=email,
            phone=phone or None,
            message=message or None,
            property_id=property_id,
            seller_id=seller_id,
            status=LeadStatus.NEW.value,
            created_at=now or utcnow()
        ))
        logger.info(f"Created lead {lead.id} routed to seller {seller_id}")
        return lead

    async def list_leads(self, caller: Caller) -> List[LeadDetail]:
        rows = await self.leads.list_with_details(owner_scope(caller))
        return [
            LeadDetail.model_validate(lead).model_copy(update={
                "property_title": title,
                "property_location": location,
                "seller_name": seller_name
            })
            for lead, title, location, seller_name in rows
        ]

    async def _get(self, lead_id: UUID) -> Lead:
        lead = await self.leads.get(lead_id)
        if not lead:
            raise NotFound("Lead not found")
        return lead

    async def update_status(self, caller: Caller, lead_id: UUID, new_status: str) -> Lead:
        lead = await self._get(lead_id)
        require_owner_or_admin(caller, lead.seller_id)
        try:
            status = LeadStatus(new_status)
        except ValueError:
            allowed = ", ".join(s.value for s in LeadStatus)
            raise ValidationError(f"Status must be one of: {allowed}") from None

        lead.status = status.value
        lead = await self.leads.save(lead)
        logger.info(f"Lead {lead_id} moved to {status.value} by {caller.id}")
        return lead

    async def delete_lead(self, caller: Caller, lead_id: UUID) -> None:
        require_admin(caller)
        lead = await self._get(lead_id)
        await self.leads.delete(lead)
        logger.info(f"Lead {lead_id} deleted by {caller.id}")
