"""Listing management around the lifecycle core."""
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from uuid import UUID

from terra.config import settings
from terra.db.models import Property
from terra.db.repositories import PropertyRepository
from terra.exceptions import NotFound, ValidationError
from terra.schemas.models import PropertyCreate, PropertyUpdate
from terra.services.access import Caller, require_admin, require_manager, require_owner_or_admin

logger = logging.getLogger(__name__)


class ListingService:
    """Create, browse, edit and delete listings."""

    def __init__(self, properties: PropertyRepository):
        self.properties = properties

    async def create_property(self, caller: Caller, data: PropertyCreate, now: datetime) -> Property:
        require_manager(caller)
        if not data.title or data.price_kes is None:
            raise ValidationError("Missing required fields: title, price")

        duration = data.duration_days or settings.default_listing_duration_days
        fields = data.model_dump(exclude={"duration_days"})
        fields["category"] = data.category.value
        fields["transaction_type"] = data.transaction_type.value

        prop = await self.properties.add(Property(
            owner_id=caller.id,
            is_active=True,
            duration_days=duration,
            expires_at=now + timedelta(days=duration),
            created_at=now,
            updated_at=now,
            **fields
        ))
        logger.info(f"Created property {prop.id} for {caller.id}, expires {prop.expires_at.isoformat()}")
        return prop

    async def get_property(self, property_id: UUID) -> Property:
        prop = await self.properties.get(property_id)
        if not prop:
            raise NotFound("Property not found")
        return prop

    async def update_property(
        self,
        caller: Caller,
        property_id: UUID,
        data: PropertyUpdate,
        now: datetime
    ) -> Property:
        """Apply a partial update; a new duration restarts the expiry clock from ``now``."""
        prop = await self.get_property(property_id)
        require_owner_or_admin(caller, prop.owner_id)

        changes = data.model_dump(exclude_unset=True, exclude={"duration_days"})
        if "title" in changes and not changes["title"]:
            raise ValidationError("Title cannot be empty")
        if "price_kes" in changes and changes["price_kes"] is None:
            raise ValidationError("Price cannot be empty")
        for key, value in changes.items():
            setattr(prop, key, value.value if isinstance(value, Enum) else value)

        if data.duration_days:
            prop.duration_days = data.duration_days
            prop.expires_at = now + timedelta(days=data.duration_days)
        prop.updated_at = now

        return await self.properties.save(prop)

    async def delete_property(self, caller: Caller, property_id: UUID) -> None:
        prop = await self.get_property(property_id)
        require_owner_or_admin(caller, prop.owner_id)
        await self.properties.delete(prop)
        logger.info(f"Property {property_id} deleted by {caller.id}")

    async def list_active(
        self,
        category: Optional[str] = None,
        transaction_type: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None
    ) -> List[Property]:
        return await self.properties.list_active(category, transaction_type, min_price, max_price)

    async def list_owned(self, caller: Caller) -> List[Property]:
        require_manager(caller)
        return await self.properties.list_by_owner(caller.id)

    async def list_all(self, caller: Caller) -> List[Property]:
        require_admin(caller)
        return await self.properties.list_by_owner(None)
