"""Request dependencies: caller identity and per-request services."""
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from terra.db.models import UserRole
from terra.db.repositories import (
    UserRepository, PropertyRepository, PropertyViewRepository, LeadRepository
)
from terra.db.session import get_db
from terra.services.access import Caller
from terra.services.analytics import AnalyticsService
from terra.services.leads import LeadRouter
from terra.services.lifecycle import ListingLifecycle
from terra.services.listings import ListingService
from terra.services.users import UserModeration
from terra.services.views import ViewIngestor


async def get_optional_caller(
    x_user_id: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> Optional[Caller]:
    """Identity forwarded by the authentication gateway, if any."""
    if not x_user_id:
        return None
    try:
        user_id = UUID(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid user identity")
    user = await UserRepository(db).get(user_id)
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return Caller(id=user.id, role=UserRole(user.role))


async def get_caller(caller: Optional[Caller] = Depends(get_optional_caller)) -> Caller:
    if caller is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return caller


def require_roles(*roles: UserRole):
    async def dependency(caller: Caller = Depends(get_caller)) -> Caller:
        if caller.role not in roles:
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return caller
    return dependency


require_manager = require_roles(UserRole.SELLER, UserRole.AGENT, UserRole.ADMIN)
require_admin = require_roles(UserRole.ADMIN)


def get_listing_service(db: AsyncSession = Depends(get_db)) -> ListingService:
    return ListingService(PropertyRepository(db))


def get_lifecycle(db: AsyncSession = Depends(get_db)) -> ListingLifecycle:
    return ListingLifecycle(PropertyRepository(db))


def get_view_ingestor(db: AsyncSession = Depends(get_db)) -> ViewIngestor:
    return ViewIngestor(PropertyRepository(db), PropertyViewRepository(db))


def get_analytics(db: AsyncSession = Depends(get_db)) -> AnalyticsService:
    return AnalyticsService(PropertyRepository(db), PropertyViewRepository(db))


def get_lead_router(db: AsyncSession = Depends(get_db)) -> LeadRouter:
    return LeadRouter(LeadRepository(db), PropertyRepository(db), UserRepository(db))


def get_user_moderation(db: AsyncSession = Depends(get_db)) -> UserModeration:
    return UserModeration(UserRepository(db))
