"""Repositories over an ``AsyncSession``.

Services depend on these classes rather than on the session directly. Every
``SQLAlchemyError`` is translated into ``TransientStorageError`` so that no
driver or ORM detail crosses the service boundary.
"""
import logging
from datetime import datetime
from decimal import Decimal
from functools import wraps
from typing import Any, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, update, delete, func, distinct
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from terra.db.models import Property, PropertyView, Lead, User
from terra.exceptions import TransientStorageError

logger = logging.getLogger(__name__)


def storage_errors(func):
    """Roll back and re-raise storage failures as ``TransientStorageError``."""
    @wraps(func)
    async def wrapper(self, *args, **kwargs):
        try:
            return await func(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(f"Storage failure in {func.__qualname__}: {e}")
            await self.session.rollback()
            raise TransientStorageError("Storage temporarily unavailable") from e
    return wrapper


class _Repository:
    def __init__(self, session: AsyncSession):
        self.session = session


class UserRepository(_Repository):

    @storage_errors
    async def get(self, user_id: UUID) -> Optional[User]:
        return await self.session.get(User, user_id)

    @storage_errors
    async def add(self, user: User) -> User:
        self.session.add(user)
        await self.session.commit()
        await self.session.refresh(user)
        return user

    @storage_errors
    async def list_with_property_counts(self) -> List[Tuple[User, int]]:
        """Every user, newest first, with the number of listings they own."""
        property_count = func.count(Property.id).label("property_count")
        result = await self.session.execute(
            select(User, property_count)
            .outerjoin(Property, Property.owner_id == User.id)
            .group_by(User.id)
            .order_by(User.created_at.desc(), User.id.asc())
        )
        return [(row[0], row[1]) for row in result.all()]

    @storage_errors
    async def set_active(self, user: User, is_active: bool) -> User:
        user.is_active = is_active
        await self.session.commit()
        await self.session.refresh(user)
        return user


class PropertyRepository(_Repository):

    @storage_errors
    async def get(self, property_id: UUID) -> Optional[Property]:
        return await self.session.get(Property, property_id)

    @storage_errors
    async def add(self, prop: Property) -> Property:
        self.session.add(prop)
        await self.session.commit()
        await self.session.refresh(prop)
        return prop

    @storage_errors
    async def save(self, prop: Property) -> Property:
        await self.session.commit()
        await self.session.refresh(prop)
        return prop

    @storage_errors
    async def delete(self, prop: Property) -> None:
        """Remove a property with its view log, detaching any leads."""
        await self.session.execute(
            delete(PropertyView).where(PropertyView.property_id == prop.id)
        )
        await self.session.execute(
            update(Lead).where(Lead.property_id == prop.id).values(property_id=None)
        )
        await self.session.delete(prop)
        await self.session.commit()

    @storage_errors
    async def expire_overdue(self, now: datetime) -> int:
        """Flip every active property whose expiry is before ``now``."""
        result = await self.session.execute(
            update(Property)
            .where(Property.is_active.is_(True), Property.expires_at < now)
            .values(is_active=False)
        )
        await self.session.commit()
        return result.rowcount or 0

    @storage_errors
    async def list_active(
        self,
        category: Optional[str] = None,
        transaction_type: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None
    ) -> List[Property]:
        stmt = select(Property).where(Property.is_active.is_(True))
        if category:
            stmt = stmt.where(Property.category == category)
        if transaction_type:
            stmt = stmt.where(Property.transaction_type == transaction_type)
        if min_price is not None:
            stmt = stmt.where(Property.price_kes >= min_price)
        if max_price is not None:
            stmt = stmt.where(Property.price_kes <= max_price)
        result = await self.session.execute(stmt.order_by(Property.created_at.desc()))
        return list(result.scalars().all())

    @storage_errors
    async def list_by_owner(self, owner_id: Optional[UUID]) -> List[Property]:
        """Properties of one owner, or all of them when ``owner_id`` is None."""
        stmt = select(Property)
        if owner_id is not None:
            stmt = stmt.where(Property.owner_id == owner_id)
        result = await self.session.execute(stmt.order_by(Property.created_at.desc()))
        return list(result.scalars().all())

    @storage_errors
    async def count(self, owner_id: Optional[UUID]) -> int:
        stmt = select(func.count(Property.id))
        if owner_id is not None:
            stmt = stmt.where(Property.owner_id == owner_id)
        return (await self.session.execute(stmt)).scalar_one()


class PropertyViewRepository(_Repository):
    """Append-only view log plus the scoped aggregate queries over it.

    ``owner_id=None`` means unrestricted; views are always joined to their
    property so orphaned rows never count.
    """

    def _scoped(self, stmt, owner_id: Optional[UUID]):
        stmt = stmt.join(Property, Property.id == PropertyView.property_id)
        if owner_id is not None:
            stmt = stmt.where(Property.owner_id == owner_id)
        return stmt

    @storage_errors
    async def add(self, view: PropertyView) -> PropertyView:
        self.session.add(view)
        await self.session.commit()
        await self.session.refresh(view)
        return view

    @storage_errors
    async def find_since(
        self,
        property_id: UUID,
        visitor_id: str,
        since: datetime
    ) -> Optional[PropertyView]:
        result = await self.session.execute(
            select(PropertyView)
            .where(
                PropertyView.property_id == property_id,
                PropertyView.visitor_id == visitor_id,
                PropertyView.created_at >= since
            )
            .order_by(PropertyView.created_at.desc())
            .limit(1)
        )
        return result.scalars().first()

    @storage_errors
    async def count(self, owner_id: Optional[UUID], since: Optional[datetime] = None) -> int:
        stmt = self._scoped(select(func.count(PropertyView.id)), owner_id)
        if since is not None:
            stmt = stmt.where(PropertyView.created_at >= since)
        return (await self.session.execute(stmt)).scalar_one()

    @storage_errors
    async def count_unique_visitors(self, owner_id: Optional[UUID]) -> int:
        stmt = self._scoped(
            select(func.count(distinct(PropertyView.visitor_id))), owner_id
        ).where(PropertyView.visitor_id.is_not(None))
        return (await self.session.execute(stmt)).scalar_one()

    @storage_errors
    async def top_properties(self, owner_id: Optional[UUID], limit: int) -> List[Tuple[Property, int]]:
        view_count = func.count(PropertyView.id).label("view_count")
        stmt = (
            self._scoped(select(Property, view_count), owner_id)
            .group_by(Property.id)
            .order_by(view_count.desc(), Property.id.asc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]

    @storage_errors
    async def recent(self, owner_id: Optional[UUID], limit: int) -> List[Any]:
        stmt = (
            self._scoped(select(PropertyView, Property.title, Property.location), owner_id)
            .order_by(PropertyView.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.all())

    @storage_errors
    async def count_for_property(self, property_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count(PropertyView.id)).where(PropertyView.property_id == property_id)
        )
        return result.scalar_one()

    @storage_errors
    async def timestamps_for_property(self, property_id: UUID, since: datetime) -> List[datetime]:
        result = await self.session.execute(
            select(PropertyView.created_at)
            .where(PropertyView.property_id == property_id, PropertyView.created_at >= since)
            .order_by(PropertyView.created_at.asc())
        )
        return list(result.scalars().all())


class LeadRepository(_Repository):

    @storage_errors
    async def get(self, lead_id: UUID) -> Optional[Lead]:
        return await self.session.get(Lead, lead_id)

    @storage_errors
    async def add(self, lead: Lead) -> Lead:
        self.session.add(lead)
        await self.session.commit()
        await self.session.refresh(lead)
        return lead

    @storage_errors
    async def save(self, lead: Lead) -> Lead:
        await self.session.commit()
        await self.session.refresh(lead)
        return lead

    @storage_errors
    async def delete(self, lead: Lead) -> None:
        await self.session.delete(lead)
        await self.session.commit()

    @storage_errors
    async def list_with_details(self, seller_id: Optional[UUID]) -> List[Any]:
        """Leads newest first with property title/location and seller name."""
        stmt = (
            select(Lead, Property.title, Property.location, User.name)
            .outerjoin(Property, Property.id == Lead.property_id)
            .outerjoin(User, User.id == Lead.seller_id)
        )
        if seller_id is not None:
            stmt = stmt.where(Lead.seller_id == seller_id)
        result = await self.session.execute(stmt.order_by(Lead.created_at.desc()))
        return list(result.all())
