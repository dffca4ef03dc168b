"""Caller identity and role-scoping rules shared by the services."""
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from terra.db.models import UserRole
from terra.exceptions import Forbidden

MANAGER_ROLES = (UserRole.SELLER, UserRole.AGENT, UserRole.ADMIN)


@dataclass(frozen=True)
class Caller:
    """Identity resolved by the authentication collaborator."""

    id: UUID
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def owns(self, owner_id: Optional[UUID]) -> bool:
        return owner_id is not None and owner_id == self.id


def require_manager(caller: Caller) -> None:
    if caller.role not in MANAGER_ROLES:
        raise Forbidden("Insufficient permissions")


def require_admin(caller: Caller) -> None:
    if not caller.is_admin:
        raise Forbidden("Admin access required")


def owner_scope(caller: Caller) -> Optional[UUID]:
    """Owner filter for scoped queries: None for admins, the caller otherwise."""
    require_manager(caller)
    return None if caller.is_admin else caller.id


def require_owner_or_admin(caller: Caller, owner_id: Optional[UUID]) -> None:
    if not (caller.is_admin or caller.owns(owner_id)):
        raise Forbidden("Access denied")
