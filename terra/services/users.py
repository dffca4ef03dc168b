"""Admin moderation of user accounts."""
import logging
from typing import List
from uuid import UUID

from terra.db.models import User
from terra.db.repositories import UserRepository
from terra.exceptions import NotFound, ValidationError
from terra.schemas.models import UserSummary
from terra.services.access import Caller, require_admin

logger = logging.getLogger(__name__)


class UserModeration:
    """List accounts and enable or disable them.

    A disabled account keeps its listings and leads but can no longer call
    any authenticated endpoint.
    """

    def __init__(self, users: UserRepository):
        self.users = users

    async def list_users(self, caller: Caller) -> List[UserSummary]:
        require_admin(caller)
        rows = await self.users.list_with_property_counts()
        return [
            UserSummary.model_validate(user).model_copy(update={"property_count": count})
            for user, count in rows
        ]

    async def set_active(self, caller: Caller, user_id: UUID, is_active: bool) -> User:
        require_admin(caller)
        user = await self.users.get(user_id)
        if not user:
            raise NotFound("User not found")
        if user.id == caller.id and not is_active:
            raise ValidationError("Admins cannot disable their own account")

        user = await self.users.set_active(user, is_active)
        logger.info(f"User {user_id} {'enabled' if is_active else 'disabled'} by {caller.id}")
        return user
