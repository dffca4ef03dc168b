"""Tests for admin moderation of user accounts."""
import uuid

import pytest

from terra.db.repositories import UserRepository
from terra.exceptions import Forbidden, NotFound, ValidationError
from terra.services.users import UserModeration

from conftest import as_caller


@pytest.fixture
def moderation(test_db) -> UserModeration:
    return UserModeration(UserRepository(test_db))


@pytest.mark.asyncio
class TestUserModeration:
    """Tests for UserModeration."""

    async def test_list_users(self, moderation, seller, admin, make_property):
        await make_property(seller)

        users = await moderation.list_users(as_caller(admin))

        by_id = {u.id: u for u in users}
        assert by_id[seller.id].property_count == 1
        assert by_id[seller.id].name == "Sarah Seller"
        assert by_id[admin.id].property_count == 0

    async def test_list_users_requires_admin(self, moderation, seller):
        with pytest.raises(Forbidden):
            await moderation.list_users(as_caller(seller))

    async def test_disable_and_enable(self, moderation, seller, admin):
        disabled = await moderation.set_active(as_caller(admin), seller.id, False)
        assert disabled.is_active is False

        enabled = await moderation.set_active(as_caller(admin), seller.id, True)
        assert enabled.is_active is True

    async def test_set_active_requires_admin(self, moderation, seller, other_seller):
        with pytest.raises(Forbidden):
            await moderation.set_active(as_caller(seller), other_seller.id, False)

    async def test_unknown_user(self, moderation, admin):
        with pytest.raises(NotFound):
            await moderation.set_active(as_caller(admin), uuid.uuid4(), False)

    async def test_admin_cannot_disable_self(self, moderation, admin):
        with pytest.raises(ValidationError):
            await moderation.set_active(as_caller(admin), admin.id, False)
