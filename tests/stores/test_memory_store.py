import pytest

from grantflow.models.errors import IdentityLinkConflictError, UnknownUserError
from grantflow.stores.memory import InMemoryUserStore


class TestInMemoryUserStore:
    def setup_method(self):
        self.store = InMemoryUserStore()

    async def test_lookup_miss(self):
        assert await self.store.lookup_user_by_credential("github", "1") is None

    async def test_create_and_lookup(self):
        # Act
        user = await self.store.create_user_with_credential(
            {"email": "a@b.com"}, "github", "1"
        )

        # Assert
        assert await self.store.lookup_user_by_credential("github", "1") == user
        assert await self.store.get_user(user.id) == user
        assert user.attributes == {"email": "a@b.com"}

    async def test_attributes_are_copied(self):
        attributes = {"email": "a@b.com"}
        user = await self.store.create_user_with_credential(attributes, "github", "1")

        attributes["email"] = "changed@b.com"

        assert user.attributes == {"email": "a@b.com"}

    async def test_duplicate_create_leaves_no_orphan_user(self):
        first = await self.store.create_user_with_credential({}, "github", "1")

        with pytest.raises(IdentityLinkConflictError):
            await self.store.create_user_with_credential({}, "github", "1")

        assert len(self.store._users) == 1
        assert await self.store.lookup_user_by_credential("github", "1") == first

    async def test_attach_credential(self):
        user = await self.store.create_user_with_credential({}, "github", "1")

        await self.store.attach_credential(user.id, "google", "x")

        assert await self.store.lookup_user_by_credential("google", "x") == user

    async def test_attach_to_unknown_user(self):
        with pytest.raises(UnknownUserError):
            await self.store.attach_credential("missing", "google", "x")

        assert await self.store.lookup_user_by_credential("google", "x") is None
