"""Links a provider identity to a user in the host application's store."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Generic

from grantflow.models.errors import IdentityLinkConflictError
from grantflow.models.identity import ProviderIdentity, UserStore, UserT

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderUserAuth(Generic[UserT]):
    """Result of looking up a provider identity in the host store.

    ``existing_user`` is the linked user, or None. ``create_user`` and
    ``create_key`` both refuse to act on an already linked identity and
    raise ``IdentityLinkConflictError`` instead of doing nothing.
    """

    provider_id: str
    provider_user_id: str
    store: UserStore[UserT] = field(repr=False)
    existing_user: UserT | None = None

    @property
    def identity(self) -> ProviderIdentity:
        return ProviderIdentity(self.provider_id, self.provider_user_id)

    def _ensure_unlinked(self) -> None:
        # The store still checks under its own lock for links made after lookup
        if self.existing_user is not None:
            raise IdentityLinkConflictError(
                f"{self.identity.key_id} is already linked to a user",
                provider_id=self.provider_id,
                provider_user_id=self.provider_user_id,
            )

    async def create_user(self, attributes: Mapping[str, Any]) -> UserT:
        """Create a host user bound to this provider identity.

        User and credential key are created atomically by the store.

        Raises:
            IdentityLinkConflictError: If the identity is already linked
        """
        self._ensure_unlinked()
        user = await self.store.create_user_with_credential(
            attributes, self.provider_id, self.provider_user_id
        )
        logger.info(f"Created user for {self.identity.key_id}")
        return user

    async def create_key(self, user_id: str) -> None:
        """Attach this provider identity to an existing host user.

        Raises:
            IdentityLinkConflictError: If the identity is already linked
            UnknownUserError: If the store has no such user
        """
        self._ensure_unlinked()
        await self.store.attach_credential(
            user_id, self.provider_id, self.provider_user_id
        )
        logger.info(f"Linked {self.identity.key_id} to user {user_id}")


async def provider_user_auth(
    store: UserStore[UserT], provider_id: str, provider_user_id: str
) -> ProviderUserAuth[UserT]:
    """Look up which host user, if any, a provider identity belongs to.

    Args:
        store: Host user store
        provider_id: Provider name, e.g. ``"github"``
        provider_user_id: User id assigned by the provider

    Returns:
        ProviderUserAuth exposing the existing user and link operations

    Raises:
        IdentityLookupError: Store failures, propagated unchanged
    """
    if not provider_id or not provider_user_id:
        raise ValueError("provider_id and provider_user_id must not be empty")

    existing_user = await store.lookup_user_by_credential(
        provider_id, provider_user_id
    )

    logger.debug(
        f"Credential lookup for {provider_id}:{provider_user_id}: "
        f"{'found' if existing_user is not None else 'not found'}"
    )

    return ProviderUserAuth(
        provider_id=provider_id,
        provider_user_id=provider_user_id,
        store=store,
        existing_user=existing_user,
    )
