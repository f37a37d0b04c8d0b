"""Provider identity models and the host user store contract."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

UserT = TypeVar("UserT")


@dataclass(frozen=True)
class ProviderIdentity:
    """A remote account: the provider and the user id it assigned."""

    provider_id: str
    provider_user_id: str

    @property
    def key_id(self) -> str:
        """Credential key identifier stored by the host, e.g. ``github:123``."""
        return f"{self.provider_id}:{self.provider_user_id}"


class UserStore(Protocol[UserT]):
    """Host-side user and credential persistence.

    Implemented by the host application. All three operations must be atomic
    with respect to concurrent callers racing on the same
    (provider_id, provider_user_id) pair. Backend failures should be raised
    as ``IdentityLookupError``; they reach the caller unchanged.
    """

    async def lookup_user_by_credential(
        self, provider_id: str, provider_user_id: str
    ) -> UserT | None:
        """Return the user linked to the pair, or None."""
        ...

    async def create_user_with_credential(
        self,
        attributes: Mapping[str, Any],
        provider_id: str,
        provider_user_id: str,
    ) -> UserT:
        """Create a user and its credential key in one atomic step.

        Raises:
            IdentityLinkConflictError: If the pair is already linked
        """
        ...

    async def attach_credential(
        self, user_id: str, provider_id: str, provider_user_id: str
    ) -> None:
        """Link the pair to an existing user.

        Raises:
            IdentityLinkConflictError: If the pair is already linked
            UnknownUserError: If the user does not exist
        """
        ...

