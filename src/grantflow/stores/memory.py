"""In-memory user store.

Reference implementation of the ``UserStore`` protocol, suitable for tests
and single-process applications. Data is lost when the process exits.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from grantflow.models.errors import IdentityLinkConflictError, UnknownUserError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class User:
    id: str
    attributes: Mapping[str, Any] = field(default_factory=dict)


class InMemoryUserStore:
    """Thread-unsafe, asyncio-safe user and credential store.

    A single lock serializes the check-then-write in every mutating call,
    so concurrent coroutines racing on the same provider identity see
    exactly one winner.
    """

    def __init__(self) -> None:
        self._users: dict[str, User] = {}
        self._keys: dict[tuple[str, str], str] = {}
        self._lock = asyncio.Lock()

    async def lookup_user_by_credential(
        self, provider_id: str, provider_user_id: str
    ) -> User | None:
        async with self._lock:
            user_id = self._keys.get((provider_id, provider_user_id))
            return self._users.get(user_id) if user_id else None

    async def create_user_with_credential(
        self,
        attributes: Mapping[str, Any],
        provider_id: str,
        provider_user_id: str,
    ) -> User:
        async with self._lock:
            self._ensure_unlinked(provider_id, provider_user_id)

            user = User(id=uuid.uuid4().hex, attributes=dict(attributes))
            self._users[user.id] = user
            self._keys[(provider_id, provider_user_id)] = user.id

            logger.debug(
                f"Stored user {user.id} with key {provider_id}:{provider_user_id}"
            )
            return user

    async def attach_credential(
        self, user_id: str, provider_id: str, provider_user_id: str
    ) -> None:
        async with self._lock:
            if user_id not in self._users:
                raise UnknownUserError(f"No user with id {user_id}")
            self._ensure_unlinked(provider_id, provider_user_id)

            self._keys[(provider_id, provider_user_id)] = user_id

    async def get_user(self, user_id: str) -> User | None:
        async with self._lock:
            return self._users.get(user_id)

    def _ensure_unlinked(self, provider_id: str, provider_user_id: str) -> None:
        # Caller holds the lock
        if (provider_id, provider_user_id) in self._keys:
            raise IdentityLinkConflictError(
                f"Credential {provider_id}:{provider_user_id} is already linked",
                provider_id=provider_id,
                provider_user_id=provider_user_id,
            )
