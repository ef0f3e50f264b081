"""User directory mapping stored ids to identity handles."""

from __future__ import annotations

from typing import Any

import structlog

from buildblame.changes.models import Identity
from buildblame.exceptions import IdentityResolutionError

logger = structlog.get_logger()


class UserDirectory:
    """In-memory identity store returning one handle per user id.

    Parameters
    ----------
    auto_create:
        When true, unknown ids are registered on first lookup.
    """

    def __init__(self, auto_create: bool = True) -> None:
        self._auto_create = auto_create
        self._users: dict[str, Identity] = {}
        logger.info("user_directory.initialized", auto_create=auto_create)

    def register(self, user_id: str, full_name: str = "", email: str = "") -> Identity:
        user_id = self._normalize(user_id)
        identity = Identity(id=user_id, full_name=full_name, email=email)
        self._users[user_id] = identity
        logger.info("user_directory.user_registered", user_id=user_id)
        return identity

    def get(self, user_id: str) -> Identity | None:
        return self._users.get(user_id.strip())

    def resolve(self, user_id: str) -> Identity:
        """Return the handle for ``user_id``, creating it when allowed."""
        user_id = self._normalize(user_id)
        identity = self._users.get(user_id)
        if identity is not None:
            return identity
        if not self._auto_create:
            raise IdentityResolutionError(
                f"Unknown user {user_id!r}",
                extra={"user_id": user_id},
            )
        return self.register(user_id)

    def list_users(self) -> list[Identity]:
        return sorted(self._users.values(), key=lambda u: u.id)

    def get_stats(self) -> dict[str, Any]:
        return {
            "total_users": len(self._users),
            "auto_create": self._auto_create,
        }

    @staticmethod
    def _normalize(user_id: str) -> str:
        cleaned = (user_id or "").strip()
        if not cleaned:
            raise IdentityResolutionError("User id must not be blank")
        return cleaned
