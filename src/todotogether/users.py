"""Identity registry: owns users and the uniqueness of their ids."""

import logging
import re

from .exceptions import DuplicateUserIdError, InvalidUserIdError, UserNotFoundError
from .models import User

logger = logging.getLogger(__name__)

_VALID_ID = re.compile(r"[a-z0-9]+")


def normalize_user_id(user_id: str) -> str:
    """
    Normalize a user id for consistent matching.

    Args:
        user_id: The raw user id

    Returns:
        Normalized id (lowercase)
    """
    return user_id.lower()


class UserRegistry:
    """Registry of all users, keyed by normalized id."""

    def __init__(self, users: list[User] | None = None):
        """Initialize the registry, optionally with already known users."""
        self._users: dict[str, User] = {}
        for user in users or []:
            self._users[user.id] = user

    def create(self, user_id: str, name: str | None = None) -> User:
        """
        Register a new user.

        Args:
            user_id: Preferred id, only ASCII letters and digits (stored lowercase)
            name: Display name (defaults to the id as given)

        Returns:
            The new user

        Raises:
            InvalidUserIdError: If the id is empty or not alphanumeric
            DuplicateUserIdError: If the id is already used (case-insensitive)
        """
        normalized = normalize_user_id(user_id)
        if not _VALID_ID.fullmatch(normalized):
            raise InvalidUserIdError(user_id)
        if normalized in self._users:
            raise DuplicateUserIdError(user_id)

        user = User(id=normalized, name=user_id if name is None else name)
        self._users[normalized] = user

        logger.info(f"Created user '{normalized}'")
        return user

    def get(self, user_id: str) -> User:
        """Get a user by id (case-insensitive)."""
        user = self._users.get(normalize_user_id(user_id))
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def exists(self, user_id: str) -> bool:
        """Check if a user with this id exists."""
        return normalize_user_id(user_id) in self._users

    def delete(self, user_id: str) -> None:
        """Delete a user by id."""
        normalized = normalize_user_id(user_id)
        if self._users.pop(normalized, None) is None:
            raise UserNotFoundError(normalized)
        logger.info(f"Deleted user '{normalized}'")

    def rename(self, user_id: str, name: str) -> User:
        """Change the display name of a user."""
        user = self.get(user_id)
        user.name = name
        return user

    def list_all(self) -> list[User]:
        """List all users in registration order."""
        return list(self._users.values())

    def __len__(self) -> int:
        return len(self._users)
