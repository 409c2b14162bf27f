"""
User Repository Interface.
Defines identity and token lookups for Users.
"""

from datetime import datetime
from typing import List, Optional

from app.domain.repositories.base import BaseRepository
from app.domain.models.user import Role, User


class UserRepository(BaseRepository[User]):
    """Interface for User-specific operations."""

    def get_by_email(self, email: str) -> Optional[User]:
        """Get a non-deleted user by email."""
        ...

    def find_conflicts(self, email: str, phone_number: str, identity_number: Optional[str] = None) -> List[User]:
        """Non-deleted users sharing any of the given unique fields, in one query."""
        ...

    def identity_number_taken(self, identity_number: str, exclude_user_id: int) -> bool:
        """Whether another non-deleted user holds this identity number."""
        ...

    def get_by_refresh_token(self, refresh_token: str, now: datetime) -> Optional[User]:
        """Non-deleted user holding this refresh token with an unexpired expiry."""
        ...

    def replace_refresh_token(
        self, user_id: int, old_token: str, new_token: str, expiry: datetime, now: datetime
    ) -> bool:
        """Atomically swap the refresh token if the old one is still current and unexpired."""
        ...

    def set_refresh_token(self, user: User, token: str, expiry: datetime) -> User:
        """Store a freshly issued refresh token."""
        ...

    def get_role(self, name: str) -> Optional[Role]:
        """Get a role by name."""
        ...
