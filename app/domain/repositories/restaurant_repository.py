"""
Restaurant Repository Interface.
"""

from typing import Any, Dict, List, Optional

from app.domain.repositories.base import BaseRepository
from app.domain.models.restaurant import Restaurant
from app.domain.models.user import User


class RestaurantRepository(BaseRepository[Restaurant]):
    """Interface for Restaurant-specific operations."""

    def get_by_owner(self, owner_id: int) -> Optional[Restaurant]:
        """Non-deleted restaurant owned by the user."""
        ...

    def find_conflicts(self, name: str, email: str, phone_number: str) -> List[Restaurant]:
        """Non-deleted restaurants sharing name, email or phone."""
        ...

    def create_for_owner(self, owner: User, data: Dict[str, Any]) -> Restaurant:
        """Create the restaurant and link it to its owner in one transaction."""
        ...
