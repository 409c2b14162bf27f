"""
SQLAlchemy Implementation of Restaurant Repository.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import or_

from app.domain.models.restaurant import Restaurant
from app.domain.models.user import User
from app.domain.repositories.restaurant_repository import RestaurantRepository
from app.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemyRestaurantRepository(SQLAlchemyRepository[Restaurant], RestaurantRepository):
    """Restaurant repository implementation using SQLAlchemy."""

    def get_by_owner(self, owner_id: int) -> Optional[Restaurant]:
        return (
            self.db.query(Restaurant)
            .filter(Restaurant.owner_id == owner_id, Restaurant.is_deleted.is_(False))
            .first()
        )

    def find_conflicts(self, name: str, email: str, phone_number: str) -> List[Restaurant]:
        return (
            self.db.query(Restaurant)
            .filter(
                Restaurant.is_deleted.is_(False),
                or_(
                    Restaurant.name == name,
                    Restaurant.email == email,
                    Restaurant.phone_number == phone_number,
                ),
            )
            .all()
        )

    def create_for_owner(self, owner: User, data: Dict[str, Any]) -> Restaurant:
        restaurant = Restaurant(owner_id=owner.id, **data)
        try:
            self.db.add(restaurant)
            self.db.flush()
            owner.restaurant_id = restaurant.id
            owner.is_new_user = False
            self.db.add(owner)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(restaurant)
        return restaurant
