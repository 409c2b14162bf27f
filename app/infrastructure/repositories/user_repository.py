"""
SQLAlchemy Implementation of User Repository.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_, update

from app.domain.models.user import Role, User
from app.domain.repositories.user_repository import UserRepository
from app.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemyUserRepository(SQLAlchemyRepository[User], UserRepository):
    """User repository implementation using SQLAlchemy."""

    def _active(self):
        return self.db.query(User).filter(User.is_deleted.is_(False))

    def get_by_email(self, email: str) -> Optional[User]:
        return self._active().filter(User.email == email).first()

    def find_conflicts(self, email: str, phone_number: str, identity_number: Optional[str] = None) -> List[User]:
        conditions = [User.email == email, User.phone_number == phone_number]
        if identity_number:
            conditions.append(User.identity_number == identity_number)
        return self._active().filter(or_(*conditions)).all()

    def identity_number_taken(self, identity_number: str, exclude_user_id: int) -> bool:
        return (
            self._active()
            .filter(User.identity_number == identity_number, User.id != exclude_user_id)
            .count()
            > 0
        )

    def get_by_refresh_token(self, refresh_token: str, now: datetime) -> Optional[User]:
        return (
            self._active()
            .filter(User.refresh_token == refresh_token, User.refresh_token_expiry > now)
            .first()
        )

    def replace_refresh_token(
        self, user_id: int, old_token: str, new_token: str, expiry: datetime, now: datetime
    ) -> bool:
        result = self.db.execute(
            update(User)
            .where(
                User.id == user_id,
                User.is_deleted.is_(False),
                User.refresh_token == old_token,
                User.refresh_token_expiry > now,
            )
            .values(refresh_token=new_token, refresh_token_expiry=expiry)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount == 1

    def set_refresh_token(self, user: User, token: str, expiry: datetime) -> User:
        return self.update(user, {"refresh_token": token, "refresh_token_expiry": expiry})

    def get_role(self, name: str) -> Optional[Role]:
        return self.db.query(Role).filter(Role.name == name).first()
