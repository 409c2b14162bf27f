"""User domain model — maps to the 'users' table."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index, Table, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.infrastructure.database import Base

user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
)


class ConfirmationStatus:
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), unique=True, nullable=False)
    description = Column(String(255), nullable=True)

    def __repr__(self):
        return f"<Role {self.name}>"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone_number = Column(String(20), nullable=False)
    identity_number = Column(String(11), nullable=True)
    year_of_birth = Column(Integer, nullable=False)
    password_hash = Column(String(255), nullable=False)

    # Verification lifecycle
    email_verified = Column(Boolean, nullable=False, default=False)
    phone_verified = Column(Boolean, nullable=False, default=False)
    identity_checked = Column(Boolean, nullable=False, default=False)
    confirmation_status = Column(String(20), nullable=False, default=ConfirmationStatus.PENDING)
    is_new_user = Column(Boolean, nullable=False, default=True)

    restaurant_id = Column(Integer, nullable=True)

    refresh_token = Column(Text, nullable=True)
    refresh_token_expiry = Column(DateTime, nullable=True)
    last_login_date = Column(DateTime, nullable=True)

    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    roles = relationship("Role", secondary=user_roles, lazy="selectin")

    @property
    def role_names(self) -> list[str]:
        return [role.name for role in self.roles]

    def __repr__(self):
        return f"<User {self.email}>"


# Identifiers are unique among live users only; a soft-deleted user frees them
for _column in (User.email, User.phone_number, User.identity_number):
    Index(
        f"uq_users_{_column.key}_active",
        _column,
        unique=True,
        postgresql_where=~User.is_deleted,
        sqlite_where=~User.is_deleted,
    )
