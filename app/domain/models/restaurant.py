"""Restaurant domain model — maps to the 'restaurants' table."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index, Text
from sqlalchemy.sql import func

from app.infrastructure.database import Base


class Restaurant(Base):
    __tablename__ = "restaurants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    phone_number = Column(String(20), nullable=False)
    address = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    confirmation_status = Column(String(20), nullable=False, default="Pending")
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Restaurant {self.name}>"


for _column in (Restaurant.owner_id, Restaurant.name, Restaurant.email, Restaurant.phone_number):
    Index(
        f"uq_restaurants_{_column.key}_active",
        _column,
        unique=True,
        postgresql_where=~Restaurant.is_deleted,
        sqlite_where=~Restaurant.is_deleted,
    )
