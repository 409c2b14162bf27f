"""Pydantic schemas for Restaurant onboarding."""

from datetime import datetime
from typing import Optional

from app.domain.schemas.common import CamelModel


class RestaurantCreate(CamelModel):
    name: str
    email: str
    phone_number: str
    address: Optional[str] = None
    description: Optional[str] = None


class RestaurantRead(CamelModel):
    id: int
    owner_id: int
    name: str
    email: str
    phone_number: str
    address: Optional[str] = None
    description: Optional[str] = None
    confirmation_status: str
    created_at: Optional[datetime] = None
