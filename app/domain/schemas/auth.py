"""Pydantic schemas for User and Auth."""

from datetime import datetime
from typing import Optional

from app.domain.schemas.common import CamelModel


class SignupRequest(CamelModel):
    first_name: str
    last_name: str
    email: str
    phone_number: str
    password: str
    year_of_birth: int
    identity_number: Optional[str] = None


class UserRead(CamelModel):
    id: int
    first_name: str
    last_name: str
    email: str
    phone_number: str
    year_of_birth: int
    identity_number: Optional[str] = None
    email_verified: bool
    phone_verified: bool
    identity_checked: bool
    confirmation_status: str
    is_new_user: bool
    restaurant_id: Optional[int] = None
    role_names: list[str] = []
    last_login_date: Optional[datetime] = None
    created_at: Optional[datetime] = None


class LoginRequest(CamelModel):
    email: str
    password: str


class RefreshTokenRequest(CamelModel):
    refresh_token: str


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AuthResult(CamelModel):
    user: UserRead
    tokens: TokenPair
    roles: list[str] = []


class CheckUserRequest(CamelModel):
    identity_number: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    year_of_birth: Optional[int] = None


class ConfirmationStatusRequest(CamelModel):
    status: str
