"""Access/refresh JWT pairs and single-use refresh rotation."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from fastapi import status
from jose import JWTError, jwt

from app.config import get_settings
from app.core.clock import Clock, utc_now
from app.core.exceptions import AuthError
from app.domain.models.user import User
from app.domain.repositories.user_repository import UserRepository
from app.domain.schemas.auth import TokenPair

settings = get_settings()
logger = structlog.get_logger(__name__)

ACCESS = "access"
REFRESH = "refresh"
INVALID_REFRESH_TOKEN = "Refresh token is invalid or expired"


class TokenService:

    def __init__(self, users: UserRepository, clock: Clock = utc_now):
        self.users = users
        self.clock = clock
        self.access_ttl = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRATION_MINUTES)
        self.refresh_ttl = timedelta(days=settings.REFRESH_TOKEN_EXPIRATION_DAYS)

    def _encode(self, user_id: int, email: str, kind: str, secret: str, ttl: timedelta) -> str:
        expire = self.clock().replace(tzinfo=timezone.utc) + ttl
        claims = {
            "id": user_id,
            "email": email,
            "type": kind,
            "jti": uuid.uuid4().hex,
            "exp": expire,
        }
        return jwt.encode(claims, secret, algorithm=settings.JWT_ALGORITHM)

    def issue(self, user_id: int, email: str) -> TokenPair:
        return TokenPair(
            access_token=self._encode(user_id, email, ACCESS, settings.ACCESS_TOKEN_SECRET, self.access_ttl),
            refresh_token=self._encode(user_id, email, REFRESH, settings.REFRESH_TOKEN_SECRET, self.refresh_ttl),
        )

    def refresh_expiry(self) -> datetime:
        return self.clock() + self.refresh_ttl

    def rotate(self, user: User) -> TokenPair:
        """Issue a pair for the user and store its refresh token, replacing any previous one."""
        pair = self.issue(user.id, user.email)
        self.users.set_refresh_token(user, pair.refresh_token, self.refresh_expiry())
        return pair

    def refresh(self, refresh_token: str) -> TokenPair:
        """Exchange a refresh token for a new pair. The old token stops working."""
        payload = _decode(refresh_token, settings.REFRESH_TOKEN_SECRET, REFRESH)
        now = self.clock()
        user = self.users.get_by_refresh_token(refresh_token, now) if payload else None
        if user is None:
            raise AuthError(INVALID_REFRESH_TOKEN, status.HTTP_401_UNAUTHORIZED)

        pair = self.issue(user.id, user.email)
        if not self.users.replace_refresh_token(user.id, refresh_token, pair.refresh_token, self.refresh_expiry(), now):
            # Another request rotated this token first
            logger.warning("Refresh token rotation lost race", user_id=user.id)
            raise AuthError(INVALID_REFRESH_TOKEN, status.HTTP_401_UNAUTHORIZED)

        logger.info("Refresh token rotated", user_id=user.id)
        return pair


def _decode(token: str, secret: str, kind: str) -> Optional[dict]:
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != kind:
        return None
    return payload


def decode_access_token(token: str) -> Optional[dict]:
    return _decode(token, settings.ACCESS_TOKEN_SECRET, ACCESS)
