"""JWT auth dependencies."""

from fastapi import Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.application.services.token_service import decode_access_token
from app.core.exceptions import AuthError, ForbiddenError
from app.domain.models.user import User
from app.domain.repositories.user_repository import UserRepository
from app.interfaces.deps import get_user_repository

security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    users: UserRepository = Depends(get_user_repository),
) -> User:
    """Extract and validate the current user from the access token."""
    payload = decode_access_token(credentials.credentials) if credentials else None
    user_id = payload.get("id") if payload else None
    user = users.get_by_id(user_id) if user_id is not None else None

    if user is None:
        raise AuthError("Token is invalid or expired", status.HTTP_401_UNAUTHORIZED)
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    """Require the ADMIN role."""
    if "ADMIN" not in user.role_names:
        raise ForbiddenError("Only administrators can access this resource")
    return user
