"""User administration routes (approval gate)."""

from fastapi import APIRouter, Depends

from app.application.services.auth_service import AuthService
from app.domain.models.user import User
from app.domain.schemas.auth import ConfirmationStatusRequest, UserRead
from app.domain.schemas.common import ApiResponse
from app.interfaces.api.deps import require_admin
from app.interfaces.deps import get_auth_service

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.post("/{user_id}/ConfirmationStatus", response_model=ApiResponse[UserRead])
def set_confirmation_status(
    user_id: int,
    body: ConfirmationStatusRequest,
    admin: User = Depends(require_admin),
    service: AuthService = Depends(get_auth_service),
):
    user = service.set_confirmation_status(user_id, body.status)
    return ApiResponse(message="Confirmation status updated", data=UserRead.model_validate(user))
