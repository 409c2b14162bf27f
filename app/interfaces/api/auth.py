"""Auth API routes — signup, login, token refresh, verification and onboarding."""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status

from app.application.services.auth_service import AuthService
from app.application.services.email_verification_service import EmailVerificationService
from app.application.services.identity_service import normalize_phone
from app.application.services.otp_service import OtpService
from app.core.exceptions import AuthError, ValidationError
from app.core.integrity import require_integrity
from app.domain.models.user import User
from app.domain.schemas.auth import (
    AuthResult,
    CheckUserRequest,
    LoginRequest,
    RefreshTokenRequest,
    SignupRequest,
    TokenPair,
    UserRead,
)
from app.domain.schemas.common import ApiResponse
from app.domain.schemas.restaurant import RestaurantCreate, RestaurantRead
from app.domain.schemas.verification import OtpVerificationRequest, SendOtpRequest, VerifyEmailRequest
from app.interfaces.api.deps import get_current_user
from app.interfaces.deps import get_auth_service, get_email_verification_service, get_otp_service

router = APIRouter(prefix="/api/auth", tags=["Auth"], dependencies=[Depends(require_integrity)])


@router.post("/Signup", response_model=ApiResponse[AuthResult], status_code=status.HTTP_201_CREATED)
def signup(body: SignupRequest, service: AuthService = Depends(get_auth_service)):
    result = service.signup(body)
    return ApiResponse(message="User created successfully", data=result)


@router.post("/Login", response_model=ApiResponse[AuthResult])
def login(body: LoginRequest, service: AuthService = Depends(get_auth_service)):
    result = service.login(body.email, body.password)
    return ApiResponse(message="Login successful", data=result)


@router.api_route("/RefreshToken", methods=["GET", "POST"], response_model=ApiResponse[TokenPair])
def refresh_token(
    refresh_token_param: Optional[str] = Query(default=None, alias="refreshToken"),
    body: Optional[RefreshTokenRequest] = Body(default=None),
    service: AuthService = Depends(get_auth_service),
):
    token = body.refresh_token if body is not None else refresh_token_param
    if not token:
        raise AuthError("Refresh token is invalid or expired", status.HTTP_401_UNAUTHORIZED)
    return ApiResponse(message="Token refreshed", data=service.refresh(token))


@router.get("/Me", response_model=ApiResponse[UserRead])
def get_me(user: User = Depends(get_current_user)):
    return ApiResponse(message="OK", data=UserRead.model_validate(user))


@router.post("/CheckUser", response_model=ApiResponse[UserRead])
async def check_user(
    body: CheckUserRequest,
    user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    user = await service.check_user(user, body)
    return ApiResponse(message="Identity number verified successfully", data=UserRead.model_validate(user))


@router.post("/SaveRestaurant", response_model=ApiResponse[RestaurantRead], status_code=status.HTTP_201_CREATED)
async def save_restaurant(
    body: RestaurantCreate,
    user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    restaurant = await service.save_restaurant(user, body)
    return ApiResponse(message="Restaurant saved and sent for review", data=RestaurantRead.model_validate(restaurant))


@router.post("/SendConfirmationEmail", response_model=ApiResponse[None])
async def send_confirmation_email(
    user: User = Depends(get_current_user),
    service: EmailVerificationService = Depends(get_email_verification_service),
):
    await service.send(user)
    return ApiResponse(message="Verification email sent")


@router.post("/VerifyEmail", response_model=ApiResponse[None])
def verify_email(
    body: VerifyEmailRequest,
    user: User = Depends(get_current_user),
    service: EmailVerificationService = Depends(get_email_verification_service),
):
    service.verify(user, body.code)
    return ApiResponse(message="Email verified successfully")


@router.post("/SendOtpCode", response_model=ApiResponse[dict])
async def send_otp_code(
    body: Optional[SendOtpRequest] = Body(default=None),
    user: User = Depends(get_current_user),
    service: OtpService = Depends(get_otp_service),
):
    phone_number = user.phone_number
    if body is not None and body.phone_number and normalize_phone(body.phone_number) != phone_number:
        raise ValidationError(details=["Phone number does not match the registered number"])
    data = await service.send(user.id, phone_number)
    return ApiResponse(message="Code sent", data=data)


@router.post("/OtpVerification", response_model=ApiResponse[None])
def otp_verification(
    body: OtpVerificationRequest,
    user: User = Depends(get_current_user),
    service: OtpService = Depends(get_otp_service),
):
    service.verify(user.id, body.otp_code)
    return ApiResponse(message="Code verified")
