"""
API Dependencies — repositories, provider clients and services.
Tests replace the provider and clock factories through app.dependency_overrides.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from app.application.services.auth_service import AuthService
from app.application.services.email_verification_service import EmailVerificationService
from app.application.services.notification_service import NotificationService
from app.application.services.otp_service import OtpService
from app.application.services.token_service import TokenService
from app.core.clock import Clock, utc_now
from app.domain.models.restaurant import Restaurant
from app.domain.models.user import User
from app.domain.models.verification import EmailVerification, OtpVerification
from app.domain.repositories.restaurant_repository import RestaurantRepository
from app.domain.repositories.user_repository import UserRepository
from app.domain.repositories.verification_repository import (
    EmailVerificationRepository,
    OtpVerificationRepository,
)
from app.infrastructure.database import get_db
from app.infrastructure.email_api import BrevoEmailClient
from app.infrastructure.identity_api import IdentityVerificationClient
from app.infrastructure.repositories.restaurant_repository import SQLAlchemyRestaurantRepository
from app.infrastructure.repositories.user_repository import SQLAlchemyUserRepository
from app.infrastructure.repositories.verification_repository import (
    SQLAlchemyEmailVerificationRepository,
    SQLAlchemyOtpVerificationRepository,
)
from app.infrastructure.sms_api import NetgsmSmsClient


def get_clock() -> Clock:
    return utc_now


def get_email_sender() -> BrevoEmailClient:
    return BrevoEmailClient()


def get_sms_sender() -> NetgsmSmsClient:
    return NetgsmSmsClient()


def get_identity_verifier() -> IdentityVerificationClient:
    return IdentityVerificationClient()


def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    return SQLAlchemyUserRepository(db, User)


def get_restaurant_repository(db: Session = Depends(get_db)) -> RestaurantRepository:
    return SQLAlchemyRestaurantRepository(db, Restaurant)


def get_email_verification_repository(db: Session = Depends(get_db)) -> EmailVerificationRepository:
    return SQLAlchemyEmailVerificationRepository(db, EmailVerification)


def get_otp_repository(db: Session = Depends(get_db)) -> OtpVerificationRepository:
    return SQLAlchemyOtpVerificationRepository(db, OtpVerification)


def get_notification_service(
    db: Session = Depends(get_db),
    email_sender=Depends(get_email_sender),
    sms_sender=Depends(get_sms_sender),
) -> NotificationService:
    return NotificationService(db, email_sender, sms_sender)


def get_token_service(
    users: UserRepository = Depends(get_user_repository),
    clock: Clock = Depends(get_clock),
) -> TokenService:
    return TokenService(users, clock)


def get_auth_service(
    users: UserRepository = Depends(get_user_repository),
    restaurants: RestaurantRepository = Depends(get_restaurant_repository),
    tokens: TokenService = Depends(get_token_service),
    notifications: NotificationService = Depends(get_notification_service),
    identity=Depends(get_identity_verifier),
    clock: Clock = Depends(get_clock),
) -> AuthService:
    return AuthService(users, restaurants, tokens, notifications, identity, clock)


def get_otp_service(
    otps: OtpVerificationRepository = Depends(get_otp_repository),
    users: UserRepository = Depends(get_user_repository),
    notifications: NotificationService = Depends(get_notification_service),
    clock: Clock = Depends(get_clock),
) -> OtpService:
    return OtpService(otps, users, notifications, clock)


def get_email_verification_service(
    verifications: EmailVerificationRepository = Depends(get_email_verification_repository),
    users: UserRepository = Depends(get_user_repository),
    notifications: NotificationService = Depends(get_notification_service),
    clock: Clock = Depends(get_clock),
) -> EmailVerificationService:
    return EmailVerificationService(verifications, users, notifications, clock)
