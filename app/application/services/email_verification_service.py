"""24-hour email verification codes keyed by email address."""

import random
from datetime import timedelta

import structlog
from fastapi.concurrency import run_in_threadpool

from app.application.services.notification_service import (
    VERIFICATION_SUBJECT,
    NotificationService,
    format_verification_email,
)
from app.config import get_settings
from app.core.clock import Clock, utc_now
from app.core.exceptions import AuthError, ConflictError, UpstreamError
from app.core.logging import mask_recipient
from app.domain.models.user import User
from app.domain.models.verification import VerificationStatus
from app.domain.repositories.user_repository import UserRepository
from app.domain.repositories.verification_repository import EmailVerificationRepository

settings = get_settings()
logger = structlog.get_logger(__name__)

INVALID_CODE = "Verification code is invalid or expired"


def generate_email_code() -> str:
    return str(random.randint(100000, 999999))


class EmailVerificationService:

    def __init__(
        self,
        verifications: EmailVerificationRepository,
        users: UserRepository,
        notifications: NotificationService,
        clock: Clock = utc_now,
    ):
        self.verifications = verifications
        self.users = users
        self.notifications = notifications
        self.clock = clock
        self.lifetime = timedelta(hours=settings.EMAIL_VERIFICATION_HOURS)

    async def send(self, user: User) -> None:
        if user.email_verified:
            raise ConflictError("Email address is already verified")

        now = self.clock()
        if await run_in_threadpool(self.verifications.get_active, user.email, now) is not None:
            raise ConflictError("A verification code has already been sent to this email address")

        # Expired leftovers are superseded by the new code
        await run_in_threadpool(self.verifications.expire_stale, now, email=user.email)

        code = generate_email_code()
        result = await self.notifications.send_email(user.email, VERIFICATION_SUBJECT, format_verification_email(code))
        if not result.succeeded:
            raise UpstreamError(result.message)

        await run_in_threadpool(
            self.verifications.create,
            {
                "email": user.email,
                "token": code,
                "expiry_date": self.clock() + self.lifetime,
                "status": VerificationStatus.ACTIVE,
                "is_deleted": False,
            },
        )
        logger.info("Verification email sent", user_id=user.id, email=mask_recipient(user.email))

    def verify(self, user: User, code: str) -> None:
        record = self.verifications.get_active(user.email, self.clock())
        if record is None or record.token != code:
            logger.info("Email verification rejected", user_id=user.id)
            raise AuthError(INVALID_CODE)

        self.verifications.update(record, {"is_deleted": True, "status": VerificationStatus.USED})
        self.users.update(user, {"email_verified": True})
        logger.info("Email verified", user_id=user.id)
