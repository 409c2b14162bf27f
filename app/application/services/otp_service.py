"""OTP service — SMS one-time codes with a send cooldown and a validity window.

A (user, phone) pair holds at most one live record. Sending again after the
cooldown overwrites it with a new code and generate date.
"""

import math
import random
from datetime import timedelta

import structlog
from fastapi.concurrency import run_in_threadpool

from app.application.services.notification_service import NotificationService, format_otp_message
from app.config import get_settings
from app.core.clock import Clock, utc_now
from app.core.exceptions import AuthError, NotFoundError, OtpCooldownError, UpstreamError
from app.core.logging import mask_recipient
from app.domain.lifecycle import OtpState, otp_state
from app.domain.models.verification import VerificationStatus
from app.domain.repositories.user_repository import UserRepository
from app.domain.repositories.verification_repository import OtpVerificationRepository

settings = get_settings()
logger = structlog.get_logger(__name__)

INVALID_CODE = "Code is invalid or expired"


def generate_otp() -> str:
    # Not a CSPRNG
    return str(random.randint(100000, 999999))


class OtpService:

    def __init__(
        self,
        otps: OtpVerificationRepository,
        users: UserRepository,
        notifications: NotificationService,
        clock: Clock = utc_now,
    ):
        self.otps = otps
        self.users = users
        self.notifications = notifications
        self.clock = clock
        self.cooldown = timedelta(seconds=settings.OTP_COOLDOWN_SECONDS)
        self.validity = timedelta(seconds=settings.OTP_VALIDITY_SECONDS)

    async def send(self, user_id: int, phone_number: str) -> dict:
        existing = await run_in_threadpool(self.otps.get_for_phone, user_id, phone_number)
        now = self.clock()

        if existing is not None:
            cooldown_end = existing.generate_date + self.cooldown
            if cooldown_end > now:
                remaining = math.floor((cooldown_end - now).total_seconds())
                raise OtpCooldownError(remaining)

        code = generate_otp()
        result = await self.notifications.send_sms(phone_number, format_otp_message(code))
        if not result.succeeded:
            raise UpstreamError(result.message or "SMS could not be sent")

        # generate_date is taken after the SMS round trip
        fields = {
            "otp_code": code,
            "generate_date": self.clock(),
            "verification": False,
            "status": VerificationStatus.ACTIVE,
            "is_deleted": False,
        }
        if existing is not None:
            await run_in_threadpool(self.otps.update, existing, fields)
        else:
            await run_in_threadpool(self.otps.create, {"user_id": user_id, "phone_number": phone_number, **fields})

        logger.info("OTP sent", user_id=user_id, phone=mask_recipient(phone_number))
        return {"RemainingTime": settings.OTP_COOLDOWN_SECONDS}

    def verify(self, user_id: int, code: str) -> None:
        now = self.clock()
        record = self.otps.get_latest_since(user_id, now - self.validity)
        state = otp_state(record, now, settings.OTP_VALIDITY_SECONDS)

        if record is None or state not in (OtpState.CODE_ACTIVE, OtpState.VERIFIED) or record.otp_code != code:
            logger.info("OTP verification rejected", user_id=user_id)
            raise AuthError(INVALID_CODE)

        user = self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")

        self.otps.update(record, {"verification": True})
        self.users.update(user, {"phone_verified": True})
        logger.info("Phone verified", user_id=user_id)
