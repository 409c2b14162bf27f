"""
Verification Repository Interfaces.
Email verification records are keyed by address, OTP records by user and phone.
"""

from datetime import datetime
from typing import Optional

from app.domain.repositories.base import BaseRepository
from app.domain.models.verification import EmailVerification, OtpVerification


class EmailVerificationRepository(BaseRepository[EmailVerification]):

    def get_active(self, email: str, now: datetime) -> Optional[EmailVerification]:
        """Active, non-deleted, unexpired record for the address."""
        ...

    def expire_stale(self, now: datetime, email: Optional[str] = None) -> int:
        """Soft-delete active records past their expiry. Returns the count."""
        ...


class OtpVerificationRepository(BaseRepository[OtpVerification]):

    def get_for_phone(self, user_id: int, phone_number: str) -> Optional[OtpVerification]:
        """Non-deleted record for the (user, phone) pair."""
        ...

    def get_latest_since(self, user_id: int, since: datetime) -> Optional[OtpVerification]:
        """Most recent non-deleted record for the user generated at or after `since`."""
        ...

    def expire_stale(self, before: datetime) -> int:
        """Soft-delete unverified records generated before `before`. Returns the count."""
        ...
