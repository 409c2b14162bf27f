"""Explicit lifecycle states for users and OTP codes.

Flags on the User / OtpVerification rows are the persisted form; the functions
here derive a named state from them so routes never combine booleans ad hoc.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from app.domain.models.user import ConfirmationStatus, User
from app.domain.models.verification import OtpVerification


class OtpState(str, Enum):
    NO_CODE = "NoCode"
    CODE_ACTIVE = "CodeActive"
    VERIFIED = "Verified"
    EXPIRED = "Expired"


def otp_state(record: Optional[OtpVerification], now: datetime, validity_seconds: int) -> OtpState:
    if record is None or record.is_deleted:
        return OtpState.NO_CODE
    if record.verification:
        return OtpState.VERIFIED
    if now <= record.generate_date + timedelta(seconds=validity_seconds):
        return OtpState.CODE_ACTIVE
    return OtpState.EXPIRED


# Requirement names are part of the API contract (returned in `errors`).
EMAIL_REQUIREMENT = "emailVerification"
PHONE_REQUIREMENT = "phoneVerification"
IDENTITY_REQUIREMENT = "identityCheck"


@dataclass
class VerificationState:
    missing: list[str] = field(default_factory=list)

    @property
    def fully_verified(self) -> bool:
        return not self.missing


def verification_state(user: User) -> VerificationState:
    """Which verification steps the user still has to complete."""
    missing = []
    if not user.email_verified:
        missing.append(EMAIL_REQUIREMENT)
    if not user.phone_verified:
        missing.append(PHONE_REQUIREMENT)
    if user.identity_number and not user.identity_checked:
        missing.append(IDENTITY_REQUIREMENT)
    return VerificationState(missing=missing)


def is_consistent(user: User) -> bool:
    """An approved user must be fully verified."""
    if user.confirmation_status == ConfirmationStatus.APPROVED:
        return verification_state(user).fully_verified
    return True
