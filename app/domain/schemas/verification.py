"""Pydantic schemas for email and SMS verification."""

from typing import Optional

from app.domain.schemas.common import CamelModel


class VerifyEmailRequest(CamelModel):
    code: str


class SendOtpRequest(CamelModel):
    phone_number: Optional[str] = None


class OtpVerificationRequest(CamelModel):
    otp_code: str
