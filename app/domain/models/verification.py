"""Email and phone verification records."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func

from app.infrastructure.database import Base


class VerificationStatus:
    ACTIVE = "Active"
    USED = "Used"
    EXPIRED = "Expired"


class EmailVerification(Base):
    __tablename__ = "email_verifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, index=True)
    token = Column(String(6), nullable=False)
    expiry_date = Column(DateTime, nullable=False)
    status = Column(String(20), nullable=False, default=VerificationStatus.ACTIVE)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<EmailVerification {self.email} - {self.status}>"


class OtpVerification(Base):
    __tablename__ = "otp_verifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    phone_number = Column(String(20), nullable=False, index=True)
    otp_code = Column(String(6), nullable=False)
    generate_date = Column(DateTime, nullable=False)
    verification = Column(Boolean, nullable=False, default=False)
    status = Column(String(20), nullable=False, default=VerificationStatus.ACTIVE)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<OtpVerification user={self.user_id} {self.phone_number}>"
