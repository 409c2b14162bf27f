"""
SQLAlchemy Implementations of the verification repositories.
"""

from datetime import datetime
from typing import Optional

from app.domain.models.verification import EmailVerification, OtpVerification, VerificationStatus
from app.domain.repositories.verification_repository import (
    EmailVerificationRepository,
    OtpVerificationRepository,
)
from app.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemyEmailVerificationRepository(SQLAlchemyRepository[EmailVerification], EmailVerificationRepository):

    def get_active(self, email: str, now: datetime) -> Optional[EmailVerification]:
        return (
            self.db.query(EmailVerification)
            .filter(
                EmailVerification.email == email,
                EmailVerification.is_deleted.is_(False),
                EmailVerification.status == VerificationStatus.ACTIVE,
                EmailVerification.expiry_date > now,
            )
            .order_by(EmailVerification.expiry_date.desc())
            .first()
        )

    def expire_stale(self, now: datetime, email: Optional[str] = None) -> int:
        query = self.db.query(EmailVerification).filter(
            EmailVerification.is_deleted.is_(False),
            EmailVerification.status == VerificationStatus.ACTIVE,
            EmailVerification.expiry_date <= now,
        )
        if email is not None:
            query = query.filter(EmailVerification.email == email)
        count = query.update(
            {"is_deleted": True, "status": VerificationStatus.EXPIRED},
            synchronize_session=False,
        )
        self.db.commit()
        return count


class SQLAlchemyOtpVerificationRepository(SQLAlchemyRepository[OtpVerification], OtpVerificationRepository):

    def get_for_phone(self, user_id: int, phone_number: str) -> Optional[OtpVerification]:
        return (
            self.db.query(OtpVerification)
            .filter(
                OtpVerification.user_id == user_id,
                OtpVerification.phone_number == phone_number,
                OtpVerification.is_deleted.is_(False),
            )
            .order_by(OtpVerification.generate_date.desc())
            .first()
        )

    def get_latest_since(self, user_id: int, since: datetime) -> Optional[OtpVerification]:
        return (
            self.db.query(OtpVerification)
            .filter(
                OtpVerification.user_id == user_id,
                OtpVerification.is_deleted.is_(False),
                OtpVerification.generate_date >= since,
            )
            .order_by(OtpVerification.generate_date.desc())
            .first()
        )

    def expire_stale(self, before: datetime) -> int:
        count = (
            self.db.query(OtpVerification)
            .filter(
                OtpVerification.is_deleted.is_(False),
                OtpVerification.verification.is_(False),
                OtpVerification.generate_date < before,
            )
            .update(
                {"is_deleted": True, "status": VerificationStatus.EXPIRED},
                synchronize_session=False,
            )
        )
        self.db.commit()
        return count
