"""Soft-delete expired verification records on an APScheduler interval."""

import logging
from datetime import timedelta

import pytz
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import Session

from app.config import get_settings
from app.core.clock import Clock, utc_now
from app.domain.models.verification import EmailVerification, OtpVerification
from app.infrastructure.database import SessionLocal
from app.infrastructure.repositories.verification_repository import (
    SQLAlchemyEmailVerificationRepository,
    SQLAlchemyOtpVerificationRepository,
)

settings = get_settings()
logger = logging.getLogger(__name__)
tz = pytz.timezone(settings.TIMEZONE)

scheduler = AsyncIOScheduler(timezone=tz)


def purge_expired_verifications(db: Session, clock: Clock = utc_now) -> dict:
    """Soft-delete email codes past expiry and unverified OTPs past their validity window."""
    now = clock()
    emails = SQLAlchemyEmailVerificationRepository(db, EmailVerification).expire_stale(now)
    otps = SQLAlchemyOtpVerificationRepository(db, OtpVerification).expire_stale(
        now - timedelta(seconds=settings.OTP_VALIDITY_SECONDS)
    )
    return {"email_verifications": emails, "otp_verifications": otps}


async def purge_expired_verifications_job():
    db = SessionLocal()
    try:
        result = purge_expired_verifications(db)
        logger.info(f"Verification purge result: {result}")
    except Exception as e:
        logger.error(f"Verification purge job failed: {e}")
        db.rollback()
    finally:
        db.close()


def start_scheduler():
    scheduler.add_job(
        purge_expired_verifications_job,
        trigger=IntervalTrigger(minutes=30, timezone=tz),
        id="purge_expired_verifications",
        name="Purge expired verifications (Every 30 mins)",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(f"Scheduler started: verification purge every 30 mins ({settings.TIMEZONE})")


def stop_scheduler():
    """Stop the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
