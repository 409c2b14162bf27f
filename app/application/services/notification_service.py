"""Notification service — email/SMS dispatch through the providers, with a delivery log.

Templates are Turkish; the platform's users are in Turkey.
"""

from html import escape
from typing import Optional, Protocol

import structlog
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.core.logging import mask_recipient
from app.domain.models.notification_log import NotificationLog
from app.infrastructure.provider import ProviderResult

logger = structlog.get_logger(__name__)


class EmailSender(Protocol):
    async def send(self, to_address: str, subject: str, html_body: str) -> ProviderResult:
        ...


class SmsSender(Protocol):
    async def send(self, numbers: list[str], message: str) -> ProviderResult:
        ...


VERIFICATION_SUBJECT = "YemekTaxi - Email Doğrulama Kodu"
REVIEW_SUBJECT = "YemekTaxi - Kayıt İşleminiz İncelemeye Alındı"


def format_otp_message(code: str) -> str:
    return f"YemekTaxi doğrulama kodunuz: {code}"


def format_verification_email(code: str) -> str:
    return f"""<!DOCTYPE html>
<html lang='tr'>
<head><meta charset='UTF-8'><title>Email Doğrulama</title></head>
<body style='font-family: Arial, sans-serif; background: #f8f9fa; padding: 40px 20px;'>
  <div style='max-width: 600px; margin: 0 auto; background: white; border-radius: 20px; overflow: hidden;'>
    <div style='background: #ee5a24; padding: 40px 30px; text-align: center;'>
      <h1 style='color: white; margin: 0;'>YemekTaxi</h1>
      <p style='color: white; margin: 10px 0 0;'>Lezzet kapınızda!</p>
    </div>
    <div style='padding: 50px 30px; text-align: center;'>
      <h2 style='color: #2c3e50;'>Email Adresinizi Doğrulayın</h2>
      <p style='color: #7f8c8d;'>Hesabınızı aktifleştirmek için aşağıdaki doğrulama kodunu kullanın.</p>
      <div style='border: 2px dashed #dee2e6; border-radius: 15px; padding: 30px; margin: 30px 0;'>
        <span style='font-family: "Courier New", monospace; font-size: 32px; font-weight: 700; letter-spacing: 8px;'>{code}</span>
      </div>
    </div>
    <div style='background: #f8f9fa; padding: 30px; text-align: center; font-size: 12px; color: #adb5bd;'>
      Bu e-posta otomatik olarak gönderilmiştir, lütfen yanıtlamayın.
    </div>
  </div>
</body>
</html>"""


def format_review_email(restaurant_name: str) -> str:
    return f"""<!DOCTYPE html>
<html lang='tr'>
<head><meta charset='UTF-8'><title>Kayıt İşlemi</title></head>
<body style='font-family: Arial, sans-serif; background: #f8f9fa; padding: 40px 20px;'>
  <div style='max-width: 600px; margin: 0 auto; background: white; border-radius: 20px; overflow: hidden;'>
    <div style='background: #28a745; padding: 40px 30px; text-align: center;'>
      <h1 style='color: white; margin: 0;'>YemekTaxi</h1>
    </div>
    <div style='padding: 50px 30px; text-align: center;'>
      <h2 style='color: #2c3e50;'>Kayıt İşleminiz Alındı</h2>
      <p style='color: #424242;'>
        <strong>{escape(restaurant_name)}</strong> kaydınız incelemeye alınmıştır.
        <br>En kısa sürede size dönüş sağlanacaktır.
      </p>
    </div>
  </div>
</body>
</html>"""


class NotificationService:

    def __init__(self, db: Session, email_sender: EmailSender, sms_sender: SmsSender):
        self.db = db
        self.email_sender = email_sender
        self.sms_sender = sms_sender

    def _log(self, channel: str, recipient: str, result: ProviderResult, subject: Optional[str] = None) -> None:
        self.db.add(
            NotificationLog(
                channel=channel,
                recipient=recipient,
                subject=subject,
                status="sent" if result.succeeded else "failed",
                error=None if result.succeeded else result.message,
            )
        )
        self.db.commit()
        log = logger.info if result.succeeded else logger.warning
        log("Notification dispatched", channel=channel, recipient=mask_recipient(recipient), succeeded=result.succeeded)

    async def send_email(self, to_address: str, subject: str, html_body: str) -> ProviderResult:
        result = await self.email_sender.send(to_address, subject, html_body)
        await run_in_threadpool(self._log, "email", to_address, result, subject)
        return result

    async def send_sms(self, phone_number: str, message: str) -> ProviderResult:
        result = await self.sms_sender.send([phone_number], message)
        await run_in_threadpool(self._log, "sms", phone_number, result)
        return result
