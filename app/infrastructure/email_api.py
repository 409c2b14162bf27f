"""Brevo transactional email HTTP client."""

import logging
from typing import Optional

import httpx

from app.config import get_settings
from app.infrastructure.provider import ProviderResult

settings = get_settings()
logger = logging.getLogger(__name__)


class BrevoEmailClient:
    """Sends HTML mail through the Brevo v3 SMTP API. No retries."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = settings.BREVO_API_URL
        self.headers = {
            "api-key": settings.BREVO_API_KEY,
            "Content-Type": "application/json",
        }
        self.sender = {"name": settings.EMAIL_SENDER_NAME, "email": settings.EMAIL_SENDER_ADDRESS}
        self.timeout = settings.HTTP_TIMEOUT_SECONDS
        self._transport = transport

    async def send(self, to_address: str, subject: str, html_body: str) -> ProviderResult:
        payload = {
            "sender": self.sender,
            "to": [{"email": to_address, "name": "Kullanıcı"}],
            "subject": subject,
            "htmlContent": html_body,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.url, json=payload, headers=self.headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(f"Brevo error: {e.response.status_code} - {e.response.text[:200]}")
            return ProviderResult(False, f"Email provider error: {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.warning(f"Brevo connection error: {e}")
            return ProviderResult(False, f"Email provider unreachable: {e.__class__.__name__}")
        return ProviderResult(True, "Email sent")
