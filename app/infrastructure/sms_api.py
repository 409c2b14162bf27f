"""Netgsm REST v2 SMS client."""

import logging
from typing import Optional

import httpx

from app.config import get_settings
from app.infrastructure.provider import ProviderResult

settings = get_settings()
logger = logging.getLogger(__name__)


class NetgsmSmsClient:
    """Sends SMS through Netgsm with HTTP basic auth. No retries."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = settings.NETGSM_URL
        self.auth = httpx.BasicAuth(settings.NETGSM_USERNAME, settings.NETGSM_PASSWORD)
        self.header = settings.NETGSM_HEADER
        self.timeout = settings.HTTP_TIMEOUT_SECONDS
        self._transport = transport

    async def send(self, numbers: list[str], message: str) -> ProviderResult:
        payload = {
            "msgheader": self.header,
            "messages": [{"msg": message, "no": number} for number in numbers],
            "encoding": "TR",
            "iysfilter": "",
            "partnercode": "",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.url, json=payload, auth=self.auth)
        except httpx.HTTPError as e:
            logger.warning(f"Netgsm connection error: {e}")
            return ProviderResult(False, "SMS could not be sent")

        if response.status_code != 200:
            logger.warning(f"Netgsm error: {response.status_code} - {response.text[:200]}")
            return ProviderResult(False, "SMS sending failed")
        return ProviderResult(True, "SMS sent")
