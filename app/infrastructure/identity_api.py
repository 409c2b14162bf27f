"""KPS (Turkish population registry) identity verification SOAP client."""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from xml.sax.saxutils import escape

import httpx

from app.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

SOAP_ACTION = "http://tckimlik.nvi.gov.tr/WS/TCKimlikNoDogrula"

SOAP_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<soap12:Envelope xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"
                 xmlns:xsd="http://www.w3.org/2001/XMLSchema"
                 xmlns:soap12="http://www.w3.org/2003/05/soap-envelope">
  <soap12:Body>
    <TCKimlikNoDogrula xmlns="http://tckimlik.nvi.gov.tr/WS">
      <TCKimlikNo>{identity_number}</TCKimlikNo>
      <Ad>{first_name}</Ad>
      <Soyad>{last_name}</Soyad>
      <DogumYili>{year_of_birth}</DogumYili>
    </TCKimlikNoDogrula>
  </soap12:Body>
</soap12:Envelope>"""

RESULT_PATTERNS = (
    re.compile(r"<TCKimlikNoDogrulaResult>([^<]+)</TCKimlikNoDogrulaResult>", re.IGNORECASE),
    re.compile(r"<ws:TCKimlikNoDogrulaResult[^>]*>([^<]+)</ws:TCKimlikNoDogrulaResult>", re.IGNORECASE),
)


class IdentityCheckOutcome(str, Enum):
    VERIFIED = "verified"
    NOT_VERIFIED = "not_verified"
    TIMEOUT = "timeout"
    SERVICE_ERROR = "service_error"
    NETWORK_ERROR = "network_error"


@dataclass
class IdentityCheckResult:
    succeeded: bool
    message: str
    outcome: IdentityCheckOutcome


def build_soap_request(identity_number: str, first_name: str, last_name: str, year_of_birth: int) -> str:
    return SOAP_TEMPLATE.format(
        identity_number=escape(identity_number),
        first_name=escape(first_name),
        last_name=escape(last_name),
        year_of_birth=int(year_of_birth),
    )


def parse_soap_response(body: str) -> bool:
    """True only when the result element reads 'true'. Anything unexpected is False."""
    for pattern in RESULT_PATTERNS:
        match = pattern.search(body or "")
        if match:
            return match.group(1).strip().lower() == "true"
    return False


class IdentityVerificationClient:
    """Calls TCKimlikNoDogrula. Best effort: never raises, never retries."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = settings.IDENTITY_SERVICE_URL
        self.timeout = settings.IDENTITY_TIMEOUT_SECONDS
        self.headers = {
            "Content-Type": "text/xml; charset=utf-8",
            "SOAPAction": SOAP_ACTION,
        }
        self._transport = transport

    async def verify(
        self, first_name: str, last_name: str, identity_number: str, year_of_birth: int
    ) -> IdentityCheckResult:
        body = build_soap_request(identity_number, first_name, last_name, year_of_birth)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.url, content=body.encode("utf-8"), headers=self.headers)
        except httpx.TimeoutException:
            logger.warning("Identity verification timed out")
            return IdentityCheckResult(
                False, "Identity verification timeout - Please try again", IdentityCheckOutcome.TIMEOUT
            )
        except httpx.HTTPError as e:
            logger.warning(f"Identity verification network error: {e}")
            return IdentityCheckResult(
                False,
                "Network error - Could not reach identity verification service",
                IdentityCheckOutcome.NETWORK_ERROR,
            )

        if response.status_code != 200:
            logger.warning(f"Identity verification service returned {response.status_code}")
            return IdentityCheckResult(
                False,
                f"Identity verification service error: {response.status_code}",
                IdentityCheckOutcome.SERVICE_ERROR,
            )

        if not parse_soap_response(response.text):
            return IdentityCheckResult(
                False,
                "Identity verification failed - Information does not match official records",
                IdentityCheckOutcome.NOT_VERIFIED,
            )
        return IdentityCheckResult(True, "Identity number verified successfully", IdentityCheckOutcome.VERIFIED)
