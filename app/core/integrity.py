"""Request integrity check for mobile clients.

Header format: ``X-Integrity: <deviceId> <hexHash>`` where the client computes
``sha256("<deviceId>_<minuteBucket>")`` and ``minuteBucket`` is the unix time
truncated to the start of the current minute. The previous minute's hash is
also accepted to tolerate skew across a minute boundary.

How the device derives or protects its id is defined by the mobile apps, not
here; this module only verifies the hash.
"""

import hashlib
import hmac
import time
from typing import Optional

import structlog
from fastapi import Header

from app.config import get_settings
from app.core.exceptions import IntegrityCheckError

logger = structlog.get_logger(__name__)

INTEGRITY_HEADER = "X-Integrity"
WINDOW_SECONDS = 60


def minute_bucket(timestamp: int) -> int:
    return timestamp - (timestamp % WINDOW_SECONDS)


def integrity_hash(device_id: str, bucket: int) -> str:
    return hashlib.sha256(f"{device_id}_{bucket}".encode("utf-8")).hexdigest()


def check_integrity(header: Optional[str], now: Optional[int] = None) -> bool:
    """Return True if the header carries a hash for the current or previous minute."""
    if not header:
        return False
    parts = header.split(" ")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return False
    device_id, received = parts

    timestamp = int(time.time()) if now is None else now
    bucket = minute_bucket(timestamp)
    received_bytes = received.encode("utf-8")
    for candidate in (bucket, bucket - WINDOW_SECONDS):
        if hmac.compare_digest(received_bytes, integrity_hash(device_id, candidate).encode("utf-8")):
            return True
    return False


def require_integrity(x_integrity: Optional[str] = Header(default=None, alias=INTEGRITY_HEADER)) -> None:
    """FastAPI dependency: reject the request unless the integrity header checks out."""
    if not get_settings().INTEGRITY_CHECK_ENABLED:
        return
    if not check_integrity(x_integrity):
        logger.warning("Integrity check failed", has_header=bool(x_integrity))
        raise IntegrityCheckError()
