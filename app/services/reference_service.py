import logging
import random
import re
import string
import time

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.booking import Booking

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "BKG"
MAX_ATTEMPTS = 10
_ALPHABET = string.ascii_uppercase + string.digits


def reference_prefix(tenant_id: str | None, tenant_name: str | None = None) -> str:
    """Initials of the tenant name (max 4), else first 4 alphanumerics of the id."""
    if tenant_name:
        initials = "".join(w[0].upper() for w in tenant_name.split() if w)[:4]
        if initials:
            return initials
    if tenant_id:
        compact = re.sub(r"[^A-Za-z0-9]", "", tenant_id)[:4].upper()
        if compact:
            return compact
    return DEFAULT_PREFIX


def _now_ms() -> int:
    return int(time.time() * 1000)


def _random_suffix(k: int) -> str:
    return "".join(random.choices(_ALPHABET, k=k))


def make_booking_reference(prefix: str) -> str:
    return f"{prefix}-{str(_now_ms())[-8:]}-{_random_suffix(6)}"


def generate_booking_reference(db: Session, tenant_id: str, tenant_name: str | None = None) -> str:
    prefix = reference_prefix(tenant_id, tenant_name)
    for _ in range(MAX_ATTEMPTS):
        ref = make_booking_reference(prefix)
        exists = (
            db.query(Booking.id)
            .filter(Booking.tenant_id == tenant_id, Booking.booking_reference == ref)
            .first()
        )
        if not exists:
            return ref
        time.sleep(settings.REFERENCE_RETRY_DELAY_MS / 1000)

    logger.warning("booking reference retries exhausted for tenant %s; using long fallback", tenant_id)
    return f"{prefix}-{_now_ms()}-{_random_suffix(10)}"
