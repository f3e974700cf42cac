import logging
import math
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from app.core import booking_status
from app.models.booking import Booking
from app.models.user import User
from app.services.audit_service import log_audit
from app.services.email_service import EmailSubmitter
from app.services.notification_service import NotificationDispatcher
from app.services.tenant_service import load_branding

logger = logging.getLogger(__name__)

# (minimum whole days before the activity, refund percent), checked in order
REFUND_POLICY = ((7, 100), (3, 50))


class CancellationError(ValueError):
    pass


@dataclass
class CancellationResult:
    refund_amount: float
    refund_percentage: int


def refund_percentage(activity_date: datetime, now: datetime | None = None) -> int:
    now = now or datetime.now()
    days_until = math.ceil((activity_date - now).total_seconds() / 86400)
    for min_days, pct in REFUND_POLICY:
        if days_until >= min_days:
            return pct
    return 0


def cancel_booking(db: Session, booking: Booking, actor: User, reason: str = "",
                   submit: EmailSubmitter | None = None, now: datetime | None = None) -> CancellationResult:
    if booking_status.is_status(booking.status, booking_status.CANCELLED):
        raise CancellationError("Booking is already cancelled")

    pct = refund_percentage(booking.booking_date, now)
    refund = round(booking.total_price * pct / 100, 2)
    previous = booking.status
    booking.status = booking_status.STATUS_LABELS[booking_status.CANCELLED]
    log_audit(db, booking.tenant_id, actor.id, "booking.cancel", "booking", booking.id,
              {"from": previous, "refundPercentage": pct, "refundAmount": refund, "reason": reason})
    db.commit()
    logger.info("booking %s cancelled by %s refund=%s%%", booking.booking_reference, actor.id, pct)

    dispatcher = NotificationDispatcher(db, load_branding(db, booking.tenant_id), submit=submit)
    data = dispatcher.email_for_bookings([booking])
    if data is not None:
        dispatcher.dispatch_cancellation(data, refund, reason or "Cancelled by customer")

    return CancellationResult(refund_amount=refund, refund_percentage=pct)
