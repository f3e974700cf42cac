"""Settling card payments reported by Stripe.

A succeeded intent either already has bookings (the client finished
checkout) or it does not (the browser closed after paying). Pending rows
are confirmed; missing ones are rebuilt from the intent metadata through
the normal checkout path, so pricing and tenant scoping stay identical.
"""
import logging

from sqlalchemy.orm import Session

from app.core import booking_status
from app.core.errors import CheckoutError
from app.services.audit_service import log_audit
from app.services.booking_service import find_bookings_for_payment
from app.services.checkout_service import CheckoutService
from app.services.email_service import EmailSubmitter
from app.services.intent_metadata import checkout_request_from_metadata
from app.services.notification_service import NotificationDispatcher
from app.services.payment_gateway import PaymentGateway
from app.services.tenant_service import load_branding

logger = logging.getLogger(__name__)


def confirm_pending_bookings(db: Session, tenant_id: str, payment_id: str,
                             submit: EmailSubmitter | None = None) -> int:
    """Move Pending bookings paid through `payment_id` to Confirmed and notify the customer. Idempotent."""
    bookings = find_bookings_for_payment(db, tenant_id, payment_id)
    pending = [b for b in bookings if booking_status.is_status(b.status, booking_status.PENDING)]
    if not pending:
        return 0
    for b in pending:
        b.status = booking_status.STATUS_LABELS[booking_status.CONFIRMED]
        log_audit(db, tenant_id, "stripe", "booking.payment_succeeded", "booking", b.id, {"paymentId": payment_id})
    db.commit()
    NotificationDispatcher(db, load_branding(db, tenant_id), submit=submit).dispatch_confirmation(pending)
    return len(pending)


def handle_payment_succeeded(db: Session, gateway: PaymentGateway, intent: dict,
                             submit: EmailSubmitter | None = None,
                             default_tenant_id: str = "") -> dict:
    intent_id = intent["id"]
    metadata = dict(intent.get("metadata") or {})
    tenant_id = metadata.get("tenant_id") or default_tenant_id
    outcome = {"updated": 0, "created": 0}

    if find_bookings_for_payment(db, tenant_id, intent_id):
        outcome["updated"] = confirm_pending_bookings(db, tenant_id, intent_id, submit)
        logger.info("stripe payment %s succeeded; %d booking(s) confirmed", intent_id, outcome["updated"])
        return outcome

    req = checkout_request_from_metadata(metadata, intent_id)
    if req is None:
        logger.warning("stripe payment %s has no bookings and no booking data; nothing to create", intent_id)
        return outcome

    try:
        result = CheckoutService(db, gateway, tenant_id, submit_email=submit).run(req)
    except CheckoutError as e:
        db.rollback()
        logger.error("could not create bookings for stripe payment %s: %s", intent_id, e.message)
        return {**outcome, "error": e.message}

    if not result.duplicate:
        outcome["created"] = len(result.booking_ids)
        outcome["bookingReferences"] = result.booking_references
    logger.info("stripe payment %s succeeded; %d booking(s) created from intent data", intent_id, outcome["created"])
    return outcome
