"""Checkout orchestration: customer -> payment -> duplicate check -> bookings -> notifications.

Line items are written one at a time, each in its own commit. If a later
item fails, bookings already written in the same request stay in place and
the raised error lists them; nothing is deleted to compensate.
"""
import logging
import re
import time
import uuid
from dataclasses import dataclass, field

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import (
    CheckoutError,
    CheckoutValidationError,
    TourNotFoundError,
    UserNotFoundError,
)
from app.core.security import hash_password, throwaway_password
from app.models.discount import Discount
from app.models.user import User
from app.schemas.checkout import CheckoutRequest, CustomerIn
from app.services.booking_service import (
    WrittenBooking,
    create_booking,
    find_bookings_for_payment,
    get_tour,
)
from app.services.email_service import EmailSubmitter
from app.services.intent_metadata import build_intent_metadata
from app.services.notification_service import NotificationDispatcher
from app.services.payment_gateway import PaymentGateway
from app.services.payment_service import CARD, SUPPORTED_METHODS, PaymentResult, resolve_payment
from app.services.pricing_service import PriceBreakdown, price_cart_item, round_money
from app.services.tenant_service import get_tenant, resolve_branding

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass
class CheckoutResult:
    booking_reference: str
    booking_references: list[str]
    booking_ids: list[str]
    payment_id: str
    customer_name: str
    customer_email: str
    duplicate: bool = False
    guest_account: bool = False
    notifications: list[str] = field(default_factory=list)

    def as_response(self) -> dict:
        out = {
            "success": True,
            "message": "Booking completed successfully!",
            "bookingId": self.booking_reference,
            "bookingReferences": self.booking_references,
            "bookings": self.booking_ids,
            "paymentId": self.payment_id,
            "customer": {"name": self.customer_name, "email": self.customer_email},
            "duplicate": self.duplicate,
        }
        if self.duplicate:
            out["message"] = "Booking already exists for this payment."
        if self.guest_account:
            out["guestAccount"] = True
            out["message"] = ("Booking completed! A temporary account has been created with your email. "
                              "You can set a password later to access your bookings.")
        return out


def validate_customer(customer: CustomerIn | None, require_valid_email: bool = False) -> CustomerIn:
    if customer is None:
        raise CheckoutValidationError("Missing required booking information")
    if not (customer.firstName.strip() and customer.lastName.strip() and customer.email.strip()):
        raise CheckoutValidationError("Customer information is incomplete")
    if require_valid_email and not EMAIL_RE.match(customer.email.strip()):
        raise CheckoutValidationError("Please provide a valid email address")
    return customer


def cart_total(priced: list[PriceBreakdown], discount: float) -> tuple[float, float]:
    """Server-side amount due and the discount actually applied (clamped to the subtotal)."""
    subtotal = sum(p.subtotal for p in priced)
    gross = sum(p.total for p in priced)
    applied = min(max(float(discount or 0), 0.0), subtotal)
    return round_money(gross - applied), applied


def discount_shares(priced: list[PriceBreakdown], discount: float) -> list[float]:
    if discount <= 0:
        return [0.0] * len(priced)
    if len(priced) == 1:
        return [discount]
    subtotal = sum(p.subtotal for p in priced) or 1
    return [round_money(p.subtotal / subtotal * discount) for p in priced]


def resolve_customer(db: Session, customer: CustomerIn, is_guest: bool, user_id: str | None) -> tuple[User, bool]:
    """Return (user, created). Guests are matched by email or created with a throwaway password."""
    if is_guest:
        email = customer.email.strip().lower()
        user = db.query(User).filter(User.email == email).first()
        if user:
            return user, False
        user = User(
            id=str(uuid.uuid4()),
            email=email,
            first_name=customer.firstName.strip(),
            last_name=customer.lastName.strip(),
            phone=customer.phone or "",
            role="customer",
            password_hash=hash_password(throwaway_password()),
            is_guest=True,
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            # another request created the same email first
            db.rollback()
            user = db.query(User).filter(User.email == email).first()
            if not user:
                raise
            return user, False
        db.refresh(user)
        logger.info("guest account %s created at checkout", user.id)
        return user, True

    if user_id:
        user = db.get(User, user_id)
        if not user:
            raise UserNotFoundError("User not found")
        return user, False

    raise CheckoutValidationError("Unable to process user information")


def increment_discount_usage(db: Session, tenant_id: str, code: str) -> None:
    try:
        updated = (
            db.query(Discount)
            .filter(Discount.tenant_id == tenant_id, Discount.code == code.strip().upper())
            .update({Discount.times_used: Discount.times_used + 1}, synchronize_session=False)
        )
        db.commit()
        if not updated:
            logger.info("discount code %s not found for tenant %s", code, tenant_id)
    except Exception:
        logger.exception("could not update usage for discount %s", code)
        db.rollback()


class CheckoutService:
    def __init__(self, db: Session, gateway: PaymentGateway, tenant_id: str,
                 submit_email: EmailSubmitter | None = None):
        self.db = db
        self.gateway = gateway
        self.tenant_id = tenant_id
        self.submit_email = submit_email

    def _duplicate_result(self, existing, payment: PaymentResult, customer: CustomerIn) -> CheckoutResult:
        logger.info("duplicate checkout for payment %s; returning %d existing booking(s)",
                    payment.transaction_id, len(existing))
        return CheckoutResult(
            booking_reference=existing[0].booking_reference,
            booking_references=[b.booking_reference for b in existing],
            booking_ids=[b.id for b in existing],
            payment_id=payment.transaction_id,
            customer_name=f"{customer.firstName} {customer.lastName}",
            customer_email=customer.email,
            duplicate=True,
        )

    def run(self, req: CheckoutRequest) -> CheckoutResult:
        db = self.db
        if not req.cart:
            raise CheckoutValidationError("Missing required booking information")
        customer = validate_customer(req.customer)
        method = (req.paymentMethod or CARD).strip().lower()
        if method not in SUPPORTED_METHODS:
            raise CheckoutValidationError(f"Unsupported payment method: {method}")

        tenant = get_tenant(db, self.tenant_id)
        branding = resolve_branding(tenant, self.tenant_id)
        if not branding.has_config:
            logger.info("tenant %s has no configuration; using default branding", self.tenant_id)
        tenant_name = tenant.name if tenant is not None else None

        priced = [price_cart_item(item) for item in req.cart]
        amount, discount = cart_total(priced, req.pricing.discount)
        if abs(amount - float(req.pricing.total or 0)) > 0.01:
            logger.warning("client total %.2f differs from server total %.2f; charging server total",
                           req.pricing.total, amount)
        currency = (req.pricing.currency or branding.currency).upper()
        logger.info("checkout tenant=%s method=%s items=%d amount=%.2f %s",
                    self.tenant_id, method, len(req.cart), amount, currency)

        user, guest_created = resolve_customer(db, customer, req.isGuest, req.userId)

        n = len(req.cart)
        payment = resolve_payment(
            self.gateway, method, amount, currency,
            payment_intent_id=req.paymentDetails.paymentIntentId if req.paymentDetails else None,
            payment_method_id=req.paymentDetails.paymentMethodId if req.paymentDetails else None,
            description=f"Booking for {n} tour{'s' if n > 1 else ''}",
            metadata=build_intent_metadata(req, customer, self.tenant_id, amount, discount),
            receipt_email=customer.email,
            tenant_id=self.tenant_id,
        )
        logger.info("payment resolved %s status=%s", payment.transaction_id, payment.status)

        if method == CARD:
            existing = find_bookings_for_payment(db, self.tenant_id, payment.transaction_id)
            if existing:
                return self._duplicate_result(existing, payment, customer)

        code = req.discountCode.strip().upper() if req.discountCode else None
        if code:
            increment_discount_usage(db, self.tenant_id, code)

        written: list[WrittenBooking] = []
        shares = discount_shares(priced, discount)
        for i, item in enumerate(req.cart):
            label = item.title or item.id
            tour = get_tour(db, self.tenant_id, item.id)
            if tour is None:
                logger.error("tour %s (%s) missing at checkout; %d booking(s) already written",
                             item.id, label, len(written))
                raise TourNotFoundError(
                    "One or more tours in your cart are no longer available",
                    failedItem=label,
                    createdBookings=[w.booking.id for w in written],
                )
            try:
                booking = create_booking(
                    db,
                    tenant_id=self.tenant_id,
                    tenant_name=tenant_name,
                    user=user,
                    tour=tour,
                    item=item,
                    line_index=i,
                    price=priced[i],
                    payment=payment,
                    method=method,
                    customer=customer,
                    discount_code=code,
                    discount_share=shares[i],
                )
            except IntegrityError:
                db.rollback()
                existing = find_bookings_for_payment(db, self.tenant_id, payment.transaction_id)
                if method == CARD and existing and not written:
                    # a concurrent identical request got there first
                    return self._duplicate_result(existing, payment, customer)
                logger.exception("booking write conflict for %s", label)
                raise CheckoutError(f"Failed to create booking for {label}",
                                    failedItem=label, createdBookings=[w.booking.id for w in written])
            written.append(WrittenBooking(booking=booking, tour=tour, item=item, price=priced[i]))

            if i < n - 1 and settings.CHECKOUT_ITEM_DELAY_MS > 0:
                time.sleep(settings.CHECKOUT_ITEM_DELAY_MS / 1000)

        dispatcher = NotificationDispatcher(db, branding, submit=self.submit_email)
        notifications = dispatcher.dispatch_checkout(customer, method, payment, written, amount)

        return CheckoutResult(
            booking_reference=written[0].booking.booking_reference,
            booking_references=[w.booking.booking_reference for w in written],
            booking_ids=[w.booking.id for w in written],
            payment_id=payment.transaction_id,
            customer_name=f"{customer.firstName} {customer.lastName}",
            customer_email=customer.email,
            guest_account=guest_created,
            notifications=notifications,
        )
