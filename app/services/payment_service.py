import logging
import random
import string
import time
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from app.core.errors import CheckoutValidationError, PaymentError
from app.services.payment_gateway import PaymentGateway, PaymentGatewayError

logger = logging.getLogger(__name__)

CARD = "card"
BANK = "bank"
PAY_LATER = "pay_later"

# methods settled outside the gateway, with the prefix of their synthetic transaction id
OFFLINE_METHODS = {BANK: "BANK", PAY_LATER: "PAYLATER"}
SUPPORTED_METHODS = {CARD, *OFFLINE_METHODS}


@dataclass
class PaymentResult:
    transaction_id: str
    status: str      # succeeded | pending
    amount: float    # major units
    currency: str


def to_minor_units(amount: float) -> int:
    """Round half-up to cents, the unit the gateway reports amounts in."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def synthesize_transaction_id(prefix: str) -> str:
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=6))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"


def is_offline(method: str) -> bool:
    return method in OFFLINE_METHODS


def resolve_payment(
    gateway: PaymentGateway,
    method: str,
    amount: float,
    currency: str,
    *,
    payment_intent_id: str | None = None,
    payment_method_id: str | None = None,
    description: str = "",
    metadata: dict | None = None,
    receipt_email: str | None = None,
    tenant_id: str | None = None,
) -> PaymentResult:
    """Settle or verify payment for a checkout. Raises PaymentError on any card failure."""
    currency = (currency or "USD").upper()
    if method not in SUPPORTED_METHODS:
        raise CheckoutValidationError(f"Unsupported payment method: {method}")

    if is_offline(method):
        return PaymentResult(
            transaction_id=synthesize_transaction_id(OFFLINE_METHODS[method]),
            status="pending",
            amount=amount,
            currency=currency,
        )

    expected = to_minor_units(amount)
    try:
        if payment_intent_id:
            intent = gateway.retrieve_intent(payment_intent_id)
            owner = (intent.metadata or {}).get("tenant_id")
            if tenant_id and owner and owner != tenant_id:
                logger.warning("payment intent %s belongs to tenant %s, not %s", intent.id, owner, tenant_id)
                raise PaymentError("This payment does not belong to this store. Please contact support.")
            if intent.status != "succeeded":
                raise PaymentError("Payment has not been completed. Please complete the payment and try again.")
            if intent.amount != expected:
                logger.warning("payment intent %s amount %s != expected %s", intent.id, intent.amount, expected)
                raise PaymentError("Payment amount mismatch. Please contact support.")
        else:
            intent = gateway.create_intent(
                amount=expected,
                currency=currency,
                description=description,
                metadata=metadata or {},
                confirm=True,
                payment_method=payment_method_id,
                receipt_email=receipt_email,
            )
            if intent.status != "succeeded":
                raise PaymentError("Payment processing failed. Please try a different payment method.")
    except PaymentGatewayError as e:
        logger.error("payment gateway error: %s", e)
        raise PaymentError(f"Payment processing failed: {e}") from e

    return PaymentResult(
        transaction_id=intent.id,
        status=intent.status,
        amount=intent.amount / 100,
        currency=(intent.currency or currency).upper(),
    )
