import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.api.deps import get_email_submitter, get_payment_gateway, get_tenant_id
from app.core.config import settings
from app.core.errors import CheckoutError, CheckoutValidationError
from app.db.session import get_db
from app.schemas.checkout import CheckoutOut, CheckoutRequest, PaymentIntentOut
from app.services.checkout_service import CheckoutService, cart_total, validate_customer
from app.services.email_service import EmailSubmitter
from app.services.intent_metadata import build_intent_metadata
from app.services.payment_gateway import PaymentGateway, PaymentGatewayError
from app.services.payment_service import to_minor_units
from app.services.pricing_service import price_cart_item

logger = logging.getLogger(__name__)

router = APIRouter(tags=["checkout"])


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message, **extra})


def _server_error(message: str, exc: Exception) -> JSONResponse:
    extra = {} if settings.ENV == "production" else {"error": str(exc)}
    return _error(500, message, **extra)


@router.post("/checkout", response_model=CheckoutOut, response_model_exclude_none=True)
def checkout(
    body: CheckoutRequest,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    submit_email: EmailSubmitter = Depends(get_email_submitter),
):
    service = CheckoutService(db, gateway, tenant_id, submit_email=submit_email)
    try:
        return service.run(body).as_response()
    except CheckoutError as e:
        logger.warning("checkout rejected (%s): %s", e.status_code, e.message)
        return _error(e.status_code, e.message, **e.extra)
    except Exception as e:
        logger.exception("checkout failed")
        db.rollback()
        return _server_error("Booking failed due to a server error. Please try again.", e)


@router.post("/checkout/create-payment-intent", response_model=PaymentIntentOut)
def create_payment_intent(
    body: CheckoutRequest,
    tenant_id: str = Depends(get_tenant_id),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    try:
        if not body.cart:
            raise CheckoutValidationError("Missing required payment information")
        customer = validate_customer(body.customer, require_valid_email=True)
        amount, discount = cart_total([price_cart_item(i) for i in body.cart], body.pricing.discount)
        if amount <= 0:
            raise CheckoutValidationError("Invalid payment amount")
    except CheckoutError as e:
        return _error(e.status_code, e.message)

    n = len(body.cart)
    currency = (body.pricing.currency or "USD").upper()
    try:
        intent = gateway.create_intent(
            amount=to_minor_units(amount),
            currency=currency,
            description=f"Booking for {n} tour{'s' if n > 1 else ''}",
            metadata=build_intent_metadata(body, customer, tenant_id, amount, discount),
        )
    except PaymentGatewayError as e:
        logger.error("create payment intent failed: %s", e)
        return _server_error("Failed to initialize payment. Please try again.", e)

    return PaymentIntentOut(
        clientSecret=intent.client_secret,
        paymentIntentId=intent.id,
        amount=amount,
        currency=currency,
    )
