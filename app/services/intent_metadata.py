"""Booking data carried on a payment intent's metadata.

The webhook rebuilds a checkout from this when the intent succeeded but the
client never reached the checkout endpoint. Stripe caps metadata values at
500 characters, so the cart is stored as compact JSON split over at most
two keys; larger carts are flagged `has_booking_data=false`.
"""
import json
import logging

from app.schemas.checkout import (
    AddOnDetailIn,
    BookingOptionIn,
    CartItemIn,
    CheckoutRequest,
    CustomerIn,
    PaymentDetailsIn,
    PricingIn,
)
from app.services.pricing_service import unit_price_for

logger = logging.getLogger(__name__)

VALUE_LIMIT = 500
CART_KEYS = ("cart_data", "cart_data_2")


def _clip(value: str | None) -> str:
    return (value or "")[:VALUE_LIMIT]


def compact_item(item: CartItemIn) -> dict:
    out = {"t": item.id, "bp": unit_price_for(item), "a": item.quantity}
    if item.childQuantity:
        out["c"] = item.childQuantity
    if item.infantQuantity:
        out["n"] = item.infantQuantity
    if item.selectedDate:
        out["d"] = item.selectedDate
    if item.selectedTime:
        out["tm"] = item.selectedTime
    if item.selectedBookingOption:
        out["bo"] = item.selectedBookingOption.id
        out["bot"] = item.selectedBookingOption.title
    add_ons = []
    for add_on_id, qty in (item.selectedAddOns or {}).items():
        detail = (item.selectedAddOnDetails or {}).get(add_on_id)
        if detail is None or int(qty or 0) <= 0:
            continue
        add_ons.append({"id": add_on_id, "t": detail.title, "p": detail.price, "pg": int(detail.perGuest), "q": int(qty)})
    if add_ons:
        out["ao"] = add_ons
    return out


def expand_item(data: dict) -> CartItemIn:
    price = float(data.get("bp") or 0)
    option = None
    if data.get("bo"):
        option = BookingOptionIn(id=data["bo"], title=data.get("bot") or "", price=price)
    add_ons, details = {}, {}
    for ao in data.get("ao") or []:
        add_ons[ao["id"]] = int(ao.get("q") or 1)
        details[ao["id"]] = AddOnDetailIn(id=ao["id"], title=ao.get("t") or "Add-on",
                                          price=float(ao.get("p") or 0), perGuest=bool(ao.get("pg")))
    return CartItemIn(
        id=data["t"],
        price=price,
        selectedDate=data.get("d"),
        selectedTime=data.get("tm"),
        quantity=int(data.get("a", 1)),
        childQuantity=int(data.get("c", 0)),
        infantQuantity=int(data.get("n", 0)),
        selectedAddOns=add_ons,
        selectedAddOnDetails=details,
        selectedBookingOption=option,
    )


def build_intent_metadata(req: CheckoutRequest, customer: CustomerIn, tenant_id: str,
                          amount: float, discount: float) -> dict[str, str]:
    meta = {
        "customer_email": _clip(customer.email),
        "customer_name": _clip(f"{customer.firstName} {customer.lastName}"),
        "customer_first_name": _clip(customer.firstName),
        "customer_last_name": _clip(customer.lastName),
        "customer_phone": _clip(customer.phone),
        "special_requests": _clip(customer.specialRequests),
        "hotel_pickup_details": _clip(customer.hotelPickupDetails),
        "emergency_contact": _clip(customer.emergencyContact),
        "tours": _clip(", ".join(i.title for i in req.cart)),
        "discount_code": _clip(req.discountCode) or "none",
        "pricing_discount": f"{discount:.2f}",
        "pricing_total": f"{amount:.2f}",
        "pricing_currency": (req.pricing.currency or "USD").upper(),
        "tenant_id": tenant_id,
        "is_guest": "true" if req.isGuest else "false",
        "user_id": req.userId or "",
        "has_booking_data": "false",
    }
    cart = json.dumps([compact_item(i) for i in req.cart], separators=(",", ":"))
    if len(cart) > VALUE_LIMIT * len(CART_KEYS):
        logger.warning("cart of %d item(s) too large for intent metadata; webhook recovery disabled", len(req.cart))
        return meta
    for n, key in enumerate(CART_KEYS):
        chunk = cart[n * VALUE_LIMIT:(n + 1) * VALUE_LIMIT]
        if chunk:
            meta[key] = chunk
    meta["has_booking_data"] = "true"
    return meta


def checkout_request_from_metadata(metadata: dict, intent_id: str) -> CheckoutRequest | None:
    """Rebuild the card checkout an intent was created for, or None if it carries no booking data."""
    if metadata.get("has_booking_data") != "true":
        return None
    try:
        cart = [expand_item(d) for d in json.loads("".join(metadata.get(k) or "" for k in CART_KEYS))]
    except (ValueError, KeyError, TypeError) as e:
        logger.error("unreadable cart metadata on intent %s: %s", intent_id, e)
        return None

    code = metadata.get("discount_code")
    return CheckoutRequest(
        customer=CustomerIn(
            firstName=metadata.get("customer_first_name") or "",
            lastName=metadata.get("customer_last_name") or "",
            email=metadata.get("customer_email") or "",
            phone=metadata.get("customer_phone") or "",
            specialRequests=metadata.get("special_requests") or None,
            hotelPickupDetails=metadata.get("hotel_pickup_details") or None,
            emergencyContact=metadata.get("emergency_contact") or None,
        ),
        cart=cart,
        pricing=PricingIn(
            total=float(metadata.get("pricing_total") or 0),
            discount=float(metadata.get("pricing_discount") or 0),
            currency=metadata.get("pricing_currency") or "USD",
        ),
        paymentMethod="card",
        paymentDetails=PaymentDetailsIn(paymentIntentId=intent_id),
        isGuest=metadata.get("is_guest") == "true",
        userId=metadata.get("user_id") or None,
        discountCode=code if code and code != "none" else None,
    )
