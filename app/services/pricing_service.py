"""Per-line-item price calculation.

The same formula backs the persisted booking total, the amounts shown in
notifications, and the server-side check of the client's pricing summary:

    adults   = unit price * adult count
    children = unit price / 2 * child count      (infants are free)
    add-ons  = unit price * (1 | adults + children) per selected add-on
    total    = subtotal + 3% service fee + 5% tax
"""
from dataclasses import dataclass
from typing import Iterable

from app.schemas.checkout import CartItemIn

SERVICE_FEE_RATE = 0.03
TAX_RATE = 0.05
CHILD_PRICE_FACTOR = 0.5


@dataclass(frozen=True)
class AddOnLine:
    price: float
    per_guest: bool = False
    title: str = ""


@dataclass(frozen=True)
class PriceBreakdown:
    unit_price: float
    adult_subtotal: float
    child_subtotal: float
    add_on_subtotal: float
    subtotal: float
    service_fee: float
    tax: float
    total: float


def calculate_price(unit_price: float, adults: int, children: int, add_ons: Iterable[AddOnLine] = ()) -> PriceBreakdown:
    adults = max(int(adults or 0), 0)
    children = max(int(children or 0), 0)
    unit_price = float(unit_price or 0)

    adult_subtotal = unit_price * adults
    child_subtotal = unit_price * CHILD_PRICE_FACTOR * children

    guests = adults + children
    add_on_subtotal = 0.0
    for a in add_ons:
        add_on_subtotal += float(a.price or 0) * (guests if a.per_guest else 1)

    subtotal = adult_subtotal + child_subtotal + add_on_subtotal
    service_fee = subtotal * SERVICE_FEE_RATE
    tax = subtotal * TAX_RATE
    return PriceBreakdown(
        unit_price=unit_price,
        adult_subtotal=adult_subtotal,
        child_subtotal=child_subtotal,
        add_on_subtotal=add_on_subtotal,
        subtotal=subtotal,
        service_fee=service_fee,
        tax=tax,
        total=subtotal + service_fee + tax,
    )


def unit_price_for(item: CartItemIn) -> float:
    """Selected booking option wins, then the discounted price, then list price."""
    if item.selectedBookingOption and item.selectedBookingOption.price:
        return float(item.selectedBookingOption.price)
    if item.discountPrice:
        return float(item.discountPrice)
    return float(item.price or 0)


def selected_add_ons(item: CartItemIn) -> list[AddOnLine]:
    lines = []
    for add_on_id, qty in (item.selectedAddOns or {}).items():
        detail = (item.selectedAddOnDetails or {}).get(add_on_id)
        if detail is None or int(qty or 0) <= 0:
            continue
        lines.append(AddOnLine(price=detail.price, per_guest=detail.perGuest, title=detail.title))
    return lines


def price_cart_item(item: CartItemIn) -> PriceBreakdown:
    return calculate_price(unit_price_for(item), item.quantity, item.childQuantity, selected_add_ons(item))


def round_money(value: float) -> float:
    return round(float(value), 2)
