import pytest

from app.schemas.checkout import CartItemIn
from app.services.pricing_service import AddOnLine, calculate_price, price_cart_item, unit_price_for


def test_adults_children_and_booking_level_add_on():
    p = calculate_price(100, adults=2, children=1, add_ons=[AddOnLine(price=20, per_guest=False)])

    assert p.adult_subtotal == pytest.approx(200)
    assert p.child_subtotal == pytest.approx(50)
    assert p.add_on_subtotal == pytest.approx(20)
    assert p.subtotal == pytest.approx(270)
    assert p.service_fee == pytest.approx(8.10)
    assert p.tax == pytest.approx(13.50)
    assert p.total == pytest.approx(291.60)


def test_per_guest_add_on_scales_with_adults_and_children():
    p = calculate_price(100, adults=2, children=1, add_ons=[AddOnLine(price=10, per_guest=True)])
    assert p.add_on_subtotal == pytest.approx(30)


def test_infants_are_free():
    item = CartItemIn(id="t1", price=80, quantity=1, childQuantity=0, infantQuantity=3)
    p = price_cart_item(item)
    assert p.subtotal == pytest.approx(80)
    assert p.total == pytest.approx(80 * 1.08)


def test_total_is_subtotal_plus_eight_percent():
    p = calculate_price(37.5, adults=3, children=2)
    assert p.total == pytest.approx(p.subtotal * 1.08)


def test_unit_price_prefers_option_then_discount_price():
    item = CartItemIn(id="t1", price=100, discountPrice=80)
    assert unit_price_for(item) == 80

    item = CartItemIn(id="t1", price=100, discountPrice=80, selectedBookingOption={"id": "vip", "price": 150})
    assert unit_price_for(item) == 150

    assert unit_price_for(CartItemIn(id="t1", price=100)) == 100


def test_unselected_add_ons_are_ignored():
    item = CartItemIn(
        id="t1",
        price=50,
        quantity=2,
        selectedAddOns={"lunch": 1, "camel": 0},
        selectedAddOnDetails={
            "lunch": {"price": 15, "perGuest": True, "title": "Lunch"},
            "camel": {"price": 40, "perGuest": False, "title": "Camel ride"},
        },
    )
    p = price_cart_item(item)
    assert p.add_on_subtotal == pytest.approx(30)
    assert p.subtotal == pytest.approx(130)


def test_cart_item_accepts_underscore_id_alias():
    assert CartItemIn.model_validate({"_id": "abc", "price": 10}).id == "abc"
    assert CartItemIn.model_validate({"tourId": "xyz", "price": 10}).id == "xyz"
