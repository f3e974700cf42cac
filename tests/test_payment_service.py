import re

import pytest

from app.core.errors import CheckoutValidationError, PaymentError
from app.services.payment_service import resolve_payment, to_minor_units


def test_minor_units_round_half_up():
    assert to_minor_units(291.6) == 29160
    assert to_minor_units(10.005) == 1001
    assert to_minor_units(0) == 0


@pytest.mark.parametrize("method,prefix", [("bank", "BANK"), ("pay_later", "PAYLATER")])
def test_offline_methods_synthesize_transaction_id(gateway, method, prefix):
    result = resolve_payment(gateway, method, 120.0, "usd")

    assert re.fullmatch(rf"{prefix}-\d+-[A-Z0-9]{{6}}", result.transaction_id)
    assert result.status == "pending"
    assert result.amount == 120.0
    assert result.currency == "USD"
    assert gateway.created == []


def test_unsupported_method_is_rejected(gateway):
    with pytest.raises(CheckoutValidationError):
        resolve_payment(gateway, "crypto", 10, "USD")


def test_succeeded_intent_with_matching_amount(gateway):
    gateway.add_intent("pi_ok", 29160)
    result = resolve_payment(gateway, "card", 291.6, "USD", payment_intent_id="pi_ok")

    assert result.transaction_id == "pi_ok"
    assert result.status == "succeeded"
    assert result.amount == pytest.approx(291.6)


def test_intent_not_completed(gateway):
    gateway.add_intent("pi_wait", 29160, status="requires_payment_method")
    with pytest.raises(PaymentError, match="not been completed"):
        resolve_payment(gateway, "card", 291.6, "USD", payment_intent_id="pi_wait")


def test_intent_amount_mismatch(gateway):
    gateway.add_intent("pi_low", 100)
    with pytest.raises(PaymentError, match="amount mismatch"):
        resolve_payment(gateway, "card", 291.6, "USD", payment_intent_id="pi_low")


def test_intent_owned_by_another_tenant(gateway):
    gateway.add_intent("pi_other", 29160, metadata={"tenant_id": "other"})
    with pytest.raises(PaymentError, match="does not belong"):
        resolve_payment(gateway, "card", 291.6, "USD", payment_intent_id="pi_other", tenant_id="acme")

    # intents created without a tenant tag are still accepted
    gateway.add_intent("pi_untagged", 29160)
    assert resolve_payment(gateway, "card", 291.6, "USD", payment_intent_id="pi_untagged",
                           tenant_id="acme").transaction_id == "pi_untagged"


def test_legacy_path_creates_and_confirms(gateway):
    result = resolve_payment(gateway, "card", 50, "EUR", payment_method_id="pm_card_visa",
                             receipt_email="jane@example.com", metadata={"tenant_id": "acme"})

    assert result.transaction_id == "pi_created_1"
    call = gateway.created[0]
    assert call["amount"] == 5000
    assert call["confirm"] is True
    assert call["payment_method"] == "pm_card_visa"
    assert call["metadata"] == {"tenant_id": "acme"}


def test_legacy_path_declined(gateway):
    gateway.create_status = "requires_action"
    with pytest.raises(PaymentError, match="Payment processing failed"):
        resolve_payment(gateway, "card", 50, "USD", payment_method_id="pm_x")


def test_gateway_error_becomes_payment_error(gateway):
    gateway.fail_with = "Your card was declined."
    with pytest.raises(PaymentError) as exc:
        resolve_payment(gateway, "card", 50, "USD", payment_intent_id="pi_any")
    assert exc.value.status_code == 402
    assert "declined" in exc.value.message
