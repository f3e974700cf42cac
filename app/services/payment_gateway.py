from dataclasses import dataclass, field

import stripe


class PaymentGatewayError(RuntimeError):
    pass


@dataclass
class PaymentIntent:
    id: str
    status: str          # succeeded, requires_payment_method, processing, ...
    amount: int          # minor units (cents)
    currency: str
    client_secret: str | None = None
    metadata: dict = field(default_factory=dict)


class PaymentGateway:
    """What checkout needs from a card processor. Swap in a fake for tests."""

    def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        raise NotImplementedError

    def create_intent(self, *, amount: int, currency: str, description: str, metadata: dict,
                      confirm: bool = False, payment_method: str | None = None,
                      receipt_email: str | None = None) -> PaymentIntent:
        raise NotImplementedError


@dataclass
class StripeConfig:
    api_key: str


def _to_intent(obj) -> PaymentIntent:
    metadata = obj.get("metadata") or {}
    return PaymentIntent(
        id=obj["id"],
        status=obj["status"],
        amount=int(obj["amount"] or 0),
        currency=str(obj.get("currency") or "").upper(),
        client_secret=obj.get("client_secret"),
        metadata={k: v for k, v in metadata.items()},
    )


class StripeGateway(PaymentGateway):
    def __init__(self, cfg: StripeConfig):
        self.cfg = cfg

    def _require_key(self) -> str:
        if not self.cfg.api_key:
            raise PaymentGatewayError("Stripe is not configured (missing STRIPE_SECRET_KEY)")
        return self.cfg.api_key

    def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        api_key = self._require_key()
        try:
            return _to_intent(stripe.PaymentIntent.retrieve(intent_id, api_key=api_key))
        except stripe.StripeError as e:
            raise PaymentGatewayError(getattr(e, "user_message", None) or str(e)) from e

    def create_intent(self, *, amount: int, currency: str, description: str, metadata: dict,
                      confirm: bool = False, payment_method: str | None = None,
                      receipt_email: str | None = None) -> PaymentIntent:
        api_key = self._require_key()
        params = {
            "amount": amount,
            "currency": currency.lower(),
            "description": description,
            "metadata": metadata,
            "automatic_payment_methods": {"enabled": True},
        }
        if confirm:
            # server-side confirmation cannot follow a redirect
            params["confirm"] = True
            params["automatic_payment_methods"]["allow_redirects"] = "never"
        if payment_method:
            params["payment_method"] = payment_method
        if receipt_email:
            params["receipt_email"] = receipt_email
        try:
            return _to_intent(stripe.PaymentIntent.create(api_key=api_key, **params))
        except stripe.StripeError as e:
            raise PaymentGatewayError(getattr(e, "user_message", None) or str(e)) from e
