class CheckoutError(Exception):
    """Base for checkout failures that map to a client-visible response."""
    status_code = 500

    def __init__(self, message: str, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra


class CheckoutValidationError(CheckoutError):
    status_code = 400


class PaymentError(CheckoutError):
    status_code = 402


class TourNotFoundError(CheckoutError):
    status_code = 404


class UserNotFoundError(CheckoutError):
    status_code = 404
