"""
Domain errors raised by the service layer.

Routes never build HTTP errors for these by hand: the handlers registered in
``visa_checkout.main`` translate them into the JSON shape each surface
expects.
"""


class VisaCheckoutError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(VisaCheckoutError):
    """Missing or malformed required input."""
    status_code = 400


class NotFoundError(VisaCheckoutError):
    """Unknown product, order or token."""
    status_code = 404


class ProviderError(VisaCheckoutError):
    """Upstream payment provider, database write or SMTP failure."""
    status_code = 500


class SignatureError(VisaCheckoutError):
    """Webhook could not be authenticated. Acknowledged, never surfaced."""
    status_code = 200
