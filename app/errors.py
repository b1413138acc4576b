"""Error taxonomy for the booking service.

Every error carries the HTTP status it maps to; the handlers registered in
``app.main`` turn them into responses.
"""


class BookingServiceError(Exception):
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookingServiceError):
    """Client sent a booking we cannot accept."""

    status_code = 400


class MissingFields(ValidationError):
    def __init__(self, message: str = "Missing required booking information"):
        super().__init__(message)


class UnknownService(ValidationError):
    def __init__(self, service_id: str, message: str = "Invalid service selected"):
        super().__init__(message)
        self.service_id = service_id


class SignatureError(BookingServiceError):
    """Webhook body could not be verified against the signing secret."""

    status_code = 400


class WebhookNotConfigured(BookingServiceError):
    status_code = 503

    def __init__(self, message: str = "Webhook secret not configured"):
        super().__init__(message)


class ProviderError(BookingServiceError):
    """The payment provider rejected or failed a request."""

    status_code = 500

    def __init__(self, message: str, operation: str = "unknown"):
        super().__init__(message)
        self.operation = operation


class NotFoundError(BookingServiceError):
    status_code = 404


class CatalogError(Exception):
    """Service catalog data could not be loaded."""
