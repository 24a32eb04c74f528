"""Error kinds raised by the checkout and webhook flows.

Every error carries the HTTP status it maps to at the request boundary and a
short machine-readable ``code``. Views translate them into responses; services
and adapters only raise.
"""

import http


class CheckoutError(Exception):
    """Base class for classified checkout and reconciliation failures."""

    code: str = "checkout_error"
    status_code: int = http.HTTPStatus.BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRequest(CheckoutError):
    """Raised when required request fields are missing or malformed.

    Attributes:
        fields: Names of the offending fields, in request order.
    """

    code = "invalid_request"

    def __init__(self, message: str, *, fields: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.fields = fields


class NotFound(CheckoutError):
    """Raised when the requested event does not exist."""

    code = "not_found"

    def __init__(self, event_id: str) -> None:
        super().__init__(f"Event {event_id} not found")
        self.event_id = event_id


class InvalidState(CheckoutError):
    """Raised when an event cannot be charged (free or misconfigured price)."""

    code = "invalid_state"


class UpstreamFailure(CheckoutError):
    """Raised when a Stripe or Supabase call fails.

    Attributes:
        service: ``"stripe"`` or ``"supabase"``.
        details: Extra diagnostic text from the failing call, if any.
    """

    code = "upstream_failure"
    status_code = http.HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, service: str, details: str = "") -> None:
        super().__init__(message)
        self.service = service
        self.details = details


class Unauthorized(CheckoutError):
    """Raised when a webhook payload fails signature verification."""

    code = "unauthorized"
