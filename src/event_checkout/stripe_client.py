"""Stripe client wrapper for checkout sessions and webhook verification.

The client is constructed explicitly from a secret key and API version and
uses the modern ``stripe.StripeClient`` pattern (v1 namespace) for all API
calls, so no global ``stripe.api_key`` is ever set.
"""

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import stripe

from event_checkout.errors import InvalidRequest, Unauthorized, UpstreamFailure
from event_checkout.models import Event
from event_checkout.stripe_utils import convert_amount_for_api, obfuscate_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CheckoutSession:
    """The parts of a Stripe Checkout Session the relay needs.

    Attributes:
        id: The Stripe session ID (``cs_...``), used to correlate the
            completion webhook with the registration.
        url: The hosted payment page to redirect the client to.
    """

    id: str
    url: str


class StripeGateway:
    """Stripe API client bound to one secret key.

    Wraps ``stripe.StripeClient`` (v1 namespace) and binds every call to the
    given secret key and API version.

    Args:
        secret_key: The Stripe secret API key.
        api_version: The Stripe API version to pin requests to.

    Raises:
        ValueError: If no secret key is given.
    """

    def __init__(self, secret_key: str | None, *, api_version: str) -> None:
        if not secret_key:
            msg = (
                "Stripe is not configured. Set EVENT_CHECKOUT['stripe']['secret_key'] "
                "before initializing StripeGateway."
            )
            raise ValueError(msg)

        self.client = stripe.StripeClient(
            secret_key,
            stripe_version=api_version,
        )

        logger.debug("Initialized StripeGateway with key %s", obfuscate_key(secret_key))

    def create_checkout_session(
        self,
        *,
        event: Event,
        user_id: str,
        success_url: str,
        cancel_url: str,
        currency: str,
        payment_method_types: Sequence[str] = ("card",),
    ) -> CheckoutSession:
        """Create a one-time payment Checkout Session for an event ticket.

        Charges a single line item priced from the event. The event and user
        IDs ride along as session metadata, which Stripe echoes back in the
        ``checkout.session.completed`` webhook.

        Args:
            event: The event being paid for.
            user_id: The registering user's ID.
            success_url: Where Stripe redirects after payment.
            cancel_url: Where Stripe redirects if the user backs out.
            currency: ISO 4217 currency code for the charge.
            payment_method_types: Payment methods offered on the hosted page.

        Returns:
            The created session's ID and redirect URL.

        Raises:
            UpstreamFailure: If Stripe rejects the request or returns no URL.
        """
        product_data: dict[str, object] = {"name": event.title}
        if event.description:
            product_data["description"] = event.description

        params: dict[str, object] = {
            "payment_method_types": list(payment_method_types),
            "line_items": [
                {
                    "price_data": {
                        "currency": currency.lower(),
                        "product_data": product_data,
                        "unit_amount": convert_amount_for_api(event.price, currency),
                    },
                    "quantity": 1,
                },
            ],
            "mode": "payment",
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": {
                "eventId": event.id,
                "userId": user_id,
            },
        }

        try:
            session = self.client.v1.checkout.sessions.create(params=params)
        except stripe.StripeError as exc:
            msg = f"Stripe could not create a checkout session for event {event.id}"
            raise UpstreamFailure(msg, service="stripe", details=str(exc.user_message or exc)) from exc

        if not session.url:
            msg = f"Stripe returned no checkout URL for session {session.id}"
            raise UpstreamFailure(msg, service="stripe")

        logger.info("Created checkout session %s for event %s (user %s)", session.id, event.id, user_id)
        return CheckoutSession(id=session.id, url=session.url)

    @staticmethod
    def verify_webhook(payload: bytes, sig_header: str, secret: str, *, tolerance: int) -> dict[str, Any]:
        """Verify a webhook signature and decode the event.

        The signature is checked over the exact bytes received; only then is
        the body parsed.

        Args:
            payload: The raw, unparsed request body.
            sig_header: The ``Stripe-Signature`` header value.
            secret: The endpoint's webhook signing secret.
            tolerance: Maximum accepted age of the signature timestamp, in seconds.

        Returns:
            The verified event as a plain dict.

        Raises:
            Unauthorized: If the signature does not match, or the body is not
                UTF-8 and so cannot carry a valid signature.
            InvalidRequest: If the signed body is not a JSON object.
        """
        try:
            body = payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise Unauthorized(f"Signature verification failed: payload is not UTF-8 ({exc})") from exc

        try:
            stripe.WebhookSignature.verify_header(body, sig_header, secret, tolerance)
        except stripe.SignatureVerificationError as exc:
            raise Unauthorized(f"Signature verification failed: {exc.user_message or exc}") from exc

        try:
            event = json.loads(body)
        except json.JSONDecodeError as exc:
            raise InvalidRequest(f"Invalid payload: {exc}") from exc
        if not isinstance(event, dict):
            raise InvalidRequest("Invalid payload: expected a JSON object")
        return event
