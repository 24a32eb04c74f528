"""Checkout service for starting paid event registrations.

Validates the request, prices the event, opens a Stripe Checkout Session and
records a pending registration that the webhook later completes. The store
and gateway are passed in so the flow runs against fakes in tests.
"""

import logging
from decimal import Decimal

from event_checkout.errors import CheckoutError, InvalidRequest, InvalidState, NotFound
from event_checkout.models import (
    CheckoutRequest,
    PaymentStatus,
    Registration,
    RegistrationStatus,
    TicketStatus,
    generate_ticket_number,
)
from event_checkout.settings import CheckoutConfig
from event_checkout.store import EventStore
from event_checkout.stripe_client import CheckoutSession, StripeGateway

logger = logging.getLogger(__name__)


class CheckoutService:
    """Starts Stripe checkouts for event registrations.

    Args:
        store: Where events are read and registrations written.
        gateway: The Stripe client used to open checkout sessions.
        config: Currency, payment methods and user email lookup settings.
    """

    def __init__(self, store: EventStore, gateway: StripeGateway, config: CheckoutConfig) -> None:
        self.store = store
        self.gateway = gateway
        self.config = config

    def create_checkout_session(self, request: CheckoutRequest) -> CheckoutSession:
        """Open a checkout session and record the pending registration.

        The registration is only written after Stripe has returned a session,
        so a gateway failure leaves nothing behind. If Stripe succeeds but the
        write fails, the session is orphaned; the failure is logged with the
        session ID and re-raised.

        Args:
            request: The validated checkout request.

        Returns:
            The created session. Its ``url`` is the hosted payment page.

        Raises:
            InvalidRequest: If a required field is blank.
            NotFound: If the event does not exist.
            InvalidState: If the event price is not positive.
            UpstreamFailure: If Stripe or Supabase fails.
        """
        missing = request.missing_fields()
        if missing:
            msg = f"Missing required fields: {', '.join(missing)}"
            raise InvalidRequest(msg, fields=missing)

        event = self.store.get_event(request.event_id)
        if event is None:
            raise NotFound(request.event_id)

        if event.price <= Decimal(0):
            msg = f"Event {event.id} has no chargeable price ({event.price})"
            raise InvalidState(msg)

        session = self.gateway.create_checkout_session(
            event=event,
            user_id=request.user_id,
            success_url=request.success_url,
            cancel_url=request.cancel_url,
            currency=self.config.currency,
            payment_method_types=self.config.stripe.payment_method_types,
        )

        registration = Registration(
            event_id=event.id,
            user_id=request.user_id,
            user_email=self._lookup_email(request.user_id),
            status=RegistrationStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            payment_amount=event.price,
            stripe_session_id=session.id,
            ticket_number=generate_ticket_number(),
            ticket_status=TicketStatus.VALID,
        )
        try:
            self.store.create_registration(registration)
        except Exception:
            logger.exception(
                "Checkout session %s for event %s (user %s) has no registration; store write failed",
                session.id,
                event.id,
                request.user_id,
            )
            raise

        logger.info(
            "Recorded pending registration for event %s (user %s, session %s, ticket %s)",
            event.id,
            request.user_id,
            session.id,
            registration.ticket_number,
        )
        return session

    def _lookup_email(self, user_id: str) -> str | None:
        """Fetch the user's email, or ``None`` when disabled or unavailable."""
        if not self.config.fetch_user_email:
            return None
        try:
            return self.store.get_user_email(user_id)
        except CheckoutError as exc:
            logger.warning("Could not fetch email for user %s: %s", user_id, exc)
            return None
