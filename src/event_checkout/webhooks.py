"""Stripe webhook reconciliation.

Provides a registry-based dispatch system for processing Stripe webhook events.
Each event kind (e.g. ``checkout.session.completed``) maps to a handler class
that applies the event to the registrations in the store.

:class:`WebhookReconciler` verifies the event signature over the raw request
body before anything in the payload is trusted, then delegates to the
registered handler. The HTTP endpoint lives in :mod:`event_checkout.views`.
"""

import logging
from collections.abc import Iterable
from typing import Any

from event_checkout.settings import CheckoutConfig
from event_checkout.store import EventStore
from event_checkout.stripe_client import StripeGateway
from event_checkout.stripe_utils import convert_amount_for_db

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Base handler
# ---------------------------------------------------------------------------


class Webhook:
    """Base class for Stripe webhook event handlers.

    Subclasses must set ``name`` to the Stripe event kind they handle and
    implement ``process_webhook()`` with the actual business logic.

    Attributes:
        name: The Stripe event kind this handler processes.
        event: The verified Stripe event payload being handled.
        store: The store registrations are updated in.
        config: The active checkout configuration.
    """

    name: str = ""

    def __init__(self, event: dict[str, Any], store: EventStore, config: CheckoutConfig) -> None:
        self.event = event
        self.store = store
        self.config = config

    @property
    def event_id(self) -> str:
        """Return the Stripe event ID (``evt_...``)."""
        return str(self.event.get("id", ""))

    def process(self) -> None:
        """Run the handler, logging any failure with the event ID before re-raising."""
        try:
            self.process_webhook()
        except Exception:
            logger.exception("Error processing webhook %s (event %s)", self.name, self.event_id)
            raise

    def process_webhook(self) -> None:
        """Implement event-specific processing logic.

        Raises:
            NotImplementedError: Subclasses must override this method.
        """
        raise NotImplementedError


def _event_data_object(event: dict[str, Any]) -> dict[str, Any]:
    """Extract the ``data.object`` dict from a Stripe event, or ``{}``."""
    data = event.get("data")
    if isinstance(data, dict):
        obj = data.get("object")
        if isinstance(obj, dict):
            return obj
    return {}


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class WebhookRegistry:
    """Lookup table from Stripe event kind to the handler class for it.

    Handlers register under their own ``name``, usually by decorating the
    class with :meth:`register`. The reconciler asks :meth:`get` for the
    handler of each incoming event.
    """

    def __init__(self, handlers: Iterable[type[Webhook]] = ()) -> None:
        self._handlers: dict[str, type[Webhook]] = {}
        for handler_class in handlers:
            self.register(handler_class)

    def register(self, handler_class: type[Webhook]) -> type[Webhook]:
        """Add *handler_class* under its ``name`` and return it unchanged.

        Raises:
            ValueError: If the class has no ``name``, or another class already
                handles that kind.
        """
        kind = handler_class.name
        if not kind:
            msg = f"{handler_class.__name__} must set 'name' to the Stripe event kind it handles"
            raise ValueError(msg)
        existing = self._handlers.get(kind)
        if existing is not None and existing is not handler_class:
            msg = f"'{kind}' is already handled by {existing.__name__}"
            raise ValueError(msg)
        self._handlers[kind] = handler_class
        return handler_class

    def get(self, kind: str) -> type[Webhook] | None:
        return self._handlers.get(kind)

    def __contains__(self, kind: object) -> bool:
        return kind in self._handlers

    def kinds(self) -> list[str]:
        """Registered event kinds, sorted."""
        return sorted(self._handlers)


registry = WebhookRegistry()


# ---------------------------------------------------------------------------
# Concrete handlers
# ---------------------------------------------------------------------------


@registry.register
class CheckoutSessionCompletedWebhook(Webhook):
    """Handles ``checkout.session.completed`` events.

    Finds the pending registration by the ``eventId``/``userId`` metadata and
    the session ID, and marks it paid. The registration ``status`` becomes the
    configured ``status_on_payment``. A notification that matches nothing
    (unknown session, or one already completed) is logged and acknowledged
    so Stripe does not redeliver it forever.
    """

    name = "checkout.session.completed"

    def process_webhook(self) -> None:
        """Complete the matching registration's payment."""
        session = _event_data_object(self.event)
        metadata = session.get("metadata")
        if not isinstance(metadata, dict):
            metadata = {}

        event_id = metadata.get("eventId")
        user_id = metadata.get("userId")
        session_id = session.get("id")
        if not event_id or not user_id or not session_id:
            logger.warning(
                "Checkout session %s in event %s has no registration metadata, skipping",
                session_id,
                self.event_id,
            )
            return

        payment_intent = session.get("payment_intent")
        if isinstance(payment_intent, dict):
            payment_intent = payment_intent.get("id")

        updated = self.store.complete_registration_payment(
            event_id=str(event_id),
            user_id=str(user_id),
            session_id=str(session_id),
            payment_intent_id=str(payment_intent) if payment_intent else None,
            status=self.config.status_on_payment,
        )

        if not updated:
            logger.warning(
                "No pending registration for event %s, user %s, session %s (event %s)",
                event_id,
                user_id,
                session_id,
                self.event_id,
            )
            return

        amount_total = session.get("amount_total")
        currency = str(session.get("currency") or self.config.currency)
        logger.info(
            "Registration for event %s (user %s) paid %s %s via session %s, payment_intent %s",
            event_id,
            user_id,
            convert_amount_for_db(amount_total, currency) if isinstance(amount_total, int) else "?",
            currency.upper(),
            session_id,
            payment_intent,
        )


@registry.register
class CheckoutSessionExpiredWebhook(Webhook):
    """Handles ``checkout.session.expired`` events.

    Logs the abandoned session. The pending registration is left as is.
    """

    name = "checkout.session.expired"

    def process_webhook(self) -> None:
        """Log the expired session."""
        session = _event_data_object(self.event)
        metadata = session.get("metadata") or {}
        logger.info(
            "Checkout session %s expired unpaid: event=%s, user=%s",
            session.get("id"),
            metadata.get("eventId"),
            metadata.get("userId"),
        )


# ---------------------------------------------------------------------------
# Reconciler
# ---------------------------------------------------------------------------


class WebhookReconciler:
    """Verifies Stripe notifications and dispatches them to handlers.

    Args:
        store: The store handlers update registrations in.
        config: The active configuration; supplies the webhook signing
            secret, signature tolerance and the status-on-payment policy.
        handlers: The registry to dispatch through. Defaults to the module
            ``registry``.
    """

    def __init__(
        self,
        store: EventStore,
        config: CheckoutConfig,
        *,
        handlers: WebhookRegistry | None = None,
    ) -> None:
        if not config.stripe.webhook_secret:
            msg = "Stripe webhook secret is not configured. Set EVENT_CHECKOUT['stripe']['webhook_secret']."
            raise ValueError(msg)
        self.store = store
        self.config = config
        self.handlers = handlers if handlers is not None else registry

    def reconcile(self, payload: bytes, sig_header: str) -> dict[str, Any]:
        """Verify and apply one webhook delivery.

        Args:
            payload: The exact request body bytes Stripe signed.
            sig_header: The ``Stripe-Signature`` header value.

        Returns:
            The verified event.

        Raises:
            Unauthorized: If signature verification fails. Nothing is
                processed in that case.
            InvalidRequest: If the verified body is not a JSON object.
            UpstreamFailure: If the store update fails.
        """
        event = StripeGateway.verify_webhook(
            payload,
            sig_header,
            str(self.config.stripe.webhook_secret),
            tolerance=self.config.stripe.webhook_tolerance,
        )

        kind = event.get("type", "")
        handler_class = self.handlers.get(kind)
        if handler_class is None:
            logger.info("No handler registered for event kind '%s' (event %s)", kind, event.get("id"))
            return event

        handler_class(event, self.store, self.config).process()
        return event
