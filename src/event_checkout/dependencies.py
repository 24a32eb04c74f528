"""Factories that build the checkout collaborators from configuration.

Views call these per request instead of sharing module-level clients, and
tests patch them to substitute fakes.
"""

from event_checkout.services.checkout import CheckoutService
from event_checkout.settings import get_config
from event_checkout.store import EventStore
from event_checkout.stripe_client import StripeGateway
from event_checkout.supabase_client import SupabaseEventStore
from event_checkout.webhooks import WebhookReconciler


def get_event_store() -> EventStore:
    """Return a Supabase-backed store for the configured project."""
    supabase = get_config().supabase
    return SupabaseEventStore(
        supabase.url,
        service_role_key=supabase.service_role_key,
        events_table=supabase.events_table,
        registrations_table=supabase.registrations_table,
        timeout=supabase.timeout,
    )


def get_payment_gateway() -> StripeGateway:
    """Return a Stripe client for the configured account."""
    stripe_config = get_config().stripe
    return StripeGateway(stripe_config.secret_key, api_version=stripe_config.api_version)


def get_checkout_service() -> CheckoutService:
    """Return a checkout service wired to the configured store and gateway."""
    return CheckoutService(get_event_store(), get_payment_gateway(), get_config())


def get_webhook_reconciler() -> WebhookReconciler:
    """Return a webhook reconciler wired to the configured store."""
    return WebhookReconciler(get_event_store(), get_config())
