"""Typed configuration for event_checkout.

Reads a single ``EVENT_CHECKOUT`` dict from Django settings and exposes it as
composed, frozen dataclasses with sensible defaults.

Usage::

    from event_checkout.settings import get_config

    config = get_config()
    config.stripe.secret_key
    config.supabase.url
    config.currency
"""

import functools
from collections.abc import Mapping
from dataclasses import dataclass, field

from django.conf import settings
from django.test.signals import setting_changed

STATUS_ON_PAYMENT_CHOICES: frozenset[str] = frozenset({"approved", "pending"})


@dataclass(frozen=True, slots=True)
class StripeConfig:
    """Stripe payment gateway configuration."""

    secret_key: str | None = None
    webhook_secret: str | None = None
    api_version: str = "2024-12-18.acacia"
    webhook_tolerance: int = 300
    payment_method_types: tuple[str, ...] = ("card",)


@dataclass(frozen=True, slots=True)
class SupabaseConfig:
    """Supabase REST and auth API configuration."""

    url: str | None = None
    service_role_key: str | None = None
    events_table: str = "events"
    registrations_table: str = "registrations"
    timeout: float = 30


@dataclass(frozen=True, slots=True)
class CheckoutConfig:
    """Top-level event_checkout configuration.

    Attributes:
        status_on_payment: Registration ``status`` written when Stripe confirms
            payment. ``"approved"`` admits the attendee immediately;
            ``"pending"`` leaves the registration for manual approval while
            ``payment_status`` still becomes ``"completed"``.
        fetch_user_email: Look up the user's email in Supabase auth when
            recording a registration.
    """

    stripe: StripeConfig = field(default_factory=StripeConfig)
    supabase: SupabaseConfig = field(default_factory=SupabaseConfig)
    currency: str = "usd"
    status_on_payment: str = "approved"
    fetch_user_email: bool = True


def _section(raw_data: dict[str, object], key: str) -> dict[str, object]:
    """Pop a nested section from the raw config, normalizing list values to tuples."""
    data = raw_data.pop(key, {})
    if not isinstance(data, Mapping):
        msg = f"EVENT_CHECKOUT['{key}'] must be a mapping (dict-like object)"
        raise TypeError(msg)
    return {name: tuple(value) if isinstance(value, list) else value for name, value in data.items()}


@functools.lru_cache(maxsize=1)
def get_config() -> CheckoutConfig:
    """Build and return the checkout configuration.

    Reads ``settings.EVENT_CHECKOUT`` (a plain dict) and returns a frozen
    :class:`CheckoutConfig`.  The result is cached; the cache is cleared
    automatically when Django's ``setting_changed`` signal fires (e.g. inside
    ``override_settings``).
    """
    raw = getattr(settings, "EVENT_CHECKOUT", {})
    if not isinstance(raw, Mapping):
        msg = "EVENT_CHECKOUT must be a mapping (dict-like object)"
        raise TypeError(msg)
    raw_data = dict(raw)

    stripe_data = _section(raw_data, "stripe")
    supabase_data = _section(raw_data, "supabase")

    config = CheckoutConfig(
        stripe=StripeConfig(**stripe_data),
        supabase=SupabaseConfig(**supabase_data),
        **raw_data,
    )
    _validate_checkout_config(config)
    return config


def _validate_checkout_config(config: CheckoutConfig) -> None:
    """Validate high-impact configuration values with clear error messages."""
    if not isinstance(config.currency, str) or not config.currency.strip():
        msg = "EVENT_CHECKOUT['currency'] must be a non-empty string"
        raise ValueError(msg)
    if config.status_on_payment not in STATUS_ON_PAYMENT_CHOICES:
        msg = (
            "EVENT_CHECKOUT['status_on_payment'] must be one of "
            f"{', '.join(sorted(STATUS_ON_PAYMENT_CHOICES))}, got {config.status_on_payment!r}"
        )
        raise ValueError(msg)
    if not isinstance(config.fetch_user_email, bool):
        msg = "EVENT_CHECKOUT['fetch_user_email'] must be a boolean"
        raise TypeError(msg)
    if not isinstance(config.stripe.webhook_tolerance, int) or config.stripe.webhook_tolerance <= 0:
        msg = "EVENT_CHECKOUT['stripe']['webhook_tolerance'] must be a positive integer"
        raise ValueError(msg)
    if not config.stripe.payment_method_types:
        msg = "EVENT_CHECKOUT['stripe']['payment_method_types'] must not be empty"
        raise ValueError(msg)
    if not isinstance(config.supabase.timeout, (int, float)) or config.supabase.timeout <= 0:
        msg = "EVENT_CHECKOUT['supabase']['timeout'] must be a positive number"
        raise ValueError(msg)


def _clear_config_cache(*, setting: str, **kwargs: object) -> None:  # noqa: ARG001
    """Clear the cached config when Django settings change during tests."""
    if setting == "EVENT_CHECKOUT":
        get_config.cache_clear()


setting_changed.connect(_clear_config_cache, dispatch_uid="event_checkout.settings.clear_config_cache")
