"""Django app configuration for event_checkout."""

from django.apps import AppConfig


class EventCheckoutConfig(AppConfig):
    """Configuration for the event checkout app."""

    name = "event_checkout"
    label = "event_checkout"
    verbose_name = "Event Checkout"
