"""URL configuration for the event_checkout app.

Mount at the root of the host project so the client and Stripe see the
documented paths::

    urlpatterns = [
        path("", include("event_checkout.urls")),
    ]
"""

from django.urls import path

from event_checkout.views import create_checkout_session, health, stripe_webhook

app_name = "event_checkout"

urlpatterns = [
    path("", health, name="health"),
    path("create-checkout-session", create_checkout_session, name="create-checkout-session"),
    path("webhook", stripe_webhook, name="stripe-webhook"),
]
