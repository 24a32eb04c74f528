"""URL configuration for the standalone checkout relay."""

from django.urls import include, path

urlpatterns = [
    path("", include("event_checkout.urls")),
]
