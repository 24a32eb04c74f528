"""Minimal Django settings for running event_checkout tests."""

from event_checkout.cors import CORS_ALLOW_HEADERS, CORS_ALLOW_METHODS  # noqa: F401

DATABASES: dict[str, dict[str, str]] = {}
INSTALLED_APPS = [
    "corsheaders",
    "event_checkout",
]
MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.common.CommonMiddleware",
]
SECRET_KEY = "test-secret-key-not-for-production"
USE_TZ = True
ALLOWED_HOSTS = ["*"]
ROOT_URLCONF = "tests.urls"

CORS_ALLOW_ALL_ORIGINS = True

EVENT_CHECKOUT = {
    "stripe": {
        "secret_key": "sk_test_abc123",
        "webhook_secret": "whsec_test_secret",
    },
    "supabase": {
        "url": "https://test-project.supabase.co",
        "service_role_key": "service-role-test-key",
    },
}
