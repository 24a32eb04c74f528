"""Django settings for running the checkout relay as a standalone service.

Configuration comes from the environment (optionally a ``.env`` file next to
this module): Stripe and Supabase credentials, the allowed CORS origins and
the listening port used by ``manage.py runserver``.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

from event_checkout.cors import CORS_ALLOW_HEADERS, CORS_ALLOW_METHODS, parse_allowed_origins  # noqa: F401

BASE_DIR = Path(__file__).resolve().parent
load_dotenv(BASE_DIR / ".env")

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "example-dev-key-not-for-production")
DEBUG = os.environ.get("DJANGO_DEBUG", "").lower() in {"1", "true", "yes"}
ALLOWED_HOSTS = [host.strip() for host in os.environ.get("ALLOWED_HOSTS", "*").split(",") if host.strip()]

INSTALLED_APPS = [
    "corsheaders",
    "event_checkout",
]

MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "urls"
WSGI_APPLICATION = "wsgi.application"

# Events and registrations live in Supabase; Django keeps no database of its own.
DATABASES: dict[str, dict[str, str]] = {}

USE_TZ = True

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "verbose"},
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
    "loggers": {
        "event_checkout": {
            "handlers": ["console"],
            "level": os.environ.get("LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}

# CORS for browser clients (django-cors-headers). CORS_ALLOWED_ORIGINS is a
# comma-separated list; "*" allows any origin.
CORS_ALLOW_ALL_ORIGINS, CORS_ALLOWED_ORIGINS = parse_allowed_origins(os.environ.get("CORS_ALLOWED_ORIGINS", "*"))
CORS_PREFLIGHT_MAX_AGE = int(os.environ.get("CORS_PREFLIGHT_MAX_AGE", "86400"))

EVENT_CHECKOUT = {
    "stripe": {
        "secret_key": os.environ.get("STRIPE_SECRET_KEY", ""),
        "webhook_secret": os.environ.get("STRIPE_WEBHOOK_SECRET", ""),
    },
    "supabase": {
        "url": os.environ.get("SUPABASE_URL", ""),
        "service_role_key": os.environ.get("SUPABASE_SERVICE_ROLE_KEY", ""),
    },
    "currency": os.environ.get("CHECKOUT_CURRENCY", "usd"),
    "status_on_payment": os.environ.get("REGISTRATION_STATUS_ON_PAYMENT", "approved"),
}
