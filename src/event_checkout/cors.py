"""Cross-origin defaults for browser clients of the checkout relay.

CORS is handled by django-cors-headers. Host projects import these values
into their settings module next to their own origin list::

    from event_checkout.cors import CORS_ALLOW_HEADERS, CORS_ALLOW_METHODS

    CORS_ALLOWED_ORIGINS = ["https://app.example.com"]
"""

from corsheaders.defaults import default_headers

# The relay only serves the health check and the two POST endpoints.
CORS_ALLOW_METHODS: tuple[str, ...] = ("GET", "POST", "OPTIONS")

# Supabase JS clients send these alongside the usual headers.
CORS_ALLOW_HEADERS: tuple[str, ...] = (*default_headers, "x-client-info", "apikey")


def parse_allowed_origins(value: str) -> tuple[bool, list[str]]:
    """Split a comma-separated origin list from the environment.

    Returns:
        ``(allow_all, origins)``. ``allow_all`` is true when the list is empty
        or contains ``*``; ``origins`` is then empty.
    """
    origins = [origin.strip() for origin in value.split(",") if origin.strip()]
    if not origins or "*" in origins:
        return True, []
    return False, origins
