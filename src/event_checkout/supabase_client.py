"""HTTP client for the Supabase REST and auth admin APIs.

Provides :class:`SupabaseEventStore`, the :class:`~event_checkout.store.EventStore`
implementation used in production.  Table access goes through PostgREST
(``/rest/v1/``) and user lookups through the GoTrue admin API
(``/auth/v1/admin/users/``).  Every request authenticates with the project's
service-role key, which bypasses row-level security; keep it server-side.
"""

import http
import logging
from typing import Any
from urllib.parse import quote

import httpx

from event_checkout.errors import UpstreamFailure
from event_checkout.models import Event, PaymentStatus, Registration
from event_checkout.store import EventStore
from event_checkout.stripe_utils import obfuscate_key

logger = logging.getLogger(__name__)


class SupabaseEventStore(EventStore):
    """Event store backed by a Supabase project.

    Args:
        url: The project URL (e.g. ``"https://abc.supabase.co"``).
        service_role_key: The privileged service-role API key.
        events_table: Name of the events table.
        registrations_table: Name of the registrations table.
        timeout: Per-request timeout in seconds.

    Raises:
        ValueError: If the URL or service-role key is missing.

    Example::

        store = SupabaseEventStore("https://abc.supabase.co", service_role_key="...")
        event = store.get_event("42")
    """

    def __init__(
        self,
        url: str | None,
        *,
        service_role_key: str | None,
        events_table: str = "events",
        registrations_table: str = "registrations",
        timeout: float = 30,
    ) -> None:
        if not url or not service_role_key:
            msg = (
                "Supabase is not configured. Set EVENT_CHECKOUT['supabase']['url'] and "
                "EVENT_CHECKOUT['supabase']['service_role_key']."
            )
            raise ValueError(msg)

        self.base_url = url.rstrip("/")
        self.rest_url = f"{self.base_url}/rest/v1"
        self.auth_url = f"{self.base_url}/auth/v1"
        self.events_table = events_table
        self.registrations_table = registrations_table
        self.timeout = timeout
        self.headers: dict[str, str] = {
            "apikey": service_role_key,
            "Authorization": f"Bearer {service_role_key}",
            "Accept": "application/json",
        }
        logger.debug("Initialized SupabaseEventStore for %s (key %s)", self.base_url, obfuscate_key(service_role_key))

    def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        allow_not_found: bool = False,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Args:
            method: HTTP method.
            url: Absolute request URL.
            params: Query parameters (PostgREST filters).
            json: JSON request body.
            headers: Extra headers merged over the auth headers.
            allow_not_found: Return ``None`` instead of raising on HTTP 404.

        Returns:
            The decoded JSON response, or ``None`` for an empty body or an
            allowed 404.

        Raises:
            UpstreamFailure: If the request cannot be sent or Supabase returns
                an error status.
        """
        with httpx.Client(timeout=self.timeout, headers=self.headers) as client:
            logger.debug("%s %s %s", method, url, params or "")
            try:
                response = client.request(method, url, params=params, json=json, headers=headers)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                if allow_not_found and exc.response.status_code == http.HTTPStatus.NOT_FOUND:
                    return None
                msg = f"Supabase request failed: {exc.response.status_code} for URL {exc.request.url}"
                raise UpstreamFailure(msg, service="supabase", details=exc.response.text) from exc
            except httpx.RequestError as exc:
                msg = f"Supabase connection error for URL {url}: {exc}"
                raise UpstreamFailure(msg, service="supabase", details=str(exc)) from exc

        if not response.content:
            return None
        return response.json()

    def get_event(self, event_id: str) -> Event | None:
        """Fetch a single event row by primary key."""
        rows = self._request(
            "GET",
            f"{self.rest_url}/{self.events_table}",
            params={"id": f"eq.{event_id}", "select": "*", "limit": "1"},
        )
        if not rows:
            return None
        return Event.from_row(rows[0])

    def get_user_email(self, user_id: str) -> str | None:
        """Look up a user's email through the auth admin API.

        The ID comes from the client, so it is escaped as a single path
        segment and cannot leave the ``/admin/users/`` endpoint.
        """
        url = f"{self.auth_url}/admin/users/{quote(user_id, safe='')}"
        user = self._request("GET", url, allow_not_found=True)
        if not isinstance(user, dict):
            return None
        email = user.get("email")
        return str(email) if email else None

    def create_registration(self, registration: Registration) -> Registration:
        """Insert a registration row and return it as stored."""
        rows = self._request(
            "POST",
            f"{self.rest_url}/{self.registrations_table}",
            json=registration.to_row(),
            headers={"Prefer": "return=representation"},
        )
        if not rows:
            return registration
        return Registration.from_row(rows[0])

    def complete_registration_payment(
        self,
        *,
        event_id: str,
        user_id: str,
        session_id: str,
        payment_intent_id: str | None,
        status: str,
    ) -> int:
        """Patch the pending registration for a checkout session to completed."""
        rows = self._request(
            "PATCH",
            f"{self.rest_url}/{self.registrations_table}",
            params={
                "event_id": f"eq.{event_id}",
                "user_id": f"eq.{user_id}",
                "stripe_session_id": f"eq.{session_id}",
                "payment_status": f"eq.{PaymentStatus.PENDING}",
            },
            json={
                "payment_status": str(PaymentStatus.COMPLETED),
                "status": status,
                "stripe_payment_intent_id": payment_intent_id,
            },
            headers={"Prefer": "return=representation"},
        )
        return len(rows or [])
