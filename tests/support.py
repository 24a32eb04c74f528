"""Test doubles and Stripe webhook helpers shared across the test suite."""

import hashlib
import hmac
import json
import time
from dataclasses import replace

from event_checkout.models import Event, PaymentStatus, Registration
from event_checkout.store import EventStore

WEBHOOK_SECRET = "whsec_test_secret"


class FakeEventStore(EventStore):
    """In-memory stand-in for Supabase that records every call."""

    def __init__(self, events: list[Event] | None = None, emails: dict[str, str] | None = None) -> None:
        self.events = {event.id: event for event in events or []}
        self.emails = dict(emails or {})
        self.registrations: list[Registration] = []
        self.calls: list[str] = []

    def get_event(self, event_id: str) -> Event | None:
        self.calls.append("get_event")
        return self.events.get(event_id)

    def get_user_email(self, user_id: str) -> str | None:
        self.calls.append("get_user_email")
        return self.emails.get(user_id)

    def create_registration(self, registration: Registration) -> Registration:
        self.calls.append("create_registration")
        stored = replace(registration, id=str(len(self.registrations) + 1))
        self.registrations.append(stored)
        return stored

    def complete_registration_payment(
        self,
        *,
        event_id: str,
        user_id: str,
        session_id: str,
        payment_intent_id: str | None,
        status: str,
    ) -> int:
        self.calls.append("complete_registration_payment")
        updated = 0
        for idx, registration in enumerate(self.registrations):
            if (
                registration.event_id == event_id
                and registration.user_id == user_id
                and registration.stripe_session_id == session_id
                and registration.payment_status == PaymentStatus.PENDING
            ):
                self.registrations[idx] = replace(
                    registration,
                    payment_status=PaymentStatus.COMPLETED,
                    status=status,
                    stripe_payment_intent_id=payment_intent_id,
                )
                updated += 1
        return updated


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Build a ``Stripe-Signature`` header for *payload* the way Stripe does."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.".encode() + payload
    signature = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def completed_event_payload(
    *,
    event_id: str = "E1",
    user_id: str = "user-1",
    session_id: str = "cs_test_001",
    payment_intent: str | None = "pi_test_001",
    stripe_event_id: str = "evt_test_001",
) -> bytes:
    """Return the raw body of a ``checkout.session.completed`` notification."""
    return json.dumps(
        {
            "id": stripe_event_id,
            "object": "event",
            "type": "checkout.session.completed",
            "livemode": False,
            "api_version": "2024-12-18.acacia",
            "data": {
                "object": {
                    "id": session_id,
                    "object": "checkout.session",
                    "mode": "payment",
                    "payment_status": "paid",
                    "amount_total": 2500,
                    "currency": "usd",
                    "payment_intent": payment_intent,
                    "metadata": {"eventId": event_id, "userId": user_id},
                },
            },
        }
    ).encode()
