"""Store interface (repository pattern).

The checkout and webhook flows depend only on this interface, so the
Supabase-backed store can be swapped for a fake in tests.
"""

from abc import ABC, abstractmethod

from event_checkout.models import Event, Registration


class EventStore(ABC):
    """Interface for event and registration persistence operations."""

    @abstractmethod
    def get_event(self, event_id: str) -> Event | None:
        """Return an event by ID, or None if not found."""
        ...

    @abstractmethod
    def get_user_email(self, user_id: str) -> str | None:
        """Return the email address of an auth user, or None if unknown."""
        ...

    @abstractmethod
    def create_registration(self, registration: Registration) -> Registration:
        """Persist a new registration and return the stored record."""
        ...

    @abstractmethod
    def complete_registration_payment(
        self,
        *,
        event_id: str,
        user_id: str,
        session_id: str,
        payment_intent_id: str | None,
        status: str,
    ) -> int:
        """Mark the pending registration for a checkout session as paid.

        Only a registration whose ``payment_status`` is still ``pending`` is
        touched, so replaying the same notification updates nothing.

        Returns:
            The number of registrations updated.
        """
        ...
