"""Domain records for events, registrations and checkout requests.

Events and registrations live in Supabase; these frozen dataclasses are the
shapes the services work with. ``from_row`` / ``to_row`` convert to and from
the PostgREST JSON rows.
"""

import enum
import secrets
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Self

from event_checkout.errors import InvalidRequest

TICKET_NUMBER_MIN = 1000
TICKET_NUMBER_MAX = 9999


class RegistrationStatus(enum.StrEnum):
    """Admission state of a registration."""

    PENDING = "pending"
    APPROVED = "approved"


class PaymentStatus(enum.StrEnum):
    """Payment state of a registration. Moves only from PENDING to COMPLETED."""

    PENDING = "pending"
    COMPLETED = "completed"


class TicketStatus(enum.StrEnum):
    """Validity of the ticket attached to a registration."""

    VALID = "VALID"


def _parse_price(value: object) -> Decimal:
    """Parse a price column into a Decimal, treating junk as zero."""
    if value is None or isinstance(value, bool):
        return Decimal(0)
    try:
        price = Decimal(str(value))
    except InvalidOperation:
        return Decimal(0)
    if not price.is_finite():
        return Decimal(0)
    return price


def generate_ticket_number() -> str:
    """Return a random four-digit ticket number as text.

    Drawn uniformly from ``[1000, 9999)``. Numbers are not guaranteed to be
    unique across registrations.
    """
    return str(TICKET_NUMBER_MIN + secrets.randbelow(TICKET_NUMBER_MAX - TICKET_NUMBER_MIN))


@dataclass(frozen=True, slots=True)
class Event:
    """An event that can be registered for.

    Attributes:
        id: Supabase primary key, kept as text.
        title: Display name, used as the Stripe product name.
        description: Optional long description.
        price: Ticket price in currency units.
    """

    id: str
    title: str
    description: str | None
    price: Decimal

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Self:
        """Construct an ``Event`` from a Supabase ``events`` row."""
        description = row.get("description")
        return cls(
            id=str(row["id"]),
            title=str(row.get("title") or ""),
            description=str(description) if description else None,
            price=_parse_price(row.get("price")),
        )


@dataclass(frozen=True, slots=True)
class Registration:
    """A user's registration for an event, with its payment linkage."""

    event_id: str
    user_id: str
    stripe_session_id: str
    payment_amount: Decimal
    ticket_number: str
    user_email: str | None = None
    status: str = RegistrationStatus.PENDING
    payment_status: str = PaymentStatus.PENDING
    ticket_status: str = TicketStatus.VALID
    stripe_payment_intent_id: str | None = None
    id: str | None = None

    def to_row(self) -> dict[str, Any]:
        """Serialize to the JSON body inserted into the ``registrations`` table.

        ``id`` is left to the database.
        """
        return {
            "event_id": self.event_id,
            "user_id": self.user_id,
            "user_email": self.user_email,
            "status": str(self.status),
            "payment_status": str(self.payment_status),
            "payment_amount": f"{self.payment_amount:.2f}",
            "stripe_session_id": self.stripe_session_id,
            "stripe_payment_intent_id": self.stripe_payment_intent_id,
            "ticket_number": self.ticket_number,
            "ticket_status": str(self.ticket_status),
        }

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Self:
        """Construct a ``Registration`` from a Supabase ``registrations`` row."""
        row_id = row.get("id")
        return cls(
            id=str(row_id) if row_id is not None else None,
            event_id=str(row["event_id"]),
            user_id=str(row["user_id"]),
            user_email=row.get("user_email"),
            status=row.get("status") or RegistrationStatus.PENDING,
            payment_status=row.get("payment_status") or PaymentStatus.PENDING,
            payment_amount=_parse_price(row.get("payment_amount")),
            stripe_session_id=str(row.get("stripe_session_id") or ""),
            stripe_payment_intent_id=row.get("stripe_payment_intent_id"),
            ticket_number=str(row.get("ticket_number") or ""),
            ticket_status=row.get("ticket_status") or TicketStatus.VALID,
        )


# JSON key -> attribute name, in the order errors are reported.
_CHECKOUT_FIELDS: tuple[tuple[str, str], ...] = (
    ("eventId", "event_id"),
    ("userId", "user_id"),
    ("successUrl", "success_url"),
    ("cancelUrl", "cancel_url"),
)


@dataclass(frozen=True, slots=True)
class CheckoutRequest:
    """A validated request to start a checkout for one event registration."""

    event_id: str
    user_id: str
    success_url: str
    cancel_url: str

    def missing_fields(self) -> tuple[str, ...]:
        """Return the JSON names of required fields that are blank."""
        return tuple(key for key, attr in _CHECKOUT_FIELDS if not str(getattr(self, attr) or "").strip())

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Self:
        """Build a request from the client's JSON body.

        Args:
            payload: The decoded body with ``eventId``, ``userId``,
                ``successUrl`` and ``cancelUrl`` keys.

        Returns:
            The populated ``CheckoutRequest``.

        Raises:
            InvalidRequest: If any field is absent, blank, or not a string.
        """
        values: dict[str, str] = {}
        missing: list[str] = []
        for key, attr in _CHECKOUT_FIELDS:
            value = payload.get(key)
            if not isinstance(value, str) or not value.strip():
                missing.append(key)
                continue
            values[attr] = value.strip()

        if missing:
            msg = f"Missing required fields: {', '.join(missing)}"
            raise InvalidRequest(msg, fields=tuple(missing))
        return cls(**values)
