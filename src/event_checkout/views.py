"""HTTP endpoints for the checkout relay.

Views only handle HTTP concerns: they read the request, call the checkout
service or webhook reconciler, and map :mod:`event_checkout.errors` to
responses.

Django keeps the exact request bytes in ``request.body``. The checkout
endpoint decodes them as JSON with :func:`read_json_body`; the webhook
endpoint hands the same bytes, unparsed, to signature verification.
"""

import http
import json
import logging
from typing import Any

from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from event_checkout.dependencies import get_checkout_service, get_webhook_reconciler
from event_checkout.errors import CheckoutError, InvalidRequest, UpstreamFailure
from event_checkout.models import CheckoutRequest

logger = logging.getLogger(__name__)


def read_json_body(request: HttpRequest) -> dict[str, Any]:
    """Decode the request body as a JSON object.

    Args:
        request: The incoming request.

    Returns:
        The decoded object.

    Raises:
        InvalidRequest: If the body is not valid UTF-8 JSON or is not an object.
    """
    try:
        payload = json.loads(request.body or b"{}")
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        msg = f"Request body is not valid JSON: {exc}"
        raise InvalidRequest(msg) from exc
    if not isinstance(payload, dict):
        msg = "Request body must be a JSON object"
        raise InvalidRequest(msg)
    return payload


@require_GET
def health(request: HttpRequest) -> JsonResponse:  # noqa: ARG001
    """Liveness probe."""
    return JsonResponse({"status": "ok"})


@csrf_exempt
@require_POST
def create_checkout_session(request: HttpRequest) -> JsonResponse:
    """Start a Stripe checkout for an event registration.

    Expects a JSON body with ``eventId``, ``userId``, ``successUrl`` and
    ``cancelUrl``. Responds with ``{"url": ...}`` pointing at the hosted
    payment page.

    Client errors (missing fields, unknown event, unchargeable price) return
    400 with ``{"error": message}``. Stripe or Supabase failures and
    unexpected errors return 500 with ``error``, ``type`` and ``details``.
    """
    event_id = user_id = None
    try:
        checkout_request = CheckoutRequest.from_payload(read_json_body(request))
        event_id, user_id = checkout_request.event_id, checkout_request.user_id
        session = get_checkout_service().create_checkout_session(checkout_request)
    except UpstreamFailure as exc:
        logger.error(
            "Error creating checkout session for event %s (user %s): %s [%s] %s",
            event_id,
            user_id,
            exc.message,
            exc.service,
            exc.details,
        )
        return JsonResponse(
            {"error": exc.message, "type": exc.code, "details": exc.details},
            status=exc.status_code,
        )
    except CheckoutError as exc:
        logger.warning("Rejected checkout session for event %s (user %s): %s", event_id, user_id, exc.message)
        return JsonResponse({"error": exc.message}, status=exc.status_code)
    except Exception as exc:
        logger.exception("Unexpected error creating checkout session for event %s (user %s)", event_id, user_id)
        return JsonResponse(
            {"error": "Failed to create checkout session", "type": type(exc).__name__, "details": str(exc)},
            status=http.HTTPStatus.INTERNAL_SERVER_ERROR,
        )

    return JsonResponse({"url": session.url})


@csrf_exempt
@require_POST
def stripe_webhook(request: HttpRequest) -> HttpResponse:
    """Receive a Stripe notification and reconcile registration state.

    Verifies the signature over the raw body before processing. Once the
    signature checks out the delivery is acknowledged with
    ``{"received": true}``, whether or not a registration matched.

    Signature failures and processing errors return 400 with a plain-text
    ``Webhook Error: <message>`` body, which makes Stripe retry the delivery.
    """
    payload = request.body
    sig_header = request.headers.get("Stripe-Signature", "")

    try:
        event = get_webhook_reconciler().reconcile(payload, sig_header)
    except CheckoutError as exc:
        logger.warning("Webhook rejected (%s): %s", exc.code, exc.message)
        return HttpResponse(
            f"Webhook Error: {exc.message}",
            status=http.HTTPStatus.BAD_REQUEST,
            content_type="text/plain",
        )
    except Exception as exc:
        logger.exception("Error processing Stripe webhook")
        return HttpResponse(
            f"Webhook Error: {exc}",
            status=http.HTTPStatus.BAD_REQUEST,
            content_type="text/plain",
        )

    logger.info("Acknowledged Stripe event %s (%s)", event.get("id"), event.get("type"))
    return JsonResponse({"received": True})
