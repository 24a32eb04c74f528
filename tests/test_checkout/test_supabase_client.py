"""Tests for event_checkout.supabase_client -- SupabaseEventStore HTTP layer."""

from decimal import Decimal
from unittest.mock import MagicMock, Mock, patch

import httpx
import pytest

from event_checkout.errors import UpstreamFailure
from event_checkout.models import Event, Registration
from event_checkout.supabase_client import SupabaseEventStore

BASE_URL = "https://test-project.supabase.co"


def _make_response(json_data, status_code=200, url=f"{BASE_URL}/rest/v1/events"):
    """Build a mock httpx.Response."""
    response = Mock(spec=httpx.Response)
    response.status_code = status_code
    response.json.return_value = json_data
    response.content = b"" if json_data is None else b"json"
    response.text = "error body" if status_code >= 400 else ""
    response.raise_for_status = Mock()

    if status_code >= 400:
        request = Mock(spec=httpx.Request)
        request.url = url
        response.request = request
        exc = httpx.HTTPStatusError(
            message=f"HTTP {status_code}",
            request=request,
            response=response,
        )
        response.raise_for_status.side_effect = exc

    return response


def _make_mock_client_cm(responses):
    """Build a context-manager mock for httpx.Client returning responses in order."""
    mock_http_client = MagicMock()
    mock_http_client.request = Mock(side_effect=responses)
    mock_cm = MagicMock()
    mock_cm.__enter__ = Mock(return_value=mock_http_client)
    mock_cm.__exit__ = Mock(return_value=False)
    return mock_cm, mock_http_client


@pytest.fixture
def supabase_store():
    return SupabaseEventStore(BASE_URL + "/", service_role_key="service-role-test-key")


# ---------------------------------------------------------------------------
# SupabaseEventStore.__init__()
# ---------------------------------------------------------------------------


class TestSupabaseEventStoreInit:
    @pytest.mark.unit
    def test_urls_and_auth_headers(self, supabase_store):
        assert supabase_store.base_url == BASE_URL
        assert supabase_store.rest_url == f"{BASE_URL}/rest/v1"
        assert supabase_store.auth_url == f"{BASE_URL}/auth/v1"
        assert supabase_store.headers["apikey"] == "service-role-test-key"
        assert supabase_store.headers["Authorization"] == "Bearer service-role-test-key"

    @pytest.mark.unit
    @pytest.mark.parametrize(("url", "key"), [(None, "key"), ("", "key"), (BASE_URL, None), (BASE_URL, "")])
    def test_missing_configuration_raises(self, url, key):
        with pytest.raises(ValueError, match="Supabase is not configured"):
            SupabaseEventStore(url, service_role_key=key)


# ---------------------------------------------------------------------------
# get_event()
# ---------------------------------------------------------------------------


class TestGetEvent:
    @pytest.mark.unit
    @patch("event_checkout.supabase_client.httpx.Client")
    def test_returns_event(self, mock_client_cls, supabase_store):
        row = {"id": "E1", "title": "Meetup", "description": "Talks", "price": 25}
        mock_cm, mock_http = _make_mock_client_cm([_make_response([row])])
        mock_client_cls.return_value = mock_cm

        event = supabase_store.get_event("E1")

        assert event == Event(id="E1", title="Meetup", description="Talks", price=Decimal(25))
        method, url = mock_http.request.call_args.args
        assert method == "GET"
        assert url == f"{BASE_URL}/rest/v1/events"
        assert mock_http.request.call_args.kwargs["params"] == {"id": "eq.E1", "select": "*", "limit": "1"}

    @pytest.mark.unit
    @patch("event_checkout.supabase_client.httpx.Client")
    def test_empty_result_is_none(self, mock_client_cls, supabase_store):
        mock_cm, _ = _make_mock_client_cm([_make_response([])])
        mock_client_cls.return_value = mock_cm

        assert supabase_store.get_event("missing") is None

    @pytest.mark.unit
    @patch("event_checkout.supabase_client.httpx.Client")
    def test_http_error_is_upstream_failure(self, mock_client_cls, supabase_store):
        mock_cm, _ = _make_mock_client_cm([_make_response({"message": "bad"}, status_code=500)])
        mock_client_cls.return_value = mock_cm

        with pytest.raises(UpstreamFailure, match="500") as exc_info:
            supabase_store.get_event("E1")

        assert exc_info.value.service == "supabase"
        assert exc_info.value.details == "error body"

    @pytest.mark.unit
    @patch("event_checkout.supabase_client.httpx.Client")
    def test_connection_error_is_upstream_failure(self, mock_client_cls, supabase_store):
        mock_cm, _ = _make_mock_client_cm([httpx.ConnectError("refused")])
        mock_client_cls.return_value = mock_cm

        with pytest.raises(UpstreamFailure, match="connection error"):
            supabase_store.get_event("E1")

    @pytest.mark.unit
    @patch("event_checkout.supabase_client.httpx.Client")
    def test_uses_configured_table_and_timeout(self, mock_client_cls):
        mock_cm, mock_http = _make_mock_client_cm([_make_response([])])
        mock_client_cls.return_value = mock_cm
        store = SupabaseEventStore(BASE_URL, service_role_key="k", events_table="meetups", timeout=5)

        store.get_event("E1")

        assert mock_http.request.call_args.args[1] == f"{BASE_URL}/rest/v1/meetups"
        assert mock_client_cls.call_args.kwargs["timeout"] == 5


# ---------------------------------------------------------------------------
# get_user_email()
# ---------------------------------------------------------------------------


class TestGetUserEmail:
    @pytest.mark.unit
    @patch("event_checkout.supabase_client.httpx.Client")
    def test_returns_email(self, mock_client_cls, supabase_store):
        mock_cm, mock_http = _make_mock_client_cm([_make_response({"id": "user-1", "email": "a@example.com"})])
        mock_client_cls.return_value = mock_cm

        assert supabase_store.get_user_email("user-1") == "a@example.com"
        assert mock_http.request.call_args.args == ("GET", f"{BASE_URL}/auth/v1/admin/users/user-1")

    @pytest.mark.unit
    @patch("event_checkout.supabase_client.httpx.Client")
    def test_unknown_user_is_none(self, mock_client_cls, supabase_store):
        mock_cm, _ = _make_mock_client_cm([_make_response({"msg": "User not found"}, status_code=404)])
        mock_client_cls.return_value = mock_cm

        assert supabase_store.get_user_email("ghost") is None

    @pytest.mark.unit
    @patch("event_checkout.supabase_client.httpx.Client")
    def test_user_without_email_is_none(self, mock_client_cls, supabase_store):
        mock_cm, _ = _make_mock_client_cm([_make_response({"id": "user-1", "email": ""})])
        mock_client_cls.return_value = mock_cm

        assert supabase_store.get_user_email("user-1") is None

    @pytest.mark.unit
    @patch("event_checkout.supabase_client.httpx.Client")
    @pytest.mark.parametrize(
        ("user_id", "escaped"),
        [
            ("../../../rest/v1/registrations", "..%2F..%2F..%2Frest%2Fv1%2Fregistrations"),
            ("user-1?select=*", "user-1%3Fselect%3D%2A"),
            ("a b#c", "a%20b%23c"),
        ],
        ids=["dot-segments", "query", "space-fragment"],
    )
    def test_user_id_cannot_escape_admin_users_path(self, mock_client_cls, supabase_store, user_id, escaped):
        mock_cm, mock_http = _make_mock_client_cm([_make_response({"msg": "User not found"}, status_code=404)])
        mock_client_cls.return_value = mock_cm

        supabase_store.get_user_email(user_id)

        method, url = mock_http.request.call_args.args
        assert method == "GET"
        assert url == f"{BASE_URL}/auth/v1/admin/users/{escaped}"
        assert httpx.URL(url).path.startswith("/auth/v1/admin/users/")


# ---------------------------------------------------------------------------
# create_registration()
# ---------------------------------------------------------------------------


class TestCreateRegistration:
    @pytest.mark.unit
    @patch("event_checkout.supabase_client.httpx.Client")
    def test_posts_row_and_returns_stored(self, mock_client_cls, supabase_store):
        registration = Registration(
            event_id="E1",
            user_id="user-1",
            stripe_session_id="cs_1",
            payment_amount=Decimal("25"),
            ticket_number="1234",
        )
        stored_row = {**registration.to_row(), "id": 99}
        mock_cm, mock_http = _make_mock_client_cm([_make_response([stored_row])])
        mock_client_cls.return_value = mock_cm

        stored = supabase_store.create_registration(registration)

        assert stored.id == "99"
        assert stored.stripe_session_id == "cs_1"
        call = mock_http.request.call_args
        assert call.args == ("POST", f"{BASE_URL}/rest/v1/registrations")
        assert call.kwargs["json"] == registration.to_row()
        assert call.kwargs["headers"] == {"Prefer": "return=representation"}

    @pytest.mark.unit
    @patch("event_checkout.supabase_client.httpx.Client")
    def test_conflict_is_upstream_failure(self, mock_client_cls, supabase_store):
        mock_cm, _ = _make_mock_client_cm([_make_response({"code": "23505"}, status_code=409)])
        mock_client_cls.return_value = mock_cm
        registration = Registration(
            event_id="E1",
            user_id="user-1",
            stripe_session_id="cs_1",
            payment_amount=Decimal("25"),
            ticket_number="1234",
        )

        with pytest.raises(UpstreamFailure, match="409"):
            supabase_store.create_registration(registration)


# ---------------------------------------------------------------------------
# complete_registration_payment()
# ---------------------------------------------------------------------------


class TestCompleteRegistrationPayment:
    @pytest.mark.unit
    @patch("event_checkout.supabase_client.httpx.Client")
    def test_patches_pending_row_by_correlation_triple(self, mock_client_cls, supabase_store):
        mock_cm, mock_http = _make_mock_client_cm([_make_response([{"id": 1}])])
        mock_client_cls.return_value = mock_cm

        updated = supabase_store.complete_registration_payment(
            event_id="E1",
            user_id="user-1",
            session_id="cs_1",
            payment_intent_id="pi_1",
            status="approved",
        )

        assert updated == 1
        call = mock_http.request.call_args
        assert call.args == ("PATCH", f"{BASE_URL}/rest/v1/registrations")
        assert call.kwargs["params"] == {
            "event_id": "eq.E1",
            "user_id": "eq.user-1",
            "stripe_session_id": "eq.cs_1",
            "payment_status": "eq.pending",
        }
        assert call.kwargs["json"] == {
            "payment_status": "completed",
            "status": "approved",
            "stripe_payment_intent_id": "pi_1",
        }

    @pytest.mark.unit
    @patch("event_checkout.supabase_client.httpx.Client")
    def test_no_match_returns_zero(self, mock_client_cls, supabase_store):
        mock_cm, _ = _make_mock_client_cm([_make_response([])])
        mock_client_cls.return_value = mock_cm

        updated = supabase_store.complete_registration_payment(
            event_id="E1",
            user_id="user-1",
            session_id="cs_unknown",
            payment_intent_id=None,
            status="pending",
        )

        assert updated == 0
