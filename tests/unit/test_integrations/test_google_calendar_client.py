"""Tests for Google Calendar API client."""

from unittest.mock import MagicMock, patch

import pytest
from googleapiclient.errors import HttpError

from routine_calendar.integrations.google_calendar.client import (
    GoogleCalendarClient,
    _handle_http_error,
    _is_retryable_error,
)
from routine_calendar.integrations.google_calendar.exceptions import (
    GoogleCalendarAuthError,
    GoogleCalendarConflictError,
    GoogleCalendarError,
    GoogleCalendarNotFoundError,
    GoogleCalendarQuotaError,
    GoogleCalendarRateLimitError,
    GoogleCalendarServerError,
    GoogleCalendarTruncatedError,
    GoogleCalendarValidationError,
)


def make_http_error(status: int, message: str = "Error") -> HttpError:
    """Create a mock HttpError for testing."""
    resp = MagicMock()
    resp.status = status
    return HttpError(resp=resp, content=message.encode())


class TestIsRetryableError:
    """Tests for retry decision logic."""

    def test_retryable_google_calendar_error(self):
        """Should return True for retryable GoogleCalendarError."""
        assert _is_retryable_error(GoogleCalendarQuotaError("Quota exceeded")) is True

    def test_non_retryable_google_calendar_error(self):
        """Should return False for non-retryable GoogleCalendarError."""
        assert _is_retryable_error(GoogleCalendarAuthError("Auth failed")) is False

    def test_truncated_listing_is_not_retried(self):
        assert _is_retryable_error(GoogleCalendarTruncatedError("too many")) is False

    def test_retryable_http_status_codes(self):
        """Should return True for 429, 500, 503 HTTP errors."""
        for status in [429, 500, 503]:
            assert _is_retryable_error(make_http_error(status)) is True

    def test_non_retryable_http_status_codes(self):
        """Should return False for other HTTP errors."""
        for status in [400, 401, 403, 404, 409]:
            assert _is_retryable_error(make_http_error(status)) is False

    def test_other_exceptions(self):
        """Should return False for non-HTTP exceptions."""
        assert _is_retryable_error(ValueError("test")) is False


class TestHandleHttpError:
    """Tests for HTTP error to exception mapping."""

    def test_400_validation_error(self):
        with pytest.raises(GoogleCalendarValidationError):
            _handle_http_error(make_http_error(400, "Bad time range"))

    def test_401_auth_error(self):
        """Should raise GoogleCalendarAuthError for 401."""
        with pytest.raises(GoogleCalendarAuthError) as exc_info:
            _handle_http_error(make_http_error(401))
        assert "credentials may be invalid or expired" in str(exc_info.value)

    def test_403_quota_error(self):
        """Should raise GoogleCalendarQuotaError for 403 with quota message."""
        with pytest.raises(GoogleCalendarQuotaError):
            _handle_http_error(make_http_error(403, "quota exceeded"))

    def test_403_rate_limit_error(self):
        with pytest.raises(GoogleCalendarQuotaError):
            _handle_http_error(make_http_error(403, "rate limit"))

    def test_403_auth_error(self):
        """Should raise GoogleCalendarAuthError for 403 without quota/rate limit."""
        with pytest.raises(GoogleCalendarAuthError) as exc_info:
            _handle_http_error(make_http_error(403, "Access denied"))
        assert "scopes" in str(exc_info.value)

    @pytest.mark.parametrize("status", [404, 410])
    def test_not_found(self, status):
        with pytest.raises(GoogleCalendarNotFoundError):
            _handle_http_error(make_http_error(status))

    def test_409_conflict(self):
        with pytest.raises(GoogleCalendarConflictError):
            _handle_http_error(make_http_error(409))

    def test_429_rate_limit(self):
        with pytest.raises(GoogleCalendarRateLimitError) as exc_info:
            _handle_http_error(make_http_error(429))
        assert exc_info.value.retryable

    @pytest.mark.parametrize("status", [500, 503])
    def test_server_error_is_retryable(self, status):
        with pytest.raises(GoogleCalendarServerError) as exc_info:
            _handle_http_error(make_http_error(status))
        assert _is_retryable_error(exc_info.value) is True

    def test_generic_error(self):
        """Should raise GoogleCalendarError for other status codes."""
        with pytest.raises(GoogleCalendarError) as exc_info:
            _handle_http_error(make_http_error(502, "Bad Gateway"))
        assert "502" in str(exc_info.value)


class TestGoogleCalendarClient:
    """Tests for GoogleCalendarClient operations."""

    @pytest.fixture
    def mock_service(self):
        """Create mock Google Calendar service."""
        with patch("routine_calendar.integrations.google_calendar.client.build") as mock_build:
            service = MagicMock()
            mock_build.return_value = service
            yield service

    @pytest.fixture
    def client(self, mock_service):
        """Create client with mocked service."""
        return GoogleCalendarClient(MagicMock())

    def test_list_events_passes_query(self, client, mock_service):
        """Should expand recurring events and forward the search text."""
        mock_response = {"items": [{"id": "event-1"}]}
        mock_service.events().list().execute.return_value = mock_response

        result = client.list_events(
            calendar_id="primary",
            time_min="2024-01-01T00:00:00Z",
            time_max="2024-01-08T00:00:00Z",
            query="Gym",
        )

        assert result == mock_response
        kwargs = mock_service.events().list.call_args.kwargs
        assert kwargs["singleEvents"] is True
        assert kwargs["orderBy"] == "startTime"
        assert kwargs["q"] == "Gym"

    def test_list_all_events_pagination(self, client, mock_service):
        """Should follow nextPageToken until exhausted."""
        mock_service.events().list().execute.side_effect = [
            {"items": [{"id": "event-1"}], "nextPageToken": "token-1"},
            {"items": [{"id": "event-2"}]},
        ]

        result = client.list_all_events(
            calendar_id="primary",
            time_min="2024-01-01T00:00:00Z",
            time_max="2024-01-08T00:00:00Z",
        )

        assert [e["id"] for e in result] == ["event-1", "event-2"]

    def test_list_all_events_truncated(self, client, mock_service):
        """Should refuse to return a partial listing."""
        mock_service.events().list().execute.return_value = {
            "items": [{"id": "event"}],
            "nextPageToken": "more",
        }

        with pytest.raises(GoogleCalendarTruncatedError) as exc_info:
            client.list_all_events(
                calendar_id="primary",
                time_min="2024-01-01T00:00:00Z",
                time_max="2024-01-08T00:00:00Z",
                max_pages=2,
            )

        assert exc_info.value.fetched == 2

    def test_get_event(self, client, mock_service):
        mock_event = {"id": "event-123", "summary": "Test Event"}
        mock_service.events().get().execute.return_value = mock_event

        assert client.get_event(calendar_id="primary", event_id="event-123") == mock_event

    def test_insert_event(self, client, mock_service):
        """Should create an event and forward sendUpdates."""
        body = {"summary": "Gym", "start": {}, "end": {}}
        mock_service.events().insert().execute.return_value = {"id": "new-1", **body}

        result = client.insert_event(calendar_id="primary", body=body, send_updates="none")

        assert result["id"] == "new-1"
        assert mock_service.events().insert.call_args.kwargs["sendUpdates"] == "none"

    def test_insert_event_rejects_bad_send_updates(self, client, mock_service):
        with pytest.raises(GoogleCalendarValidationError):
            client.insert_event(calendar_id="primary", body={}, send_updates="everyone")

    def test_patch_event(self, client, mock_service):
        mock_service.events().patch().execute.return_value = {"id": "event-123", "summary": "Patched"}

        result = client.patch_event(
            calendar_id="primary",
            event_id="event-123",
            body={"summary": "Patched"},
            send_updates="all",
        )

        assert result["summary"] == "Patched"
        assert mock_service.events().patch.call_args.kwargs["sendUpdates"] == "all"

    def test_delete_event(self, client, mock_service):
        mock_service.events().delete().execute.return_value = None

        client.delete_event(calendar_id="primary", event_id="event-123")

        mock_service.events().delete.assert_called()

    def test_delete_missing_event_raises(self, client, mock_service):
        """A missing event is reported so callers can answer 404."""
        mock_service.events().delete().execute.side_effect = make_http_error(404)

        with pytest.raises(GoogleCalendarNotFoundError):
            client.delete_event(calendar_id="primary", event_id="event-123")

    def test_service_property(self, client, mock_service):
        assert client.service == mock_service

    def test_http_error_handling(self, client, mock_service):
        """Should convert HttpError to custom exception."""
        mock_service.events().get().execute.side_effect = make_http_error(401)

        with pytest.raises(GoogleCalendarAuthError):
            client.get_event(calendar_id="primary", event_id="event-123")
