"""
Tests for Remote Content Fetcher
================================

Remote content API client with a mocked ``requests`` session.
"""

import pytest
import requests
from unittest.mock import Mock

from fullfeed.ingestion.remote_content import RemoteContentFetcher
from fullfeed.utils.exceptions import (
    ContentFetchError, ErrorCode, RemoteFetchError, ResponseDecodeError
)


API_URL = "http://api.example/parser"
ENTRY_URL = "http://site/a"


@pytest.fixture
def session():
    session = Mock()
    session.headers = {}
    return session


@pytest.fixture
def fetcher(test_settings, session):
    return RemoteContentFetcher(test_settings, session=session)


class TestRemoteContentFetcher:
    """Test RemoteContentFetcher.fetch."""

    def test_returns_content_field(self, fetcher, session, mock_response):
        session.get.return_value = mock_response(json_data={
            "title": "A",
            "author": "Someone",
            "date_published": "2024-01-01T00:00:00Z",
            "content": "<p>hi</p>",
            "url": ENTRY_URL,
        })

        assert fetcher.fetch(ENTRY_URL, API_URL) == "<p>hi</p>"
        session.get.assert_called_once_with(API_URL, params={"url": ENTRY_URL}, timeout=5)

    def test_session_identifies_application(self, session, test_settings):
        RemoteContentFetcher(test_settings, session=session)

        assert session.headers["User-Agent"] == "FullFeed/1.0.0"
        assert session.headers["Accept"] == "application/json"

    def test_url_parameter_is_configurable(self, test_settings, session, mock_response):
        test_settings.remote_content.url_parameter = "link"
        session.get.return_value = mock_response(json_data={"content": "x"})

        RemoteContentFetcher(test_settings, session=session).fetch(ENTRY_URL, API_URL)

        assert session.get.call_args.kwargs["params"] == {"link": ENTRY_URL}

    @pytest.mark.parametrize("payload", [{}, {"content": None}, {"content": ""}, {"title": "only"}])
    def test_missing_content_is_empty(self, fetcher, session, mock_response, payload):
        session.get.return_value = mock_response(json_data=payload)
        assert fetcher.fetch(ENTRY_URL, API_URL) == ""

    def test_unknown_fields_are_ignored(self, fetcher, session, mock_response):
        session.get.return_value = mock_response(
            json_data={"content": "<p>x</p>", "word_count": 2, "lead_image_url": None}
        )
        assert fetcher.fetch(ENTRY_URL, API_URL) == "<p>x</p>"

    def test_network_error(self, fetcher, session):
        session.get.side_effect = requests.ConnectionError("connection refused")

        with pytest.raises(RemoteFetchError) as exc_info:
            fetcher.fetch(ENTRY_URL, API_URL)

        error = exc_info.value
        assert error.error_code == ErrorCode.FETCH_NETWORK_ERROR
        assert error.recoverable
        assert error.context["entry_url"] == ENTRY_URL
        assert isinstance(error.__cause__, requests.ConnectionError)

    def test_timeout(self, fetcher, session):
        session.get.side_effect = requests.Timeout("read timed out")

        with pytest.raises(RemoteFetchError):
            fetcher.fetch(ENTRY_URL, API_URL)

    @pytest.mark.parametrize("status_code", [404, 500, 503])
    def test_http_error_status(self, fetcher, session, mock_response, status_code):
        session.get.return_value = mock_response(status_code=status_code)

        with pytest.raises(RemoteFetchError) as exc_info:
            fetcher.fetch(ENTRY_URL, API_URL)

        assert exc_info.value.error_code == ErrorCode.FETCH_HTTP_STATUS
        assert exc_info.value.context["status_code"] == status_code

    def test_invalid_json(self, fetcher, session, mock_response):
        session.get.return_value = mock_response(json_error=ValueError("Expecting value"))

        with pytest.raises(ResponseDecodeError) as exc_info:
            fetcher.fetch(ENTRY_URL, API_URL)

        error = exc_info.value
        assert isinstance(error, ContentFetchError)
        assert not isinstance(error, RemoteFetchError)
        assert error.error_code == ErrorCode.FETCH_DECODE_ERROR
        assert not error.recoverable

    @pytest.mark.parametrize("payload", [["content"], "content", 42, None])
    def test_non_object_payload(self, fetcher, session, mock_response, payload):
        session.get.return_value = mock_response(json_data=payload)

        with pytest.raises(ResponseDecodeError):
            fetcher.fetch(ENTRY_URL, API_URL)

    def test_wrongly_typed_content(self, fetcher, session, mock_response):
        session.get.return_value = mock_response(json_data={"content": {"html": "<p>x</p>"}})

        with pytest.raises(ResponseDecodeError):
            fetcher.fetch(ENTRY_URL, API_URL)

    def test_single_request_per_call(self, fetcher, session, mock_response):
        session.get.return_value = mock_response(status_code=502)

        with pytest.raises(RemoteFetchError):
            fetcher.fetch(ENTRY_URL, API_URL)

        assert session.get.call_count == 1
