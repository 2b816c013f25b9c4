"""Tests for the HTTP batch transport."""

from __future__ import annotations

import base64
import gzip
import json
from unittest.mock import MagicMock, Mock, patch

import pytest
import requests

from eventspool.exceptions import TransportError
from eventspool.http_transport import HttpBatchTransport

RECORDS = [b'{"event": "a"}\n', b'{"event": "b"}\n', b'{"event": "c"}\n']


def ok_response(entries: list[dict]) -> Mock:
    response = Mock()
    response.status_code = 200
    response.json.return_value = {
        "failed_put_count": sum(1 for e in entries if e.get("error_code")),
        "request_responses": entries,
    }
    return response


class TestRequest:
    """Outgoing request shape."""

    @patch("eventspool.http_transport.requests.post")
    def test_posts_gzip_base64_records(self, mock_post):
        mock_post.return_value = ok_response([{"record_id": "1"}, {"record_id": "2"}, {"record_id": "3"}])
        transport = HttpBatchTransport("https://ingest.example.com/")

        transport.put_record_batch("cli-events", RECORDS)

        call_args = mock_post.call_args
        assert call_args.args[0] == "https://ingest.example.com/v1/streams/cli-events/records/batch"
        headers = call_args.kwargs["headers"]
        assert headers["Content-Encoding"] == "gzip"
        assert headers["Content-Type"] == "application/json"
        assert "Authorization" not in headers

        payload = json.loads(gzip.decompress(call_args.kwargs["data"]))
        assert [base64.b64decode(r["data"]) for r in payload["records"]] == RECORDS

    @patch("eventspool.http_transport.requests.post")
    def test_bearer_token_and_timeout(self, mock_post):
        mock_post.return_value = ok_response([{}])
        transport = HttpBatchTransport("https://ingest.example.com", auth_token="secret", timeout=5)

        transport.put_record_batch("s", RECORDS[:1])

        assert mock_post.call_args.kwargs["headers"]["Authorization"] == "Bearer secret"
        assert mock_post.call_args.kwargs["timeout"] == 5

    def test_stream_name_is_quoted(self):
        transport = HttpBatchTransport("https://ingest.example.com")

        assert transport.batch_url("a/b c").endswith("/streams/a%2Fb%20c/records/batch")

    def test_uses_session_when_given(self):
        session = MagicMock(spec=requests.Session)
        session.post.return_value = ok_response([{}])
        transport = HttpBatchTransport("https://ingest.example.com", session=session)

        transport.put_record_batch("s", RECORDS[:1])

        session.post.assert_called_once()


class TestResponse:
    """Per-record results and whole-call failures."""

    @patch("eventspool.http_transport.requests.post")
    def test_per_record_results(self, mock_post):
        mock_post.return_value = ok_response(
            [
                {"record_id": "r-1"},
                {"error_code": "ServiceUnavailableException", "error_message": "slow down"},
                {"record_id": "r-3"},
            ]
        )

        response = HttpBatchTransport("https://x").put_record_batch("s", RECORDS)

        assert [r.accepted for r in response.results] == [True, False, True]
        assert response.failed_count == 1
        assert response.accepted_count == 2
        assert response.results[1].error_message == "slow down"
        assert response.results[0].record_id == "r-1"

    @pytest.mark.parametrize("status", [400, 401, 500, 503])
    @patch("eventspool.http_transport.requests.post")
    def test_non_200_raises(self, mock_post, status):
        mock_post.return_value = Mock(status_code=status)

        with pytest.raises(TransportError):
            HttpBatchTransport("https://x").put_record_batch("s", RECORDS)

    @patch("eventspool.http_transport.requests.post")
    def test_timeout_raises(self, mock_post):
        mock_post.side_effect = requests.exceptions.Timeout()

        with pytest.raises(TransportError, match="timeout"):
            HttpBatchTransport("https://x", timeout=2).put_record_batch("s", RECORDS)

    @patch("eventspool.http_transport.requests.post")
    def test_connection_error_raises(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(TransportError, match="connection error"):
            HttpBatchTransport("https://x").put_record_batch("s", RECORDS)

    @patch("eventspool.http_transport.requests.post")
    def test_invalid_json_raises(self, mock_post):
        response = Mock(status_code=200)
        response.json.side_effect = ValueError("no json")
        mock_post.return_value = response

        with pytest.raises(TransportError, match="invalid response"):
            HttpBatchTransport("https://x").put_record_batch("s", RECORDS)

    @patch("eventspool.http_transport.requests.post")
    def test_result_count_mismatch_raises(self, mock_post):
        mock_post.return_value = ok_response([{}])

        with pytest.raises(TransportError, match="1 result"):
            HttpBatchTransport("https://x").put_record_batch("s", RECORDS)

    @patch("eventspool.http_transport.requests.post")
    def test_missing_results_raises(self, mock_post):
        response = Mock(status_code=200)
        response.json.return_value = {"ok": True}
        mock_post.return_value = response

        with pytest.raises(TransportError, match="request_responses"):
            HttpBatchTransport("https://x").put_record_batch("s", RECORDS)
