"""HTTP batch transport for an ingestion endpoint.

Records are base64-encoded into a gzip-compressed JSON body and POSTed to
``{endpoint}/v1/streams/{stream}/records/batch``. A 200 response carries
one entry per submitted record::

    {
        "failed_put_count": 1,
        "request_responses": [
            {"record_id": "r-1"},
            {"error_code": "ServiceUnavailable", "error_message": "slow down"}
        ]
    }

Anything else (non-200 status, timeout, connection error, unreadable body,
wrong number of results) fails the whole call with ``TransportError``.
"""

from __future__ import annotations

import base64
import gzip
import json
import logging
from typing import Any, Optional, Sequence
from urllib.parse import quote

import requests

from .exceptions import TransportError
from .transport import BatchResponse, RecordResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0


def _parse_record_result(raw: Any) -> RecordResult:
    if not isinstance(raw, dict):
        return RecordResult(error_code="InvalidResponse", error_message=f"unexpected entry: {raw!r}")
    return RecordResult(
        record_id=raw.get("record_id"),
        error_code=raw.get("error_code") or None,
        error_message=raw.get("error_message") or raw.get("error"),
    )


class HttpBatchTransport:
    """Deliver record batches over HTTP with ``requests``.

    Args:
        endpoint: Base URL of the ingestion service.
        auth_token: Optional bearer token.
        timeout: Request timeout in seconds.
        session: Optional ``requests.Session`` (connection reuse, tests).
    """

    def __init__(
        self,
        endpoint: str,
        auth_token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.auth_token = auth_token
        self.timeout = timeout
        self._session = session

    def batch_url(self, stream: str) -> str:
        return f"{self.endpoint}/v1/streams/{quote(stream, safe='')}/records/batch"

    def put_record_batch(self, stream: str, records: Sequence[bytes]) -> BatchResponse:
        payload = json.dumps(
            {"records": [{"data": base64.b64encode(r).decode("ascii")} for r in records]}
        ).encode("utf-8")
        compressed = gzip.compress(payload)

        headers = {
            "Content-Encoding": "gzip",
            "Content-Type": "application/json",
        }
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"

        post = self._session.post if self._session is not None else requests.post
        url = self.batch_url(stream)

        try:
            response = post(url, data=compressed, headers=headers, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise TransportError(f"request timeout after {self.timeout}s") from e
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"connection error: {e}") from e
        except requests.exceptions.RequestException as e:
            raise TransportError(str(e)) from e

        if response.status_code == 401:
            raise TransportError("authentication failed (401)")
        if response.status_code != 200:
            raise TransportError(f"HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise TransportError(f"invalid response body: {e}") from e

        raw_results = body.get("request_responses") if isinstance(body, dict) else None
        if not isinstance(raw_results, list):
            raise TransportError("response is missing request_responses")
        if len(raw_results) != len(records):
            raise TransportError(
                f"response has {len(raw_results)} result(s) for {len(records)} record(s)"
            )

        result = BatchResponse(results=[_parse_record_result(r) for r in raw_results])
        logger.debug(
            "sent %d record(s) to %s: %d failed",
            len(records),
            stream,
            result.failed_count,
        )
        return result
