"""
Canned FCM responses and a recording ``httpx.MockTransport`` handler.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

TEST_PROJECT_ID = "test-project"
TEST_TOKEN = "test-token"

_REASONS = {200: "OK", 400: "Bad Request", 404: "Not Found", 429: "Too Many Requests",
            500: "Internal Server Error", 503: "Service Unavailable"}


# ---------------------------------------------------------------------------
# Canned responses
# ---------------------------------------------------------------------------


def fcm_error(status: str, message: str, error_code: str | None = None) -> dict[str, Any]:
    """A Google platform error body, optionally carrying an FcmError detail."""
    error: dict[str, Any] = {"status": status, "message": message}
    if error_code is not None:
        error["details"] = [
            {
                "@type": "type.googleapis.com/google.firebase.fcm.v1.FcmError",
                "errorCode": error_code,
            }
        ]
    return {"error": error}


def batch_response(
    parts: list[tuple[int, Any]],
    content_ids: list[int] | None = None,
    boundary: str = "batch_test_boundary",
) -> httpx.Response:
    """Build a multipart batch response from ``(status, body)`` pairs.

    ``content_ids`` lets a test emit the parts out of order; by default part
    ``i`` answers sub-request ``i + 1``.
    """
    chunks = []
    for position, (status, body) in enumerate(parts):
        text = body if isinstance(body, str) else json.dumps(body)
        content_id = content_ids[position] if content_ids else position + 1
        chunks.append(
            f"--{boundary}\r\n"
            f"Content-Type: application/http\r\n"
            f"Content-ID: <response-{content_id}>\r\n"
            f"\r\n"
            f"HTTP/1.1 {status} {_REASONS.get(status, 'Error')}\r\n"
            f"Content-Type: application/json; charset=UTF-8\r\n"
            f"\r\n"
            f"{text}\r\n"
        )
    chunks.append(f"--{boundary}--\r\n")
    return httpx.Response(
        200,
        headers={"Content-Type": f"multipart/mixed; boundary={boundary}"},
        content="".join(chunks).encode("utf-8"),
    )


# ---------------------------------------------------------------------------
# Mock transport
# ---------------------------------------------------------------------------


class RecordingHandler:
    """MockTransport handler that records requests and replays responses.

    Each queued item is either an ``httpx.Response`` or an exception to raise.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._queue: list[Any] = []

    def respond(self, *items: Any) -> RecordingHandler:
        self._queue.extend(items)
        return self

    def json(self, status: int, body: Any) -> RecordingHandler:
        return self.respond(httpx.Response(status, json=body))

    def text(self, status: int, body: str) -> RecordingHandler:
        return self.respond(httpx.Response(status, text=body))

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Any:
        return json.loads(self.last_request.content)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self._queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item
