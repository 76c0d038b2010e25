"""
Multipart batch envelope
========================

Builds the ``multipart/mixed`` body accepted by ``https://fcm.googleapis.com/batch``
and splits the ``multipart/mixed`` response back into one sub-response per
sub-request.

Each request part looks like::

    --batch_<hex>
    Content-Type: application/http
    Content-Transfer-Encoding: binary
    Content-ID: <3>

    POST /v1/projects/my-project/messages:send HTTP/1.1
    Content-Type: application/json; charset=UTF-8
    Content-Length: 71

    {"message": {...}}

The server answers each part with ``Content-ID: <response-3>``.
"""

from __future__ import annotations

import email.parser
import json
import uuid
from dataclasses import dataclass
from email.message import Message as MimeMessage
from typing import Any, Mapping
from urllib.parse import urlsplit

CRLF = "\r\n"
_RESPONSE_ID_PREFIX = "response-"


@dataclass(frozen=True)
class BatchSubResponse:
    """One HTTP response demultiplexed from the batch envelope."""
    status_code: int
    headers: Mapping[str, str]
    content: str
    content_id: str | None = None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


def new_boundary() -> str:
    return f"batch_{uuid.uuid4().hex}"


def _serialize_sub_request(
    url: str, payload: Any, headers: Mapping[str, str]
) -> str:
    target = urlsplit(url)
    path = target.path + (f"?{target.query}" if target.query else "")
    body = json.dumps(payload)

    lines = [
        f"POST {path} HTTP/1.1",
        f"Host: {target.netloc}",
        "Content-Type: application/json; charset=UTF-8",
    ]
    lines.extend(f"{name}: {value}" for name, value in headers.items())
    lines.append(f"Content-Length: {len(body.encode('utf-8'))}")
    return CRLF.join(lines) + CRLF + CRLF + body


def build_batch_body(
    url: str,
    payloads: list[Any],
    headers: Mapping[str, str],
    boundary: str,
) -> bytes:
    """Serialize one POST to ``url`` per payload into a multipart body.

    Content IDs are 1-based positions in ``payloads``.
    """
    chunks: list[str] = []
    for index, payload in enumerate(payloads, start=1):
        chunks.append(
            f"--{boundary}{CRLF}"
            f"Content-Type: application/http{CRLF}"
            f"Content-Transfer-Encoding: binary{CRLF}"
            f"Content-ID: <{index}>{CRLF}"
            f"{CRLF}"
            f"{_serialize_sub_request(url, payload, headers)}{CRLF}"
        )
    chunks.append(f"--{boundary}--{CRLF}")
    return "".join(chunks).encode("utf-8")


def _content_index(content_id: str | None) -> int | None:
    """Return N from a ``<response-N>`` Content-ID, or None."""
    if not content_id:
        return None
    value = content_id.strip().strip("<>")
    if value.startswith(_RESPONSE_ID_PREFIX):
        value = value[len(_RESPONSE_ID_PREFIX):]
    try:
        return int(value)
    except ValueError:
        return None


def _parse_http_part(part: MimeMessage) -> BatchSubResponse:
    raw = part.get_payload()
    if not isinstance(raw, str):
        raise ValueError("batch part does not contain an HTTP response")

    status_line, _, remainder = raw.lstrip(CRLF).partition("\n")
    fields = status_line.strip().split(" ", 2)
    if len(fields) < 2 or not fields[0].startswith("HTTP/"):
        raise ValueError(f"malformed status line in batch part: {status_line!r}")
    status_code = int(fields[1])

    inner = email.parser.Parser().parsestr(remainder)
    content = inner.get_payload()
    if not isinstance(content, str):
        content = ""

    return BatchSubResponse(
        status_code=status_code,
        headers=dict(inner.items()),
        content=content,
        content_id=part.get("Content-ID"),
    )


def parse_batch_response(
    content_type: str, body: str, expected: int
) -> list[BatchSubResponse]:
    """Split a multipart batch response into ``expected`` sub-responses.

    Sub-responses are ordered by their Content-ID when every part carries a
    usable one, and by position otherwise.

    Raises:
        ValueError: If the body is not multipart, a part is not an HTTP
            response, or the number of parts differs from ``expected``.
    """
    if not content_type or not content_type.lower().startswith("multipart/"):
        raise ValueError(f"unexpected batch response content type: {content_type!r}")

    header = f"Content-Type: {content_type}{CRLF}{CRLF}"
    envelope = email.parser.Parser().parsestr(header + body)
    if not envelope.is_multipart():
        raise ValueError("batch response is not a multipart message")

    parts = [_parse_http_part(part) for part in envelope.get_payload()]
    if len(parts) != expected:
        raise ValueError(
            f"expected {expected} responses in batch, received {len(parts)}"
        )

    indices = [_content_index(part.content_id) for part in parts]
    if sorted(i for i in indices if i is not None) == list(range(1, expected + 1)):
        ordered = sorted(zip(indices, parts), key=lambda pair: pair[0])
        return [part for _, part in ordered]
    return parts
