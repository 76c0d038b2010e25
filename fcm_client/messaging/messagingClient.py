"""
Firebase Cloud Messaging send client
====================================

Sends messages through the FCM HTTP v1 API, either one per request
(``send``) or many per multipart batch request (``send_all``).

Error mapping:
  Every failure is raised (or, for a failed batch item, returned) as a
  ``FirebaseMessagingError``. The platform ``code`` comes from the HTTP
  status or the JSON ``error.status``; the ``messaging_error_code`` comes
  from the ``FcmError`` entry of ``error.details`` and is looked up in
  ``MESSAGING_ERROR_CODES``. Anything absent from the table is UNKNOWN.

Batch semantics:
  A transport failure or a non-2xx status on the batch envelope aborts the
  whole call. A failed sub-response only fails the matching message.
"""

from __future__ import annotations

import logging
from typing import Any

import google.auth.exceptions
import httpx
from google.auth.credentials import Credentials

from fcm_client.core.config import Settings, settings
from fcm_client.core.credentials import (
    build_authorized_client,
    load_credentials,
    resolve_project_id,
)
from fcm_client.core.errors import (
    ErrorCode,
    FirebaseMessagingError,
    MessagingErrorCode,
)
from fcm_client.core.httpClient import (
    ErrorHandlingHttpClient,
    ErrorParams,
    IncomingHttpResponse,
    OutgoingHttpRequest,
    PlatformErrorHandler,
    ResponseInterceptor,
    new_firebase_error,
    parse_platform_error,
)
from fcm_client.messaging.batchRequest import (
    BatchSubResponse,
    build_batch_body,
    new_boundary,
    parse_batch_response,
)
from fcm_client.models.message import Message
from fcm_client.models.responses import BatchResponse, SendResponse

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration constants
# ---------------------------------------------------------------------------

FCM_URL = "https://fcm.googleapis.com/v1/projects/{}/messages:send"
FCM_BATCH_URL = "https://fcm.googleapis.com/batch"

API_FORMAT_VERSION_HEADER = "X-GOOG-API-FORMAT-VERSION"
CLIENT_VERSION_HEADER = "X-Firebase-Client"

FCM_ERROR_TYPE = "type.googleapis.com/google.firebase.fcm.v1.FcmError"

MESSAGING_ERROR_CODES: dict[str, MessagingErrorCode] = {
    "APNS_AUTH_ERROR": MessagingErrorCode.THIRD_PARTY_AUTH_ERROR,
    "INTERNAL": MessagingErrorCode.INTERNAL,
    "INVALID_ARGUMENT": MessagingErrorCode.INVALID_ARGUMENT,
    "QUOTA_EXCEEDED": MessagingErrorCode.QUOTA_EXCEEDED,
    "SENDER_ID_MISMATCH": MessagingErrorCode.SENDER_ID_MISMATCH,
    "THIRD_PARTY_AUTH_ERROR": MessagingErrorCode.THIRD_PARTY_AUTH_ERROR,
    "UNAVAILABLE": MessagingErrorCode.UNAVAILABLE,
    "UNREGISTERED": MessagingErrorCode.UNREGISTERED,
}


def common_headers(client_version: str) -> dict[str, str]:
    """Headers sent on every FCM request, including batch sub-requests."""
    return {
        API_FORMAT_VERSION_HEADER: "2",
        CLIENT_VERSION_HEADER: f"fcm-client-python/{client_version}",
    }


# ---------------------------------------------------------------------------
# Error handling
# ---------------------------------------------------------------------------

def get_messaging_error_code(content: str) -> MessagingErrorCode:
    """Read the FCM error code from an error response body."""
    details = parse_platform_error(content).get("details")
    if not isinstance(details, list):
        return MessagingErrorCode.UNKNOWN

    for detail in details:
        if isinstance(detail, dict) and detail.get("@type") == FCM_ERROR_TYPE:
            return MESSAGING_ERROR_CODES.get(
                str(detail.get("errorCode")), MessagingErrorCode.UNKNOWN
            )
    return MessagingErrorCode.UNKNOWN


class MessagingErrorHandler(PlatformErrorHandler):

    def create_exception(self, params: ErrorParams) -> FirebaseMessagingError:
        return FirebaseMessagingError(
            params.code,
            params.message,
            params.cause,
            params.response,
            get_messaging_error_code(params.response.content),
        )

    def handle_io_error(
        self, error: httpx.HTTPError | google.auth.exceptions.GoogleAuthError
    ) -> FirebaseMessagingError:
        return FirebaseMessagingError.from_firebase_error(new_firebase_error(error))

    def handle_parse_error(
        self, error: ValueError, response: IncomingHttpResponse
    ) -> FirebaseMessagingError:
        return FirebaseMessagingError(
            ErrorCode.UNKNOWN,
            f"Error parsing response from the FCM service: {error}",
            error,
            response,
        )


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class MessagingClient:
    """Client for ``projects.messages.send`` and the FCM batch endpoint."""

    def __init__(
        self,
        project_id: str,
        http_client: httpx.Client,
        *,
        response_interceptor: ResponseInterceptor | None = None,
        client_version: str | None = None,
    ) -> None:
        if not project_id:
            raise ValueError("Project ID must be a non-empty string")
        self.project_id = project_id
        self.fcm_send_url = FCM_URL.format(project_id)
        self.headers = common_headers(client_version or settings.client_version)
        self.error_handler = MessagingErrorHandler()
        self._http = ErrorHandlingHttpClient(
            http_client, self.error_handler, response_interceptor
        )

    @classmethod
    def from_settings(
        cls,
        config: Settings | None = None,
        credentials: Credentials | None = None,
        *,
        response_interceptor: ResponseInterceptor | None = None,
    ) -> MessagingClient:
        """Build a client with an authorized ``httpx.Client``."""
        config = config or settings
        credentials = credentials or load_credentials(config)
        return cls(
            resolve_project_id(config, credentials),
            build_authorized_client(credentials, config),
            response_interceptor=response_interceptor,
            client_version=config.client_version,
        )

    @property
    def http_client(self) -> httpx.Client:
        return self._http.http_client

    def send(self, message: Message, dry_run: bool = False) -> str:
        """Send one message and return the message ID assigned by FCM.

        Raises:
            FirebaseMessagingError: On transport, HTTP or parse failure,
                including a response without a message ID.
        """
        request = OutgoingHttpRequest.post(
            self.fcm_send_url,
            message.wrap_for_transport(dry_run),
            self.headers,
        )
        response = self._http.send(request)
        message_id = self._parse_message_id(response)
        logger.info("Sent FCM message: %s (dry_run=%s)", message_id, dry_run)
        return message_id

    def send_all(self, messages: list[Message], dry_run: bool = False) -> BatchResponse:
        """Send all messages in one batch request.

        Returns:
            BatchResponse with one SendResponse per message, in input order.

        Raises:
            FirebaseMessagingError: If the batch request as a whole fails.
        """
        payloads = [message.wrap_for_transport(dry_run) for message in messages]
        boundary = new_boundary()
        request = OutgoingHttpRequest.post(
            FCM_BATCH_URL,
            build_batch_body(self.fcm_send_url, payloads, self.headers, boundary),
            {"Content-Type": f"multipart/mixed; boundary={boundary}"},
        )

        logger.info("Sending FCM batch of %d messages (dry_run=%s)", len(messages), dry_run)
        response = self._http.send(request)

        try:
            parts = parse_batch_response(
                response.headers.get("content-type", ""),
                response.content,
                len(messages),
            )
        except ValueError as exc:
            logger.error("Malformed FCM batch response: %s", exc)
            raise self.error_handler.handle_parse_error(exc, response) from exc

        sub_requests = [
            OutgoingHttpRequest.post(self.fcm_send_url, payload, self.headers)
            for payload in payloads
        ]
        batch = BatchResponse(
            [self._to_send_response(part, sub) for part, sub in zip(parts, sub_requests)]
        )

        logger.info(
            "FCM batch complete: %d success, %d failures",
            batch.success_count,
            batch.failure_count,
        )
        return batch

    def _to_send_response(
        self, part: BatchSubResponse, request: OutgoingHttpRequest
    ) -> SendResponse:
        response = IncomingHttpResponse(
            status_code=part.status_code,
            headers=dict(part.headers),
            content=part.content,
            request=request,
        )

        if not part.is_success:
            params = self.error_handler.get_error_params(None, response)
            exception = self.error_handler.create_exception(params)
            logger.warning(
                "FCM batch item failed: %s (%s)",
                exception.code.value,
                exception.messaging_error_code.value,
            )
            return SendResponse.from_exception(exception)

        try:
            message_id = self._parse_message_id(response)
        except FirebaseMessagingError as exc:
            logger.warning("FCM batch item has an unreadable body: %s", exc)
            return SendResponse.from_exception(exc)
        return SendResponse.from_message_id(message_id)

    def _parse_message_id(self, response: IncomingHttpResponse) -> str:
        parsed: dict[str, Any] = self._http.parse(response)
        message_id = parsed.get("name")
        if not isinstance(message_id, str) or not message_id:
            raise self.error_handler.handle_parse_error(
                ValueError("response does not contain a message name"), response
            )
        return message_id
