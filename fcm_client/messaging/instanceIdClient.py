"""
Instance ID topic management client
===================================

Subscribes and unsubscribes registration tokens to FCM topics through the
legacy Instance ID batch endpoints. The service answers with one result per
token, in the same order as the request::

    {"results": [{}, {"error": "NOT_FOUND"}, {}]}
"""

from __future__ import annotations

import json
import logging

import google.auth.exceptions
import httpx
from google.auth.credentials import Credentials

from fcm_client.core.config import Settings, settings
from fcm_client.core.credentials import build_authorized_client, load_credentials
from fcm_client.core.errors import ErrorCode, FirebaseMessagingError
from fcm_client.core.httpClient import (
    ErrorHandlingHttpClient,
    ErrorParams,
    HttpErrorHandler,
    IncomingHttpResponse,
    OutgoingHttpRequest,
    ResponseInterceptor,
    new_firebase_error,
)
from fcm_client.models.message import TOPIC_PREFIX
from fcm_client.models.responses import TopicManagementResponse

logger = logging.getLogger(__name__)

IID_HOST = "https://iid.googleapis.com"
IID_SUBSCRIBE_PATH = "iid/v1:batchAdd"
IID_UNSUBSCRIBE_PATH = "iid/v1:batchRemove"


def get_prefixed_topic(topic: str) -> str:
    if topic.startswith(TOPIC_PREFIX):
        return topic
    return TOPIC_PREFIX + topic


class InstanceIdErrorHandler(HttpErrorHandler):
    """Maps IID errors using the HTTP status and the string ``error`` field."""

    def create_exception(self, params: ErrorParams) -> FirebaseMessagingError:
        return FirebaseMessagingError(
            params.code,
            self._get_error_message(params),
            params.cause,
            params.response,
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
            f"Error parsing response from the topic management service: {error}",
            error,
            response,
        )

    @staticmethod
    def _get_error_message(params: ErrorParams) -> str:
        content = params.response.content
        if content:
            try:
                data = json.loads(content)
            except ValueError:
                # Non-JSON error bodies fall back to the generic message.
                data = None
            if isinstance(data, dict) and isinstance(data.get("error"), str) and data["error"]:
                return data["error"]
        return params.message


class InstanceIdClient:
    """Client for the ``iid/v1:batchAdd`` and ``iid/v1:batchRemove`` endpoints."""

    def __init__(
        self,
        http_client: httpx.Client,
        *,
        response_interceptor: ResponseInterceptor | None = None,
    ) -> None:
        self.error_handler = InstanceIdErrorHandler()
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
    ) -> InstanceIdClient:
        config = config or settings
        credentials = credentials or load_credentials(config)
        return cls(
            build_authorized_client(credentials, config),
            response_interceptor=response_interceptor,
        )

    @property
    def http_client(self) -> httpx.Client:
        return self._http.http_client

    def subscribe_to_topic(
        self, topic: str, registration_tokens: list[str]
    ) -> TopicManagementResponse:
        return self._send_instance_id_request(topic, registration_tokens, IID_SUBSCRIBE_PATH)

    def unsubscribe_from_topic(
        self, topic: str, registration_tokens: list[str]
    ) -> TopicManagementResponse:
        return self._send_instance_id_request(topic, registration_tokens, IID_UNSUBSCRIBE_PATH)

    def _send_instance_id_request(
        self, topic: str, registration_tokens: list[str], path: str
    ) -> TopicManagementResponse:
        prefixed = get_prefixed_topic(topic)
        request = OutgoingHttpRequest.post(
            f"{IID_HOST}/{path}",
            {"to": prefixed, "registration_tokens": list(registration_tokens)},
            {"access_token_auth": "true"},
        )

        logger.info(
            "Topic management %s: %d tokens, topic %r",
            path,
            len(registration_tokens),
            prefixed,
        )
        response = self._http.send(request)
        parsed = self._http.parse(response)
        results = parsed.get("results")

        try:
            result = TopicManagementResponse.from_results(
                results if isinstance(results, list) else []
            )
        except ValueError as exc:
            raise self.error_handler.handle_parse_error(exc, response) from exc

        if result.failure_count:
            logger.warning(
                "Topic management partial failure: %d/%d failed for topic %r",
                result.failure_count,
                len(registration_tokens),
                prefixed,
            )
        return result
