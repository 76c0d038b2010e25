"""
Unit tests for the Instance ID topic management client.
"""

import httpx
import pytest
from google.auth.exceptions import RefreshError

from fcm_client.core.errors import ErrorCode, FirebaseMessagingError
from fcm_client.messaging.instanceIdClient import (
    IID_HOST,
    InstanceIdClient,
    get_prefixed_topic,
)
from tests.helpers import TEST_TOKEN

TOKENS = ["token-a", "token-b", "token-c"]


@pytest.fixture
def client(http_client) -> InstanceIdClient:
    return InstanceIdClient(http_client)


class TestTopicPrefix:

    def test_bare_topic_is_prefixed(self):
        assert get_prefixed_topic("news") == "/topics/news"

    def test_prefixed_topic_unchanged(self):
        assert get_prefixed_topic("/topics/news") == "/topics/news"


class TestSubscribe:

    def test_request_shape(self, client, handler):
        handler.json(200, {"results": [{}, {}, {}]})
        client.subscribe_to_topic("news", TOKENS)

        request = handler.last_request
        assert str(request.url) == f"{IID_HOST}/iid/v1:batchAdd"
        assert request.headers["access_token_auth"] == "true"
        assert request.headers["Authorization"] == f"Bearer {TEST_TOKEN}"
        assert handler.last_json() == {"to": "/topics/news", "registration_tokens": TOKENS}

    def test_already_prefixed_topic_sent_unchanged(self, client, handler):
        handler.json(200, {"results": [{}]})
        client.subscribe_to_topic("/topics/news", ["token-a"])
        assert handler.last_json()["to"] == "/topics/news"

    def test_all_succeed(self, client, handler):
        handler.json(200, {"results": [{}, {}, {}]})
        response = client.subscribe_to_topic("news", TOKENS)

        assert response.success_count == 3
        assert response.failure_count == 0
        assert response.errors == []

    def test_partial_failure_counts_and_reasons(self, client, handler):
        handler.json(200, {"results": [{}, {"error": "NOT_FOUND"}, {"error": "TOO_MANY_TOPICS"}]})
        response = client.subscribe_to_topic("news", TOKENS)

        assert response.success_count == 1
        assert response.failure_count == 2
        assert [(e.index, e.reason) for e in response.errors] == [
            (1, "registration-token-not-registered"),
            (2, "too-many-topics"),
        ]


class TestUnsubscribe:

    def test_uses_batch_remove(self, client, handler):
        handler.json(200, {"results": [{}, {"error": "INVALID_ARGUMENT"}]})
        response = client.unsubscribe_from_topic("news", ["token-a", "token-b"])

        assert str(handler.last_request.url) == f"{IID_HOST}/iid/v1:batchRemove"
        assert response.success_count == 1
        assert response.errors[0].reason == "invalid-argument"


class TestErrors:

    def test_error_message_from_body(self, client, handler):
        handler.json(400, {"error": "InvalidTopicName"})
        with pytest.raises(FirebaseMessagingError) as excinfo:
            client.subscribe_to_topic("news", TOKENS)

        assert excinfo.value.code is ErrorCode.INVALID_ARGUMENT
        assert excinfo.value.message == "InvalidTopicName"
        assert excinfo.value.http_response.status_code == 400

    def test_non_json_error_body_uses_generic_message(self, client, handler):
        handler.text(503, "Service Unavailable")
        with pytest.raises(FirebaseMessagingError) as excinfo:
            client.subscribe_to_topic("news", TOKENS)

        assert excinfo.value.code is ErrorCode.UNAVAILABLE
        assert excinfo.value.message == "Unexpected HTTP response with status: 503\nService Unavailable"

    def test_transport_error(self, client, handler):
        handler.respond(httpx.ConnectError("refused"))
        with pytest.raises(FirebaseMessagingError) as excinfo:
            client.unsubscribe_from_topic("news", TOKENS)
        assert excinfo.value.code is ErrorCode.UNAVAILABLE

    def test_token_refresh_failure_raises_typed_error(self, failing_http_client, handler):
        client = InstanceIdClient(failing_http_client)
        with pytest.raises(FirebaseMessagingError) as excinfo:
            client.subscribe_to_topic("news", TOKENS)

        assert excinfo.value.code is ErrorCode.UNAUTHENTICATED
        assert isinstance(excinfo.value.cause, RefreshError)
        assert handler.requests == []

    def test_malformed_success_body(self, client, handler):
        handler.text(200, "{oops")
        with pytest.raises(FirebaseMessagingError) as excinfo:
            client.subscribe_to_topic("news", TOKENS)

        assert excinfo.value.code is ErrorCode.UNKNOWN
        assert "topic management service" in excinfo.value.message

    @pytest.mark.parametrize("body", [{}, {"results": []}, {"results": "nope"}])
    def test_missing_results_rejected(self, client, handler, body):
        handler.json(200, body)
        with pytest.raises(FirebaseMessagingError) as excinfo:
            client.subscribe_to_topic("news", TOKENS)
        assert excinfo.value.code is ErrorCode.UNKNOWN
