"""
Unit tests for the FirebaseMessaging facade: argument validation and
delegation to the underlying clients.
"""

import httpx
import pytest

from fcm_client.core.config import Settings
from fcm_client.messaging.firebaseMessaging import (
    MAX_BATCH_MESSAGES,
    MAX_TOPIC_TOKENS,
    FirebaseMessaging,
)
from fcm_client.messaging.instanceIdClient import InstanceIdClient
from fcm_client.messaging.messagingClient import MessagingClient
from fcm_client.models.message import Message, MulticastMessage, Notification
from tests.helpers import TEST_PROJECT_ID, batch_response


@pytest.fixture
def fcm(http_client) -> FirebaseMessaging:
    return FirebaseMessaging(
        MessagingClient(TEST_PROJECT_ID, http_client),
        InstanceIdClient(http_client),
    )


class TestSendValidation:

    def test_send_requires_message(self, fcm, handler):
        with pytest.raises(ValueError):
            fcm.send({"token": "tok"})
        assert handler.requests == []

    def test_send_all_rejects_empty(self, fcm, handler):
        with pytest.raises(ValueError):
            fcm.send_all([])
        assert handler.requests == []

    def test_send_all_rejects_more_than_limit(self, fcm, handler):
        messages = [Message(token=f"t{i}") for i in range(MAX_BATCH_MESSAGES + 1)]
        with pytest.raises(ValueError):
            fcm.send_all(messages)
        assert handler.requests == []

    def test_send_all_rejects_foreign_items(self, fcm):
        with pytest.raises(ValueError):
            fcm.send_all([Message(token="t"), "not a message"])


class TestSend:

    def test_send_delegates(self, fcm, handler):
        handler.json(200, {"name": "m1"})
        assert fcm.send(Message(token="tok")) == "m1"

    def test_send_all_accepts_generator(self, fcm, handler):
        handler.respond(batch_response([(200, {"name": "m1"}), (200, {"name": "m2"})]))
        batch = fcm.send_all(Message(token=t) for t in ("a", "b"))
        assert batch.success_count == 2

    def test_send_multicast_one_response_per_token(self, fcm, handler):
        handler.respond(
            batch_response([(200, {"name": "m1"}), (404, {"error": {"status": "NOT_FOUND"}})])
        )
        batch = fcm.send_multicast(
            MulticastMessage(tokens=["good", "stale"], notification=Notification(title="Hi"))
        )

        assert len(batch) == 2
        assert batch.responses[0].success
        assert not batch.responses[1].success
        body = handler.last_request.content.decode("utf-8")
        assert '"token": "good"' in body
        assert '"token": "stale"' in body

    def test_send_multicast_requires_multicast_message(self, fcm):
        with pytest.raises(ValueError):
            fcm.send_multicast(Message(token="tok"))


class TestTopicValidation:

    @pytest.mark.parametrize(
        "topic,tokens",
        [
            ("news", []),
            ("news", ["a", ""]),
            ("", ["a"]),
            ("bad topic", ["a"]),
            ("news", [f"t{i}" for i in range(MAX_TOPIC_TOKENS + 1)]),
        ],
    )
    def test_invalid_arguments_rejected(self, fcm, handler, topic, tokens):
        with pytest.raises(ValueError):
            fcm.subscribe_to_topic(topic, tokens)
        with pytest.raises(ValueError):
            fcm.unsubscribe_from_topic(topic, tokens)
        assert handler.requests == []

    @pytest.mark.parametrize("topic", ["news", "/topics/news", "/topics/private/news"])
    def test_valid_topics_accepted(self, fcm, handler, topic):
        handler.json(200, {"results": [{}]})
        response = fcm.subscribe_to_topic(topic, ["a"])
        assert response.success_count == 1


class TestLifecycle:

    def test_from_settings_shares_http_client(self, credentials):
        fcm = FirebaseMessaging.from_settings(
            Settings(firebase_project_id=TEST_PROJECT_ID), credentials
        )
        with fcm:
            assert fcm.messaging_client.project_id == TEST_PROJECT_ID
            assert fcm.messaging_client.http_client is fcm.instance_id_client.http_client
        assert fcm.messaging_client.http_client.is_closed

    def test_close_closes_both_clients(self):
        first = httpx.Client()
        second = httpx.Client()
        fcm = FirebaseMessaging(
            MessagingClient(TEST_PROJECT_ID, first), InstanceIdClient(second)
        )
        fcm.close()
        assert first.is_closed
        assert second.is_closed
