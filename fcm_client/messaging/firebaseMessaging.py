"""
FirebaseMessaging facade
========================

Public entry point that pairs a ``MessagingClient`` with an
``InstanceIdClient`` over one authorized ``httpx.Client``. Arguments are
validated here, before any request is issued; invalid input raises
``ValueError`` and never reaches the network.

Usage::

    with FirebaseMessaging.from_settings() as fcm:
        message_id = fcm.send(Message(topic="news", notification=Notification(title="Hi")))
        batch = fcm.send_multicast(MulticastMessage(tokens=tokens, data={"k": "v"}))
        fcm.subscribe_to_topic("news", tokens)
"""

from __future__ import annotations

import logging
import re
from typing import Iterable

from google.auth.credentials import Credentials

from fcm_client.core.config import Settings, settings
from fcm_client.core.credentials import (
    build_authorized_client,
    load_credentials,
    resolve_project_id,
)
from fcm_client.core.httpClient import ResponseInterceptor
from fcm_client.messaging.instanceIdClient import InstanceIdClient
from fcm_client.messaging.messagingClient import MessagingClient
from fcm_client.models.message import Message, MulticastMessage
from fcm_client.models.responses import BatchResponse, TopicManagementResponse

logger = logging.getLogger(__name__)

MAX_BATCH_MESSAGES: int = 500
MAX_TOPIC_TOKENS: int = 1000  # IID allows max 1000 tokens per call

_TOPIC_MGT_PATTERN = re.compile(r"^(/topics/)?(private/)?[a-zA-Z0-9_.~%-]+$")


def _check_topic_args(topic: str, registration_tokens: list[str]) -> None:
    if not registration_tokens:
        raise ValueError("registration_tokens must not be empty")
    if len(registration_tokens) > MAX_TOPIC_TOKENS:
        raise ValueError(
            f"registration_tokens list must not contain more than {MAX_TOPIC_TOKENS} elements"
        )
    if any(not isinstance(token, str) or not token for token in registration_tokens):
        raise ValueError("registration_tokens must be non-empty strings")
    if not topic or not isinstance(topic, str):
        raise ValueError("topic must be a non-empty string")
    if not _TOPIC_MGT_PATTERN.match(topic):
        raise ValueError(f"Invalid topic name: {topic!r}")


class FirebaseMessaging:
    """Sends FCM messages and manages topic subscriptions."""

    def __init__(
        self,
        messaging_client: MessagingClient,
        instance_id_client: InstanceIdClient,
    ) -> None:
        self.messaging_client = messaging_client
        self.instance_id_client = instance_id_client

    @classmethod
    def from_settings(
        cls,
        config: Settings | None = None,
        credentials: Credentials | None = None,
        *,
        response_interceptor: ResponseInterceptor | None = None,
    ) -> FirebaseMessaging:
        """Build both clients over one shared, authorized ``httpx.Client``."""
        config = config or settings
        credentials = credentials or load_credentials(config)
        project_id = resolve_project_id(config, credentials)
        http_client = build_authorized_client(credentials, config)
        logger.info("FirebaseMessaging initialised for project %s", project_id)
        return cls(
            MessagingClient(
                project_id,
                http_client,
                response_interceptor=response_interceptor,
                client_version=config.client_version,
            ),
            InstanceIdClient(http_client, response_interceptor=response_interceptor),
        )

    # -- Sending --

    def send(self, message: Message, dry_run: bool = False) -> str:
        if not isinstance(message, Message):
            raise ValueError("message must be an instance of Message")
        return self.messaging_client.send(message, dry_run)

    def send_all(self, messages: Iterable[Message], dry_run: bool = False) -> BatchResponse:
        """Send up to 500 messages in a single batch request."""
        messages = list(messages)
        if not messages:
            raise ValueError("messages must not be empty")
        if len(messages) > MAX_BATCH_MESSAGES:
            raise ValueError(
                f"messages must not contain more than {MAX_BATCH_MESSAGES} elements"
            )
        if any(not isinstance(m, Message) for m in messages):
            raise ValueError("messages must contain only Message instances")
        return self.messaging_client.send_all(messages, dry_run)

    def send_multicast(
        self, multicast_message: MulticastMessage, dry_run: bool = False
    ) -> BatchResponse:
        """Send one payload to every token of ``multicast_message``.

        Response ``i`` of the result belongs to ``multicast_message.tokens[i]``.
        """
        if not isinstance(multicast_message, MulticastMessage):
            raise ValueError("multicast_message must be an instance of MulticastMessage")
        return self.send_all(multicast_message.to_messages(), dry_run)

    # -- Topic management --

    def subscribe_to_topic(
        self, topic: str, registration_tokens: list[str]
    ) -> TopicManagementResponse:
        _check_topic_args(topic, registration_tokens)
        return self.instance_id_client.subscribe_to_topic(topic, registration_tokens)

    def unsubscribe_from_topic(
        self, topic: str, registration_tokens: list[str]
    ) -> TopicManagementResponse:
        _check_topic_args(topic, registration_tokens)
        return self.instance_id_client.unsubscribe_from_topic(topic, registration_tokens)

    # -- Lifecycle --

    def close(self) -> None:
        self.messaging_client.http_client.close()
        if self.instance_id_client.http_client is not self.messaging_client.http_client:
            self.instance_id_client.http_client.close()

    def __enter__(self) -> FirebaseMessaging:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
