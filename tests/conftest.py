"""
Shared pytest fixtures for the FCM client unit tests.

HTTP traffic never leaves the process: every client is wired to an
``httpx.MockTransport`` whose handler records the outgoing requests and
replays canned responses. Credentials are static OAuth2 tokens, so no
refresh is ever attempted.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import httpx
import pytest
from google.auth.exceptions import RefreshError
from google.oauth2.credentials import Credentials

from fcm_client.core.credentials import GoogleCredentialsAuth
from tests.helpers import TEST_TOKEN, RecordingHandler


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(token=TEST_TOKEN)


@pytest.fixture
def handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def http_client(handler: RecordingHandler, credentials: Credentials) -> httpx.Client:
    client = httpx.Client(
        transport=httpx.MockTransport(handler),
        auth=GoogleCredentialsAuth(credentials),
    )
    yield client
    client.close()


@pytest.fixture
def failing_http_client(handler: RecordingHandler) -> httpx.Client:
    """Client whose credentials are expired and cannot be refreshed."""
    expired = MagicMock(valid=False, token=None)
    expired.refresh.side_effect = RefreshError("invalid_grant: Token has been expired or revoked.")
    client = httpx.Client(
        transport=httpx.MockTransport(handler),
        auth=GoogleCredentialsAuth(expired),
    )
    yield client
    client.close()
