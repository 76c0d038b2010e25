"""
Google credentials and authorized HTTP client
=============================================

Credentials are resolved in this order:
  - FIREBASE_SERVICE_ACCOUNT_PATH  -- path to a JSON service account file
  - FIREBASE_CREDENTIALS_JSON      -- raw JSON string of the service account
  - Application Default Credentials (``google.auth.default``)

The resulting credentials are attached to an ``httpx.Client`` through
``GoogleCredentialsAuth``, which refreshes the OAuth2 access token when it
is missing or expired and sends it as a bearer token.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from typing import Generator

import google.auth
import google.auth.transport.requests
import httpx
from google.auth.credentials import Credentials
from google.oauth2 import service_account

from fcm_client.core.config import Settings, settings

logger = logging.getLogger(__name__)

SCOPES: list[str] = [
    "https://www.googleapis.com/auth/firebase.messaging",
    "https://www.googleapis.com/auth/cloud-platform",
]

_PROJECT_ID_ENV_VARS = ("GOOGLE_CLOUD_PROJECT", "GCLOUD_PROJECT")


def load_credentials(config: Settings | None = None) -> Credentials:
    """Load Google credentials from the configured source.

    Returns:
        A ``google.auth`` credentials object scoped for FCM.

    Raises:
        google.auth.exceptions.DefaultCredentialsError: If no explicit
            service account is configured and ADC cannot be found.
    """
    config = config or settings

    if config.firebase_service_account_path:
        logger.info(
            "Loading credentials from service account file: %s",
            config.firebase_service_account_path,
        )
        return service_account.Credentials.from_service_account_file(
            config.firebase_service_account_path, scopes=SCOPES
        )

    if config.firebase_credentials_json:
        logger.info("Loading credentials from JSON environment variable")
        return service_account.Credentials.from_service_account_info(
            json.loads(config.firebase_credentials_json), scopes=SCOPES
        )

    logger.info("Loading Application Default Credentials")
    credentials, _ = google.auth.default(scopes=SCOPES)
    return credentials


def resolve_project_id(
    config: Settings | None = None,
    credentials: Credentials | None = None,
) -> str:
    """Return the Firebase project ID from settings, credentials or env."""
    config = config or settings

    project_id = config.firebase_project_id or getattr(credentials, "project_id", None)
    if not project_id:
        for name in _PROJECT_ID_ENV_VARS:
            project_id = os.environ.get(name)
            if project_id:
                break

    if not project_id:
        raise ValueError(
            "Project ID is required to access messaging service. Use a service "
            "account credential or set FIREBASE_PROJECT_ID. Alternatively you can "
            "also set the project ID via the GOOGLE_CLOUD_PROJECT environment "
            "variable."
        )
    return project_id


class GoogleCredentialsAuth(httpx.Auth):
    """httpx auth hook that sends a Google OAuth2 access token."""

    def __init__(self, credentials: Credentials) -> None:
        self.credentials = credentials
        self._lock = threading.Lock()

    def auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        with self._lock:
            if not self.credentials.valid:
                logger.debug("Refreshing Google access token")
                self.credentials.refresh(google.auth.transport.requests.Request())
            token = self.credentials.token
        request.headers["Authorization"] = f"Bearer {token}"
        yield request


def build_authorized_client(
    credentials: Credentials,
    config: Settings | None = None,
) -> httpx.Client:
    """Create an ``httpx.Client`` that authorizes every request."""
    config = config or settings
    return httpx.Client(
        auth=GoogleCredentialsAuth(credentials),
        timeout=config.http_timeout_seconds,
    )
