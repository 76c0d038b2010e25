"""
Pydantic v2 models for outbound FCM messages
=============================================

A ``Message`` targets exactly one of a registration token, a topic or a
condition, and carries an optional notification, a string-only data map and
per-platform override blocks. ``wrap_for_transport`` produces the JSON body
expected by ``projects.messages.send``.
"""

from __future__ import annotations

import re
from datetime import timedelta
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

TOPIC_PREFIX = "/topics/"
TOPIC_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_.~%-]+$")
ANALYTICS_LABEL_PATTERN = r"^[a-zA-Z0-9_.~%-]{1,50}$"
MAX_MULTICAST_TOKENS = 500


def _format_duration(value: Any) -> Any:
    """Render a TTL as the protobuf Duration string the API expects."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, timedelta):
        total = value.total_seconds()
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        total = float(value)
    else:
        raise ValueError("ttl must be a timedelta or a number of seconds")

    if total < 0:
        raise ValueError("ttl must not be negative")

    seconds, nanos = divmod(int(round(total * 1e9)), 1_000_000_000)
    if nanos:
        return f"{seconds}.{nanos:09d}s"
    return f"{seconds}s"


# ---------------------------------------------------------------------------
# Shared payload blocks
# ---------------------------------------------------------------------------

class _Payload(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class Notification(_Payload):
    """Basic notification shown on every platform."""

    title: Optional[str] = None
    body: Optional[str] = None
    image: Optional[str] = None


class FcmOptions(_Payload):
    analytics_label: Optional[str] = Field(default=None, pattern=ANALYTICS_LABEL_PATTERN)


# ---------------------------------------------------------------------------
# Platform overrides
# ---------------------------------------------------------------------------

class AndroidNotification(_Payload):
    """Android-specific notification fields."""

    title: Optional[str] = None
    body: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = Field(default=None, pattern=r"^#[0-9a-fA-F]{6}$")
    sound: Optional[str] = None
    tag: Optional[str] = None
    click_action: Optional[str] = None
    body_loc_key: Optional[str] = None
    body_loc_args: Optional[list[str]] = None
    title_loc_key: Optional[str] = None
    title_loc_args: Optional[list[str]] = None
    channel_id: Optional[str] = None
    image: Optional[str] = None

    @model_validator(mode="after")
    def check_loc_args(self) -> AndroidNotification:
        if self.body_loc_args and not self.body_loc_key:
            raise ValueError("body_loc_key is required when specifying body_loc_args")
        if self.title_loc_args and not self.title_loc_key:
            raise ValueError("title_loc_key is required when specifying title_loc_args")
        return self


class AndroidConfig(_Payload):
    collapse_key: Optional[str] = None
    priority: Optional[Literal["high", "normal"]] = None
    ttl: Optional[str] = None
    restricted_package_name: Optional[str] = None
    data: Optional[dict[str, str]] = None
    notification: Optional[AndroidNotification] = None
    fcm_options: Optional[FcmOptions] = None

    @field_validator("ttl", mode="before")
    @classmethod
    def format_ttl(cls, v: Any) -> Any:
        return _format_duration(v)


class ApnsConfig(_Payload):
    """APNs headers and raw ``aps`` payload, passed through as given."""

    headers: Optional[dict[str, str]] = None
    payload: Optional[dict[str, Any]] = None
    fcm_options: Optional[FcmOptions] = None


class WebpushFcmOptions(_Payload):
    link: Optional[str] = None

    @field_validator("link")
    @classmethod
    def require_https(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.startswith("https://"):
            raise ValueError("WebpushFcmOptions.link must be a HTTPS URL")
        return v


class WebpushConfig(_Payload):
    headers: Optional[dict[str, str]] = None
    data: Optional[dict[str, str]] = None
    notification: Optional[dict[str, Any]] = None
    fcm_options: Optional[WebpushFcmOptions] = None


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

class Message(_Payload):
    """A single FCM message addressed to a token, a topic or a condition."""

    token: Optional[str] = None
    topic: Optional[str] = None
    condition: Optional[str] = None
    notification: Optional[Notification] = None
    data: Optional[dict[str, str]] = None
    android: Optional[AndroidConfig] = None
    apns: Optional[ApnsConfig] = None
    webpush: Optional[WebpushConfig] = None
    fcm_options: Optional[FcmOptions] = None

    @field_validator("topic")
    @classmethod
    def strip_topic_prefix(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if v.startswith(TOPIC_PREFIX):
            v = v[len(TOPIC_PREFIX):]
        if not TOPIC_NAME_PATTERN.match(v):
            raise ValueError("Malformed topic name")
        return v

    @model_validator(mode="after")
    def check_single_target(self) -> Message:
        targets = [t for t in (self.token, self.topic, self.condition) if t]
        if len(targets) != 1:
            raise ValueError("Exactly one of token, topic or condition must be specified")
        return self

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)

    def wrap_for_transport(self, dry_run: bool) -> dict[str, Any]:
        """Return the request body for ``projects.messages.send``."""
        payload: dict[str, Any] = {"message": self.to_payload()}
        if dry_run:
            payload["validate_only"] = True
        return payload


class MulticastMessage(_Payload):
    """One payload addressed to up to 500 registration tokens."""

    tokens: list[str] = Field(min_length=1, max_length=MAX_MULTICAST_TOKENS)
    notification: Optional[Notification] = None
    data: Optional[dict[str, str]] = None
    android: Optional[AndroidConfig] = None
    apns: Optional[ApnsConfig] = None
    webpush: Optional[WebpushConfig] = None
    fcm_options: Optional[FcmOptions] = None

    @field_validator("tokens")
    @classmethod
    def reject_empty_tokens(cls, v: list[str]) -> list[str]:
        if any(not token for token in v):
            raise ValueError("none of the tokens in the list can be empty")
        return v

    def to_messages(self) -> list[Message]:
        shared = self.model_dump(exclude={"tokens"}, exclude_none=True)
        return [Message(token=token, **shared) for token in self.tokens]
