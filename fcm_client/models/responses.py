"""
Result types returned by the messaging and topic management clients.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from fcm_client.core.errors import FirebaseMessagingError

# Instance ID error strings -> public reason codes
TOPIC_MGT_ERROR_REASONS: dict[str, str] = {
    "INVALID_ARGUMENT": "invalid-argument",
    "NOT_FOUND": "registration-token-not-registered",
    "INTERNAL": "internal-error",
    "TOO_MANY_TOPICS": "too-many-topics",
}
UNKNOWN_TOPIC_MGT_ERROR = "unknown-error"


@dataclass(frozen=True)
class SendResponse:
    """Outcome of one message in a batch: a message ID or an exception."""
    message_id: str | None = None
    exception: FirebaseMessagingError | None = None

    @property
    def success(self) -> bool:
        return self.exception is None

    @classmethod
    def from_message_id(cls, message_id: str) -> SendResponse:
        return cls(message_id=message_id)

    @classmethod
    def from_exception(cls, exception: FirebaseMessagingError) -> SendResponse:
        return cls(exception=exception)


@dataclass(frozen=True)
class BatchResponse:
    """Per-message results of a batch send, in the order messages were given."""
    responses: list[SendResponse] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.responses if r.success)

    @property
    def failure_count(self) -> int:
        return len(self.responses) - self.success_count

    def __len__(self) -> int:
        return len(self.responses)

    def __iter__(self):
        return iter(self.responses)


@dataclass(frozen=True)
class TopicManagementError:
    """A registration token that could not be (un)subscribed."""
    index: int
    reason: str


@dataclass
class TopicManagementResponse:
    """Aggregate result of a topic subscribe/unsubscribe call.

    Built from the ``results`` array of the Instance ID response, which holds
    one entry per registration token: ``{}`` on success or
    ``{"error": "NOT_FOUND"}`` on failure.
    """
    success_count: int = 0
    failure_count: int = 0
    errors: list[TopicManagementError] = field(default_factory=list)

    @classmethod
    def from_results(cls, results: list[dict[str, Any]]) -> TopicManagementResponse:
        if not results:
            raise ValueError("Unexpected response from topic management service")

        response = cls()
        for index, result in enumerate(results):
            if isinstance(result, dict) and "error" in result:
                response.failure_count += 1
                reason = TOPIC_MGT_ERROR_REASONS.get(
                    str(result["error"]), UNKNOWN_TOPIC_MGT_ERROR
                )
                response.errors.append(TopicManagementError(index=index, reason=reason))
            else:
                response.success_count += 1
        return response
