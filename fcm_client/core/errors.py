"""
Exception hierarchy for the FCM client
=======================================

Every failure surfaced by the messaging and topic management clients is a
``FirebaseMessagingError``. Two orthogonal codes travel with it:

  - ``code``                 -- platform-wide ``ErrorCode`` derived from the
                                HTTP status, the JSON ``error.status`` field,
                                or the kind of transport failure.
  - ``messaging_error_code`` -- FCM specific ``MessagingErrorCode`` read from
                                the ``FcmError`` entry of the error details.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fcm_client.core.httpClient import IncomingHttpResponse


class ErrorCode(str, Enum):
    """Platform-wide error codes shared by all Google REST APIs."""
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    FAILED_PRECONDITION = "FAILED_PRECONDITION"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    ABORTED = "ABORTED"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    RESOURCE_EXHAUSTED = "RESOURCE_EXHAUSTED"
    CANCELLED = "CANCELLED"
    DATA_LOSS = "DATA_LOSS"
    UNKNOWN = "UNKNOWN"
    INTERNAL = "INTERNAL"
    UNAVAILABLE = "UNAVAILABLE"
    DEADLINE_EXCEEDED = "DEADLINE_EXCEEDED"

    @classmethod
    def from_status(
        cls, status: str | None, default: ErrorCode | None = None
    ) -> ErrorCode:
        """Map a JSON ``error.status`` string, falling back to ``default``."""
        fallback = default or cls.UNKNOWN
        if not status:
            return fallback
        try:
            return cls(status)
        except ValueError:
            return fallback


class MessagingErrorCode(str, Enum):
    """Error kinds specific to the FCM send API."""
    THIRD_PARTY_AUTH_ERROR = "THIRD_PARTY_AUTH_ERROR"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    INTERNAL = "INTERNAL"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    SENDER_ID_MISMATCH = "SENDER_ID_MISMATCH"
    UNAVAILABLE = "UNAVAILABLE"
    UNREGISTERED = "UNREGISTERED"
    UNKNOWN = "UNKNOWN"


class FirebaseError(Exception):
    """Base class for all errors raised by a Firebase REST call."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        cause: BaseException | None = None,
        http_response: IncomingHttpResponse | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.cause = cause
        self.http_response = http_response
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code.value!r}, message={self.message!r})"


class FirebaseMessagingError(FirebaseError):
    """Raised by the messaging and topic management clients."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        cause: BaseException | None = None,
        http_response: IncomingHttpResponse | None = None,
        messaging_error_code: MessagingErrorCode = MessagingErrorCode.UNKNOWN,
    ) -> None:
        super().__init__(code, message, cause, http_response)
        self.messaging_error_code = messaging_error_code

    @classmethod
    def from_firebase_error(
        cls,
        error: FirebaseError,
        messaging_error_code: MessagingErrorCode = MessagingErrorCode.UNKNOWN,
    ) -> FirebaseMessagingError:
        return cls(
            error.code,
            error.message,
            error.cause,
            error.http_response,
            messaging_error_code,
        )
