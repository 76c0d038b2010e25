"""
Shared HTTP + JSON helper
=========================

Thin layer over ``httpx.Client`` used by both the messaging and the topic
management clients. It issues one request, optionally hands the raw response
to an interceptor, and converts every failure into the exception type chosen
by the caller's error handler:

  - transport and credential refresh failures -> ``handle_io_error``
  - non-2xx responses                          -> ``handle_http_error``
  - 2xx responses without a JSON object body   -> ``handle_parse_error``
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

import google.auth.exceptions
import httpx

from fcm_client.core.errors import ErrorCode, FirebaseError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration constants
# ---------------------------------------------------------------------------

HTTP_ERROR_CODES: dict[int, ErrorCode] = {
    400: ErrorCode.INVALID_ARGUMENT,
    401: ErrorCode.UNAUTHENTICATED,
    403: ErrorCode.PERMISSION_DENIED,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.CONFLICT,
    412: ErrorCode.FAILED_PRECONDITION,
    429: ErrorCode.RESOURCE_EXHAUSTED,
    500: ErrorCode.INTERNAL,
    503: ErrorCode.UNAVAILABLE,
}


# ---------------------------------------------------------------------------
# Request / response snapshots
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OutgoingHttpRequest:
    """An HTTP request as issued to a Google API.

    ``content`` is a JSON-serializable payload, or raw ``bytes``/``str``
    sent as-is (the batch envelope).
    """
    method: str
    url: str
    content: Any = None
    headers: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def post(
        cls,
        url: str,
        content: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> OutgoingHttpRequest:
        return cls("POST", url, content, dict(headers or {}))


@dataclass(frozen=True)
class IncomingHttpResponse:
    """An HTTP response kept for diagnostics after the call returns."""
    status_code: int
    headers: Mapping[str, str]
    content: str
    request: OutgoingHttpRequest

    @classmethod
    def from_httpx(
        cls, response: httpx.Response, request: OutgoingHttpRequest
    ) -> IncomingHttpResponse:
        return cls(
            status_code=response.status_code,
            headers=dict(response.headers),
            content=response.text,
            request=request,
        )


ResponseInterceptor = Callable[[IncomingHttpResponse], None]


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ErrorParams:
    """Everything an error handler extracted from a failed HTTP response."""
    code: ErrorCode
    message: str
    cause: BaseException | None
    response: IncomingHttpResponse


def new_firebase_error(
    error: httpx.HTTPError | google.auth.exceptions.GoogleAuthError,
) -> FirebaseError:
    """Translate a transport or credential failure into a ``FirebaseError``."""
    if isinstance(error, httpx.TimeoutException):
        code = ErrorCode.DEADLINE_EXCEEDED
        message = f"Timed out while making an API call: {error}"
    elif isinstance(error, (httpx.NetworkError, google.auth.exceptions.TransportError)):
        code = ErrorCode.UNAVAILABLE
        message = f"Failed to establish a connection: {error}"
    elif isinstance(error, google.auth.exceptions.RefreshError):
        code = ErrorCode.UNAUTHENTICATED
        message = f"Failed to obtain an access token: {error}"
    else:
        code = ErrorCode.UNKNOWN
        message = f"Unknown error while making a remote service call: {error}"
    return FirebaseError(code, message, cause=error)


class HttpErrorHandler:
    """Maps failed HTTP calls to exceptions using the HTTP status alone.

    Subclasses override ``create_exception`` to choose the exception type
    and ``get_error_params`` to read a richer error from the body.
    """

    def handle_io_error(
        self, error: httpx.HTTPError | google.auth.exceptions.GoogleAuthError
    ) -> FirebaseError:
        return new_firebase_error(error)

    def handle_http_error(
        self, error: httpx.HTTPStatusError | None, response: IncomingHttpResponse
    ) -> FirebaseError:
        return self.create_exception(self.get_error_params(error, response))

    def handle_parse_error(
        self, error: ValueError, response: IncomingHttpResponse
    ) -> FirebaseError:
        return FirebaseError(
            ErrorCode.UNKNOWN,
            f"Error while parsing HTTP response: {error}",
            cause=error,
            http_response=response,
        )

    def get_error_params(
        self, error: BaseException | None, response: IncomingHttpResponse
    ) -> ErrorParams:
        code = HTTP_ERROR_CODES.get(response.status_code, ErrorCode.UNKNOWN)
        message = (
            f"Unexpected HTTP response with status: {response.status_code}\n"
            f"{response.content}"
        )
        return ErrorParams(code=code, message=message, cause=error, response=response)

    def create_exception(self, params: ErrorParams) -> FirebaseError:
        return FirebaseError(params.code, params.message, params.cause, params.response)


def parse_platform_error(content: str) -> dict[str, Any]:
    """Return the ``error`` object of a Google platform error body, or ``{}``.

    The server may respond with a non-JSON payload (e.g. an HTML error page
    from a proxy), which is treated the same as an empty body.
    """
    if not content:
        return {}
    try:
        data = json.loads(content)
    except ValueError:
        return {}
    if not isinstance(data, dict):
        return {}
    error = data.get("error")
    return error if isinstance(error, dict) else {}


class PlatformErrorHandler(HttpErrorHandler):
    """Error handler for APIs that follow the Google platform error format::

        {"error": {"code": 404, "status": "NOT_FOUND", "message": "..."}}
    """

    def get_error_params(
        self, error: BaseException | None, response: IncomingHttpResponse
    ) -> ErrorParams:
        defaults = super().get_error_params(error, response)
        platform_error = parse_platform_error(response.content)

        # Only a recognized status overrides the HTTP-derived code.
        code = ErrorCode.from_status(platform_error.get("status"), defaults.code)
        message = platform_error.get("message") or defaults.message
        return ErrorParams(code=code, message=message, cause=error, response=response)


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------

class ErrorHandlingHttpClient:
    """Sends JSON requests and raises the handler's exception on any failure."""

    def __init__(
        self,
        http_client: httpx.Client,
        error_handler: HttpErrorHandler,
        response_interceptor: ResponseInterceptor | None = None,
    ) -> None:
        self.http_client = http_client
        self.error_handler = error_handler
        self.response_interceptor = response_interceptor

    def send(self, request: OutgoingHttpRequest) -> IncomingHttpResponse:
        """Issue ``request`` and return the response if its status is 2xx.

        Raises:
            FirebaseError: On transport failure or a non-2xx status.
        """
        logger.debug("%s %s", request.method, request.url)
        if isinstance(request.content, (bytes, str)):
            body: dict[str, Any] = {"content": request.content}
        else:
            body = {"json": request.content}

        try:
            response = self.http_client.request(
                request.method,
                request.url,
                headers=dict(request.headers),
                **body,
            )
        except (httpx.HTTPError, google.auth.exceptions.GoogleAuthError) as exc:
            logger.error("%s %s failed: %s", request.method, request.url, exc)
            raise self.error_handler.handle_io_error(exc) from exc

        incoming = IncomingHttpResponse.from_httpx(response, request)
        if self.response_interceptor is not None:
            self.response_interceptor(incoming)

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "%s %s returned HTTP %d", request.method, request.url, response.status_code
            )
            raise self.error_handler.handle_http_error(exc, incoming) from exc

        return incoming

    def parse(self, response: IncomingHttpResponse) -> dict[str, Any]:
        """Return the body of ``response`` parsed as a JSON object."""
        try:
            parsed = json.loads(response.content)
            if not isinstance(parsed, dict):
                raise ValueError(f"expected a JSON object, got {type(parsed).__name__}")
        except ValueError as exc:
            raise self.error_handler.handle_parse_error(exc, response) from exc
        return parsed
