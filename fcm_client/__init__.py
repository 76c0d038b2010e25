"""
FCM client -- Firebase Cloud Messaging and Instance ID topic management
========================================================================

Public re-exports for the client package.
"""

from .core.errors import (
    ErrorCode,
    FirebaseError,
    FirebaseMessagingError,
    MessagingErrorCode,
)
from .messaging import FirebaseMessaging, InstanceIdClient, MessagingClient
from .models import (
    AndroidConfig,
    AndroidNotification,
    ApnsConfig,
    BatchResponse,
    FcmOptions,
    Message,
    MulticastMessage,
    Notification,
    SendResponse,
    TopicManagementError,
    TopicManagementResponse,
    WebpushConfig,
    WebpushFcmOptions,
)

__all__ = [
    "AndroidConfig",
    "AndroidNotification",
    "ApnsConfig",
    "BatchResponse",
    "ErrorCode",
    "FcmOptions",
    "FirebaseError",
    "FirebaseMessaging",
    "FirebaseMessagingError",
    "InstanceIdClient",
    "Message",
    "MessagingClient",
    "MessagingErrorCode",
    "MulticastMessage",
    "Notification",
    "SendResponse",
    "TopicManagementError",
    "TopicManagementResponse",
    "WebpushConfig",
    "WebpushFcmOptions",
]
