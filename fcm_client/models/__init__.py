from fcm_client.models.message import (
    AndroidConfig,
    AndroidNotification,
    ApnsConfig,
    FcmOptions,
    Message,
    MulticastMessage,
    Notification,
    WebpushConfig,
    WebpushFcmOptions,
)
from fcm_client.models.responses import (
    BatchResponse,
    SendResponse,
    TopicManagementError,
    TopicManagementResponse,
)

__all__ = [
    "AndroidConfig",
    "AndroidNotification",
    "ApnsConfig",
    "BatchResponse",
    "FcmOptions",
    "Message",
    "MulticastMessage",
    "Notification",
    "SendResponse",
    "TopicManagementError",
    "TopicManagementResponse",
    "WebpushConfig",
    "WebpushFcmOptions",
]
