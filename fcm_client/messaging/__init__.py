"""
Firebase Cloud Messaging clients
================================

Public re-exports for the FCM send and topic management clients.
"""

from .firebaseMessaging import FirebaseMessaging
from .instanceIdClient import InstanceIdClient
from .messagingClient import MessagingClient

__all__ = [
    "FirebaseMessaging",
    "InstanceIdClient",
    "MessagingClient",
]
