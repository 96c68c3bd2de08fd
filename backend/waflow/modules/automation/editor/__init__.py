"""
Flow Editor

Client-side state for the visual automation editor.
"""

from .flow_api_client import FlowApiClient
from .flow_editor import FlowEditor
from .notifications import Notification, NotificationLevel, Notifier
from .session import UserSession

__all__ = [
    "FlowApiClient",
    "FlowEditor",
    "Notification",
    "NotificationLevel",
    "Notifier",
    "UserSession",
]
