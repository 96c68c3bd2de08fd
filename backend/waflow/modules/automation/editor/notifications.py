"""
Editor notifications (the toasts shown after save / publish / load).
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

logger = logging.getLogger("flow_editor")


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    level: NotificationLevel
    message: str


class Notifier:
    """Collects transient notifications for the UI layer and logs them."""

    def __init__(self):
        self.history: List[Notification] = []

    def success(self, message: str) -> None:
        self._push(Notification(NotificationLevel.SUCCESS, message))
        logger.info(message)

    def error(self, message: str) -> None:
        self._push(Notification(NotificationLevel.ERROR, message))
        logger.error(message)

    def _push(self, notification: Notification) -> None:
        self.history.append(notification)

    @property
    def last(self) -> Optional[Notification]:
        return self.history[-1] if self.history else None

    def clear(self) -> None:
        self.history.clear()
