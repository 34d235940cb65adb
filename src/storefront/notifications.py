"""User-facing notifications — the transient messages a storefront UI shows.

Cart, wishlist and merge outcomes are reported through a ``Notifier``.
``LogNotifier`` is the default; UIs plug in their own adapter, and
``RecordingNotifier`` keeps messages in memory for display or test
assertions.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

import structlog

logger = structlog.get_logger(__name__)


class NotificationLevel(Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    level: NotificationLevel
    message: str


class Notifier(ABC):
    """Abstract interface for user notification adapters."""

    @abstractmethod
    def notify(self, level: NotificationLevel, message: str) -> None: ...

    def success(self, message: str) -> None:
        self.notify(NotificationLevel.SUCCESS, message)

    def info(self, message: str) -> None:
        self.notify(NotificationLevel.INFO, message)

    def warning(self, message: str) -> None:
        self.notify(NotificationLevel.WARNING, message)

    def error(self, message: str) -> None:
        self.notify(NotificationLevel.ERROR, message)


class LogNotifier(Notifier):
    """Writes notifications to the structured log."""

    def notify(self, level: NotificationLevel, message: str) -> None:
        if level in (NotificationLevel.WARNING, NotificationLevel.ERROR):
            logger.warning("user_notification", level=level.value, message=message)
        else:
            logger.info("user_notification", level=level.value, message=message)


class RecordingNotifier(Notifier):
    """Keeps every notification in memory."""

    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    def notify(self, level: NotificationLevel, message: str) -> None:
        self.notifications.append(Notification(level=level, message=message))

    def messages(self, level: NotificationLevel | None = None) -> list[str]:
        return [n.message for n in self.notifications if level is None or n.level == level]

    def clear(self) -> None:
        self.notifications.clear()
