"""Transient success/error notifications for user-facing feedback."""
import logging
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from blog_client.exceptions import ApiError

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong"


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    level: NotificationLevel
    text: str
    created_at: float = field(default_factory=time.time)


NotificationListener = Callable[[Notification], None]


def describe_error(exc: BaseException, fallback: str = GENERIC_ERROR_MESSAGE) -> str:
    """
    Text for an error notification.

    Structured server errors are joined with "; "; otherwise the envelope
    message is used; otherwise `fallback`.
    """
    if isinstance(exc, ApiError):
        if exc.error_messages:
            return "; ".join(exc.error_messages)
        if exc.message:
            return exc.message
    return fallback


class Notifier:
    """Collects recent notifications and forwards them to listeners."""

    def __init__(self, history_size: int = 50) -> None:
        self._history: deque[Notification] = deque(maxlen=history_size)
        self._listeners: list[NotificationListener] = []

    @property
    def history(self) -> list[Notification]:
        return list(self._history)

    def subscribe(self, listener: NotificationListener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def success(self, text: str) -> Notification:
        return self._emit(NotificationLevel.SUCCESS, text)

    def error(self, text: str) -> Notification:
        return self._emit(NotificationLevel.ERROR, text)

    def _emit(self, level: NotificationLevel, text: str) -> Notification:
        notification = Notification(level=level, text=text)
        self._history.append(notification)
        log = logger.info if level is NotificationLevel.SUCCESS else logger.warning
        log("notification", extra={"level": level.value, "text": text})
        for listener in list(self._listeners):
            listener(notification)
        return notification
