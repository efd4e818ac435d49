"""Notification surface: one transient success/error message, auto-dismissed."""

import time
from dataclasses import dataclass
from typing import Callable, Optional

from ..models import NoticeKind

DEFAULT_TTL_SECONDS = 3.0


@dataclass(frozen=True)
class Notice:
    message: str
    kind: NoticeKind
    shown_at: float


class Notifier:
    """
    Single-slot message surface. A new show() replaces the current message (no queue);
    a message expires ttl seconds after it was shown.
    """

    def __init__(self, ttl: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._notice: Optional[Notice] = None

    def show(self, message: str, kind: NoticeKind = NoticeKind.SUCCESS) -> Notice:
        self._notice = Notice(message=message, kind=NoticeKind(kind), shown_at=self._clock())
        return self._notice

    def success(self, message: str) -> Notice:
        return self.show(message, NoticeKind.SUCCESS)

    def error(self, message: str) -> Notice:
        return self.show(message, NoticeKind.ERROR)

    def current(self) -> Optional[Notice]:
        """The visible message, or None once dismissed or expired."""
        if self._notice is None:
            return None
        if self._clock() - self._notice.shown_at >= self.ttl:
            self._notice = None
        return self._notice

    def dismiss(self) -> None:
        self._notice = None
