"""Transient user-facing notifications (toasts).

Flow failures never propagate to the caller. They become a notification the
UI shows once and then drops.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Literal

Level = Literal["success", "info", "warning", "error"]


@dataclass(frozen=True)
class Notification:
    level: Level
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"level": self.level, "message": self.message}


class Notifier:
    """Collects notifications until the UI drains them."""

    def __init__(self) -> None:
        self._items: list[Notification] = []
        self._lock = threading.Lock()

    def notify(self, level: Level, message: str) -> None:
        with self._lock:
            self._items.append(Notification(level, message))

    def error(self, message: str) -> None:
        self.notify("error", message)

    def success(self, message: str) -> None:
        self.notify("success", message)

    def pending(self) -> list[Notification]:
        with self._lock:
            return list(self._items)

    def drain(self) -> list[Notification]:
        """Return and forget pending notifications."""
        with self._lock:
            items, self._items = self._items, []
        return items
