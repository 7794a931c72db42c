from __future__ import annotations

import logging
import threading
from typing import List

_log = logging.getLogger("event_tracker")


class FlushLogger:
    """Keeps a readable trail of buffer/timer/flush activity."""

    def __init__(self, *, max_entries: int = 500) -> None:
        self._entries: List[str] = []
        self._max_entries = max_entries
        self._lock = threading.Lock()

    def log(self, channel: str, message: str) -> None:
        entry = f"> [{channel}] {message}"
        _log.debug(entry)
        with self._lock:
            self._entries.append(entry)
            if len(self._entries) > self._max_entries:
                del self._entries[: len(self._entries) - self._max_entries]

    @property
    def entries(self) -> List[str]:
        with self._lock:
            return list(self._entries)
