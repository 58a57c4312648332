"""inotify notification channel."""
from __future__ import annotations

import logging
import os
import select
from typing import Optional

from inotify_simple import INotify, flags

from .decoder import HEADER_SIZE

logger = logging.getLogger(__name__)

# Room for 1024 records with short names per read.
READ_SIZE = 1024 * (HEADER_SIZE + 16)

_READY_EVENTS = select.POLLIN | select.POLLPRI | select.POLLERR


class WatchSetupError(Exception):
    """Raised when the watch set cannot be built as configured."""


class InotifyChannel:
    """The single readable handle all watches report through."""

    def __init__(self) -> None:
        try:
            self._inotify: Optional[INotify] = INotify()
        except OSError as exc:
            raise WatchSetupError(f"Unable to initialise inotify: {exc}") from exc
        self._poller = select.poll()
        self._poller.register(self._inotify.fileno(), _READY_EVENTS)

    @property
    def closed(self) -> bool:
        return self._inotify is None

    def add_watch(self, path: str) -> int:
        """Watch ``path`` for content modification and return its descriptor."""

        try:
            return self._require().add_watch(path, flags.MODIFY)
        except OSError as exc:
            raise WatchSetupError(f"Unable to watch {path}: {exc}") from exc

    def wait(self, timeout_ms: int) -> bool:
        """Return True once the channel has data, False on timeout."""

        return bool(self._poller.poll(timeout_ms))

    def read(self, size: int = READ_SIZE) -> bytes:
        """Read one raw buffer; an empty result means the channel is closed."""

        return os.read(self._require().fileno(), size)

    def close(self) -> None:
        if self._inotify is None:
            return
        self._poller.unregister(self._inotify.fileno())
        self._inotify.close()
        self._inotify = None

    def _require(self) -> INotify:
        if self._inotify is None:
            raise ValueError("Channel is closed")
        return self._inotify
