"""Cooperative shutdown requested from a signal handler."""
from __future__ import annotations

import logging
import signal
from contextlib import contextmanager
from types import FrameType
from typing import Iterator, Optional

logger = logging.getLogger(__name__)


class ShutdownSignal:
    """Flag set asynchronously and polled once per loop iteration.

    A plain attribute write, so setting it from a signal handler takes no lock.
    """

    def __init__(self) -> None:
        self._set = False

    def trigger(self) -> None:
        self._set = True

    def is_set(self) -> bool:
        return self._set

    def handle(self, signum: int, frame: Optional[FrameType]) -> None:
        logger.info("got %s signal", signum)
        self.trigger()

    @contextmanager
    def installed(self, signum: int = signal.SIGINT) -> Iterator["ShutdownSignal"]:
        """Route ``signum`` to :meth:`handle` until the block exits."""

        previous = signal.signal(signum, self.handle)
        try:
            yield self
        finally:
            signal.signal(signum, previous)
