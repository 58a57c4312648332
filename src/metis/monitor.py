"""The watch loop: wait, read, decode, resolve, dispatch."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol

from inotify_simple import flags

from .channel import READ_SIZE, InotifyChannel
from .config import WatchOptions
from .decoder import DecodeError, decode_records
from .dispatch import CommandDispatcher
from .events import ChangeRecord
from .shutdown import ShutdownSignal
from .table import WatchTable
from .walker import DirectoryWalker

logger = logging.getLogger(__name__)


class NotificationChannel(Protocol):
    def add_watch(self, path: str) -> int:
        ...

    def wait(self, timeout_ms: int) -> bool:
        ...

    def read(self, size: int) -> bytes:
        ...

    def close(self) -> None:
        ...


class LoopState(str, Enum):
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    TERMINATED = "terminated"


class LoopOutcome(str, Enum):
    """Why the watch loop stopped."""

    INTERRUPTED = "interrupted"
    CHANNEL_CLOSED = "channel_closed"
    READ_ERROR = "read_error"
    DECODE_ERROR = "decode_error"

    @property
    def failed(self) -> bool:
        return self is not LoopOutcome.INTERRUPTED


@dataclass
class LoopStats:
    """Counters emitted by the loop for observability."""

    iterations: int = 0
    records_decoded: int = 0
    commands_dispatched: int = 0
    command_failures: int = 0
    unresolved_records: int = 0


class WatchLoop:
    """Processes notifications until shutdown is requested or the channel ends.

    The only blocking wait is the bounded readiness check, so a shutdown
    request is acted on within one ``poll_timeout_ms``. Commands run
    synchronously and hold up the loop while they execute.
    """

    def __init__(
        self,
        channel: NotificationChannel,
        table: WatchTable,
        dispatcher: CommandDispatcher,
        shutdown: ShutdownSignal,
        *,
        poll_timeout_ms: int = 100,
        read_size: int = READ_SIZE,
    ):
        self._channel = channel
        self._table = table
        self._dispatcher = dispatcher
        self._shutdown = shutdown
        self._poll_timeout_ms = poll_timeout_ms
        self._read_size = read_size
        self._stats = LoopStats()
        self.state = LoopState.RUNNING

    @property
    def stats(self) -> LoopStats:
        return self._stats

    def run(self) -> LoopOutcome:
        """Run until stopped and release every watch on the way out."""

        logger.info("Watching %s files for changes", len(self._table))
        self.state = LoopState.RUNNING
        outcome: Optional[LoopOutcome] = None
        try:
            while outcome is None:
                outcome = self._iterate()
                self._stats.iterations += 1
                if outcome is None and self._shutdown.is_set():
                    self.state = LoopState.SHUTTING_DOWN
                    outcome = LoopOutcome.INTERRUPTED
        finally:
            self._release()
            self.state = LoopState.TERMINATED
            logger.info(
                "Watch loop stopped (%s) after %s iterations, %s records, %s commands, %s failed",
                outcome.value if outcome else "error",
                self._stats.iterations,
                self._stats.records_decoded,
                self._stats.commands_dispatched,
                self._stats.command_failures,
            )
        return outcome

    def _iterate(self) -> Optional[LoopOutcome]:
        if not self._channel.wait(self._poll_timeout_ms):
            return None

        try:
            buffer = self._channel.read(self._read_size)
        except OSError as exc:
            logger.error("Reading the notification channel failed: %s", exc)
            return LoopOutcome.READ_ERROR

        if not buffer:
            logger.warning("No events: notification channel closed")
            return LoopOutcome.CHANNEL_CLOSED

        logger.debug("got new events (%s bytes)", len(buffer))
        try:
            for record in decode_records(buffer):
                self._handle(record)
        except DecodeError as exc:
            logger.error("Discarding undecodable notification buffer: %s", exc)
            return LoopOutcome.DECODE_ERROR
        return None

    def _handle(self, record: ChangeRecord) -> None:
        self._stats.records_decoded += 1
        if record.mask & flags.Q_OVERFLOW:
            logger.warning("Notification queue overflowed; some modifications were lost")
            return
        if not record.is_modification:
            logger.debug(
                "Ignoring %s on descriptor %s",
                "|".join(record.flag_names()) or hex(record.mask),
                record.descriptor,
            )
            return

        if record.name:
            # Only directory watches carry an entry name and none are
            # registered at the moment, so this branch is not reached yet.
            path: Optional[str] = record.name
        else:
            path = self._table.resolve(record.descriptor)
        if path is None:
            self._stats.unresolved_records += 1
            logger.error("No watch registered for descriptor %s; skipping", record.descriptor)
            return

        logger.info("%s updated!", path)
        status = self._dispatcher.dispatch(path)
        if status is None:
            return
        self._stats.commands_dispatched += 1
        if status != 0:
            self._stats.command_failures += 1

    def _release(self) -> None:
        released = self._table.release()
        self._channel.close()
        logger.debug("Released %s watches", len(released))


def watch(
    options: WatchOptions,
    *,
    channel_factory: Callable[[], NotificationChannel] = InotifyChannel,
    dispatcher: Optional[CommandDispatcher] = None,
    shutdown: Optional[ShutdownSignal] = None,
    install_signal_handler: bool = True,
) -> LoopOutcome:
    """Build the watch set for ``options`` and run the loop until it stops."""

    channel = channel_factory()
    table = WatchTable()
    try:
        DirectoryWalker(channel, table, skip_names=options.skip_names).walk_roots(options.paths)
    except Exception:
        table.release()
        channel.close()
        raise

    shutdown = shutdown or ShutdownSignal()
    loop = WatchLoop(
        channel,
        table,
        dispatcher or CommandDispatcher(options.command),
        shutdown,
        poll_timeout_ms=options.poll_timeout_ms,
        read_size=options.read_size,
    )
    if not install_signal_handler:
        return loop.run()
    with shutdown.installed():
        return loop.run()
