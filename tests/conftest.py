"""Shared fixtures and fakes for the watcher tests."""
from __future__ import annotations

import os
from typing import Callable, Dict, List, Optional

import pytest

from metis.decoder import HEADER, HEADER_SIZE
from metis.shutdown import ShutdownSignal


def encode_record(descriptor: int, mask: int, name: str = "", cookie: int = 0) -> bytes:
    """Build the kernel wire form of one record, NUL-padding the name."""

    raw = os.fsencode(name)
    if raw:
        raw += b"\0"
        raw += b"\0" * (-len(raw) % HEADER_SIZE)
    return HEADER.pack(descriptor, mask, cookie, len(raw)) + raw


class FakeChannel:
    """Scripted stand-in for the inotify channel.

    ``reads`` is consumed one item per ready wait; an item may be bytes, an
    exception to raise, or ``None`` for a wait that times out. Once the
    script runs out every wait times out.
    """

    def __init__(self, reads: Optional[List[object]] = None):
        self.reads: List[object] = list(reads or [])
        self.watched: List[str] = []
        self.waits = 0
        self.close_calls = 0
        self.on_wait: Optional[Callable[[int], None]] = None
        self._descriptors: Dict[str, int] = {}

    def add_watch(self, path: str) -> int:
        self.watched.append(path)
        descriptor = len(self.watched)
        self._descriptors[path] = descriptor
        return descriptor

    def descriptor_for(self, path: str) -> int:
        return self._descriptors[path]

    def wait(self, timeout_ms: int) -> bool:
        self.waits += 1
        if self.on_wait is not None:
            self.on_wait(self.waits)
        if not self.reads:
            return False
        if self.reads[0] is None:
            self.reads.pop(0)
            return False
        return True

    def read(self, size: int) -> bytes:
        item = self.reads.pop(0)
        if isinstance(item, BaseException):
            raise item
        assert isinstance(item, bytes)
        return item

    def close(self) -> None:
        self.close_calls += 1


class RecordingRunner:
    """Command runner that records commands instead of spawning them."""

    def __init__(self, status: int = 0):
        self.commands: List[str] = []
        self.status = status

    def __call__(self, command: str) -> int:
        self.commands.append(command)
        return self.status


@pytest.fixture
def fake_channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def shutdown() -> ShutdownSignal:
    return ShutdownSignal()


@pytest.fixture
def tree(tmp_path):
    """A small tree with nested files and directories that must be skipped."""

    root = tmp_path / "dir"
    (root / "sub").mkdir(parents=True)
    (root / ".git").mkdir()
    (root / ".cache").mkdir()
    (root / "a.txt").write_text("a")
    (root / "sub" / "b.txt").write_text("b")
    (root / ".git" / "HEAD").write_text("ref: refs/heads/main")
    (root / ".cache" / "blob").write_text("x")
    return root
