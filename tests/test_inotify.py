"""End-to-end checks against the real inotify subsystem."""
import queue
import signal
import subprocess
import sys
import threading
import time

import pytest

pytestmark = pytest.mark.skipif(not sys.platform.startswith("linux"), reason="inotify is Linux only")

from metis.channel import InotifyChannel  # noqa: E402
from metis.dispatch import CommandDispatcher  # noqa: E402
from metis.monitor import LoopOutcome, WatchLoop  # noqa: E402
from metis.shutdown import ShutdownSignal  # noqa: E402
from metis.table import WatchTable  # noqa: E402
from metis.walker import DirectoryWalker  # noqa: E402

TIMEOUT = 10


def append(path, text="change\n"):
    with open(path, "a") as handle:
        handle.write(text)


def test_nested_files_dispatch_independently(tmp_path):
    root = tmp_path / "dir"
    (root / "sub").mkdir(parents=True)
    (root / "a.txt").write_text("a")
    (root / "sub" / "b.txt").write_text("b")

    seen: "queue.Queue[str]" = queue.Queue()

    def runner(command):
        seen.put(command)
        return 0

    channel = InotifyChannel()
    table = DirectoryWalker(channel, WatchTable()).walk_roots([str(root)])
    assert [entry.path for entry in table] == [str(root / "a.txt"), str(root / "sub" / "b.txt")]

    shutdown = ShutdownSignal()
    loop = WatchLoop(channel, table, CommandDispatcher("changed {}", runner), shutdown, poll_timeout_ms=20)
    result = {}
    worker = threading.Thread(target=lambda: result.setdefault("outcome", loop.run()))
    worker.start()
    try:
        append(root / "a.txt")
        assert seen.get(timeout=TIMEOUT) == f"changed {root / 'a.txt'}"
        append(root / "sub" / "b.txt")
        assert seen.get(timeout=TIMEOUT) == f"changed {root / 'sub' / 'b.txt'}"
    finally:
        shutdown.trigger()
        worker.join(TIMEOUT)

    assert not worker.is_alive()
    assert result["outcome"] is LoopOutcome.INTERRUPTED
    assert channel.closed
    assert len(table) == 0


def test_interrupt_stops_cli_with_exit_zero(tmp_path):
    (tmp_path / "test.txt").write_text("hello\n")
    process = subprocess.Popen(
        [sys.executable, "-m", "metis", "-c", "echo {} changed", "--poll-timeout", "20", "test.txt"],
        cwd=tmp_path,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
    )
    lines: "queue.Queue[str]" = queue.Queue()
    output = []

    def pump():
        for line in process.stdout:
            output.append(line)
            lines.put(line)

    reader = threading.Thread(target=pump, daemon=True)
    reader.start()

    def wait_for(fragment):
        deadline = time.monotonic() + TIMEOUT
        while time.monotonic() < deadline:
            try:
                line = lines.get(timeout=0.1)
            except queue.Empty:
                continue
            if fragment in line:
                return
        pytest.fail(f"never saw {fragment!r} in output:\n{''.join(output)}")

    try:
        wait_for("for changes")
        append(tmp_path / "test.txt")
        wait_for("test.txt changed")
        process.send_signal(signal.SIGINT)
        assert process.wait(timeout=TIMEOUT) == 0
    finally:
        if process.poll() is None:
            process.kill()
            process.wait()
    reader.join(TIMEOUT)

    executions = [line for line in output if line.strip() == "test.txt changed"]
    assert len(executions) == 1
