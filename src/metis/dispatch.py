"""Placeholder substitution and command execution."""
from __future__ import annotations

import logging
import subprocess
from typing import Callable, Optional

logger = logging.getLogger(__name__)

PLACEHOLDER = "{}"

CommandRunner = Callable[[str], int]


def build_command(template: str, path: str) -> str:
    """Replace every ``{}`` in ``template`` with ``path``."""

    return template.replace(PLACEHOLDER, path)


def run_shell(command: str) -> int:
    """Run ``command`` through the shell and return its exit status."""

    completed = subprocess.run(command, shell=True, check=True)
    return completed.returncode


class CommandDispatcher:
    """Runs the user's command template for each changed path.

    Failing or unspawnable commands are logged and reported through the
    return value; they never raise.
    """

    def __init__(self, template: Optional[str], runner: CommandRunner = run_shell):
        self._template = template
        self._runner = runner

    def dispatch(self, path: str) -> Optional[int]:
        """Run the command for ``path``.

        Returns the exit status, ``None`` when no template is configured, or
        ``-1`` when the command could not be started.
        """

        if self._template is None:
            return None

        command = build_command(self._template, path)
        logger.info("Executing command for %s: %s", path, command)
        try:
            return self._runner(command)
        except subprocess.CalledProcessError as exc:
            logger.error("Command failed (exit %s): %s", exc.returncode, command)
            return exc.returncode
        except OSError as exc:
            logger.error("Command could not be started: %s (%s)", command, exc)
            return -1
