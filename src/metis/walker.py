"""Recursive discovery of the regular files to watch."""
from __future__ import annotations

import logging
import os
import stat
from typing import Iterable, Protocol, Tuple

from .channel import WatchSetupError
from .paths import join_path
from .table import WatchTable

logger = logging.getLogger(__name__)

DEFAULT_SKIP_NAMES: Tuple[str, ...] = (".", "..", ".git", ".cache")


class WatchRegistrar(Protocol):
    def add_watch(self, path: str) -> int:
        ...


class DirectoryWalker:
    """Registers one watch for every regular file under the given roots.

    Directories are descended into but never watched themselves, so files
    created after start-up are not picked up.
    """

    def __init__(
        self,
        channel: WatchRegistrar,
        table: WatchTable,
        *,
        skip_names: Iterable[str] = DEFAULT_SKIP_NAMES,
    ):
        self._channel = channel
        self._table = table
        self._skip_names = frozenset(skip_names)

    def walk_roots(self, roots: Iterable[str]) -> WatchTable:
        for root in roots:
            self.walk(root, follow_symlinks=True)
        logger.info("watching %s files", len(self._table))
        for entry in self._table:
            logger.info("\twatching: %s", entry.path)
        return self._table

    def walk(self, path: str, *, follow_symlinks: bool = False) -> None:
        """Register watches under ``path``.

        Symlinks are skipped unless ``follow_symlinks`` is set, which
        ``walk_roots`` does for the paths named on the command line.
        """

        try:
            mode = os.stat(path, follow_symlinks=follow_symlinks).st_mode
        except OSError as exc:
            raise WatchSetupError(f"Unable to stat {path}: {exc}") from exc

        if stat.S_ISREG(mode):
            logger.debug("file: %s", path)
            descriptor = self._channel.add_watch(path)
            self._table.register(descriptor, path)
            return

        if stat.S_ISDIR(mode):
            logger.debug("dir: %s", path)
            try:
                names = sorted(os.listdir(path))
            except OSError as exc:
                raise WatchSetupError(f"Unable to list directory {path}: {exc}") from exc
            for name in names:
                if name in self._skip_names:
                    continue
                self.walk(join_path(path, name))
            return

        logger.info("skipping: %s", path)
