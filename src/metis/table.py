"""Registry mapping watch descriptors to the paths they were added for."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional


@dataclass(frozen=True)
class WatchEntry:
    """One registered watch."""

    descriptor: int
    path: str


class WatchTable:
    """Insertion-ordered, append-only list of watch entries.

    Paths are not deduplicated: a file reached through two overlapping roots
    is registered twice. Lookups scan in insertion order and return the first
    match, which is fine for the hundreds of files a developer tree holds.
    """

    def __init__(self) -> None:
        self._entries: List[WatchEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[WatchEntry]:
        return iter(list(self._entries))

    def register(self, descriptor: int, path: str) -> WatchEntry:
        entry = WatchEntry(descriptor=descriptor, path=path)
        self._entries.append(entry)
        return entry

    def resolve(self, descriptor: int) -> Optional[str]:
        """Return the path registered for ``descriptor`` or ``None`` if unknown."""

        for entry in self._entries:
            if entry.descriptor == descriptor:
                return entry.path
        return None

    def release(self) -> List[WatchEntry]:
        """Drop every entry and return what was dropped.

        A second call returns an empty list.
        """

        released = self._entries
        self._entries = []
        return released
