"""Path helpers used while walking watch roots."""
from __future__ import annotations

SEPARATOR = "/"


class PathJoinError(ValueError):
    """Raised when a child name cannot be joined onto a base path."""


def join_path(base: str, child: str) -> str:
    """Join a directory path and the name of one of its entries.

    A single separator is inserted unless ``base`` already ends with one.
    ``child`` must be a relative entry name.
    """

    if child.startswith(SEPARATOR):
        raise PathJoinError(f"Cannot join absolute name {child!r} onto {base!r}")
    if base.endswith(SEPARATOR):
        return base + child
    return base + SEPARATOR + child
