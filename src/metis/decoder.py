"""Framed decoder for raw inotify read buffers.

Each record is a fixed ``struct inotify_event`` header (watch descriptor,
mask, cookie, name length) followed by ``length`` bytes holding a
NUL-padded name.
"""
from __future__ import annotations

import os
import struct
from typing import Iterator

from .events import ChangeRecord

HEADER = struct.Struct("iIII")
HEADER_SIZE = HEADER.size


class DecodeError(ValueError):
    """Raised when a buffer does not hold a whole number of records."""


def decode_records(buffer: bytes) -> Iterator[ChangeRecord]:
    """Yield every record in ``buffer`` in arrival order.

    The generator stops exactly at the end of the buffer and raises
    :class:`DecodeError` on a truncated header or a name that would run past
    the end.
    """

    view = memoryview(buffer)
    total = len(view)
    offset = 0
    while offset < total:
        if total - offset < HEADER_SIZE:
            raise DecodeError(
                f"Truncated header at offset {offset}: {total - offset} of {HEADER_SIZE} bytes"
            )
        descriptor, mask, cookie, length = HEADER.unpack_from(view, offset)
        offset += HEADER_SIZE
        if length > total - offset:
            raise DecodeError(
                f"Record name of {length} bytes at offset {offset} overruns buffer of {total} bytes"
            )
        name = None
        if length > 0:
            raw_name = bytes(view[offset:offset + length]).rstrip(b"\0")
            name = os.fsdecode(raw_name) if raw_name else None
        offset += length
        yield ChangeRecord(descriptor=descriptor, mask=mask, cookie=cookie, name=name)
