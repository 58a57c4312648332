"""Change records decoded from the notification channel."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from inotify_simple import flags


@dataclass(frozen=True)
class ChangeRecord:
    """A single notification read from the channel."""

    descriptor: int
    mask: int
    cookie: int = 0
    name: Optional[str] = None

    @property
    def is_modification(self) -> bool:
        return bool(self.mask & flags.MODIFY)

    def flag_names(self) -> List[str]:
        return [flag.name for flag in flags.from_mask(self.mask)]
