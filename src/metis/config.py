"""Configuration loading utilities for the watcher."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

import yaml  # type: ignore

from .channel import READ_SIZE
from .walker import DEFAULT_SKIP_NAMES

logger = logging.getLogger(__name__)

DEFAULT_POLL_TIMEOUT_MS = 100


class ConfigError(Exception):
    """Raised when the configuration file or arguments are missing or invalid."""


@dataclass
class WatchOptions:
    """Options describing what to watch and what to run."""

    command: Optional[str] = None
    paths: List[str] = field(default_factory=list)
    poll_timeout_ms: int = DEFAULT_POLL_TIMEOUT_MS
    skip_names: Tuple[str, ...] = DEFAULT_SKIP_NAMES
    read_size: int = READ_SIZE


def load_config(path: Path) -> WatchOptions:
    """Load and validate the YAML configuration file."""

    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as exc:  # pragma: no cover - logging helper
        raise ConfigError(f"Failed to parse YAML configuration: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("Configuration root must be a mapping")

    return _parse_watch_config(data.get("watch", {}), config_path=path)


def merge_cli(
    options: WatchOptions,
    *,
    command: Optional[str] = None,
    paths: Sequence[str] = (),
    poll_timeout_ms: Optional[int] = None,
) -> WatchOptions:
    """Overlay command-line values on ``options`` and check the result."""

    merged = replace(options)
    if command is not None:
        merged.command = command
    if paths:
        merged.paths = list(paths)
    if poll_timeout_ms is not None:
        merged.poll_timeout_ms = _parse_poll_timeout(poll_timeout_ms, field_name="--poll-timeout")
    validate(merged)
    return merged


def validate(options: WatchOptions) -> None:
    if not options.paths:
        raise ConfigError("At least one path to watch is required")
    if options.command is not None and not options.command.strip():
        raise ConfigError("Command template must not be empty")


def _parse_watch_config(raw: Any, *, config_path: Path) -> WatchOptions:
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError("'watch' section must be a mapping")

    command = raw.get("command")
    if command is not None and not isinstance(command, str):
        raise ConfigError("watch.command must be a string")

    paths: List[str] = []
    for item in _ensure_str_list(raw.get("paths", []), "watch.paths"):
        candidate = Path(item)
        if not candidate.is_absolute():
            candidate = config_path.parent / candidate
        paths.append(str(candidate))

    poll_timeout_ms = _parse_poll_timeout(
        raw.get("poll_timeout", DEFAULT_POLL_TIMEOUT_MS),
        field_name="watch.poll_timeout",
    )

    skip_raw = raw.get("skip")
    if skip_raw is None:
        skip_names = DEFAULT_SKIP_NAMES
    else:
        extra = _ensure_str_list(skip_raw, "watch.skip")
        skip_names = DEFAULT_SKIP_NAMES + tuple(name for name in extra if name not in DEFAULT_SKIP_NAMES)

    options = WatchOptions(
        command=command,
        paths=paths,
        poll_timeout_ms=poll_timeout_ms,
        skip_names=skip_names,
    )
    logger.debug(
        "Loaded %s: %s paths, poll_timeout=%sms, skip=%s",
        config_path,
        len(options.paths),
        options.poll_timeout_ms,
        ", ".join(options.skip_names),
    )
    return options


def _parse_poll_timeout(value: Any, *, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{field_name} must be an integer number of milliseconds")
    if value <= 0:
        raise ConfigError(f"{field_name} must be positive")
    return value


def _ensure_str_list(value: Any, field_name: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ConfigError(f"{field_name} must be a list of strings")
    items: List[str] = []
    for elem in value:
        if not isinstance(elem, str):
            raise ConfigError(f"{field_name} must contain only strings")
        items.append(elem)
    return items
