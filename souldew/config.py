"""Configuration for SoulDew.

Settings are plain dataclasses that can be built directly or loaded
from ``SOULDEW_*`` environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "SOULDEW_"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})
_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class BusSettings:
    """
    Event bus and logging settings.

    Args:
        warn_on_no_listeners: Log a warning when an event reaches nobody
        log_level: Log level name used by configure_from_settings
        json_logs: Render logs as JSON instead of console output
        log_file: Optional file to append logs to
    """

    warn_on_no_listeners: bool = True
    log_level: str = "INFO"
    json_logs: bool = False
    log_file: Path | None = None

    def __post_init__(self):
        self.log_level = self.log_level.upper()
        if self.log_level not in _LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LEVELS)}")
        if isinstance(self.log_file, str):
            self.log_file = Path(self.log_file)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> BusSettings:
        """Load settings from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``

        Returns:
            BusSettings instance
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        log_file = env.get(f"{ENV_PREFIX}LOG_FILE")

        return cls(
            warn_on_no_listeners=_parse_bool(
                env, "WARN_NO_LISTENERS", defaults.warn_on_no_listeners
            ),
            log_level=env.get(f"{ENV_PREFIX}LOG_LEVEL", defaults.log_level),
            json_logs=_parse_bool(env, "LOG_JSON", defaults.json_logs),
            log_file=Path(log_file) if log_file else None,
        )


def _parse_bool(env, key: str, default: bool) -> bool:
    raw = env.get(f"{ENV_PREFIX}{key}")
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{ENV_PREFIX}{key} must be a boolean, got {raw!r}")
