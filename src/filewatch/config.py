"""Configuration for the filewatch package."""

import os
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional


_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}

# Option names accepted by from_dict, mapped to field names
_OPTION_ALIASES = {
    "debounce": "debounce_ms",
    "persistent": "persistent",
    "interval": "interval_ms",
    "forcePolling": "force_polling",
    "force_polling": "force_polling",
    "fallback": "fallback",
}

_ENV_PREFIX = "FILEWATCH_"


def _parse_bool(value: str, name: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


@dataclass(frozen=True)
class WatchOptions:
    """
    Configuration options for a WatchManager.

    Attributes:
        debounce_ms: Window in which repeated native events collapse into one check
        persistent: Whether active watches keep the process alive
        interval_ms: Polling interval used in polling mode
        force_polling: Start in polling mode instead of using native events
        fallback: Switch to polling when native watch handles run out
    """
    debounce_ms: int = 10
    persistent: bool = True
    interval_ms: int = 1000
    force_polling: bool = False
    fallback: bool = True

    def __post_init__(self):
        if self.debounce_ms < 0:
            raise ValueError(f"debounce_ms must be >= 0: {self.debounce_ms}")
        if self.interval_ms <= 0:
            raise ValueError(f"interval_ms must be > 0: {self.interval_ms}")

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0

    @property
    def interval_seconds(self) -> float:
        return self.interval_ms / 1000.0

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]] = None) -> "WatchOptions":
        """
        Create options from a plain mapping.

        Accepts both the short option names (``debounce``, ``interval``,
        ``forcePolling``) and the field names. Unknown keys are ignored,
        missing or ``None`` values take the defaults. An interval of 0 also
        means "use the default".

        Args:
            data: Mapping of option names to values

        Returns:
            A WatchOptions instance
        """
        if not data:
            return cls()

        valid = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            name = _OPTION_ALIASES.get(key, key)
            if name not in valid or value is None:
                continue
            kwargs[name] = value

        if not kwargs.get("interval_ms"):
            kwargs.pop("interval_ms", None)

        return cls(**kwargs)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "WatchOptions":
        """
        Create options from ``FILEWATCH_*`` environment variables.

        Args:
            environ: Environment mapping (defaults to os.environ)

        Returns:
            A WatchOptions instance
        """
        env = os.environ if environ is None else environ
        kwargs = {}

        for f in fields(cls):
            key = _ENV_PREFIX + f.name.upper()
            raw = env.get(key)
            if raw is None or raw.strip() == "":
                continue
            if f.type in (bool, "bool"):
                kwargs[f.name] = _parse_bool(raw, key)
            else:
                kwargs[f.name] = int(raw)

        return cls(**kwargs)
