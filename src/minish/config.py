"""Shell configuration.

Settings come from dataclass defaults, optionally overridden by ``MINISH_*``
environment variables and then by command-line flags.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Mapping, Optional

from .streams import DEFAULT_PIPE_CAPACITY

ENV_PREFIX = "MINISH_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class ShellConfig:
    """Runtime settings for a shell session."""

    prompt: str = "> "
    """Prompt printed before each interactive line."""

    pipe_capacity: int = DEFAULT_PIPE_CAPACITY
    """Buffer size, in bytes, of each pipe between pipeline stages."""

    prefix_fallback: bool = True
    """When $NAME is unset, substitute the longest set prefix of NAME."""

    log_level: str = "WARNING"
    """Level name for the ``minish`` loggers."""

    def __post_init__(self):
        if self.pipe_capacity < 1:
            raise ValueError(f"pipe_capacity must be positive, got {self.pipe_capacity}")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"unknown log level: {self.log_level}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> ShellConfig:
        """Build a config from ``MINISH_*`` variables.

        Raises:
            ValueError: A variable holds a value of the wrong type.
        """
        if environ is None:
            environ = os.environ
        overrides: dict[str, object] = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            if f.name == "pipe_capacity":
                try:
                    overrides[f.name] = int(raw)
                except ValueError:
                    raise ValueError(f"{ENV_PREFIX}PIPE_CAPACITY: not an integer: {raw!r}") from None
            elif f.name == "prefix_fallback":
                overrides[f.name] = _parse_bool(raw, ENV_PREFIX + "PREFIX_FALLBACK")
            else:
                overrides[f.name] = raw
        return cls(**overrides)

    def with_overrides(self, **changes) -> ShellConfig:
        """Return a copy with the non-None changes applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def _parse_bool(raw: str, name: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name}: not a boolean: {raw!r}")
