"""Two-tier variable store.

The global tier is a read-only snapshot of the variables the shell inherited
at startup. The local tier holds variables set during the session and always
shadows the global tier.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Optional


class VariableState(Enum):
    """Where a variable lived before a temporary assignment replaced it."""

    LOCAL = "local"
    GLOBAL_ONLY = "global_only"
    ABSENT = "absent"


@dataclass(frozen=True)
class SavedVariable:
    """Snapshot of one variable, used to undo a temporary assignment."""

    name: str
    state: VariableState
    value: Optional[str] = None
    """Previous local value, set only when state is LOCAL."""


class Environment:
    """Shell variables: an immutable global snapshot plus local overrides."""

    def __init__(self, global_vars: Optional[Mapping[str, str]] = None):
        """Initialize the environment.

        Args:
            global_vars: Variables for the global tier. Defaults to a copy of
                the process environment.
        """
        if global_vars is None:
            global_vars = os.environ
        self._global: Mapping[str, str] = MappingProxyType(dict(global_vars))
        self._local: dict[str, str] = {}

    def get(self, name: str) -> Optional[str]:
        """Return the value of a variable, or None if it is not set."""
        if name in self._local:
            return self._local[name]
        return self._global.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._local or name in self._global

    def set(self, name: str, value: str) -> None:
        """Set a local variable."""
        self._local[name] = value

    def unset(self, name: str) -> None:
        """Remove a local variable. Global variables are never touched."""
        self._local.pop(name, None)

    def has_global(self, name: str) -> bool:
        return name in self._global

    def has_local(self, name: str) -> bool:
        return name in self._local

    def get_local(self, name: str) -> Optional[str]:
        return self._local.get(name)

    def list_local(self) -> dict[str, str]:
        return dict(self._local)

    def list_global(self) -> dict[str, str]:
        return dict(self._global)

    def clear_local(self) -> None:
        self._local.clear()

    def get_all_map(self) -> dict[str, str]:
        """Merged view of both tiers, local values winning."""
        merged = dict(self._global)
        merged.update(self._local)
        return merged

    def get_all(self) -> list[str]:
        """Merged view as ``KEY=VALUE`` strings, ordered by key."""
        return [f"{k}={v}" for k, v in sorted(self.get_all_map().items())]

    def save(self, names: Iterable[str]) -> list[SavedVariable]:
        """Record the current state of each name so it can be restored.

        Only the first occurrence of a repeated name is recorded, so that
        restoring brings back the value from before any of the assignments.
        """
        saved: list[SavedVariable] = []
        seen: set[str] = set()
        for name in names:
            if name in seen:
                continue
            seen.add(name)
            if name in self._local:
                saved.append(SavedVariable(name, VariableState.LOCAL, self._local[name]))
            elif name in self._global:
                saved.append(SavedVariable(name, VariableState.GLOBAL_ONLY))
            else:
                saved.append(SavedVariable(name, VariableState.ABSENT))
        return saved

    def restore(self, saved: Iterable[SavedVariable]) -> None:
        """Undo assignments recorded by :meth:`save`."""
        for entry in saved:
            if entry.state is VariableState.LOCAL:
                self._local[entry.name] = entry.value or ""
            else:
                # Dropping the local binding exposes the global value again
                self._local.pop(entry.name, None)

    @contextmanager
    def scoped(self, assignments: Iterable[tuple[str, str]]) -> Iterator[None]:
        """Apply assignments for the duration of the block.

        The previous state is restored on every exit path, including
        exceptions.
        """
        assignments = list(assignments)
        saved = self.save(name for name, _ in assignments)
        try:
            for name, value in assignments:
                self.set(name, value)
            yield
        finally:
            self.restore(saved)

    def __repr__(self) -> str:
        return f"Environment(global={len(self._global)}, local={self._local!r})"
