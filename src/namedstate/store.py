"""StateStore — the table of named state slots.

Plain data: name -> State(value, locked). Nothing here dispatches; the
writers in registry/queue call set_raw() after their own guards pass.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class State:
    """A single named slot."""

    __slots__ = ("value", "locked")

    def __init__(self, value: object) -> None:
        self.value = value
        self.locked = False

    def __repr__(self) -> str:
        flag = ", locked" if self.locked else ""
        return f"State({self.value!r}{flag})"


def values_equal(old: object, new: object) -> bool:
    """Identity short-circuit, then ==.

    An == that raises or has no plain truth value (arrays) counts as a change.
    """
    if old is new:
        return True
    try:
        return bool(old == new)
    except Exception:
        return False


class StateStore:
    """Owns every State entry, keyed by name."""

    def __init__(self) -> None:
        self._states: dict[str, State] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._states

    def __len__(self) -> int:
        return len(self._states)

    def names(self) -> list[str]:
        return list(self._states)

    def create(self, name: str, value: object) -> bool:
        if name in self._states:
            logger.warning("State %r already exists", name)
            return False
        self._states[name] = State(value)
        return True

    def get(self, name: str, default: object = None) -> object:
        state = self._states.get(name)
        if state is None:
            logger.warning("State %r does not exist", name)
            return default
        return state.value

    def set_raw(self, name: str, value: object) -> None:
        self._states[name].value = value

    def lock(self, name: str) -> None:
        state = self._states.get(name)
        if state is not None:
            state.locked = True

    def unlock(self, name: str) -> None:
        state = self._states.get(name)
        if state is not None:
            state.locked = False

    def is_locked(self, name: str) -> bool:
        state = self._states.get(name)
        return state is not None and state.locked

    def delete(self, name: str) -> bool:
        state = self._states.get(name)
        if state is None:
            logger.warning("Cannot delete state %r: it does not exist", name)
            return False
        if state.locked:
            logger.warning("Cannot delete state %r: it is locked", name)
            return False
        del self._states[name]
        return True

    def accepts(self, name: str, value: object) -> bool:
        """Write guard shared by the immediate and queued paths.

        Missing and locked states are reported; an unchanged value is
        skipped silently.
        """
        state = self._states.get(name)
        if state is None:
            logger.warning("Cannot change state %r: it does not exist", name)
            return False
        if state.locked:
            logger.warning("Cannot change state %r: it is locked", name)
            return False
        return not values_equal(state.value, value)

    def __repr__(self) -> str:
        return f"StateStore({self._states!r})"
