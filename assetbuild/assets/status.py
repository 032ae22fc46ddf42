# assetbuild/assets/status.py
from __future__ import annotations
import logging
from collections.abc import Callable, Iterator
from enum import Enum

from assetbuild.core.errors import InvariantViolation

logger = logging.getLogger(__name__)

__all__ = ["BuildState", "StatusTable"]



class BuildState(Enum):
    PENDING = "PENDING"
    STARTED = "STARTED"
    COMPLETE = "COMPLETE"



_ALLOWED: dict[BuildState, BuildState] = {
    BuildState.PENDING: BuildState.STARTED,
    BuildState.STARTED: BuildState.COMPLETE,
}

TransitionListener = Callable[[str, BuildState, BuildState], None]



class StatusTable:
    """
    Keyed PENDING → STARTED → COMPLETE state machine.

    Absent keys read as PENDING. Any other move (repeat, skip, backwards)
    raises InvariantViolation: it means a deduplication guard let something through.
    """
    def __init__(self, name: str) -> None:
        self.name = name
        self._states: dict[str, BuildState] = {}
        self._listeners: list[TransitionListener] = []

    def get(self, key: str) -> BuildState:
        return self._states.get(key, BuildState.PENDING)

    def transition(self, key: str, newState: BuildState) -> None:
        oldState = self.get(key)
        if _ALLOWED.get(oldState) is not newState:
            raise InvariantViolation(
                f"{self.name}: illegal transition for '{key}': {oldState.value} -> {newState.value}"
            )
        self._states[key] = newState
        logger.debug("%s: '%s' %s -> %s", self.name, key, oldState.value, newState.value)
        for fn in list(self._listeners):
            fn(key, oldState, newState)

    def onTransition(self, fn: TransitionListener) -> Callable[[], None]:
        self._listeners.append(fn)
        def _unsub() -> None:
            try:
                self._listeners.remove(fn)
            except ValueError:
                pass
        return _unsub

    def allComplete(self) -> bool:
        return all(state is BuildState.COMPLETE for state in self._states.values())

    def pending(self) -> list[str]:
        return [key for key, state in self._states.items() if state is not BuildState.COMPLETE]

    def items(self) -> Iterator[tuple[str, BuildState]]:
        return iter(list(self._states.items()))

    def __contains__(self, key: object) -> bool:
        return key in self._states

    def __len__(self) -> int:
        return len(self._states)
