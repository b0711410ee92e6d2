"""Worker lifecycle states and the transitions between them."""

from __future__ import annotations

from enum import StrEnum

from pyflkrd.exceptions import LifecycleError


class WorkerState(StrEnum):
    UNINSTALLED = "uninstalled"
    INSTALLING = "installing"
    INSTALLED = "installed"
    ACTIVE = "active"


# A failed install falls back to UNINSTALLED; the previous worker, if any,
# stays in control.
_TRANSITIONS: dict[WorkerState, frozenset[WorkerState]] = {
    WorkerState.UNINSTALLED: frozenset({WorkerState.INSTALLING}),
    WorkerState.INSTALLING: frozenset({WorkerState.INSTALLED, WorkerState.UNINSTALLED}),
    WorkerState.INSTALLED: frozenset({WorkerState.ACTIVE}),
    WorkerState.ACTIVE: frozenset(),
}


class Lifecycle:
    """Tracks the worker state and rejects invalid transitions."""

    def __init__(self) -> None:
        self._state = WorkerState.UNINSTALLED

    @property
    def state(self) -> WorkerState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is WorkerState.ACTIVE

    def can_transition(self, target: WorkerState) -> bool:
        return target in _TRANSITIONS[self._state]

    def transition(self, target: WorkerState) -> None:
        if not self.can_transition(target):
            raise LifecycleError(f"Cannot move worker from {self._state} to {target}")
        self._state = target
