"""Per-call dispatch state machine."""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Callable

logger = logging.getLogger(__name__)


class DispatchState(Enum):
    """
    Lifecycle of a single adapter invocation.

    State transitions:
        IDLE -> BINDING -> INVOKING -> NORMALIZING -> COMPLETE
                   \\           |            /
                    ---------> FAILED <-----

    FAILED can be reached from BINDING, INVOKING or NORMALIZING.
    COMPLETE and FAILED are terminal.
    """

    IDLE = auto()
    BINDING = auto()
    INVOKING = auto()
    NORMALIZING = auto()
    COMPLETE = auto()
    FAILED = auto()

    def __str__(self) -> str:
        return self.name


class InvalidStateTransition(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_state: DispatchState, to_state: DispatchState):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Invalid state transition: {from_state.name} -> {to_state.name}"
        )


# Type for state transition callbacks
StateTransitionCallback = Callable[[DispatchState, DispatchState], None]


class DispatchStateMachine:
    """
    Tracks one call through binding, invocation and normalization.

    A fresh machine is created for every call, so nothing here is shared
    between concurrent invocations of the same adapter.
    """

    VALID_TRANSITIONS: dict[DispatchState, list[DispatchState]] = {
        DispatchState.IDLE: [DispatchState.BINDING],
        DispatchState.BINDING: [DispatchState.INVOKING, DispatchState.FAILED],
        DispatchState.INVOKING: [DispatchState.NORMALIZING, DispatchState.FAILED],
        DispatchState.NORMALIZING: [DispatchState.COMPLETE, DispatchState.FAILED],
        DispatchState.COMPLETE: [],
        DispatchState.FAILED: [],
    }

    def __init__(
        self,
        label: str = "",
        listeners: list[StateTransitionCallback] | None = None,
    ):
        self._label = label
        self._state = DispatchState.IDLE
        self._listeners: list[StateTransitionCallback] = list(listeners or [])
        self.error: BaseException | None = None

    @property
    def state(self) -> DispatchState:
        """Current dispatch state."""
        return self._state

    @property
    def is_terminal(self) -> bool:
        """Check if the call has completed or failed."""
        return self._state in (DispatchState.COMPLETE, DispatchState.FAILED)

    def can_transition_to(self, new_state: DispatchState) -> bool:
        """Check if transition to new_state is valid."""
        return new_state in self.VALID_TRANSITIONS.get(self._state, [])

    def transition(self, new_state: DispatchState) -> None:
        """
        Transition to a new state.

        Args:
            new_state: The target state.

        Raises:
            InvalidStateTransition: If the transition is not valid.
        """
        if not self.can_transition_to(new_state):
            raise InvalidStateTransition(self._state, new_state)

        old_state = self._state
        self._state = new_state
        logger.debug(f"{self._label}: {old_state.name} -> {new_state.name}")

        for listener in self._listeners:
            try:
                listener(old_state, new_state)
            except Exception:
                logger.exception(f"Dispatch state listener failed for {self._label}")

    def fail(self, error: BaseException) -> None:
        """Move to FAILED, recording the error. No-op once terminal."""
        if self.is_terminal:
            return
        self.error = error
        self.transition(DispatchState.FAILED)

    def on_transition(self, callback: StateTransitionCallback) -> None:
        """
        Register a callback for state transitions.

        Args:
            callback: Function called with (old_state, new_state) on transitions.
        """
        self._listeners.append(callback)

    def __str__(self) -> str:
        return f"DispatchStateMachine({self._state.name})"

    def __repr__(self) -> str:
        return f"DispatchStateMachine(label={self._label!r}, state={self._state!r})"
