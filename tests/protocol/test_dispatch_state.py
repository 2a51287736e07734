"""Tests for the per-call dispatch state machine."""

import pytest

from mcp_annotations.protocol.state import (
    DispatchState,
    DispatchStateMachine,
    InvalidStateTransition,
)


class TestDispatchStateMachine:
    """Tests for DispatchStateMachine."""

    def test_initial_state(self):
        machine = DispatchStateMachine()
        assert machine.state == DispatchState.IDLE
        assert not machine.is_terminal

    def test_happy_path(self):
        machine = DispatchStateMachine()
        for state in (
            DispatchState.BINDING,
            DispatchState.INVOKING,
            DispatchState.NORMALIZING,
            DispatchState.COMPLETE,
        ):
            machine.transition(state)
        assert machine.is_terminal

    def test_cannot_skip_binding(self):
        machine = DispatchStateMachine()
        with pytest.raises(InvalidStateTransition, match="IDLE -> INVOKING"):
            machine.transition(DispatchState.INVOKING)

    def test_complete_is_terminal(self):
        machine = DispatchStateMachine()
        machine.transition(DispatchState.BINDING)
        machine.transition(DispatchState.INVOKING)
        machine.transition(DispatchState.NORMALIZING)
        machine.transition(DispatchState.COMPLETE)
        assert not machine.can_transition_to(DispatchState.FAILED)

    def test_fail_records_error(self):
        machine = DispatchStateMachine()
        machine.transition(DispatchState.BINDING)
        error = ValueError("boom")
        machine.fail(error)
        assert machine.state == DispatchState.FAILED
        assert machine.error is error

    def test_fail_once_terminal_is_noop(self):
        machine = DispatchStateMachine()
        machine.transition(DispatchState.BINDING)
        machine.fail(ValueError("first"))
        machine.fail(ValueError("second"))
        assert str(machine.error) == "first"

    def test_listeners(self):
        transitions = []
        machine = DispatchStateMachine(listeners=[lambda old, new: transitions.append((old, new))])
        machine.transition(DispatchState.BINDING)
        assert transitions == [(DispatchState.IDLE, DispatchState.BINDING)]

    def test_listener_errors_do_not_break_transitions(self):
        def broken(old, new):
            raise RuntimeError("listener")

        machine = DispatchStateMachine(label="add")
        machine.on_transition(broken)
        machine.transition(DispatchState.BINDING)
        assert machine.state == DispatchState.BINDING
