from enum import Enum

import pytest

from machina.errors import (
    CycleDetectedError,
    CyclicSubSuperStateError,
    EmptyGuardsError,
    InvalidTransitionError,
    MaxDepthReachedError,
    StateAlreadyConfiguredError,
    SuperstateAlreadyConfiguredError,
    TransitionDuplicatedError,
)
from machina.machine import Machine
from machina.transitions import TransitionInfo


class Trigger(Enum):
    RED = 0
    ORANGE = 1
    GREEN = 2


class State(Enum):
    STOPPED = 0
    FORWARD = 1
    BACKWARD = 2
    RUNNING = 3
    HANDBRAKE = 4
    NEUTRAL = 5
    FULL_STOP = 6


def _machine(initial=State.STOPPED):
    seen = []
    return Machine(initial, seen.append), seen


def test_substate_of_cyclic_hierarchy():
    m, _ = _machine()
    m.configure(State.HANDBRAKE).substate_of(State.STOPPED)
    m.configure(State.STOPPED).substate_of(State.FULL_STOP)
    m.configure(State.FULL_STOP).substate_of(State.NEUTRAL)
    m.configure(State.NEUTRAL).substate_of(State.BACKWARD)
    m.configure(State.BACKWARD).substate_of(State.RUNNING)
    with pytest.raises(CycleDetectedError, match="cycle detected") as info:
        m.configure(State.RUNNING).substate_of(State.HANDBRAKE)
    assert info.value.seen_states == (
        State.RUNNING,
        State.HANDBRAKE,
        State.STOPPED,
        State.FULL_STOP,
        State.NEUTRAL,
        State.BACKWARD,
        State.RUNNING,
    )


def test_substate_of_superstate_already_configured():
    m, _ = _machine()
    with pytest.raises(SuperstateAlreadyConfiguredError):
        m.configure(State.HANDBRAKE).substate_of(State.STOPPED).substate_of(
            State.RUNNING
        )


def test_substate_of_same_as_superstate():
    m, _ = _machine()
    with pytest.raises(CyclicSubSuperStateError):
        m.configure(State.HANDBRAKE).substate_of(State.HANDBRAKE)


def test_configure_twice_raises():
    m, _ = _machine()
    m.configure(State.STOPPED)
    with pytest.raises(StateAlreadyConfiguredError):
        m.configure(State.STOPPED)


def test_fire_moves_state_and_calls_setter():
    m, seen = _machine()
    m.configure(State.STOPPED).permit(Trigger.GREEN, State.FORWARD)
    m.fire(Trigger.GREEN)
    assert m.current_state == State.FORWARD
    assert seen == [State.FORWARD]


def test_fire_unhandled_raises_invalid_transition():
    m, seen = _machine()
    m.configure(State.STOPPED).permit(Trigger.GREEN, State.FORWARD)
    with pytest.raises(InvalidTransitionError):
        m.fire(Trigger.RED)
    assert m.current_state == State.STOPPED
    assert seen == []


def test_fire_unconfigured_state_raises():
    m, _ = _machine()
    with pytest.raises(InvalidTransitionError):
        m.fire(Trigger.GREEN)


def test_can_fire_does_not_change_state():
    m, seen = _machine()
    m.configure(State.STOPPED).permit(Trigger.GREEN, State.FORWARD)
    assert m.can_fire(Trigger.GREEN) is True
    assert m.can_fire(Trigger.RED) is False
    assert m.current_state == State.STOPPED
    assert seen == []


def test_duplicate_permit_raises():
    m, _ = _machine()
    configurer = m.configure(State.STOPPED).permit(Trigger.GREEN, State.FORWARD)
    with pytest.raises(TransitionDuplicatedError):
        configurer.permit(Trigger.GREEN, State.FORWARD)


def test_permit_if_without_guards_raises():
    m, _ = _machine()
    with pytest.raises(EmptyGuardsError, match="at least one guard"):
        m.configure(State.STOPPED).permit_if(Trigger.GREEN, State.FORWARD)


def test_guard_refusal_falls_through_to_next_transition():
    m, _ = _machine()
    received = []

    def refuse(info):
        received.append(info)
        return RuntimeError("blocked")

    m.configure(State.STOPPED).permit_if(
        Trigger.GREEN, State.FORWARD, refuse
    ).permit_if(Trigger.GREEN, State.BACKWARD, lambda info: None)
    m.fire(Trigger.GREEN)
    assert m.current_state == State.BACKWARD
    assert received == [TransitionInfo(State.STOPPED, State.FORWARD, Trigger.GREEN)]


def test_all_guards_refusing_is_unhandled():
    m, _ = _machine()
    m.configure(State.STOPPED).permit_if(
        Trigger.GREEN, State.FORWARD, lambda info: None, lambda info: ValueError("no")
    )
    with pytest.raises(InvalidTransitionError):
        m.fire(Trigger.GREEN)
    assert m.can_fire(Trigger.GREEN) is False


def test_callbacks_run_in_order():
    m, _ = _machine()
    events = []
    m.on_transition_started(lambda info: events.append(("started", info.to_state)))
    m.on_transition_completed(
        lambda info: events.append(("completed", m.current_state))
    )
    m.configure(State.STOPPED).permit(Trigger.GREEN, State.FORWARD).on_exit(
        lambda info: events.append(("exit", m.current_state))
    )
    m.configure(State.FORWARD).on_entry(
        lambda info: events.append(("entry", info.from_state))
    )
    m.fire(Trigger.GREEN)
    assert events == [
        ("started", State.FORWARD),
        ("exit", State.STOPPED),
        ("entry", State.STOPPED),
        ("completed", State.FORWARD),
    ]


def test_substate_uses_superstate_transition():
    m, _ = _machine(State.HANDBRAKE)
    infos = []
    m.configure(State.STOPPED).permit(Trigger.GREEN, State.FORWARD)
    m.configure(State.HANDBRAKE).substate_of(State.STOPPED)
    m.on_transition_completed(infos.append)
    m.fire(Trigger.GREEN)
    assert m.current_state == State.FORWARD
    assert infos == [TransitionInfo(State.HANDBRAKE, State.FORWARD, Trigger.GREEN)]


def test_max_depth_reached_when_walking_superstates():
    m, _ = _machine(State.HANDBRAKE)
    m.set_max_depth(0)
    m.configure(State.STOPPED).permit(Trigger.GREEN, State.FORWARD)
    m.configure(State.HANDBRAKE).substate_of(State.STOPPED)
    with pytest.raises(MaxDepthReachedError):
        m.fire(Trigger.GREEN)
    assert m.current_state == State.HANDBRAKE


def test_negative_max_depth_rejected():
    m, _ = _machine()
    with pytest.raises(ValueError, match="max depth"):
        m.set_max_depth(-1)


def test_custom_unhandled_error_is_raised():
    m, _ = _machine()
    calls = []

    class Custom(Exception):
        pass

    def unhandled(state, trigger):
        calls.append((state, trigger))
        return Custom()

    m.set_on_unhandled_transition(unhandled)
    with pytest.raises(Custom):
        m.fire(Trigger.RED)
    assert calls == [(State.STOPPED, Trigger.RED)]


def test_unhandled_callback_returning_none_accepts_trigger():
    m, seen = _machine()
    m.set_on_unhandled_transition(lambda state, trigger: None)
    m.fire(Trigger.RED)
    assert m.current_state == State.STOPPED
    assert seen == []
    assert m.can_fire(Trigger.RED) is True


def _failing_entry_machine(rollback):
    m, seen = _machine()
    m.set_rollback_on_failure(rollback)
    m.configure(State.STOPPED).permit(Trigger.GREEN, State.FORWARD)

    def explode(info):
        raise RuntimeError("entry failed")

    m.configure(State.FORWARD).on_entry(explode)
    return m, seen


def test_rollback_restores_state_when_callback_raises():
    m, seen = _failing_entry_machine(True)
    with pytest.raises(RuntimeError, match="entry failed"):
        m.fire(Trigger.GREEN)
    assert m.current_state == State.STOPPED
    assert seen == [State.FORWARD, State.STOPPED]


def test_without_rollback_state_stays_changed():
    m, seen = _failing_entry_machine(False)
    with pytest.raises(RuntimeError, match="entry failed"):
        m.fire(Trigger.GREEN)
    assert m.current_state == State.FORWARD
    assert seen == [State.FORWARD]


def test_machine_without_setter():
    m = Machine(State.STOPPED)
    m.configure(State.STOPPED).permit(Trigger.ORANGE, State.NEUTRAL)
    m.fire(Trigger.ORANGE)
    assert m.current_state == State.NEUTRAL