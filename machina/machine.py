"""A hierarchical finite state machine with guarded transitions."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any, Generic, Optional

from machina.errors import (
    CycleDetectedError,
    CyclicSubSuperStateError,
    EmptyGuardsError,
    InvalidTransitionError,
    MaxDepthReachedError,
    StateAlreadyConfiguredError,
    SuperstateAlreadyConfiguredError,
)
from machina.transitions import (
    Callback,
    Guard,
    StateConfig,
    Transition,
    TransitionInfo,
    TState,
    TTrigger,
)

DEFAULT_MAX_DEPTH = 10

UnhandledCallback = Callable[[Any, Any], Optional[BaseException]]
"""Called with (state, trigger); returns the error to report, or None."""


def _reject_unhandled(state: object, trigger: object) -> BaseException:
    return InvalidTransitionError()


class Machine(Generic[TState, TTrigger]):
    """A state machine whose states may be nested inside superstates.

    ``state_setter``, when given, is called with every state the machine
    moves into, so the state can be mirrored elsewhere.
    """

    def __init__(
        self,
        initial_state: TState,
        state_setter: Optional[Callable[[TState], None]] = None,
    ) -> None:
        self._lock = threading.RLock()
        self._current_state = initial_state
        self._states: dict[TState, StateConfig[TState, TTrigger]] = {}
        self._state_setter = state_setter
        self._max_depth = DEFAULT_MAX_DEPTH
        self._rollback_on_failure = False
        self._on_unhandled: UnhandledCallback = _reject_unhandled
        self._on_started: list[Callback] = []
        self._on_completed: list[Callback] = []

    @property
    def current_state(self) -> TState:
        """The state the machine is in."""
        return self._current_state

    def configure(self, state: TState) -> StateConfigurer[TState, TTrigger]:
        """Start configuring a state; each state may be configured once."""
        with self._lock:
            if state in self._states:
                raise StateAlreadyConfiguredError()
            self._states[state] = StateConfig()
            return StateConfigurer(self, state)

    def fire(self, trigger: TTrigger) -> None:
        """Move the machine along the transition the trigger selects."""
        error = self._fire(trigger, dry_run=False)
        if error is not None:
            raise error

    def can_fire(self, trigger: TTrigger) -> bool:
        """Whether firing the trigger would succeed, without changing state."""
        return self._fire(trigger, dry_run=True) is None

    def set_max_depth(self, max_depth: int) -> None:
        """Limit how many superstates are walked through."""
        if max_depth < 0:
            raise ValueError("max depth must be greater than or equal to 0")
        with self._lock:
            self._max_depth = max_depth

    def set_rollback_on_failure(self, rollback_on_failure: bool) -> None:
        """Restore the previous state when a callback raises mid-transition."""
        with self._lock:
            self._rollback_on_failure = rollback_on_failure

    def set_on_unhandled_transition(self, callback: UnhandledCallback) -> None:
        """Replace what decides the error for an unhandled trigger."""
        with self._lock:
            self._on_unhandled = callback

    def on_transition_started(self, callback: Callback) -> None:
        with self._lock:
            self._on_started.append(callback)

    def on_transition_completed(self, callback: Callback) -> None:
        with self._lock:
            self._on_completed.append(callback)

    def _set_state(self, state: TState) -> None:
        self._current_state = state
        if self._state_setter is not None:
            self._state_setter(state)

    def _unhandled(self, trigger: TTrigger) -> Optional[BaseException]:
        return self._on_unhandled(self._current_state, trigger)

    def _fire(self, trigger: TTrigger, dry_run: bool) -> Optional[BaseException]:
        with self._lock:
            original_state = self._current_state
            rollback = self._rollback_on_failure
            try:
                return self._walk_hierarchy(trigger, dry_run)
            except BaseException:
                if rollback and self._current_state != original_state:
                    self._set_state(original_state)
                raise

    def _walk_hierarchy(
        self, trigger: TTrigger, dry_run: bool
    ) -> Optional[BaseException]:
        config = self._states.get(self._current_state)
        if config is None:
            return self._unhandled(trigger)

        depth = 0
        while True:
            if depth > self._max_depth:
                return MaxDepthReachedError()

            error = self._try_fire(trigger, config, dry_run)
            if error is None:
                return None

            if config.parent_state is None:
                return self._unhandled(trigger)

            parent = self._states.get(config.parent_state)
            if parent is None:
                return self._unhandled(trigger)

            config = parent
            depth += 1

    def _try_fire(
        self,
        trigger: TTrigger,
        config: StateConfig[TState, TTrigger],
        dry_run: bool,
    ) -> Optional[BaseException]:
        candidates = config.transitions.get(trigger)
        if not candidates:
            return self._unhandled(trigger)

        for candidate in candidates:
            info = TransitionInfo(self._current_state, candidate.to_state, trigger)
            if not all(guard(info) is None for guard in candidate.guards):
                continue

            if not dry_run:
                self._run_transition(info, config)
            return None

        return self._unhandled(trigger)

    def _run_transition(
        self, info: TransitionInfo, source: StateConfig[TState, TTrigger]
    ) -> None:
        for callback in self._on_started:
            callback(info)
        for on_exit in source.on_exits:
            on_exit(info)

        self._set_state(info.to_state)

        destination = self._states.get(info.to_state)
        if destination is not None:
            for on_entry in destination.on_entries:
                on_entry(info)

        for callback in self._on_completed:
            callback(info)


class StateConfigurer(Generic[TState, TTrigger]):
    """Fluent builder for one state's transitions, hooks and superstate."""

    def __init__(self, machine: Machine[TState, TTrigger], state: TState) -> None:
        self._machine = machine
        self._state = state

    @property
    def state(self) -> TState:
        return self._state

    @property
    def _config(self) -> StateConfig[TState, TTrigger]:
        return self._machine._states[self._state]

    def permit(self, trigger: TTrigger, state: TState) -> StateConfigurer[TState, TTrigger]:
        """Allow the trigger to move this state to ``state``."""
        with self._machine._lock:
            self._config.add_transition(trigger, Transition(state))
        return self

    def permit_if(
        self, trigger: TTrigger, state: TState, *args: Guard
    ) -> StateConfigurer[TState, TTrigger]:
        """Allow the trigger to move to ``state`` when every guard passes."""
        with self._machine._lock:
            if not args:
                raise EmptyGuardsError(f"PermitIf\n{EmptyGuardsError.default_message}")
            self._config.add_transition(trigger, Transition(state, args))
        return self

    def substate_of(self, parent_state: TState) -> StateConfigurer[TState, TTrigger]:
        """Nest this state inside ``parent_state``."""
        if parent_state == self._state:
            raise CyclicSubSuperStateError()

        config = self._config
        if config.parent_state is not None:
            raise SuperstateAlreadyConfiguredError()

        machine = self._machine
        with machine._lock:
            seen = [self._state]
            current = parent_state
            depth = 0
            while True:
                if depth > machine._max_depth:
                    raise MaxDepthReachedError()
                depth += 1

                if current in seen:
                    seen.append(current)
                    raise CycleDetectedError(self._state, seen)
                seen.append(current)

                ancestor = machine._states.get(current)
                if ancestor is None or ancestor.parent_state is None:
                    break
                current = ancestor.parent_state

            config.set_parent_state(parent_state)
        return self

    def on_entry(self, callback: Callback) -> StateConfigurer[TState, TTrigger]:
        """Run ``callback`` whenever the machine enters this state."""
        with self._machine._lock:
            self._config.add_on_entry(callback)
        return self

    def on_exit(self, callback: Callback) -> StateConfigurer[TState, TTrigger]:
        """Run ``callback`` whenever a transition leaves through this state."""
        with self._machine._lock:
            self._config.add_on_exit(callback)
        return self