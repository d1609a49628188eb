"""Transition records and the per-state configuration they live in."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Generic, Hashable, Optional, TypeVar

from machina.errors import TransitionDuplicatedError

TState = TypeVar("TState", bound=Hashable)
TTrigger = TypeVar("TTrigger", bound=Hashable)


@dataclass(frozen=True)
class TransitionInfo(Generic[TState, TTrigger]):
    """What is passed to guards and callbacks about a transition."""

    from_state: TState
    to_state: TState
    trigger: TTrigger


Guard = Callable[[TransitionInfo[Any, Any]], Optional[BaseException]]
"""A guard returns None to allow a transition, or an exception to refuse it."""

Callback = Callable[[TransitionInfo[Any, Any]], None]


@dataclass(frozen=True)
class Transition(Generic[TState]):
    """A permitted destination, optionally protected by guards."""

    to_state: TState
    guards: tuple[Guard, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "guards", tuple(self.guards))


@dataclass
class StateConfig(Generic[TState, TTrigger]):
    """Transitions, hooks and superstate configured for one state.

    A ``parent_state`` of None means the state has no superstate.
    """

    parent_state: Optional[TState] = None
    transitions: dict[TTrigger, list[Transition[TState]]] = field(
        default_factory=dict
    )
    on_entries: list[Callback] = field(default_factory=list)
    on_exits: list[Callback] = field(default_factory=list)

    def add_transition(self, trigger: TTrigger, transition: Transition[TState]) -> None:
        """Append a transition for the trigger; destinations must be unique."""
        if self.transition_exists(trigger, transition):
            raise TransitionDuplicatedError()
        self.transitions.setdefault(trigger, []).append(transition)

    def add_on_entry(self, callback: Callback) -> None:
        self.on_entries.append(callback)

    def add_on_exit(self, callback: Callback) -> None:
        self.on_exits.append(callback)

    def set_parent_state(self, parent_state: TState) -> None:
        self.parent_state = parent_state

    def transition_exists(self, trigger: TTrigger, transition: Transition[TState]) -> bool:
        """Whether the trigger already leads to the transition's destination."""
        return any(
            existing.to_state == transition.to_state
            for existing in self.transitions.get(trigger, ())
        )