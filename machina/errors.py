"""Exceptions raised while configuring or driving a state machine."""

from __future__ import annotations

from collections.abc import Hashable, Iterable


class MachinaError(Exception):
    """Base class for every error raised by the state machine."""

    default_message = "state machine error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(self.default_message if message is None else message)


class InvalidTransitionError(MachinaError):
    """The current state has no usable transition for the trigger."""

    default_message = "unhandled transition"


class EmptyGuardsError(MachinaError, ValueError):
    """A guarded transition was configured without any guard."""

    default_message = "you must have at least one guard"


class StateAlreadyConfiguredError(MachinaError):
    """A state was configured a second time."""

    default_message = "state is already configured"


class MaxDepthReachedError(MachinaError):
    """Walking the state hierarchy went deeper than allowed."""

    default_message = "max depth reached"


class TransitionDuplicatedError(MachinaError):
    """A transition with the same source, trigger and destination exists."""

    default_message = (
        "transition already exists with same Source-Trigger-Destination"
    )


class CyclicSubSuperStateError(MachinaError):
    """A state was declared a substate of itself."""

    default_message = (
        "cyclic sub-state; the substate cannot be a superstate of itself"
    )


class SuperstateAlreadyConfiguredError(MachinaError):
    """A state already has a superstate."""

    default_message = "superstate already configured"


def _format_state(state: object) -> str:
    return str(state)


class CycleDetectedError(MachinaError):
    """Declaring a superstate would close a loop in the state hierarchy."""

    default_message = "cycle detected"

    def __init__(self, state: Hashable, seen_states: Iterable[Hashable]) -> None:
        self.state = state
        self.seen_states = tuple(seen_states)
        chain = " ".join(_format_state(s) for s in self.seen_states)
        super().__init__(
            f"cycle detected in state `{_format_state(state)}` "
            f"configuration; `[{chain}]`"
        )