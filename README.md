# machina

A small, thread-safe hierarchical finite state machine for Python.

States and triggers may be any hashable values, such as strings, integers or
enum members. A transition can be unconditional or protected by one or more
guards. Entry and exit hooks run on each state change. A substate passes any
trigger it does not handle on to its superstate.

## Installation

```
pip install machina
```

## Usage

```python
from enum import Enum, auto

from machina.machine import Machine


class State(Enum):
    STOPPED = auto()
    RUNNING = auto()
    HANDBRAKE = auto()


class Trigger(Enum):
    GREEN = auto()
    RED = auto()


def remember(new_state):
    print("now in", new_state)


machine = Machine(State.STOPPED, remember)

machine.configure(State.STOPPED).permit(Trigger.GREEN, State.RUNNING)
machine.configure(State.RUNNING).permit(Trigger.RED, State.STOPPED)

machine.fire(Trigger.GREEN)
assert machine.current_state is State.RUNNING
```

`Machine(initial_state, state_setter=None)` takes the starting state and an
optional callable that is given every state the machine moves into.
`current_state` is a read-only property.

Each state can be configured once; calling `configure` again for the same
state raises `StateAlreadyConfiguredError`. `configure` returns a
`StateConfigurer` whose methods return the configurer itself, so calls can be
chained.

### Guards

A guard is given a `TransitionInfo` (`from_state`, `to_state`, `trigger`).
It returns `None` to allow the transition, or an exception to refuse it.

```python
tank = 5

def fuel_left(info):
    return None if tank > 0 else RuntimeError("out of fuel")

machine.configure(State.HANDBRAKE).permit_if(Trigger.GREEN, State.RUNNING, fuel_left)
```

The transitions for a trigger are tried in the order they were added, and the
first one whose guards all return `None` is taken. If every guard refuses, the
trigger is treated as unhandled by that state: the machine goes on to the
superstate, and if nothing handles it the unhandled-transition callback decides
the outcome (by default `fire` raises `InvalidTransitionError`). The exception
a guard returns is not raised itself.

`permit_if` needs at least one guard; without one it raises
`EmptyGuardsError` (also a `ValueError`). Adding the same trigger and
destination twice to one state raises `TransitionDuplicatedError`.

### Hierarchy

```python
machine.configure(State.HANDBRAKE).substate_of(State.STOPPED)
```

If the current state has no usable transition for a trigger, the machine looks
in its superstate, then that state's superstate, and so on. The exit hooks
that run are those of the state whose transition was taken. The search depth
is limited by `set_max_depth` (10 by default, `DEFAULT_MAX_DEPTH`); going past
it makes `fire` raise `MaxDepthReachedError`. A negative depth raises
`ValueError`.

`substate_of` refuses, when it is called:

- a state as its own superstate: `CyclicSubSuperStateError`;
- a second superstate for the same state: `SuperstateAlreadyConfiguredError`;
- a superstate whose chain leads back to the state: `CycleDetectedError`,
  whose message starts with "cycle detected" and whose `seen_states` holds the
  chain that was walked;
- a chain deeper than the maximum depth: `MaxDepthReachedError`.

### Hooks and options

- `on_entry(callback)` / `on_exit(callback)` on a state configurer.
- `machine.on_transition_started(callback)` and
  `machine.on_transition_completed(callback)` run for every transition. The
  order is: started callbacks, exit hooks, state change, entry hooks of the
  new state, completed callbacks.
- `machine.can_fire(trigger)` evaluates guards and the hierarchy without
  changing state or running hooks, and returns `True` or `False`.
- `machine.set_on_unhandled_transition(callback)` decides the result of an
  unhandled trigger. The callback is given the current state and the trigger
  and returns an exception for `fire` to raise, or `None`, in which case
  `fire` returns quietly and the state stays as it was.
- `machine.set_rollback_on_failure(True)` restores the previous state (calling
  the state setter again) if a callback raises after the state has changed.
  The exception is still raised.

### Errors

All errors derive from `machina.errors.MachinaError`: `InvalidTransitionError`,
`EmptyGuardsError`, `StateAlreadyConfiguredError`, `MaxDepthReachedError`,
`TransitionDuplicatedError`, `CyclicSubSuperStateError`,
`SuperstateAlreadyConfiguredError` and `CycleDetectedError`.

### Modules

- `machina.machine`: `Machine`, `StateConfigurer`, `DEFAULT_MAX_DEPTH`.
- `machina.transitions`: `TransitionInfo`, `Transition`, `StateConfig`.
- `machina.errors`: the exception classes.

## Running the tests

```
pip install -e ".[test]"
pytest
```