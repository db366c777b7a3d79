"""A finite state machine with per-state actions and transition callbacks."""

from __future__ import annotations

from collections.abc import Callable, Hashable
from typing import Any

_UNSET: Any = object()


class StateMachine:
    """Tracks a current state among registered states.

    The first state added becomes the current one unless an initial state
    was given. Transitions between registered states run the callback defined
    for that pair, if any; :meth:`update` runs the action of the current state.
    """

    def __init__(self, initial_state: Hashable = _UNSET) -> None:
        self._states: set[Hashable] = set()
        self._actions: dict[Hashable, Callable[[], object]] = {}
        self._transitions: dict[tuple[Hashable, Hashable], Callable[[], object]] = {}
        self._has_initial_state = initial_state is not _UNSET
        self._current_state = initial_state if self._has_initial_state else None

    @property
    def current_state(self) -> Hashable:
        """The state the machine is in, or None before any state is known."""
        return self._current_state

    def add_state(self, state: Hashable) -> None:
        """Register ``state``; the first one registered becomes current."""
        self._states.add(state)
        if not self._has_initial_state:
            self._current_state = state
            self._has_initial_state = True

    def add_transition(
        self,
        start_state: Hashable,
        final_state: Hashable,
        callback: Callable[[], object],
    ) -> None:
        """Run ``callback`` when moving from ``start_state`` to ``final_state``."""
        if start_state not in self._states or final_state not in self._states:
            raise ValueError(
                "Both states must be added to the state machine before adding a transition."
            )
        self._transitions[(start_state, final_state)] = callback

    def add_action(self, state: Hashable, callback: Callable[[], object]) -> None:
        """Run ``callback`` on :meth:`update` while in ``state``."""
        if state not in self._states:
            raise ValueError(
                "State must be added to the state machine before adding an action."
            )
        self._actions[state] = callback

    def transition_to(self, state: Hashable) -> None:
        """Move to ``state``, running the matching transition callback if defined."""
        if state not in self._states:
            raise ValueError(
                "Target state must be added to the state machine before transitioning."
            )
        callback = self._transitions.get((self._current_state, state))
        if callback is not None:
            callback()
        else:
            print("No transition action defined (silent transition).")
        self._current_state = state

    def update(self) -> None:
        """Run the action of the current state, if one is defined."""
        action = self._actions.get(self._current_state)
        if action is not None:
            action()