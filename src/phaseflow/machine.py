from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable, Hashable

from .errors import ActionFailureError, InvalidTransitionError, token_value

logger = logging.getLogger(__name__)

Guard = Callable[[], bool]
Action = Callable[["Transition"], None]


@dataclass(frozen=True)
class Transition:
    """One row of the transition table."""

    source: Hashable
    event: Hashable
    target: Hashable
    guard: Guard | None = field(default=None, compare=False, repr=False)
    guard_name: str | None = None

    def is_eligible(self) -> bool:
        return self.guard is None or bool(self.guard())


class StateConfiguration:
    """Fluent builder scoped to one state of a ``StateMachine``."""

    __slots__ = ("_machine", "state")

    def __init__(self, machine: StateMachine, state: Hashable) -> None:
        self._machine = machine
        self.state = state

    def permit(
        self,
        event: Hashable,
        target: Hashable,
        guard: Guard | None = None,
        *,
        name: str | None = None,
    ) -> StateConfiguration:
        """Register ``state --event--> target``, optionally gated by ``guard``.

        Args:
            event: Trigger token.
            target: State entered when the transition fires.
            guard: Zero-argument predicate; the transition is eligible only while it returns True.
            name: Human-readable guard label used in rejection messages.

        Raises:
            ValueError: If ``target`` equals the configured state.
        """
        if target == self.state:
            raise ValueError(f"self transition on {token_value(self.state)!r} via {token_value(event)!r} is not supported")
        guard_name = name if name is not None else (getattr(guard, "__name__", None) if guard is not None else None)
        self._machine._register(Transition(self.state, event, target, guard, guard_name))
        return self

    def on_entry(self, action: Action) -> StateConfiguration:
        self._machine._entry_actions[self.state].append(action)
        return self

    def on_exit(self, action: Action) -> StateConfiguration:
        self._machine._exit_actions[self.state].append(action)
        return self


class StateMachine:
    """Table-driven finite-state machine.

    Transitions are stored as a mapping of ``(source, event)`` to the list of
    candidate transitions in registration order. When several candidates are
    registered for the same pair, the first one whose guard passes is taken.
    """

    def __init__(self, initial_state: Hashable) -> None:
        self._state = initial_state
        self._table: dict[tuple[Hashable, Hashable], list[Transition]] = {}
        self._entry_actions: dict[Hashable, list[Action]] = defaultdict(list)
        self._exit_actions: dict[Hashable, list[Action]] = defaultdict(list)
        self._states: set[Hashable] = {initial_state}

    @property
    def state(self) -> Hashable:
        return self._state

    def configure(self, state: Hashable) -> StateConfiguration:
        self._states.add(state)
        return StateConfiguration(self, state)

    def _register(self, transition: Transition) -> None:
        self._states.add(transition.source)
        self._states.add(transition.target)
        self._table.setdefault((transition.source, transition.event), []).append(transition)

    def _eligible(self, event: Hashable) -> Transition | None:
        for transition in self._table.get((self._state, event), ()):
            if transition.is_eligible():
                return transition
        return None

    def can_fire(self, event: Hashable) -> bool:
        return self._eligible(event) is not None

    def fire(self, event: Hashable) -> Transition:
        """Fire ``event`` from the current state.

        Exit actions of the source run first, then the current state moves to
        the target and its entry actions run. If any action raises, the
        current state is restored to the source.

        Returns:
            The transition that was taken.

        Raises:
            InvalidTransitionError: No eligible transition exists.
            ActionFailureError: An entry or exit action raised.
        """
        source = self._state
        transition = self._eligible(event)
        if transition is None:
            raise InvalidTransitionError(source, event, reason=self._rejection_reason(event))

        try:
            for action in self._exit_actions.get(source, ()):
                action(transition)
            self._state = transition.target
            for action in self._entry_actions.get(transition.target, ()):
                action(transition)
        except Exception as exc:
            self._state = source
            raise ActionFailureError(source, event, exc, target=transition.target) from exc

        logger.debug("transition %s --%s--> %s", token_value(source), token_value(event), token_value(transition.target))
        return transition

    def _rejection_reason(self, event: Hashable) -> str:
        candidates = self._table.get((self._state, event), [])
        if not candidates:
            return "no transition configured"
        names = [candidate.guard_name or "guard" for candidate in candidates if candidate.guard is not None]
        return f"guard not satisfied ({', '.join(names)})"

    def permitted_events(self) -> list[Hashable]:
        """Return events that can fire from the current state, in registration order."""
        events: list[Hashable] = []
        for (source, event), candidates in self._table.items():
            if source != self._state or event in events:
                continue
            if any(candidate.is_eligible() for candidate in candidates):
                events.append(event)
        return events

    def transitions(self) -> list[Transition]:
        return [transition for candidates in self._table.values() for transition in candidates]

    def states(self) -> set[Hashable]:
        return set(self._states)

    def is_configured(self, state: Hashable) -> bool:
        return state in self._states
