from __future__ import annotations

from typing import Sequence

from ..machine import StateMachine
from .base import Phase
from .events import Event, State


def build_phase_chain(
    machine: StateMachine,
    phases: Sequence[Phase],
    *,
    initial_state: State = State.NO_PROJECT,
    init_event: Event = Event.PROJECT_INIT,
) -> dict[str, Phase]:
    """Wire an ordered phase list into ``machine``.

    ``init_event`` moves ``initial_state`` into the first phase. Every phase
    completes into the entry state of its successor; the last phase completes
    back into ``initial_state``.

    Args:
        machine: Machine to configure.
        phases: Ordered, non-empty list of phases with unique names.
        initial_state: Idle state the chain starts from and returns to.
        init_event: Event that starts the first phase.

    Returns:
        Phases keyed by declared name, in chain order.

    Raises:
        ValueError: If ``phases`` is empty or two phases share a name.
    """
    if not phases:
        raise ValueError("phase chain requires at least one phase")

    phase_map: dict[str, Phase] = {}
    for phase in phases:
        name = phase.metadata().name
        if name in phase_map:
            raise ValueError(f"duplicate phase name in chain: {name}")
        phase_map[name] = phase

    machine.configure(initial_state).permit(init_event, phases[0].entry_state())

    for index, phase in enumerate(phases):
        next_entry = phases[index + 1].entry_state() if index + 1 < len(phases) else initial_state
        phase.add_to_machine(machine, next_entry)

    return phase_map
