from __future__ import annotations

from ..machine import StateMachine
from ..models import ProjectState
from ..phases import Phase, PhaseMetadata, build_phase_chain, discovery_phase, finalize_phase
from ..project import ProjectMachine, parse_state
from ..prompts import PromptEmitter


class ExplorationProject:
    """Research-only project: discovery (required) -> finalize."""

    type = "exploration"

    def _phase_list(self, document: ProjectState | None, prompts: PromptEmitter | None) -> list[Phase]:
        if document is None:
            return [discovery_phase(optional=False), finalize_phase()]
        return [
            discovery_phase(document.phases.discovery, optional=False, project=document.project, prompts=prompts),
            finalize_phase(document.phases.finalize, project=document.project, prompts=prompts),
        ]

    def build_state_machine(self, document: ProjectState, *, prompts: PromptEmitter | None = None) -> ProjectMachine:
        machine = StateMachine(parse_state(document.statechart.current_state))
        phase_map = build_phase_chain(machine, self._phase_list(document, prompts))
        return ProjectMachine.bind(self.type, document, machine, phase_map)

    def phases(self) -> dict[str, PhaseMetadata]:
        return {phase.name: phase.metadata() for phase in self._phase_list(None, None)}
