from __future__ import annotations

from ..machine import StateMachine, Transition
from ..models import PhaseStatus, ProjectState, ReviewPhaseState
from ..phases import (
    Event,
    Phase,
    PhaseMetadata,
    State,
    build_phase_chain,
    design_phase,
    discovery_phase,
    finalize_phase,
    implementation_phase,
    review_phase,
)
from ..phases.guards import latest_review_failed
from ..phases.variants import bind_guard
from ..project import ProjectMachine, parse_state
from ..prompts import PromptEmitter


class StandardProject:
    """Discovery -> design -> implementation -> review -> finalize.

    Discovery and design are optional. A failed review loops back to the
    implementation phase and bumps the review iteration.
    """

    type = "standard"

    def _phase_list(self, document: ProjectState | None, prompts: PromptEmitter | None) -> list[Phase]:
        if document is None:
            return [discovery_phase(), design_phase(), implementation_phase(), review_phase(), finalize_phase()]
        data, project = document.phases, document.project
        return [
            discovery_phase(data.discovery, optional=True, project=project, prompts=prompts),
            design_phase(data.design, optional=True, project=project, prompts=prompts),
            implementation_phase(data.implementation, project=project, prompts=prompts),
            review_phase(data.review, project=project, prompts=prompts),
            finalize_phase(data.finalize, project=project, prompts=prompts),
        ]

    def build_state_machine(self, document: ProjectState, *, prompts: PromptEmitter | None = None) -> ProjectMachine:
        machine = StateMachine(parse_state(document.statechart.current_state))
        phase_map = build_phase_chain(machine, self._phase_list(document, prompts))

        review = document.phases.review
        machine.configure(State.REVIEW_ACTIVE).permit(
            Event.REVIEW_FAIL,
            phase_map["implementation"].entry_state(),
            bind_guard(latest_review_failed, review),
        ).on_exit(_reopen_review(review))

        return ProjectMachine.bind(self.type, document, machine, phase_map)

    def phases(self) -> dict[str, PhaseMetadata]:
        return {phase.name: phase.metadata() for phase in self._phase_list(None, None)}


def _reopen_review(review: ReviewPhaseState):
    def action(transition: Transition) -> None:
        if transition.event == Event.REVIEW_FAIL:
            review.iteration += 1
            review.status = PhaseStatus.PENDING

    return action
