from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar

from ..machine import Action, Guard, StateMachine, Transition
from ..models import PhaseStateBase, PhaseStatus, ProjectInfo, utcnow
from ..prompts import PromptEmitter, suppressed
from .base import FieldDef, PhaseKind, PhaseMetadata
from .events import Event, State

PhaseGuard = Callable[[Any], bool]
ContextBuilder = Callable[[Any], dict[str, Any]]


def bind_guard(guard: PhaseGuard, data: PhaseStateBase | None) -> Guard:
    """Bind a phase predicate to its data slice. Unbound phases never pass."""

    def bound() -> bool:
        return data is not None and guard(data)

    bound.__name__ = guard.__name__
    return bound


def _mark_started(data: PhaseStateBase | None) -> None:
    if data is None:
        return
    data.status = PhaseStatus.IN_PROGRESS
    data.completed_at = None
    if data.started_at is None:
        data.started_at = utcnow()


def _mark_completed(data: PhaseStateBase | None) -> None:
    if data is None:
        return
    data.status = PhaseStatus.COMPLETED
    data.completed_at = utcnow()


def _mark_skipped(data: PhaseStateBase | None) -> None:
    if data is None:
        return
    data.status = PhaseStatus.SKIPPED
    data.enabled = False


def _template_context(project: ProjectInfo | None, data: Any, build: ContextBuilder | None) -> dict[str, Any]:
    context: dict[str, Any] = {
        "project_name": project.name if project is not None else "",
        "project_description": project.description if project is not None else "",
        "project_branch": project.branch if project is not None else "",
    }
    if data is not None and build is not None:
        context.update(build(data))
    return context


def _prompt_action(
    prompts: PromptEmitter,
    phase: str,
    template: str,
    project: ProjectInfo | None,
    data: Any,
    build: ContextBuilder | None,
) -> Action:
    def action(_transition: Transition) -> None:
        prompts.emit(phase, template, _template_context(project, data, build))

    return action


@dataclass
class DecisionPhase:
    """Optional phase: a decision state (enable or skip) followed by an active state."""

    kind: ClassVar[PhaseKind] = PhaseKind.DECISION

    name: str
    decision_state: State
    active_state: State
    enable_event: Event
    skip_event: Event
    complete_event: Event
    complete_guard: PhaseGuard
    data: PhaseStateBase | None = None
    optional: bool = True
    supports_artifacts: bool = True
    custom_fields: tuple[FieldDef, ...] = ()
    project: ProjectInfo | None = None
    prompts: PromptEmitter = field(default_factory=suppressed)
    context: ContextBuilder | None = None

    def entry_state(self) -> State:
        return self.decision_state

    def add_to_machine(self, machine: StateMachine, next_entry: State) -> None:
        decision = machine.configure(self.decision_state).permit(self.enable_event, self.active_state)
        if self.optional:
            decision.permit(self.skip_event, next_entry)
        decision.on_entry(self._prompt("decision")).on_exit(self._leave_decision)

        machine.configure(self.active_state).permit(
            self.complete_event,
            next_entry,
            bind_guard(self.complete_guard, self.data),
        ).on_entry(self._enter_active).on_entry(self._prompt("active")).on_exit(self._leave_active)

    def metadata(self) -> PhaseMetadata:
        return PhaseMetadata(
            name=self.name,
            states=(self.decision_state, self.active_state),
            supports_tasks=False,
            supports_artifacts=self.supports_artifacts,
            custom_fields=self.custom_fields,
        )

    def _prompt(self, template: str) -> Action:
        return _prompt_action(self.prompts, self.name, template, self.project, self.data, self.context)

    def _enter_active(self, _transition: Transition) -> None:
        if self.data is not None:
            self.data.enabled = True
        _mark_started(self.data)

    def _leave_decision(self, transition: Transition) -> None:
        if transition.event == self.skip_event:
            _mark_skipped(self.data)

    def _leave_active(self, transition: Transition) -> None:
        if transition.event == self.complete_event:
            _mark_completed(self.data)


@dataclass
class DualStatePhase:
    """Planning state gated into an executing state, which completes the phase."""

    kind: ClassVar[PhaseKind] = PhaseKind.DUAL_STATE

    name: str
    planning_state: State
    executing_state: State
    # Each (event, guard) pair moves planning -> executing.
    start_events: tuple[tuple[Event, PhaseGuard], ...]
    complete_event: Event
    complete_guard: PhaseGuard
    data: PhaseStateBase | None = None
    supports_tasks: bool = True
    custom_fields: tuple[FieldDef, ...] = ()
    project: ProjectInfo | None = None
    prompts: PromptEmitter = field(default_factory=suppressed)
    context: ContextBuilder | None = None

    def entry_state(self) -> State:
        return self.planning_state

    def add_to_machine(self, machine: StateMachine, next_entry: State) -> None:
        planning = machine.configure(self.planning_state)
        for event, guard in self.start_events:
            planning.permit(event, self.executing_state, bind_guard(guard, self.data))
        planning.on_entry(self._enter_planning).on_entry(self._prompt("planning"))

        machine.configure(self.executing_state).permit(
            self.complete_event,
            next_entry,
            bind_guard(self.complete_guard, self.data),
        ).on_entry(self._prompt("executing")).on_exit(self._leave_executing)

    def metadata(self) -> PhaseMetadata:
        return PhaseMetadata(
            name=self.name,
            states=(self.planning_state, self.executing_state),
            supports_tasks=self.supports_tasks,
            supports_artifacts=False,
            custom_fields=self.custom_fields,
        )

    def _prompt(self, template: str) -> Action:
        return _prompt_action(self.prompts, self.name, template, self.project, self.data, self.context)

    def _enter_planning(self, transition: Transition) -> None:
        if transition.source not in (self.planning_state, self.executing_state):
            _mark_started(self.data)

    def _leave_executing(self, transition: Transition) -> None:
        if transition.event == self.complete_event:
            _mark_completed(self.data)


@dataclass(frozen=True)
class Stage:
    """One sub-state of a multi-stage phase and the event that completes it."""

    state: State
    event: Event
    guard: PhaseGuard
    template: str


@dataclass
class MultiStagePhase:
    """Sequential sub-states, each gated by its own completion guard."""

    kind: ClassVar[PhaseKind] = PhaseKind.MULTI_STAGE

    name: str
    stages: tuple[Stage, ...]
    data: PhaseStateBase | None = None
    supports_tasks: bool = False
    supports_artifacts: bool = False
    custom_fields: tuple[FieldDef, ...] = ()
    project: ProjectInfo | None = None
    prompts: PromptEmitter = field(default_factory=suppressed)
    context: ContextBuilder | None = None

    def __post_init__(self) -> None:
        if not self.stages:
            raise ValueError(f"phase {self.name} requires at least one stage")

    def entry_state(self) -> State:
        return self.stages[0].state

    def add_to_machine(self, machine: StateMachine, next_entry: State) -> None:
        own_states = set(self.metadata().states)
        first, last = self.stages[0], self.stages[-1]

        def enter_first(transition: Transition) -> None:
            if transition.source not in own_states:
                _mark_started(self.data)

        def leave_last(transition: Transition) -> None:
            if transition.event == last.event:
                _mark_completed(self.data)

        for index, stage in enumerate(self.stages):
            target = self.stages[index + 1].state if index + 1 < len(self.stages) else next_entry
            config = machine.configure(stage.state).permit(stage.event, target, bind_guard(stage.guard, self.data))
            if stage is first:
                config.on_entry(enter_first)
            config.on_entry(_prompt_action(self.prompts, self.name, stage.template, self.project, self.data, self.context))
            if stage is last:
                config.on_exit(leave_last)

    def metadata(self) -> PhaseMetadata:
        return PhaseMetadata(
            name=self.name,
            states=tuple(stage.state for stage in self.stages),
            supports_tasks=self.supports_tasks,
            supports_artifacts=self.supports_artifacts,
            custom_fields=self.custom_fields,
        )
