from __future__ import annotations

import logging
from typing import Any, Hashable, Iterable

from pydantic import BaseModel

from .errors import ActionFailureError, CorruptPersistedStateError, UnknownPhaseError, token_value
from .machine import StateMachine, Transition
from .models import Artifact, ProjectState, ReviewAssessment, ReviewReport, Task, TaskStatus, utcnow
from .phases.base import FieldDef, FieldType, Phase, PhaseMetadata
from .phases.events import Event, State

logger = logging.getLogger(__name__)


def parse_state(value: str) -> State:
    """Resolve a persisted ``current_state`` token.

    Raises:
        CorruptPersistedStateError: If the token names no known state.
    """
    try:
        return State(value)
    except ValueError as exc:
        raise CorruptPersistedStateError(f"unknown current_state {value!r}") from exc


def _restore_in_place(target: BaseModel, snapshot: BaseModel) -> None:
    # Nested models are restored field by field so phase references stay valid.
    for name in type(target).model_fields:
        current = getattr(target, name)
        saved = getattr(snapshot, name)
        if isinstance(current, BaseModel) and type(current) is type(saved):
            _restore_in_place(current, saved)
        else:
            setattr(target, name, saved)


_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def parse_field_value(definition: FieldDef, raw: str) -> Any:
    """Convert a command-line string to the declared type of a custom field.

    Raises:
        ValueError: If ``raw`` is not a valid value of that type.
    """
    if definition.type == FieldType.INT:
        try:
            return int(raw)
        except ValueError:
            raise ValueError(f"field {definition.name} expects an integer, got {raw!r}") from None
    if definition.type == FieldType.BOOL:
        value = raw.strip().lower()
        if value in _TRUE_VALUES:
            return True
        if value in _FALSE_VALUES:
            return False
        raise ValueError(f"field {definition.name} expects a boolean (true/false), got {raw!r}")
    return raw


def next_task_id(existing: Iterable[str]) -> str:
    """Next gap-numbered id (010, 020, ...) after the highest numeric id."""
    numbers = [int(task_id) for task_id in existing if task_id.isdigit()]
    highest = max(numbers, default=0)
    return f"{(highest // 10 + 1) * 10:03d}"


class ProjectMachine:
    """A state machine bound to one persisted project document."""

    def __init__(
        self,
        *,
        project_type: str,
        document: ProjectState,
        machine: StateMachine,
        phases: dict[str, Phase],
    ) -> None:
        self.project_type = project_type
        self.document = document
        self.machine = machine
        self.phases = phases

    @classmethod
    def bind(
        cls,
        project_type: str,
        document: ProjectState,
        machine: StateMachine,
        phases: dict[str, Phase],
    ) -> ProjectMachine:
        """Wrap a fully configured machine, checking the stored state belongs to it.

        Raises:
            CorruptPersistedStateError: If the machine has no such state.
        """
        current = machine.state
        if current != State.NO_PROJECT and not any(phase.metadata().owns(current) for phase in phases.values()):
            raise CorruptPersistedStateError(
                f"current_state {token_value(current)!r} is not part of project type {project_type!r}"
            )
        return cls(project_type=project_type, document=document, machine=machine, phases=phases)

    @property
    def state(self) -> Hashable:
        return self.machine.state

    @property
    def is_idle(self) -> bool:
        return self.machine.state == State.NO_PROJECT

    def can_fire(self, event: Event) -> bool:
        return self.machine.can_fire(event)

    def fire(self, event: Event) -> Transition:
        """Fire ``event``; on action failure the document is restored before re-raising.

        Raises:
            InvalidTransitionError: The event is not permitted now.
            ActionFailureError: An entry or exit action failed.
        """
        snapshot = self.document.model_copy(deep=True)
        try:
            transition = self.machine.fire(event)
        except ActionFailureError:
            _restore_in_place(self.document, snapshot)
            raise
        logger.debug("project %s fired %s", self.document.project.name, event)
        return transition

    def permitted_events(self) -> list[Event]:
        return list(self.machine.permitted_events())

    def active_phase(self) -> str | None:
        """Name of the phase owning the current state, or ``None`` when idle."""
        current = self.machine.state
        for name, phase in self.phases.items():
            if phase.metadata().owns(current):
                return name
        return None

    def phase(self, name: str) -> Phase:
        try:
            return self.phases[name]
        except KeyError:
            raise UnknownPhaseError(name, self.phases) from None

    def phase_metadata(self, name: str) -> PhaseMetadata:
        return self.phase(name).metadata()

    def sync(self) -> ProjectState:
        """Copy the current state and a fresh ``updated_at`` into the document."""
        current = self.machine.state
        self.document.statechart.current_state = str(token_value(current))
        self.document.project.updated_at = utcnow()
        return self.document

    def _active(self) -> tuple[str, PhaseMetadata, Any]:
        name = self.active_phase()
        if name is None:
            raise ValueError("no active phase; the project has not been started")
        data = getattr(self.document.phases, name, None)
        if data is None:
            raise UnknownPhaseError(name, self.phases)
        return name, self.phases[name].metadata(), data

    def _task_phase(self) -> Any:
        name, metadata, data = self._active()
        if not metadata.supports_tasks:
            raise ValueError(f"phase {name} does not support tasks")
        return data

    def _artifact_phase(self) -> Any:
        name, metadata, data = self._active()
        if not metadata.supports_artifacts:
            raise ValueError(f"phase {name} does not support artifacts")
        return data

    def add_task(
        self,
        name: str,
        *,
        task_id: str | None = None,
        parallel: bool = False,
        dependencies: Iterable[str] = (),
    ) -> Task:
        """Append a task to the active phase.

        Raises:
            ValueError: The phase has no tasks, the id is taken, or a dependency is unknown.
        """
        data = self._task_phase()
        if not name.strip():
            raise ValueError("task name must be non-empty")
        existing = {task.id for task in data.tasks}
        if task_id is None:
            task_id = next_task_id(existing)
        elif task_id in existing:
            raise ValueError(f"task {task_id} already exists")
        depends_on = list(dependencies)
        missing = [dependency for dependency in depends_on if dependency not in existing]
        if missing:
            raise ValueError(f"unknown task dependencies: {', '.join(missing)}")
        task = Task(id=task_id, name=name.strip(), parallel=parallel, dependencies=depends_on)
        data.tasks.append(task)
        return task

    def update_task(self, task_id: str, status: TaskStatus) -> Task:
        data = self._task_phase()
        for task in data.tasks:
            if task.id == task_id:
                task.status = status
                return task
        raise ValueError(f"task {task_id} not found")

    def add_artifact(self, path: str, *, artifact_type: str | None = None, approved: bool = False) -> Artifact:
        """Record an artifact on the active phase.

        Raises:
            ValueError: The phase has no artifacts or ``path`` is already recorded.
        """
        data = self._artifact_phase()
        if any(artifact.path == path for artifact in data.artifacts):
            raise ValueError(f"artifact {path} already exists")
        artifact = Artifact(path=path, type=artifact_type, approved=approved)
        data.artifacts.append(artifact)
        return artifact

    def approve_artifact(self, path: str) -> Artifact:
        data = self._artifact_phase()
        for artifact in data.artifacts:
            if artifact.path == path:
                artifact.approved = True
                return artifact
        raise ValueError(f"artifact {path} not found")

    def add_review_report(self, path: str, assessment: ReviewAssessment, *, approved: bool = False) -> ReviewReport:
        """File a review report. Only the review phase accepts reports."""
        name, _metadata, data = self._active()
        if name != "review":
            raise ValueError(f"phase {name} does not accept review reports")
        report = ReviewReport(path=path, assessment=assessment, approved=approved)
        data.reports.append(report)
        return report

    def set_field(self, name: str, raw: str) -> Any:
        """Set a custom field declared by the active phase's metadata.

        Returns:
            The parsed value that was stored.

        Raises:
            ValueError: The field is not declared by the phase or the value is invalid.
        """
        phase_name, metadata, data = self._active()
        definition = metadata.field(name)
        if definition is None:
            raise ValueError(f"field {name} is not supported by phase {phase_name}")
        value = parse_field_value(definition, raw)
        # Validate against the phase model before touching the live document.
        validated = type(data).model_validate({**data.model_dump(), name: value})
        setattr(data, name, getattr(validated, name))
        return getattr(data, name)
