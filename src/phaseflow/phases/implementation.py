"""Implementation: task breakdown and approval, then autonomous execution."""

from __future__ import annotations

from collections import Counter
from typing import Any

from ..models import ImplementationPhaseState, ProjectInfo, TaskStatus
from ..prompts import PromptEmitter, suppressed
from .base import FieldDef, FieldType
from .events import Event, State
from .guards import all_tasks_complete, has_at_least_one_task, tasks_approved
from .variants import DualStatePhase

NAME = "implementation"

CUSTOM_FIELDS = (
    FieldDef(
        name="planner_used",
        type=FieldType.BOOL,
        description="Whether the planner agent was used for task breakdown",
    ),
    FieldDef(
        name="tasks_approved",
        type=FieldType.BOOL,
        description="Whether the task plan has been approved by human",
    ),
)


def _context(data: ImplementationPhaseState) -> dict[str, Any]:
    counts = Counter(task.status for task in data.tasks)
    return {
        "planner_used": data.planner_used,
        "tasks": [task.model_dump(mode="json") for task in data.tasks],
        "task_total": len(data.tasks),
        "task_completed": counts[TaskStatus.COMPLETED],
        "task_in_progress": counts[TaskStatus.IN_PROGRESS],
        "task_pending": counts[TaskStatus.PENDING],
        "task_abandoned": counts[TaskStatus.ABANDONED],
        "tasks_approved": data.tasks_approved,
    }


def implementation_phase(
    data: ImplementationPhaseState | None = None,
    *,
    project: ProjectInfo | None = None,
    prompts: PromptEmitter | None = None,
) -> DualStatePhase:
    return DualStatePhase(
        name=NAME,
        planning_state=State.IMPLEMENTATION_PLANNING,
        executing_state=State.IMPLEMENTATION_EXECUTING,
        start_events=(
            (Event.TASK_CREATED, has_at_least_one_task),
            (Event.TASKS_APPROVED, tasks_approved),
        ),
        complete_event=Event.ALL_TASKS_COMPLETE,
        complete_guard=all_tasks_complete,
        data=data,
        supports_tasks=True,
        custom_fields=CUSTOM_FIELDS,
        project=project,
        prompts=prompts if prompts is not None else suppressed(),
        context=_context,
    )
