"""Finalize: documentation, final checks, then project deletion."""

from __future__ import annotations

from typing import Any

from ..models import FinalizePhaseState, ProjectInfo
from ..prompts import PromptEmitter, suppressed
from .base import FieldDef, FieldType
from .events import Event, State
from .guards import checks_assessed, documentation_assessed, project_deleted
from .variants import MultiStagePhase, Stage

NAME = "finalize"

CUSTOM_FIELDS = (
    FieldDef(
        name="project_deleted",
        type=FieldType.BOOL,
        description="Critical gate: must be true before phase completion",
    ),
    FieldDef(
        name="pr_url",
        type=FieldType.STRING,
        description="Pull request URL created during finalization",
    ),
)

STAGES = (
    Stage(State.FINALIZE_DOCUMENTATION, Event.DOCUMENTATION_DONE, documentation_assessed, "documentation"),
    Stage(State.FINALIZE_CHECKS, Event.CHECKS_DONE, checks_assessed, "checks"),
    Stage(State.FINALIZE_DELETE, Event.PROJECT_DELETE, project_deleted, "delete"),
)


def _context(data: FinalizePhaseState) -> dict[str, Any]:
    return {
        "documentation_updates": list(data.documentation_updates),
        "artifacts_moved": list(data.artifacts_moved),
        "pr_url": data.pr_url,
        "project_deleted": data.project_deleted,
    }


def finalize_phase(
    data: FinalizePhaseState | None = None,
    *,
    project: ProjectInfo | None = None,
    prompts: PromptEmitter | None = None,
) -> MultiStagePhase:
    return MultiStagePhase(
        name=NAME,
        stages=STAGES,
        data=data,
        custom_fields=CUSTOM_FIELDS,
        project=project,
        prompts=prompts if prompts is not None else suppressed(),
        context=_context,
    )
