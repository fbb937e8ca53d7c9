"""Design: optional architecture work producing ADRs and design docs."""

from __future__ import annotations

from typing import Any

from ..models import DesignPhaseState, ProjectInfo
from ..prompts import PromptEmitter, suppressed
from .base import FieldDef, FieldType
from .events import Event, State
from .guards import artifacts_approved
from .variants import DecisionPhase

NAME = "design"

CUSTOM_FIELDS = (
    FieldDef(
        name="architect_used",
        type=FieldType.BOOL,
        description="Whether the architect agent was used for this phase",
    ),
)


def _context(data: DesignPhaseState) -> dict[str, Any]:
    return {
        "architect_used": data.architect_used,
        "artifact_count": len(data.artifacts),
        "approved_count": sum(1 for artifact in data.artifacts if artifact.approved),
    }


def design_phase(
    data: DesignPhaseState | None = None,
    *,
    optional: bool = True,
    project: ProjectInfo | None = None,
    prompts: PromptEmitter | None = None,
) -> DecisionPhase:
    return DecisionPhase(
        name=NAME,
        decision_state=State.DESIGN_DECISION,
        active_state=State.DESIGN_ACTIVE,
        enable_event=Event.ENABLE_DESIGN,
        skip_event=Event.SKIP_DESIGN,
        complete_event=Event.COMPLETE_DESIGN,
        complete_guard=artifacts_approved,
        data=data,
        optional=optional,
        supports_artifacts=True,
        custom_fields=CUSTOM_FIELDS,
        project=project,
        prompts=prompts if prompts is not None else suppressed(),
        context=_context,
    )
