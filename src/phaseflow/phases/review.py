"""Review: validates implementation work.

Only the forward ``review_pass`` transition lives here. Looping back to
implementation on a failed review is wired by the project type using
``latest_review_failed``.
"""

from __future__ import annotations

from typing import Any

from ..models import ProjectInfo, ReviewPhaseState
from ..prompts import PromptEmitter, suppressed
from .base import FieldDef, FieldType
from .events import Event, State
from .guards import latest_review_approved
from .variants import MultiStagePhase, Stage

NAME = "review"

CUSTOM_FIELDS = (
    FieldDef(
        name="iteration",
        type=FieldType.INT,
        description="Current review iteration (increments on loop-back)",
    ),
)


def _context(data: ReviewPhaseState) -> dict[str, Any]:
    previous = data.reports[-1] if data.iteration > 1 and data.reports else None
    return {
        "review_iteration": data.iteration,
        "has_previous_review": previous is not None,
        "previous_assessment": previous.assessment.value if previous is not None else None,
        "report_count": len(data.reports),
    }


def review_phase(
    data: ReviewPhaseState | None = None,
    *,
    project: ProjectInfo | None = None,
    prompts: PromptEmitter | None = None,
) -> MultiStagePhase:
    return MultiStagePhase(
        name=NAME,
        stages=(Stage(State.REVIEW_ACTIVE, Event.REVIEW_PASS, latest_review_approved, "active"),),
        data=data,
        custom_fields=CUSTOM_FIELDS,
        project=project,
        prompts=prompts if prompts is not None else suppressed(),
        context=_context,
    )
