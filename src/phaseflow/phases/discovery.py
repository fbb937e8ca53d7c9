"""Discovery: optional context gathering before design or implementation."""

from __future__ import annotations

from typing import Any

from ..models import DiscoveryPhaseState, ProjectInfo
from ..prompts import PromptEmitter, suppressed
from .base import FieldDef, FieldType
from .events import Event, State
from .guards import artifacts_approved
from .variants import DecisionPhase

NAME = "discovery"

CUSTOM_FIELDS = (
    FieldDef(
        name="discovery_type",
        type=FieldType.STRING,
        description="Type of discovery work (bug, feature, docs, refactor, general)",
    ),
)


def _context(data: DiscoveryPhaseState) -> dict[str, Any]:
    return {
        "discovery_type": data.discovery_type,
        "artifact_count": len(data.artifacts),
        "approved_count": sum(1 for artifact in data.artifacts if artifact.approved),
    }


def discovery_phase(
    data: DiscoveryPhaseState | None = None,
    *,
    optional: bool = True,
    project: ProjectInfo | None = None,
    prompts: PromptEmitter | None = None,
) -> DecisionPhase:
    return DecisionPhase(
        name=NAME,
        decision_state=State.DISCOVERY_DECISION,
        active_state=State.DISCOVERY_ACTIVE,
        enable_event=Event.ENABLE_DISCOVERY,
        skip_event=Event.SKIP_DISCOVERY,
        complete_event=Event.COMPLETE_DISCOVERY,
        complete_guard=artifacts_approved,
        data=data,
        optional=optional,
        supports_artifacts=True,
        custom_fields=CUSTOM_FIELDS,
        project=project,
        prompts=prompts if prompts is not None else suppressed(),
        context=_context,
    )
