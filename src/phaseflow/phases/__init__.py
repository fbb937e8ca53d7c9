from .base import FieldDef, FieldType, Phase, PhaseKind, PhaseMetadata
from .chain import build_phase_chain
from .design import design_phase
from .discovery import discovery_phase
from .events import Event, State
from .finalize import finalize_phase
from .implementation import implementation_phase
from .review import review_phase
from .variants import DecisionPhase, DualStatePhase, MultiStagePhase, Stage

__all__ = [
    "DecisionPhase",
    "DualStatePhase",
    "Event",
    "FieldDef",
    "FieldType",
    "MultiStagePhase",
    "Phase",
    "PhaseKind",
    "PhaseMetadata",
    "Stage",
    "State",
    "build_phase_chain",
    "design_phase",
    "discovery_phase",
    "finalize_phase",
    "implementation_phase",
    "review_phase",
]
