from importlib.metadata import PackageNotFoundError, version

from .canonical import fingerprint, to_canonical_json
from .errors import (
    ActionFailureError,
    ConcurrentModificationError,
    CorruptPersistedStateError,
    InvalidTransitionError,
    PhaseflowError,
    PromptRenderError,
    UnknownPhaseError,
)
from .machine import StateMachine, Transition
from .models import (
    Artifact,
    PhaseStatus,
    ProjectInfo,
    ProjectState,
    ReviewAssessment,
    ReviewReport,
    Task,
    TaskStatus,
    new_project_state,
)
from .phases import Event, Phase, PhaseKind, PhaseMetadata, State, build_phase_chain
from .project import ProjectMachine
from .project_types import (
    ExplorationProject,
    ProjectType,
    StandardProject,
    default_project_types,
    detect_project_type,
    open_project,
)
from .prompts import PromptEmitter, TemplatePromptRenderer
from .session import ProjectSession
from .settings import RuntimeSettings
from .store import ProjectStateStore


def get_version() -> str:
    try:
        return version(__name__)
    except PackageNotFoundError:
        return "0.0.0"


__all__ = [
    "ActionFailureError",
    "Artifact",
    "ConcurrentModificationError",
    "CorruptPersistedStateError",
    "Event",
    "ExplorationProject",
    "InvalidTransitionError",
    "Phase",
    "PhaseKind",
    "PhaseMetadata",
    "PhaseStatus",
    "PhaseflowError",
    "ProjectInfo",
    "ProjectMachine",
    "ProjectSession",
    "ProjectState",
    "ProjectStateStore",
    "ProjectType",
    "PromptEmitter",
    "PromptRenderError",
    "ReviewAssessment",
    "ReviewReport",
    "RuntimeSettings",
    "StandardProject",
    "State",
    "StateMachine",
    "Task",
    "TaskStatus",
    "TemplatePromptRenderer",
    "Transition",
    "UnknownPhaseError",
    "build_phase_chain",
    "default_project_types",
    "detect_project_type",
    "fingerprint",
    "get_version",
    "new_project_state",
    "open_project",
    "to_canonical_json",
]
