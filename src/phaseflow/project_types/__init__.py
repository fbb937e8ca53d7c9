from .base import ProjectType
from .exploration import ExplorationProject
from .registry import BASELINE_PROJECT_TYPE, detect_project_type, open_project
from .standard import StandardProject


def default_project_types() -> dict[str, ProjectType]:
    """Return a fresh mapping of the built-in project types."""
    return {
        StandardProject.type: StandardProject(),
        ExplorationProject.type: ExplorationProject(),
    }


__all__ = [
    "BASELINE_PROJECT_TYPE",
    "ExplorationProject",
    "ProjectType",
    "StandardProject",
    "default_project_types",
    "detect_project_type",
    "open_project",
]
