from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from ..phases.base import PhaseMetadata
from ..prompts import PromptEmitter

if TYPE_CHECKING:
    from ..models import ProjectState
    from ..project import ProjectMachine


class ProjectType(Protocol):
    """A named composition of phases plus exceptional transitions."""

    @property
    def type(self) -> str: ...

    def build_state_machine(self, document: ProjectState, *, prompts: PromptEmitter | None = None) -> ProjectMachine: ...

    def phases(self) -> dict[str, PhaseMetadata]: ...
