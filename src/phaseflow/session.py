from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Mapping, TypeVar

from .canonical import fingerprint
from .errors import InvalidTransitionError
from .models import new_project_state
from .phases.events import Event, State
from .project import ProjectMachine
from .project_types import ProjectType, default_project_types, open_project
from .prompts import PromptEmitter, TemplatePromptRenderer, suppressed
from .settings import RuntimeSettings
from .store import ProjectStateStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ProjectSession:
    """One command invocation: load the document, fire at most one event, persist.

    The session remembers the fingerprint of the document it loaded, so a
    save is refused if another process rewrote the file in between.
    """

    def __init__(
        self,
        store: ProjectStateStore,
        *,
        project_types: Mapping[str, ProjectType] | None = None,
        settings: RuntimeSettings | None = None,
        prompts: PromptEmitter | None = None,
    ) -> None:
        self.store = store
        self.settings = settings if settings is not None else RuntimeSettings.from_env()
        self.project_types = dict(project_types) if project_types is not None else default_project_types()
        if prompts is not None:
            self.prompts = prompts
        elif self.settings.suppress_prompts:
            self.prompts = suppressed()
        else:
            self.prompts = PromptEmitter(renderer=TemplatePromptRenderer())
        self._loaded_fingerprint: str | None = None

    @classmethod
    def from_settings(cls, repo_root: Path, settings: RuntimeSettings | None = None, **kwargs) -> ProjectSession:
        resolved = settings if settings is not None else RuntimeSettings.from_env(repo_root)
        store = ProjectStateStore(resolved.state_root_path(repo_root))
        return cls(store, settings=resolved, **kwargs)

    def open(self) -> ProjectMachine | None:
        """Load and bind the persisted project, or ``None`` when there is none."""
        document = self.store.load()
        if document is None:
            self._loaded_fingerprint = None
            return None
        self._loaded_fingerprint = fingerprint(document)
        return open_project(
            document,
            self.project_types,
            baseline=self.settings.baseline_project_type,
            prompts=self.prompts,
        )

    def create(
        self,
        name: str,
        *,
        description: str = "",
        branch: str = "",
        project_type: str | None = None,
    ) -> ProjectMachine:
        """Create a new project document and start its first phase.

        Raises:
            ValueError: A project already exists or ``project_type`` is unknown.
        """
        if self.store.exists():
            raise ValueError(f"a project already exists at {self.store.state_path}")
        type_name = project_type if project_type is not None else self.settings.baseline_project_type
        if type_name not in self.project_types:
            raise ValueError(f"unknown project type {type_name!r}; expected one of: {', '.join(sorted(self.project_types))}")

        document = new_project_state(name, description=description, branch=branch, project_type=type_name)
        project = self.project_types[type_name].build_state_machine(document, prompts=self.prompts)
        project.fire(Event.PROJECT_INIT)
        self._loaded_fingerprint = self.store.create(project.sync())
        logger.info("created %s project %s", type_name, document.project.name)
        return project

    def save(self, project: ProjectMachine) -> None:
        """Write the project back. A project that returned to idle is deleted."""
        document = project.sync()
        if project.is_idle:
            self.store.delete(expected_fingerprint=self._loaded_fingerprint)
            self._loaded_fingerprint = None
            logger.info("project %s finished; state removed", document.project.name)
            return
        self._loaded_fingerprint = self.store.save(document, expected_fingerprint=self._loaded_fingerprint)

    def fire(self, event: Event) -> ProjectMachine:
        """Load the project, fire ``event`` and persist the result.

        Raises:
            InvalidTransitionError: No project exists, or the event is not permitted.
            ActionFailureError: An entry or exit action failed; nothing was written.
            ConcurrentModificationError: The document changed on disk meanwhile.
        """
        project = self.open()
        if project is None:
            raise InvalidTransitionError(State.NO_PROJECT, event, reason="no project exists")
        project.fire(event)
        self.save(project)
        return project

    def update(self, change: Callable[[ProjectMachine], T]) -> T:
        """Load the project, apply ``change`` to it and persist the result.

        ``change`` receives the bound project and edits its phase data, for
        example ``lambda project: project.add_task("Schema")``.

        Raises:
            ValueError: No project exists, or ``change`` rejected the edit.
            ConcurrentModificationError: The document changed on disk meanwhile.
        """
        project = self.open()
        if project is None:
            raise ValueError("no project exists")
        result = change(project)
        self.save(project)
        return result
