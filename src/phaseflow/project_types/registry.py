from __future__ import annotations

import logging
from typing import Mapping

from ..errors import CorruptPersistedStateError
from ..models import ProjectState
from ..project import ProjectMachine
from ..prompts import PromptEmitter
from .base import ProjectType

logger = logging.getLogger(__name__)

BASELINE_PROJECT_TYPE = "standard"


def detect_project_type(
    document: ProjectState,
    project_types: Mapping[str, ProjectType],
    *,
    baseline: str = BASELINE_PROJECT_TYPE,
) -> ProjectType:
    """Select the project type named by the document's discriminator.

    Documents written before the discriminator existed carry an empty
    ``project.type``; they are migrated in place to ``baseline``. Unknown
    discriminators also resolve to ``baseline``.

    Raises:
        CorruptPersistedStateError: If ``baseline`` itself is not in ``project_types``.
    """
    discriminator = document.project.type.strip()
    if not discriminator:
        document.project.type = baseline
        discriminator = baseline
    selected = project_types.get(discriminator)
    if selected is not None:
        return selected

    fallback = project_types.get(baseline)
    if fallback is None:
        raise CorruptPersistedStateError(
            f"project type {discriminator!r} is not registered and baseline {baseline!r} is unavailable"
        )
    logger.warning("unknown project type %r, using %r", discriminator, baseline)
    return fallback


def open_project(
    document: ProjectState,
    project_types: Mapping[str, ProjectType],
    *,
    baseline: str = BASELINE_PROJECT_TYPE,
    prompts: PromptEmitter | None = None,
) -> ProjectMachine:
    """Detect the document's project type and build its bound machine."""
    project_type = detect_project_type(document, project_types, baseline=baseline)
    return project_type.build_state_machine(document, prompts=prompts)
