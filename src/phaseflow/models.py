from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

NO_PROJECT_STATE = "NoProject"


def utcnow() -> datetime:
    return datetime.now(UTC)


class PhaseStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class ReviewAssessment(str, Enum):
    PASS = "pass"
    FAIL = "fail"


class Artifact(BaseModel):
    """A phase artifact awaiting human approval."""

    path: str
    approved: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    type: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class Task(BaseModel):
    """Implementation task. Ids are gap-numbered (010, 020, ...)."""

    id: str
    name: str
    status: TaskStatus = TaskStatus.PENDING
    parallel: bool = False
    dependencies: list[str] = Field(default_factory=list)


class ReviewReport(BaseModel):
    path: str
    assessment: ReviewAssessment
    approved: bool = False
    created_at: datetime = Field(default_factory=utcnow)


class PhaseStateBase(BaseModel):
    """Fields shared by every phase slice of the document."""

    status: PhaseStatus = PhaseStatus.PENDING
    enabled: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class DiscoveryPhaseState(PhaseStateBase):
    enabled: bool = False
    discovery_type: str | None = None
    artifacts: list[Artifact] = Field(default_factory=list)


class DesignPhaseState(PhaseStateBase):
    enabled: bool = False
    architect_used: bool | None = None
    artifacts: list[Artifact] = Field(default_factory=list)


class ImplementationPhaseState(PhaseStateBase):
    planner_used: bool | None = None
    tasks_approved: bool = False
    tasks: list[Task] = Field(default_factory=list)


class ReviewPhaseState(PhaseStateBase):
    iteration: int = Field(default=1, ge=1)
    reports: list[ReviewReport] = Field(default_factory=list)


class FinalizePhaseState(PhaseStateBase):
    project_deleted: bool = False
    pr_url: str | None = None
    documentation_updates: list[str] = Field(default_factory=list)
    artifacts_moved: list[str] = Field(default_factory=list)


class PhasesState(BaseModel):
    """Per-phase slices keyed by stable phase name."""

    discovery: DiscoveryPhaseState = Field(default_factory=DiscoveryPhaseState)
    design: DesignPhaseState = Field(default_factory=DesignPhaseState)
    implementation: ImplementationPhaseState = Field(default_factory=ImplementationPhaseState)
    review: ReviewPhaseState = Field(default_factory=ReviewPhaseState)
    finalize: FinalizePhaseState = Field(default_factory=FinalizePhaseState)


class ProjectInfo(BaseModel):
    # Empty for documents written before the discriminator existed.
    type: str = ""
    name: str
    branch: str = ""
    description: str = ""
    github_issue: int | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class StatechartState(BaseModel):
    current_state: str = NO_PROJECT_STATE


class ProjectState(BaseModel):
    """Root of the persisted project document."""

    statechart: StatechartState = Field(default_factory=StatechartState)
    project: ProjectInfo
    phases: PhasesState = Field(default_factory=PhasesState)


def new_project_state(
    name: str,
    *,
    description: str = "",
    branch: str = "",
    project_type: str = "standard",
    github_issue: int | None = None,
) -> ProjectState:
    """Build a fresh document positioned at ``NoProject``.

    Optional phases start disabled; required phases start enabled and pending.

    Raises:
        ValueError: If ``name`` is blank.
    """
    if not name.strip():
        raise ValueError("project name must be non-empty")
    now = utcnow()
    return ProjectState(
        statechart=StatechartState(current_state=NO_PROJECT_STATE),
        project=ProjectInfo(
            type=project_type,
            name=name.strip(),
            branch=branch,
            description=description,
            github_issue=github_issue,
            created_at=now,
            updated_at=now,
        ),
        phases=PhasesState(
            discovery=DiscoveryPhaseState(created_at=now),
            design=DesignPhaseState(created_at=now),
            implementation=ImplementationPhaseState(created_at=now),
            review=ReviewPhaseState(created_at=now),
            finalize=FinalizePhaseState(created_at=now),
        ),
    )
