"""Pure predicates over a single phase's slice of the project document."""

from __future__ import annotations

from ..models import (
    DesignPhaseState,
    DiscoveryPhaseState,
    FinalizePhaseState,
    ImplementationPhaseState,
    ReviewAssessment,
    ReviewPhaseState,
    TaskStatus,
)

_RESOLVED_TASK_STATUSES = frozenset({TaskStatus.COMPLETED, TaskStatus.ABANDONED})


def artifacts_approved(data: DiscoveryPhaseState | DesignPhaseState) -> bool:
    """True when every artifact is approved. No artifacts at all also passes."""
    return all(artifact.approved for artifact in data.artifacts)


def has_at_least_one_task(data: ImplementationPhaseState) -> bool:
    return len(data.tasks) >= 1


def tasks_approved(data: ImplementationPhaseState) -> bool:
    return data.tasks_approved and len(data.tasks) >= 1


def all_tasks_complete(data: ImplementationPhaseState) -> bool:
    if not data.tasks:
        return False
    return all(task.status in _RESOLVED_TASK_STATUSES for task in data.tasks)


def latest_review_approved(data: ReviewPhaseState) -> bool:
    if not data.reports:
        return False
    return data.reports[-1].approved


def latest_review_failed(data: ReviewPhaseState) -> bool:
    if not data.reports:
        return False
    latest = data.reports[-1]
    return not latest.approved and latest.assessment == ReviewAssessment.FAIL


def documentation_assessed(data: FinalizePhaseState) -> bool:
    # Firing the event is itself the assessment.
    return True


def checks_assessed(data: FinalizePhaseState) -> bool:
    return True


def project_deleted(data: FinalizePhaseState) -> bool:
    return data.project_deleted
