from __future__ import annotations

from enum import Enum


class State(str, Enum):
    """Lifecycle states. Each phase owns a disjoint subset."""

    NO_PROJECT = "NoProject"

    DISCOVERY_DECISION = "DiscoveryDecision"
    DISCOVERY_ACTIVE = "DiscoveryActive"

    DESIGN_DECISION = "DesignDecision"
    DESIGN_ACTIVE = "DesignActive"

    IMPLEMENTATION_PLANNING = "ImplementationPlanning"
    IMPLEMENTATION_EXECUTING = "ImplementationExecuting"

    REVIEW_ACTIVE = "ReviewActive"

    FINALIZE_DOCUMENTATION = "FinalizeDocumentation"
    FINALIZE_CHECKS = "FinalizeChecks"
    FINALIZE_DELETE = "FinalizeDelete"

    def __str__(self) -> str:
        return self.value


class Event(str, Enum):
    """Transition triggers fired by the command layer."""

    PROJECT_INIT = "project_init"

    ENABLE_DISCOVERY = "enable_discovery"
    SKIP_DISCOVERY = "skip_discovery"
    COMPLETE_DISCOVERY = "complete_discovery"

    ENABLE_DESIGN = "enable_design"
    SKIP_DESIGN = "skip_design"
    COMPLETE_DESIGN = "complete_design"

    TASK_CREATED = "task_created"
    TASKS_APPROVED = "tasks_approved"
    ALL_TASKS_COMPLETE = "all_tasks_complete"

    REVIEW_PASS = "review_pass"
    REVIEW_FAIL = "review_fail"

    DOCUMENTATION_DONE = "documentation_done"
    CHECKS_DONE = "checks_done"
    PROJECT_DELETE = "project_delete"

    def __str__(self) -> str:
        return self.value
