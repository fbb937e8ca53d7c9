from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable


class PhaseflowError(Exception):
    """Base class for every error raised by phaseflow."""


class InvalidTransitionError(PhaseflowError):
    """Event is not permitted from the current state, or its guard is false."""

    def __init__(self, state: Any, event: Any, *, reason: str | None = None) -> None:
        self.state = state
        self.event = event
        self.reason = reason
        message = f"event {token_value(event)!r} cannot fire from state {token_value(state)!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class UnknownPhaseError(PhaseflowError):
    """A phase name is not part of the active project type."""

    def __init__(self, phase: str, known: Iterable[str] = ()) -> None:
        self.phase = phase
        self.known = sorted(known)
        message = f"unknown phase {phase!r}"
        if self.known:
            message = f"{message} (known phases: {', '.join(self.known)})"
        super().__init__(message)


class ActionFailureError(PhaseflowError):
    """An entry or exit action failed; the transition was rolled back."""

    def __init__(self, state: Any, event: Any, cause: BaseException, *, target: Any = None) -> None:
        self.state = state
        self.event = event
        self.target = target
        self.cause = cause
        super().__init__(
            f"action failed while firing {token_value(event)!r} from state {token_value(state)!r}: {cause}"
        )


class CorruptPersistedStateError(PhaseflowError):
    """The persisted project document cannot be read or bound to a project type."""

    def __init__(self, reason: str, *, path: Path | None = None) -> None:
        self.path = path
        self.reason = reason
        message = f"project state at {path} is corrupt: {reason}" if path is not None else f"project state is corrupt: {reason}"
        super().__init__(message)


class ConcurrentModificationError(PhaseflowError):
    """The persisted document changed on disk after it was loaded."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"project state at {path} was modified since it was loaded")


class PromptRenderError(PhaseflowError):
    """A phase prompt template could not be loaded or rendered."""

    def __init__(self, template: str, cause: BaseException) -> None:
        self.template = template
        self.cause = cause
        super().__init__(f"failed to render prompt template {template}: {cause}")


def token_value(value: Any) -> Any:
    """Plain value of a state or event token; enum members collapse to their value."""
    return getattr(value, "value", value)
