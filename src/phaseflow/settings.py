from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True)
class RuntimeSettings:
    """Runtime settings loaded from environment with fail-fast validation."""

    state_root: str = ".phaseflow"
    suppress_prompts: bool = False
    baseline_project_type: str = "standard"

    @classmethod
    def from_env(cls, repo_root: Path | None = None) -> "RuntimeSettings":
        """Read ``PHASEFLOW_*`` variables, loading ``<repo_root>/.env`` first if present.

        Variables already set in the environment win over ``.env`` entries.
        """
        env_path = (repo_root if repo_root is not None else Path.cwd()) / ".env"
        if env_path.is_file():
            load_dotenv(env_path)
        return cls(
            state_root=os.getenv("PHASEFLOW_STATE_ROOT", ".phaseflow"),
            suppress_prompts=_get_env_bool("PHASEFLOW_SUPPRESS_PROMPTS", default=False),
            baseline_project_type=os.getenv("PHASEFLOW_BASELINE_PROJECT_TYPE", "standard"),
        ).normalized()

    def normalized(self) -> "RuntimeSettings":
        """Validate and normalize all fields. Raises ValueError on invalid configuration."""
        state_root = self.state_root.strip()
        if not state_root:
            raise ValueError("PHASEFLOW_STATE_ROOT must be non-empty")
        baseline = self.baseline_project_type.strip().lower()
        if not baseline:
            raise ValueError("PHASEFLOW_BASELINE_PROJECT_TYPE must be non-empty")
        return RuntimeSettings(
            state_root=state_root,
            suppress_prompts=self.suppress_prompts,
            baseline_project_type=baseline,
        )

    def state_root_path(self, repo_root: Path) -> Path:
        path = Path(self.state_root)
        return path if path.is_absolute() else repo_root / path


def _get_env_bool(name: str, default: bool) -> bool:
    """Parse a boolean environment variable.

    Raises:
        ValueError: If the value is not a recognised boolean spelling.
    """
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean (true/false), got: {raw!r}")
