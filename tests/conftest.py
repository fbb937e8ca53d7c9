from __future__ import annotations

import pytest

from phaseflow.models import ProjectState, new_project_state


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer PHASEFLOW_* variables out of the tests."""
    for name in ("PHASEFLOW_STATE_ROOT", "PHASEFLOW_SUPPRESS_PROMPTS", "PHASEFLOW_BASELINE_PROJECT_TYPE"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def document() -> ProjectState:
    return new_project_state("checkout-flow", description="Rework checkout", branch="feat/checkout")
