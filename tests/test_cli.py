from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

import pytest

from phaseflow.__main__ import main


@pytest.fixture(autouse=True)
def _quiet_prompts(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PHASEFLOW_SUPPRESS_PROMPTS", "1")


def test_cli_init_status_and_fire(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    root = ["--repo-root", str(tmp_path)]
    assert main([*root, "init", "payments", "--branch", "feat/payments"]) == 0
    out = capsys.readouterr().out
    assert "state=DiscoveryDecision" in out
    assert "phase=discovery" in out
    assert "events=enable_discovery,skip_discovery" in out

    assert main([*root, "fire", "skip_discovery"]) == 0
    assert "state=DesignDecision" in capsys.readouterr().out

    assert main([*root, "events"]) == 0
    assert capsys.readouterr().out.split() == ["enable_design", "skip_design"]

    assert main([*root, "status"]) == 0
    assert "project=payments" in capsys.readouterr().out


def test_cli_rejected_event_exits_nonzero(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    root = ["--repo-root", str(tmp_path)]
    assert main([*root, "init", "payments"]) == 0
    capsys.readouterr()
    assert main([*root, "fire", "review_pass"]) == 1


def test_cli_status_without_project(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--repo-root", str(tmp_path), "status"]) == 0
    assert capsys.readouterr().out.strip() == "state=NoProject"


def test_cli_phases_describes_project_type(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--repo-root", str(tmp_path), "phases", "--type", "exploration"]) == 0
    described = json.loads(capsys.readouterr().out)
    assert list(described) == ["discovery", "finalize"]
    assert described["finalize"]["states"] == ["FinalizeDocumentation", "FinalizeChecks", "FinalizeDelete"]
    assert described["discovery"]["custom_fields"]["discovery_type"]["type"] == "string"

    assert main(["--repo-root", str(tmp_path), "phases", "--type", "research"]) == 1


def test_module_entrypoint_runs(tmp_path: Path) -> None:
    result = subprocess.run(
        [sys.executable, "-m", "phaseflow", "--repo-root", str(tmp_path), "status"],
        capture_output=True,
        text=True,
        check=False,
    )
    assert result.returncode == 0, result.stderr
    assert "state=NoProject" in result.stdout


def test_cli_drives_standard_project_back_to_idle(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    root = ["--repo-root", str(tmp_path)]

    def run(*args: str) -> str:
        assert main([*root, *args]) == 0
        return capsys.readouterr().out

    assert "state=DiscoveryDecision" in run("init", "payments")
    run("fire", "skip_discovery")
    assert "state=ImplementationPlanning" in run("fire", "skip_design")

    assert run("task", "add", "Ledger").strip() == "task=010"
    assert "state=ImplementationExecuting" in run("fire", "task_created")
    assert run("task", "update", "010", "--status", "completed").strip() == "task=010 status=completed"
    assert "state=ReviewActive" in run("fire", "all_tasks_complete")

    assert run("review", "add", "r1.md", "--assessment", "pass", "--approved").strip() == "report=r1.md assessment=pass"
    assert "state=FinalizeDocumentation" in run("fire", "review_pass")
    run("fire", "documentation_done")
    assert "state=FinalizeDelete" in run("fire", "checks_done")

    assert main([*root, "fire", "project_delete"]) == 1
    capsys.readouterr()
    assert run("set", "project_deleted", "true").strip() == "project_deleted=True"
    assert run("fire", "project_delete").strip() == "state=NoProject"
    assert not (tmp_path / ".phaseflow" / "project" / "state.json").exists()
    assert run("status").strip() == "state=NoProject"


def test_cli_rejects_edits_the_active_phase_does_not_support(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    root = ["--repo-root", str(tmp_path)]
    assert main([*root, "init", "payments"]) == 0
    state_path = tmp_path / ".phaseflow" / "project" / "state.json"
    before = state_path.read_bytes()

    assert main([*root, "task", "add", "Ledger"]) == 1
    assert main([*root, "set", "iteration", "2"]) == 1
    assert main([*root, "artifact", "approve", "missing.md"]) == 1
    assert state_path.read_bytes() == before

    capsys.readouterr()
    assert main([*root, "artifact", "add", "notes.md"]) == 0
    assert capsys.readouterr().out.strip() == "artifact=notes.md approved=False"
