from __future__ import annotations

from pathlib import Path

import pytest

from phaseflow.errors import ConcurrentModificationError, CorruptPersistedStateError, InvalidTransitionError
from phaseflow.models import ReviewAssessment, ReviewReport, Task, TaskStatus
from phaseflow.phases import Event, State
from phaseflow.prompts import PromptEmitter, TemplatePromptRenderer, suppressed
from phaseflow.session import ProjectSession
from phaseflow.settings import RuntimeSettings
from phaseflow.store import ProjectStateStore


def _session(root: Path, **kwargs) -> ProjectSession:
    return ProjectSession(ProjectStateStore(root), settings=RuntimeSettings(), prompts=suppressed(), **kwargs)


def test_create_enters_first_phase_and_persists(tmp_path: Path) -> None:
    session = _session(tmp_path)
    project = session.create("payments", description="Split payments", branch="feat/payments")

    assert project.state == State.DISCOVERY_DECISION
    stored = session.store.load()
    assert stored.statechart.current_state == "DiscoveryDecision"
    assert stored.project.type == "standard"
    assert stored.project.name == "payments"


def test_create_refuses_existing_project_and_unknown_type(tmp_path: Path) -> None:
    session = _session(tmp_path)
    with pytest.raises(ValueError):
        session.create("payments", project_type="research")
    assert not session.store.exists()

    session.create("payments")
    with pytest.raises(ValueError):
        session.create("payments-again")


def test_open_without_project_returns_none(tmp_path: Path) -> None:
    assert _session(tmp_path).open() is None


def test_fire_without_project_is_invalid(tmp_path: Path) -> None:
    with pytest.raises(InvalidTransitionError):
        _session(tmp_path).fire(Event.SKIP_DISCOVERY)


def test_each_fire_is_one_load_fire_save_cycle(tmp_path: Path) -> None:
    _session(tmp_path).create("payments")

    assert _session(tmp_path).fire(Event.SKIP_DISCOVERY).state == State.DESIGN_DECISION
    assert _session(tmp_path).fire(Event.SKIP_DESIGN).state == State.IMPLEMENTATION_PLANNING

    stored = ProjectStateStore(tmp_path).load()
    assert stored.statechart.current_state == "ImplementationPlanning"
    assert stored.phases.discovery.status.value == "skipped"


def test_rejected_event_leaves_document_untouched(tmp_path: Path) -> None:
    _session(tmp_path).create("payments")
    before = (tmp_path / "project" / "state.json").read_bytes()
    with pytest.raises(InvalidTransitionError):
        _session(tmp_path).fire(Event.REVIEW_PASS)
    assert (tmp_path / "project" / "state.json").read_bytes() == before


def test_save_detects_concurrent_writer(tmp_path: Path) -> None:
    _session(tmp_path).create("payments")
    slow = _session(tmp_path)
    project = slow.open()
    project.fire(Event.SKIP_DISCOVERY)

    _session(tmp_path).fire(Event.ENABLE_DISCOVERY)

    with pytest.raises(ConcurrentModificationError):
        slow.save(project)
    assert ProjectStateStore(tmp_path).load().statechart.current_state == "DiscoveryActive"


def test_project_delete_removes_document(tmp_path: Path) -> None:
    session = _session(tmp_path)
    session.create("payments", project_type="exploration")
    session.fire(Event.ENABLE_DISCOVERY)
    session.fire(Event.COMPLETE_DISCOVERY)
    session.fire(Event.DOCUMENTATION_DONE)
    session.fire(Event.CHECKS_DONE)

    project = session.open()
    project.document.phases.finalize.project_deleted = True
    project.fire(Event.PROJECT_DELETE)
    session.save(project)

    assert not session.store.exists()
    assert session.open() is None


def test_review_loop_persists_iteration(tmp_path: Path) -> None:
    session = _session(tmp_path)
    session.create("payments")
    session.fire(Event.SKIP_DISCOVERY)
    session.fire(Event.SKIP_DESIGN)

    project = session.open()
    project.document.phases.implementation.tasks.append(Task(id="010", name="Ledger", status=TaskStatus.COMPLETED))
    project.fire(Event.TASK_CREATED)
    project.fire(Event.ALL_TASKS_COMPLETE)
    project.document.phases.review.reports.append(ReviewReport(path="r1.md", assessment=ReviewAssessment.FAIL))
    project.fire(Event.REVIEW_FAIL)
    session.save(project)

    stored = session.store.load()
    assert stored.statechart.current_state == "ImplementationPlanning"
    assert stored.phases.review.iteration == 2


def test_corrupt_state_token_is_reported(tmp_path: Path) -> None:
    session = _session(tmp_path)
    session.create("payments")
    path = tmp_path / "project" / "state.json"
    path.write_text(path.read_text(encoding="utf-8").replace("DiscoveryDecision", "Limbo"), encoding="utf-8")
    with pytest.raises(CorruptPersistedStateError):
        session.open()


def test_from_settings_resolves_state_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PHASEFLOW_STATE_ROOT", "state")
    monkeypatch.setenv("PHASEFLOW_SUPPRESS_PROMPTS", "true")
    session = ProjectSession.from_settings(tmp_path)
    assert session.store.root == tmp_path / "state"
    session.create("payments")
    assert (tmp_path / "state" / "project" / "state.json").is_file()


def test_prompts_are_rendered_on_create(tmp_path: Path) -> None:
    emitted: list[str] = []
    session = ProjectSession(
        ProjectStateStore(tmp_path),
        settings=RuntimeSettings(),
        prompts=PromptEmitter(renderer=TemplatePromptRenderer(), sink=emitted.append),
    )
    session.create("payments", description="Split payments")
    assert len(emitted) == 1
    assert "Discovery decision: payments" in emitted[0]


def _drive_exploration_to_delete(root: Path) -> None:
    session = _session(root)
    session.create("payments", project_type="exploration")
    for event in (Event.ENABLE_DISCOVERY, Event.COMPLETE_DISCOVERY, Event.DOCUMENTATION_DONE, Event.CHECKS_DONE):
        session.fire(event)


def test_finishing_project_refuses_to_delete_concurrent_changes(tmp_path: Path) -> None:
    _drive_exploration_to_delete(tmp_path)
    _session(tmp_path).update(lambda project: project.set_field("project_deleted", "true"))

    finishing = _session(tmp_path)
    project = finishing.open()
    project.fire(Event.PROJECT_DELETE)
    assert project.is_idle

    _session(tmp_path).update(lambda other: other.set_field("pr_url", "https://example.invalid/pr/3"))

    with pytest.raises(ConcurrentModificationError):
        finishing.save(project)
    stored = ProjectStateStore(tmp_path).load()
    assert stored.phases.finalize.pr_url == "https://example.invalid/pr/3"


def test_create_loses_race_without_overwriting(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    late = _session(tmp_path)
    # The late session checked for an existing project before the other one wrote it.
    monkeypatch.setattr(late.store, "exists", lambda: False)
    _session(tmp_path).create("first")

    with pytest.raises(ValueError):
        late.create("second")
    assert ProjectStateStore(tmp_path).load().project.name == "first"


def test_update_applies_edit_and_persists(tmp_path: Path) -> None:
    session = _session(tmp_path)
    session.create("payments")
    session.fire(Event.SKIP_DISCOVERY)
    session.fire(Event.SKIP_DESIGN)

    task = session.update(lambda project: project.add_task("Ledger"))
    assert task.id == "010"
    assert ProjectStateStore(tmp_path).load().phases.implementation.tasks[0].name == "Ledger"
    assert _session(tmp_path).fire(Event.TASK_CREATED).state == State.IMPLEMENTATION_EXECUTING


def test_rejected_update_leaves_document_untouched(tmp_path: Path) -> None:
    _session(tmp_path).create("payments")
    before = (tmp_path / "project" / "state.json").read_bytes()
    with pytest.raises(ValueError):
        _session(tmp_path).update(lambda project: project.add_task("Ledger"))
    assert (tmp_path / "project" / "state.json").read_bytes() == before


def test_update_without_project_raises(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        _session(tmp_path).update(lambda project: project.add_task("Ledger"))
