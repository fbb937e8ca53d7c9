from __future__ import annotations

import pytest

from phaseflow.errors import ActionFailureError, InvalidTransitionError, token_value
from phaseflow.machine import StateMachine, Transition
from phaseflow.phases import Event, State


def _two_state_machine(flag: dict[str, bool]) -> StateMachine:
    machine = StateMachine("idle")
    machine.configure("idle").permit("go", "running", lambda: flag["ready"], name="ready")
    machine.configure("running").permit("stop", "idle")
    return machine


def test_fire_moves_to_target_and_returns_transition() -> None:
    machine = _two_state_machine({"ready": True})
    transition = machine.fire("go")
    assert machine.state == "running"
    assert transition == Transition("idle", "go", "running", guard_name="ready")


def test_can_fire_has_no_side_effects() -> None:
    calls: list[str] = []
    machine = StateMachine("a")
    machine.configure("a").permit("next", "b").on_exit(lambda _t: calls.append("exit"))
    machine.configure("b").on_entry(lambda _t: calls.append("entry"))

    for _ in range(3):
        assert machine.can_fire("next") is True
    assert machine.state == "a"
    assert calls == []


def test_guard_gates_transition_and_failed_fire_is_idempotent() -> None:
    flag = {"ready": False}
    machine = _two_state_machine(flag)

    assert machine.can_fire("go") is False
    with pytest.raises(InvalidTransitionError) as excinfo:
        machine.fire("go")
    assert "ready" in str(excinfo.value)
    assert machine.state == "idle"
    with pytest.raises(InvalidTransitionError):
        machine.fire("go")
    assert machine.state == "idle"

    flag["ready"] = True
    assert machine.can_fire("go") is True
    machine.fire("go")
    assert machine.state == "running"


def test_unconfigured_event_is_rejected() -> None:
    machine = _two_state_machine({"ready": True})
    with pytest.raises(InvalidTransitionError) as excinfo:
        machine.fire("stop")
    assert excinfo.value.reason == "no transition configured"
    assert excinfo.value.state == "idle"
    assert excinfo.value.event == "stop"


def test_first_registered_eligible_candidate_wins() -> None:
    machine = StateMachine("start")
    config = machine.configure("start")
    config.permit("route", "left", lambda: False, name="never")
    config.permit("route", "middle", lambda: True, name="always")
    config.permit("route", "right", lambda: True, name="also")

    assert machine.fire("route").target == "middle"
    assert machine.state == "middle"


def test_actions_run_exit_then_entry() -> None:
    order: list[str] = []
    machine = StateMachine("a")
    machine.configure("a").permit("next", "b").on_exit(lambda _t: order.append(f"exit:{machine.state}"))
    machine.configure("b").on_entry(lambda t: order.append(f"entry:{machine.state}:{t.source}"))

    machine.fire("next")
    assert order == ["exit:a", "entry:b:a"]


def test_action_failure_restores_source_state() -> None:
    machine = StateMachine("a")
    machine.configure("a").permit("next", "b")

    def explode(_transition: Transition) -> None:
        raise RuntimeError("renderer offline")

    machine.configure("b").on_entry(explode)

    with pytest.raises(ActionFailureError) as excinfo:
        machine.fire("next")
    assert machine.state == "a"
    assert excinfo.value.target == "b"
    assert isinstance(excinfo.value.cause, RuntimeError)
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_self_transition_is_rejected_at_configuration() -> None:
    machine = StateMachine("a")
    with pytest.raises(ValueError):
        machine.configure("a").permit("loop", "a")


def test_permitted_events_reflects_guards() -> None:
    flag = {"open": False}
    machine = StateMachine("hub")
    hub = machine.configure("hub")
    hub.permit("north", "n")
    hub.permit("south", "s", lambda: flag["open"])
    hub.permit("east", "e")

    assert machine.permitted_events() == ["north", "east"]
    flag["open"] = True
    assert machine.permitted_events() == ["north", "south", "east"]


def test_states_and_transitions_introspection() -> None:
    machine = _two_state_machine({"ready": True})
    assert machine.states() == {"idle", "running"}
    assert machine.is_configured("running")
    assert not machine.is_configured("paused")
    assert [(t.source, t.event, t.target) for t in machine.transitions()] == [
        ("idle", "go", "running"),
        ("running", "stop", "idle"),
    ]


def test_error_messages_use_plain_token_values() -> None:
    assert token_value(State.REVIEW_ACTIVE) == "ReviewActive"
    assert token_value("ready") == "ready"
    error = InvalidTransitionError(State.DESIGN_DECISION, Event.REVIEW_PASS)
    assert "'review_pass'" in str(error)
    assert "'DesignDecision'" in str(error)
    assert "State." not in str(error)
