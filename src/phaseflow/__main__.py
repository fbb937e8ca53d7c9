"""Entry point for `python -m phaseflow` and the `phaseflow` CLI script."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Callable

from phaseflow.errors import PhaseflowError
from phaseflow.models import ReviewAssessment, TaskStatus
from phaseflow.phases import Event
from phaseflow.project import ProjectMachine
from phaseflow.project_types import default_project_types
from phaseflow.session import ProjectSession
from phaseflow.settings import RuntimeSettings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Drive a project through its workflow phases")
    parser.add_argument(
        "--repo-root",
        type=Path,
        default=Path.cwd(),
        help="Repository whose project state is managed (default: cwd)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    init = commands.add_parser("init", help="Create a project and enter its first phase")
    init.add_argument("name")
    init.add_argument("--description", default="")
    init.add_argument("--branch", default="")
    init.add_argument("--type", dest="project_type", default=None, help="Project type (default: baseline type)")

    commands.add_parser("status", help="Show the current state, active phase and permitted events")
    commands.add_parser("events", help="List events that can fire now")

    fire = commands.add_parser("fire", help="Fire one event")
    fire.add_argument("event", choices=[event.value for event in Event])

    task = commands.add_parser("task", help="Manage tasks of the active phase").add_subparsers(dest="task_command", required=True)
    task_add = task.add_parser("add", help="Add a task")
    task_add.add_argument("name")
    task_add.add_argument("--id", dest="task_id", default=None, help="Task id (default: next gap-numbered id)")
    task_add.add_argument("--parallel", action="store_true")
    task_add.add_argument("--dependency", dest="dependencies", action="append", default=[])
    task_update = task.add_parser("update", help="Change a task status")
    task_update.add_argument("task_id")
    task_update.add_argument("--status", required=True, choices=[status.value for status in TaskStatus])

    artifact = commands.add_parser("artifact", help="Manage artifacts of the active phase").add_subparsers(
        dest="artifact_command", required=True
    )
    artifact_add = artifact.add_parser("add", help="Record an artifact")
    artifact_add.add_argument("path")
    artifact_add.add_argument("--type", dest="artifact_type", default=None)
    artifact_add.add_argument("--approved", action="store_true")
    artifact_approve = artifact.add_parser("approve", help="Approve an artifact")
    artifact_approve.add_argument("path")

    review = commands.add_parser("review", help="File a review report").add_subparsers(dest="review_command", required=True)
    review_add = review.add_parser("add", help="Add a review report")
    review_add.add_argument("path")
    review_add.add_argument("--assessment", required=True, choices=[assessment.value for assessment in ReviewAssessment])
    review_add.add_argument("--approved", action="store_true")

    set_field = commands.add_parser("set", help="Set a custom field of the active phase")
    set_field.add_argument("field")
    set_field.add_argument("value")

    phases = commands.add_parser("phases", help="Describe the phases of a project type")
    phases.add_argument("--type", dest="project_type", default=None)
    return parser


def _print_status(project: ProjectMachine | None) -> None:
    if project is None:
        print("state=NoProject")
        return
    print(f"project={project.document.project.name}")
    print(f"type={project.project_type}")
    print(f"state={project.state!s}")
    print(f"phase={project.active_phase() or '-'}")
    print(f"events={','.join(str(event) for event in project.permitted_events())}")


def _describe_phases(project_type: str) -> dict[str, object]:
    types = default_project_types()
    if project_type not in types:
        raise ValueError(f"unknown project type {project_type!r}; expected one of: {', '.join(sorted(types))}")
    described: dict[str, object] = {}
    for name, metadata in types[project_type].phases().items():
        described[name] = {
            "states": [state.value for state in metadata.states],
            "supports_tasks": metadata.supports_tasks,
            "supports_artifacts": metadata.supports_artifacts,
            "custom_fields": {
                definition.name: {"type": definition.type.value, "description": definition.description}
                for definition in metadata.custom_fields
            },
        }
    return described


def _change_for(args: argparse.Namespace) -> Callable[[ProjectMachine], str] | None:
    """Map a data-editing subcommand to the edit it applies, or ``None`` for other commands."""
    if args.command == "task" and args.task_command == "add":
        return lambda project: "task={0.id}".format(
            project.add_task(args.name, task_id=args.task_id, parallel=args.parallel, dependencies=args.dependencies)
        )
    if args.command == "task":
        return lambda project: "task={0.id} status={0.status.value}".format(
            project.update_task(args.task_id, TaskStatus(args.status))
        )
    if args.command == "artifact" and args.artifact_command == "add":
        return lambda project: "artifact={0.path} approved={0.approved}".format(
            project.add_artifact(args.path, artifact_type=args.artifact_type, approved=args.approved)
        )
    if args.command == "artifact":
        return lambda project: "artifact={0.path} approved={0.approved}".format(project.approve_artifact(args.path))
    if args.command == "review":
        return lambda project: "report={0.path} assessment={0.assessment.value}".format(
            project.add_review_report(args.path, ReviewAssessment(args.assessment), approved=args.approved)
        )
    if args.command == "set":
        return lambda project: f"{args.field}={project.set_field(args.field, args.value)}"
    return None


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    repo_root = args.repo_root.resolve()

    try:
        settings = RuntimeSettings.from_env(repo_root)
        if args.command == "phases":
            described = _describe_phases(args.project_type or settings.baseline_project_type)
            print(json.dumps(described, indent=2))
            return 0

        session = ProjectSession.from_settings(repo_root, settings)
        change = _change_for(args)
        if change is not None:
            print(session.update(change))
        elif args.command == "init":
            project = session.create(
                args.name,
                description=args.description,
                branch=args.branch,
                project_type=args.project_type,
            )
            _print_status(project)
        elif args.command == "fire":
            project = session.fire(Event(args.event))
            _print_status(None if project.is_idle else project)
        elif args.command == "events":
            project = session.open()
            events = project.permitted_events() if project is not None else []
            for event in events:
                print(event)
        else:
            _print_status(session.open())
    except (PhaseflowError, OSError, ValueError) as exc:
        logging.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
