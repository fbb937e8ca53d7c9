from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, runtime_checkable

from ..machine import StateMachine
from .events import State


class PhaseKind(str, Enum):
    """Shape tag for a phase variant."""

    DECISION = "decision"
    DUAL_STATE = "dual_state"
    MULTI_STAGE = "multi_stage"


class FieldType(str, Enum):
    STRING = "string"
    BOOL = "bool"
    INT = "int"


@dataclass(frozen=True)
class FieldDef:
    """A custom field a phase accepts through ``set <field> <value>``."""

    name: str
    type: FieldType
    description: str


@dataclass(frozen=True)
class PhaseMetadata:
    """Declarative description of a phase, usable without a live machine."""

    name: str
    states: tuple[State, ...]
    supports_tasks: bool = False
    supports_artifacts: bool = False
    custom_fields: tuple[FieldDef, ...] = field(default_factory=tuple)

    def field(self, name: str) -> FieldDef | None:
        for definition in self.custom_fields:
            if definition.name == name:
                return definition
        return None

    def owns(self, state: object) -> bool:
        return state in self.states


@runtime_checkable
class Phase(Protocol):
    """Capability set every phase variant implements."""

    name: str

    @property
    def kind(self) -> PhaseKind: ...

    def entry_state(self) -> State: ...

    def add_to_machine(self, machine: StateMachine, next_entry: State) -> None: ...

    def metadata(self) -> PhaseMetadata: ...
