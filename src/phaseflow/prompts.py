from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Protocol

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from .errors import PromptRenderError

logger = logging.getLogger(__name__)

PromptSink = Callable[[str], None]


class PromptRenderer(Protocol):
    """Renders the prompt shown when a phase state is entered."""

    def render(self, phase: str, template: str, context: Mapping[str, Any]) -> str: ...


class TemplatePromptRenderer:
    """Jinja2 renderer over the ``phaseflow/templates/<phase>/<template>.md`` package data."""

    def __init__(self, environment: Environment | None = None) -> None:
        self.environment = environment if environment is not None else Environment(
            loader=PackageLoader("phaseflow", "templates"),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            autoescape=False,
        )

    def render(self, phase: str, template: str, context: Mapping[str, Any]) -> str:
        name = f"{phase}/{template}.md"
        try:
            return self.environment.get_template(name).render(**context)
        except TemplateError as exc:
            raise PromptRenderError(name, exc) from exc


class NullPromptRenderer:
    """Renders nothing. Used when prompts are suppressed."""

    def render(self, phase: str, template: str, context: Mapping[str, Any]) -> str:
        return ""


@dataclass
class PromptEmitter:
    """Renders a prompt and hands it to ``sink``; empty prompts are dropped."""

    renderer: PromptRenderer = field(default_factory=NullPromptRenderer)
    sink: PromptSink = print

    def emit(self, phase: str, template: str, context: Mapping[str, Any]) -> None:
        prompt = self.renderer.render(phase, template, context)
        if not prompt.strip():
            return
        logger.debug("emitting prompt %s/%s", phase, template)
        self.sink(prompt)


def suppressed() -> PromptEmitter:
    return PromptEmitter(renderer=NullPromptRenderer())
