"""Backend-agnostic generation request, tool and backend contracts."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from ..exceptions import OutputValidationError, ToolError

OutputT = TypeVar("OutputT", bound=BaseModel)


@dataclass(frozen=True)
class Tool:
    """Named capability the backend may invoke zero or more times.

    Handlers are plain callables taking the validated input model, so a
    generator can later be swapped for a network call without changing
    any orchestrator.
    """

    name: str
    description: str
    input_model: type[BaseModel]
    output_model: type[BaseModel]
    handler: Callable[[Any], BaseModel]

    def invoke(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Validate ``arguments``, run the handler and return its dumped output."""
        try:
            parsed = self.input_model.model_validate(arguments)
        except ValidationError as exc:
            raise ToolError(f"Invalid arguments for tool '{self.name}': {exc}") from exc
        result = self.output_model.model_validate(self.handler(parsed))
        return result.model_dump(mode="json")


@dataclass(frozen=True)
class GenerationRequest(Generic[OutputT]):
    """Schema-typed input, schema-typed output contract and optional tools."""

    name: str
    prompt: str
    input_data: BaseModel
    output_model: type[OutputT]
    tools: tuple[Tool, ...] = field(default_factory=tuple)

    def tool_by_name(self, name: str) -> Tool | None:
        for tool in self.tools:
            if tool.name == name:
                return tool
        return None

    def parse_output(self, raw: Any) -> OutputT:
        """Validate raw backend output; non-conforming output is fatal."""
        try:
            return self.output_model.model_validate(raw)
        except ValidationError as exc:
            raise OutputValidationError(
                f"The AI service returned a response that did not match the expected "
                f"format for {self.name}."
            ) from exc


class GenerativeBackend(ABC):
    """Base contract for generative services used by the orchestrators."""

    @abstractmethod
    def generate(self, request: GenerationRequest[Any]) -> dict[str, Any]:
        """Run the request, servicing tool calls, and return raw structured output."""

    def close(self) -> None:
        """Release backend resources."""


def generate_validated(
    backend: GenerativeBackend,
    request: GenerationRequest[OutputT],
    logger: logging.Logger,
) -> OutputT:
    """Generate and validate in one step, logging schema violations."""
    raw = backend.generate(request)
    try:
        return request.parse_output(raw)
    except OutputValidationError as exc:
        logger.error(
            "Generated output for %s failed validation: %s", request.name, exc.__cause__
        )
        raise
