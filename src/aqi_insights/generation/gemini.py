"""Gemini (google-genai) generative backend."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx
from google import genai
from google.genai import errors, types
from pydantic import BaseModel

from ..config import Settings
from ..exceptions import ConfigError, GenerationError, OutputValidationError, ToolError
from ..redaction import sanitize_text
from .base import GenerationRequest, GenerativeBackend, Tool

_JSON_SCHEMA_TYPES = {
    "string": types.Type.STRING,
    "number": types.Type.NUMBER,
    "integer": types.Type.INTEGER,
    "boolean": types.Type.BOOLEAN,
}
_FINAL_ANSWER_INSTRUCTION = (
    "You now have all the data you need. Produce the final answer as a JSON object "
    "matching the requested schema."
)


class GeminiBackend(GenerativeBackend):
    """Runs generation requests against the Gemini API.

    Tool-enabled requests first run a manual function-calling loop (the model
    decides which tools to call and how often), then ask for the final answer
    with a JSON response schema derived from the request's output model.
    """

    def __init__(
        self,
        settings: Settings,
        logger: logging.Logger,
        client: Any | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logger
        self.model = settings.gemini_model
        self.max_tool_rounds = settings.generation_max_tool_rounds
        if client is None:
            if not settings.gemini_api_key:
                raise ConfigError("GEMINI_API_KEY is required for the Gemini backend.")
            client = genai.Client(
                api_key=settings.gemini_api_key,
                http_options=types.HttpOptions(
                    timeout=int(settings.generation_timeout_seconds * 1000)
                ),
            )
        self._client = client

    def generate(self, request: GenerationRequest[Any]) -> dict[str, Any]:
        contents: list[types.Content] = [
            types.Content(role="user", parts=[types.Part.from_text(text=request.prompt)])
        ]
        if request.tools:
            self._run_tool_rounds(request, contents)

        final_config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=request.output_model,
        )
        response = self._generate_content(request, contents, final_config)
        return self._parse_json(request, response)

    def _run_tool_rounds(
        self, request: GenerationRequest[Any], contents: list[types.Content]
    ) -> None:
        config = types.GenerateContentConfig(
            tools=[
                types.Tool(
                    function_declarations=[self._declaration(tool) for tool in request.tools]
                )
            ],
            automatic_function_calling=types.AutomaticFunctionCallingConfig(disable=True),
        )
        for round_index in range(1, self.max_tool_rounds + 1):
            response = self._generate_content(request, contents, config)
            model_content = response.candidates[0].content if response.candidates else None
            if model_content is not None:
                contents.append(model_content)
            calls = response.function_calls or []
            if not calls:
                break
            self.logger.info(
                "%s tool round %d: %s",
                request.name,
                round_index,
                ", ".join(call.name or "?" for call in calls),
            )
            parts = [self._function_response(request, call) for call in calls]
            contents.append(types.Content(role="user", parts=parts))
        else:
            self.logger.warning(
                "%s reached the tool round limit (%d); requesting final answer.",
                request.name,
                self.max_tool_rounds,
            )
        final_prompt = types.Part.from_text(text=_FINAL_ANSWER_INSTRUCTION)
        contents.append(types.Content(role="user", parts=[final_prompt]))

    def _function_response(
        self, request: GenerationRequest[Any], call: types.FunctionCall
    ) -> types.Part:
        name = call.name or ""
        tool = request.tool_by_name(name)
        if tool is None:
            self.logger.warning("%s requested unknown tool %r.", request.name, name)
            result: dict[str, Any] = {"error": f"Unknown tool '{name}'."}
        else:
            try:
                result = {"output": tool.invoke(dict(call.args or {}))}
            except ToolError as exc:
                self.logger.warning("%s tool call rejected: %s", request.name, exc)
                result = {"error": str(exc)}
        return types.Part(
            function_response=types.FunctionResponse(id=call.id, name=name, response=result)
        )

    def _generate_content(
        self,
        request: GenerationRequest[Any],
        contents: list[types.Content],
        config: types.GenerateContentConfig,
    ) -> types.GenerateContentResponse:
        try:
            return self._client.models.generate_content(
                model=self.model,
                contents=contents,
                config=config,
            )
        except errors.APIError as exc:
            detail = sanitize_text(str(exc.message or exc.status or exc))
            self.logger.error("%s generation failed (HTTP %s): %s", request.name, exc.code, detail)
            raise GenerationError(
                f"AI service error {exc.code}: {detail}", status_code=exc.code
            ) from exc
        except httpx.HTTPError as exc:
            self.logger.error(
                "%s generation request failed (%s): %s",
                request.name,
                type(exc).__name__,
                sanitize_text(str(exc)),
            )
            raise GenerationError(
                "The AI service could not be reached. Please try again later."
            ) from exc

    def _parse_json(
        self, request: GenerationRequest[Any], response: types.GenerateContentResponse
    ) -> dict[str, Any]:
        text = response.text
        if not text or not text.strip():
            raise OutputValidationError(
                f"The AI service returned an empty response for {request.name}."
            )
        try:
            payload = json.loads(text)
        except ValueError as exc:
            self.logger.error(
                "%s returned non-JSON output: %s", request.name, sanitize_text(text[:300])
            )
            raise OutputValidationError(
                f"The AI service returned a response that was not valid JSON for {request.name}."
            ) from exc
        if not isinstance(payload, dict):
            raise OutputValidationError(
                f"The AI service returned a {type(payload).__name__} instead of an object "
                f"for {request.name}."
            )
        return payload

    @staticmethod
    def _declaration(tool: Tool) -> types.FunctionDeclaration:
        return types.FunctionDeclaration(
            name=tool.name,
            description=tool.description,
            parameters=_object_schema(tool.input_model),
        )


def _object_schema(model: type[BaseModel]) -> types.Schema:
    """Flat object schema for tool inputs; tool arguments are scalar fields."""
    json_schema = model.model_json_schema()
    properties = {
        name: types.Schema(
            type=_JSON_SCHEMA_TYPES.get(spec.get("type", "string"), types.Type.STRING),
            description=spec.get("description"),
        )
        for name, spec in json_schema.get("properties", {}).items()
    }
    return types.Schema(
        type=types.Type.OBJECT,
        properties=properties,
        required=list(json_schema.get("required", [])),
    )
