"""Generate a tool specification with a language model."""

import json
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional
from pydantic import ValidationError as PydanticValidationError

from toolforge.adapters.vendor_adapter_anthropic import AnthropicChatClient
from toolforge.adapters.vendor_adapter_openai import OpenAIChatClient
from toolforge.adapters.vendor_adapter_watsonx import WatsonxChatClient
from toolforge.infra.config import Config, config as default_config
from toolforge.infra.errors import (
    GenerationFailure,
    ParseFailure,
    ToolSpecError,
    ValidationFailure,
    wrap_llm_error,
)
from toolforge.infra.metrics import llm_call_duration, llm_calls_total
from toolforge.models.tool_spec import DataType, Operator, ParamMode, ParamType, ToolSpecification
from toolforge.services.prompt_composer import SYSTEM_PROMPT

logger = logging.getLogger("toolforge.services.spec_generator")

# Opening fence with an optional language tag (json, JSON, javascript, json5, ...)
_FENCED_BLOCK = re.compile(r"```[A-Za-z0-9_+-]*[ \t]*\n?([\s\S]*?)\s*```")


@dataclass(frozen=True)
class ModelSelector:
    """Which provider and model to call."""
    provider: str
    model_id: str

    @classmethod
    def parse(
        cls,
        model: Optional[str],
        provider: Optional[str] = None,
        default: Optional[str] = None,
    ) -> "ModelSelector":
        """
        Build a selector from ``provider:model`` or a separate provider.

        Falls back to ``default`` (itself ``provider:model``) when no model
        is given; a bare model id without provider means OpenAI.
        """
        model = (model or "").strip()
        provider = (provider or "").strip().lower()

        if not model:
            if not default:
                raise ValidationFailure("No model selected and no default model configured")
            return cls.parse(default)

        if not provider and ":" in model:
            provider, model = model.split(":", 1)
            provider = provider.strip().lower()
            model = model.strip()

        return cls(provider=provider or "openai", model_id=model)

    def __str__(self) -> str:
        return f"{self.provider}:{self.model_id}"


def build_output_schema(data_type: DataType) -> Dict[str, Any]:
    """
    JSON schema the model output must follow.

    Mirrors ToolSpecification/Parameter; the identity field that matches
    ``data_type`` is required alongside the core fields.
    """
    return {
        "type": "object",
        "additionalProperties": False,
        "required": [
            "name",
            "description",
            "type",
            "method",
            data_type.identity_field,
            "db_name",
            "parameters",
            "projection",
            "limit",
            "enabled",
            "tags",
        ],
        "properties": {
            "name": {"type": "string"},
            "description": {"type": "string"},
            "type": {"type": "string"},
            "method": {"type": "string"},
            "collection_name": {"type": "string"},
            "table_name": {"type": "string"},
            "db_name": {"type": "string"},
            "parameters": {
                "type": "array",
                "items": {
                    "type": "object",
                    "additionalProperties": False,
                    "required": [
                        "param",
                        "paramMode",
                        "type",
                        "description",
                        "attribute",
                        "operator",
                        "required",
                    ],
                    "properties": {
                        "param": {"type": "string"},
                        "paramMode": {"type": "string", "enum": [mode.value for mode in ParamMode]},
                        "type": {"type": "string", "enum": [param_type.value for param_type in ParamType]},
                        "description": {"type": "string"},
                        "attribute": {"type": "string"},
                        "operator": {"type": "string", "enum": [operator.value for operator in Operator]},
                        "required": {"type": "boolean"},
                        "expr": {"type": "string"},
                        "value": {},
                        "info": {"type": "string"},
                        "embedding_model": {"type": "string"},
                    },
                },
            },
            "projection": {
                "type": "object",
                "additionalProperties": {
                    "anyOf": [{"type": "number"}, {"type": "string"}],
                },
            },
            "limit": {"type": "number"},
            "enabled": {"type": "boolean"},
            "tags": {
                "type": "array",
                "items": {"type": "string"},
            },
        },
    }


def parse_json_response(content: str) -> Dict[str, Any]:
    """
    Parse model output as a JSON object.

    Tries the raw text first, then the first fenced block, with or without a
    language tag.

    Raises:
        ParseFailure: when no strategy yields a JSON object
    """
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError:
        match = _FENCED_BLOCK.search(content)
        if not match:
            raise ParseFailure("Failed to parse model response as JSON")
        try:
            parsed = json.loads(match.group(1))
        except json.JSONDecodeError as e:
            raise ParseFailure(f"Failed to parse model response as JSON: {e}")

    if not isinstance(parsed, dict):
        raise ParseFailure("Model response is not a JSON object")
    return parsed


def validate_tool_spec(document: Dict[str, Any]) -> ToolSpecification:
    """Validate a parsed document into a ToolSpecification."""
    try:
        return ToolSpecification.model_validate(document)
    except PydanticValidationError as e:
        raise ParseFailure(f"Generated tool specification is invalid: {e}")


class SpecificationGenerator:
    """Send a composed instruction to a model and validate the reply."""

    def __init__(self, config: Optional[Config] = None, providers: Optional[Mapping[str, Any]] = None):
        self.config = config or default_config
        if providers is None:
            providers = {
                "openai": OpenAIChatClient(self.config),
                "anthropic": AnthropicChatClient(self.config),
                "watsonx": WatsonxChatClient(self.config),
            }
        self.providers = dict(providers)

    def resolve(self, model: Optional[str] = None, provider: Optional[str] = None) -> ModelSelector:
        selector = ModelSelector.parse(model, provider, default=self.config.default_model)
        if selector.provider not in self.providers:
            raise ValidationFailure(f'Unsupported model provider "{selector.provider}"')
        return selector

    async def generate(
        self,
        instruction: str,
        data_type: DataType,
        model: Optional[str] = None,
        provider: Optional[str] = None,
    ) -> ToolSpecification:
        """
        Generate and validate one tool specification.

        Raises:
            ConfigurationError: provider credentials missing (before any call)
            GenerationFailure: provider error or empty reply
            ParseFailure: reply is not a valid tool specification
        """
        selector = self.resolve(model, provider)
        client = self.providers[selector.provider]
        schema = build_output_schema(data_type)

        start_time = time.time()
        status = "success"
        try:
            content = await client.complete(selector.model_id, SYSTEM_PROMPT, instruction, schema)
        except ToolSpecError:
            status = "error"
            raise
        except Exception as e:
            status = "error"
            logger.error(f"Model call failed for {selector}: {e}", exc_info=True)
            raise wrap_llm_error(e, selector.provider)
        finally:
            llm_calls_total.labels(
                provider=selector.provider, model=selector.model_id, status=status
            ).inc()
            llm_call_duration.labels(
                provider=selector.provider, model=selector.model_id
            ).observe(time.time() - start_time)

        if not content:
            raise GenerationFailure(f"No response from {selector.provider}", provider=selector.provider)

        logger.debug(f"Model {selector} returned {len(content)} characters")
        return validate_tool_spec(parse_json_response(content))
