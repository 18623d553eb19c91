"""Tests for the specification generator."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from conftest import FakeProvider
from toolforge.adapters.vendor_adapter_openai import OpenAIChatClient
from toolforge.infra.config import Config
from toolforge.infra.errors import ConfigurationError, GenerationFailure, ParseFailure, ValidationFailure
from toolforge.models.tool_spec import DataType
from toolforge.services.spec_generator import (
    ModelSelector,
    SpecificationGenerator,
    build_output_schema,
    parse_json_response,
)

SPEC = {
    "name": "orders-by-status",
    "description": "Find orders by status",
    "type": "tool",
    "method": "find",
    "collection_name": "orders",
    "db_name": "default",
    "parameters": [
        {
            "param": "status",
            "paramMode": "tool_param",
            "type": "string",
            "description": "Order status",
            "attribute": "status",
            "operator": "$eq",
            "required": True,
        }
    ],
    "projection": {"status": 1, "total": 1},
    "limit": 10,
    "enabled": True,
    "tags": ["orders"],
}


def _config(**values):
    config = Config()
    for key, value in values.items():
        setattr(config, key, value)
    return config


class TestModelSelector:
    """Test model selector parsing."""

    def test_provider_prefix(self):
        selector = ModelSelector.parse("anthropic:claude-3-5-haiku-latest")

        assert selector.provider == "anthropic"
        assert selector.model_id == "claude-3-5-haiku-latest"

    def test_bare_model_defaults_to_openai(self):
        assert ModelSelector.parse("gpt-4o") == ModelSelector("openai", "gpt-4o")

    def test_explicit_provider_keeps_colons_in_model(self):
        selector = ModelSelector.parse("ibm/granite:3-8b", provider="watsonx")

        assert selector == ModelSelector("watsonx", "ibm/granite:3-8b")

    def test_default_is_used_when_model_missing(self):
        assert str(ModelSelector.parse(None, default="openai:gpt-4o-mini")) == "openai:gpt-4o-mini"

    def test_no_model_and_no_default(self):
        with pytest.raises(ValidationFailure):
            ModelSelector.parse("", default=None)


class TestOutputSchema:
    """Test the output schema per data type."""

    def test_identity_field_is_required(self):
        assert "collection_name" in build_output_schema(DataType.COLLECTION)["required"]
        assert "table_name" not in build_output_schema(DataType.COLLECTION)["required"]
        assert "table_name" in build_output_schema(DataType.TABLE)["required"]


class TestParseJsonResponse:
    """Test response parsing strategies."""

    @pytest.mark.parametrize("tag", ["json", "JSON", "javascript", "json5", ""])
    def test_bare_and_fenced_parse_identically(self, tag):
        bare = json.dumps(SPEC)
        fenced = f"Here you go:\n```{tag}\n{bare}\n```\nDone."

        assert parse_json_response(fenced) == parse_json_response(bare)

    def test_single_line_fence(self):
        assert parse_json_response('```{"name": "x"}```') == {"name": "x"}

    def test_unparseable_text(self):
        with pytest.raises(ParseFailure):
            parse_json_response("I could not generate a specification.")

    def test_invalid_fenced_block(self):
        with pytest.raises(ParseFailure):
            parse_json_response("```json\n{not json}\n```")

    def test_non_object(self):
        with pytest.raises(ParseFailure):
            parse_json_response("[1, 2, 3]")


class TestSpecificationGenerator:
    """Test generation against fake and patched providers."""

    @pytest.mark.asyncio
    async def test_generate_with_fake_provider(self):
        provider = FakeProvider(replies=[SPEC])
        generator = SpecificationGenerator(_config(), providers={"openai": provider})

        spec = await generator.generate("instruction", DataType.COLLECTION, model="openai:gpt-4o")

        assert spec.name == "orders-by-status"
        assert spec.parameters[0].attribute == "status"
        assert provider.calls[0]["model_id"] == "gpt-4o"
        assert provider.calls[0]["instruction"] == "instruction"
        assert "collection_name" in provider.calls[0]["schema"]["required"]

    @pytest.mark.asyncio
    async def test_default_model_is_used(self):
        provider = FakeProvider(replies=[SPEC])
        generator = SpecificationGenerator(_config(OPENAI_MODEL="gpt-4o-mini"), providers={"openai": provider})

        await generator.generate("instruction", DataType.COLLECTION)

        assert provider.calls[0]["model_id"] == "gpt-4o-mini"

    @pytest.mark.asyncio
    async def test_unknown_provider(self):
        generator = SpecificationGenerator(_config(), providers={"openai": FakeProvider(replies=[SPEC])})

        with pytest.raises(ValidationFailure):
            await generator.generate("instruction", DataType.COLLECTION, model="mystery:model-1")

    @pytest.mark.asyncio
    async def test_empty_reply(self):
        generator = SpecificationGenerator(_config(), providers={"openai": FakeProvider(replies=[""])})

        with pytest.raises(GenerationFailure) as exc_info:
            await generator.generate("instruction", DataType.COLLECTION)

        assert exc_info.value.message == "No response from openai"

    @pytest.mark.asyncio
    async def test_invalid_spec_is_parse_failure(self):
        reply = dict(SPEC, limit=0)
        generator = SpecificationGenerator(_config(), providers={"openai": FakeProvider(replies=[reply])})

        with pytest.raises(ParseFailure):
            await generator.generate("instruction", DataType.COLLECTION)

    @pytest.mark.asyncio
    async def test_provider_error_is_wrapped(self):
        error = RuntimeError("Connection reset by peer")
        generator = SpecificationGenerator(_config(), providers={"openai": FakeProvider(error=error)})

        with pytest.raises(GenerationFailure) as exc_info:
            await generator.generate("instruction", DataType.COLLECTION)

        assert "Connection reset by peer" in exc_info.value.message
        assert exc_info.value.provider == "openai"

    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        config = _config(OPENAI_API_KEY=None)
        generator = SpecificationGenerator(config, providers={"openai": OpenAIChatClient(config)})

        with pytest.raises(ConfigurationError):
            await generator.generate("instruction", DataType.COLLECTION)


class TestOpenAIChatClient:
    """Test the OpenAI adapter request shape."""

    @pytest.mark.asyncio
    async def test_complete_uses_json_schema_format(self):
        message = MagicMock()
        message.content = json.dumps(SPEC)
        completion = MagicMock()
        completion.choices = [MagicMock(message=message)]

        with patch("toolforge.adapters.vendor_adapter_openai.AsyncOpenAI") as mock_openai:
            mock_client = MagicMock()
            mock_client.chat.completions.create = AsyncMock(return_value=completion)
            mock_openai.return_value = mock_client

            client = OpenAIChatClient(_config(OPENAI_API_KEY="sk-test"))
            schema = build_output_schema(DataType.COLLECTION)
            content = await client.complete("gpt-4o", "system", "instruction", schema)

        assert json.loads(content) == SPEC
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["response_format"]["type"] == "json_schema"
        assert kwargs["response_format"]["json_schema"]["schema"] == schema
        assert kwargs["messages"][0] == {"role": "system", "content": "system"}

    @pytest.mark.asyncio
    async def test_no_choices(self):
        completion = MagicMock()
        completion.choices = []

        with patch("toolforge.adapters.vendor_adapter_openai.AsyncOpenAI") as mock_openai:
            mock_client = MagicMock()
            mock_client.chat.completions.create = AsyncMock(return_value=completion)
            mock_openai.return_value = mock_client

            content = await OpenAIChatClient(_config(OPENAI_API_KEY="sk-test")).complete("m", "s", "i", {})

        assert content is None
