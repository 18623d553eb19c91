"""End-to-end tests for the generation pipeline with a fake model."""

import pytest

from conftest import FakeProvider
from toolforge.infra.config import Config
from toolforge.infra.errors import ConflictError, NotFoundError, ParseFailure, ValidationFailure
from toolforge.models.generation import GenerateToolSpecRequest
from toolforge.models.tool_spec import ToolSpecification
from toolforge.services.schema_sampler import SchemaSampler
from toolforge.services.spec_generator import SpecificationGenerator
from toolforge.services.spec_reconciler import SpecificationReconciler
from toolforge.services.tool_spec_pipeline import ToolSpecPipeline, validate_request

ORDERS_SPEC = {
    "name": "find-orders-by-status",
    "description": "Find orders with a given status",
    "type": "tool",
    "method": "find",
    "collection_name": "orders",
    "db_name": "default",
    "parameters": [
        {
            "param": "status",
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

EVENTS_SPEC = {
    "name": "tenant-events",
    "description": "Events for a tenant",
    "type": "tool",
    "method": "find",
    "table_name": "events",
    "db_name": "default",
    "parameters": [
        {"param": "tenant_id", "type": "string", "attribute": "tenant_id", "operator": "$eq", "required": True},
        {"param": "note", "type": "text", "attribute": "note", "operator": "$eq", "required": False},
    ],
    "projection": {},
    "limit": 20,
    "enabled": True,
    "tags": [],
}


@pytest.fixture
def config():
    config = Config()
    config.DEFAULT_DB_NAME = ""
    config.OPENAI_MODEL = "gpt-4o-mini"
    return config


def _pipeline(data_store, catalog, config, provider):
    return ToolSpecPipeline(
        sampler=SchemaSampler(data_store),
        generator=SpecificationGenerator(config, providers={"openai": provider}),
        reconciler=SpecificationReconciler(catalog, config),
        config=config,
    )


class TestValidateRequest:
    """Test request validation."""

    def test_missing_fields(self):
        with pytest.raises(ValidationFailure) as exc_info:
            validate_request(GenerateToolSpecRequest(dataType="collection"))

        assert exc_info.value.message == "Collection/table name and data type are required"

    def test_bad_data_type(self):
        with pytest.raises(ValidationFailure) as exc_info:
            validate_request(GenerateToolSpecRequest(dataType="view", name="orders"))

        assert exc_info.value.message == 'Data type must be "collection" or "table"'


class TestToolSpecPipeline:
    """Test sample -> compose -> generate -> reconcile."""

    @pytest.mark.asyncio
    async def test_generate_collection_tool(self, data_store, catalog, config):
        provider = FakeProvider(replies=[ORDERS_SPEC])
        pipeline = _pipeline(data_store, catalog, config, provider)

        result = await pipeline.generate(GenerateToolSpecRequest(
            dataType="collection", name="orders", prompt="filter by status",
        ))

        tool = result.tool_spec
        assert tool.name == "find-orders-by-status"
        assert tool.collection_name == "orders"
        assert tool.parameters[0].param_mode == "tool_param"
        assert result.explanation is None

        instruction = provider.calls[0]["instruction"]
        assert "filter by status" in instruction
        assert "status" in instruction.split("Available Attributes:")[1]
        assert provider.calls[0]["model_id"] == "gpt-4o-mini"

        # Generation never saves
        assert catalog.list_tools() == []

    @pytest.mark.asyncio
    async def test_empty_source_makes_no_model_call(self, data_store, catalog, config):
        provider = FakeProvider(replies=[ORDERS_SPEC])
        pipeline = _pipeline(data_store, catalog, config, provider)

        with pytest.raises(NotFoundError):
            await pipeline.generate(GenerateToolSpecRequest(dataType="collection", name="empty_orders"))

        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_bad_model_fails_before_sampling(self, data_store, catalog, config):
        provider = FakeProvider(replies=[ORDERS_SPEC])
        pipeline = _pipeline(data_store, catalog, config, provider)

        with pytest.raises(ValidationFailure):
            await pipeline.generate(GenerateToolSpecRequest(
                dataType="collection", name="empty_orders", model="mystery:model",
            ))

    @pytest.mark.asyncio
    async def test_table_tool_gets_review_notes(self, data_store, catalog, config):
        provider = FakeProvider(replies=[EVENTS_SPEC])
        pipeline = _pipeline(data_store, catalog, config, provider)

        result = await pipeline.generate(GenerateToolSpecRequest(dataType="table", name="events"))

        assert result.tool_spec.table_name == "events"
        assert result.tool_spec.collection_name is None
        # Advisory only: the ineligible parameter is kept
        assert [p.param for p in result.tool_spec.parameters] == ["tenant_id", "note"]
        assert result.explanation.startswith("Review notes:")
        assert 'Parameter "note"' in result.explanation

        instruction = provider.calls[0]["instruction"]
        assert "tenant_id: VARCHAR(36), partition key (MANDATORY, required: true)" in instruction

    @pytest.mark.asyncio
    async def test_regeneration_preserves_identity(self, data_store, catalog, config):
        saved = catalog.upsert_tool(ToolSpecification.model_validate(ORDERS_SPEC))
        refined = dict(ORDERS_SPEC, limit=5)
        provider = FakeProvider(replies=[refined])
        pipeline = _pipeline(data_store, catalog, config, provider)

        result = await pipeline.generate(GenerateToolSpecRequest(
            dataType="collection",
            name="orders",
            prompt="limit to 5 results",
            existingToolSpec=saved.to_document(),
        ))

        assert result.tool_spec.id == saved.id
        assert result.tool_spec.name == saved.name
        assert result.tool_spec.limit == 5
        assert "Existing Tool Spec" in provider.calls[0]["instruction"]

    @pytest.mark.asyncio
    async def test_name_taken_by_another_tool(self, data_store, catalog, config):
        catalog.upsert_tool(ToolSpecification.model_validate(ORDERS_SPEC))
        pipeline = _pipeline(data_store, catalog, config, FakeProvider(replies=[ORDERS_SPEC]))

        with pytest.raises(ConflictError):
            await pipeline.generate(GenerateToolSpecRequest(dataType="collection", name="orders"))

    @pytest.mark.asyncio
    async def test_unparseable_reply(self, data_store, catalog, config):
        pipeline = _pipeline(data_store, catalog, config, FakeProvider(replies=["not json at all"]))

        with pytest.raises(ParseFailure):
            await pipeline.generate(GenerateToolSpecRequest(dataType="collection", name="orders"))


class TestGenerateToolSpecRequest:
    """Test the request model's wire names and documented examples."""

    def test_camel_case_and_field_names(self):
        by_alias = GenerateToolSpecRequest.model_validate({"dataType": "table", "dbName": "shop", "name": "events"})
        by_name = GenerateToolSpecRequest(data_type="table", db_name="shop", name="events")

        assert by_alias == by_name

    def test_examples_are_published_in_json_schema(self):
        properties = GenerateToolSpecRequest.model_json_schema()["properties"]

        assert properties["dataType"]["examples"] == ["collection"]
        assert properties["model"]["examples"] == ["openai:gpt-4o-mini"]
