"""Finalize a generated tool specification against the request and catalog."""

import logging
from typing import Optional

from toolforge.infra.config import Config, config as default_config
from toolforge.infra.errors import ConflictError, ValidationFailure
from toolforge.models.tool_spec import DataType, ToolSpecification
from toolforge.services.slug import is_valid_slug, to_slug, unique_slug
from toolforge.services.tool_catalog import ToolCatalog

logger = logging.getLogger("toolforge.services.spec_reconciler")


class SpecificationReconciler:
    """
    Pin the data-source identity, settle the tool name, fill defaults.

    Reads the catalog once for the uniqueness check and never writes;
    saving is a separate, explicit step.
    """

    def __init__(self, catalog: ToolCatalog, config: Optional[Config] = None):
        self.catalog = catalog
        self.config = config or default_config

    def reconcile(
        self,
        spec: ToolSpecification,
        data_type: DataType,
        name: str,
        db_name: Optional[str] = None,
        existing_id: Optional[str] = None,
    ) -> ToolSpecification:
        """
        Args:
            spec: Validated generator output
            data_type: Requested source kind
            name: Requested collection or table name
            db_name: Requested database name
            existing_id: Catalog id of the spec being refined, if any

        Raises:
            ConflictError: the model's name belongs to another tool
            ValidationFailure: no usable name can be derived
        """
        result = spec.model_copy(deep=True)

        # 1. Data-source identity always comes from the request
        if data_type == DataType.COLLECTION:
            result.collection_name = name
            result.table_name = None
        else:
            result.table_name = name
            result.collection_name = None
        result.db_name = db_name or self.config.DEFAULT_DB_NAME or ""
        result.type = "tool"
        result.enabled = result.enabled is not False
        result.id = existing_id

        # 2./3. Name: the model's choice must be free; a derived one is made free
        tools = self.catalog.list_tools()
        slug_name = to_slug(result.name) if result.name else ""

        if is_valid_slug(slug_name):
            duplicate = next((tool for tool in tools if tool.name == slug_name), None)
            if duplicate is not None and (existing_id is None or duplicate.id != existing_id):
                raise ConflictError(
                    f'A tool with the name "{slug_name}" already exists. Please choose a different name.',
                    name=slug_name,
                )
            result.name = slug_name
        else:
            fallback = to_slug(name)
            if not is_valid_slug(fallback):
                raise ValidationFailure(f'Cannot derive a valid tool name from "{name}"')
            taken = [tool.name for tool in tools if tool.name and tool.id != existing_id]
            result.name = unique_slug(fallback, taken)
            logger.info(
                "Derived tool name from data source",
                extra={"generated_name": spec.name, "tool_name": result.name},
            )

        # 4. Parameter defaults
        result.fill_parameter_defaults()
        return result
