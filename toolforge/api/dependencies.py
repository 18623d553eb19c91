"""Default component wiring for the API; tests override these."""

import logging
from fastapi.responses import JSONResponse

from toolforge.adapters.data_store import DataStoreClient
from toolforge.infra.config import config
from toolforge.infra.database import data_engine
from toolforge.infra.errors import ToolSpecError, status_for_error
from toolforge.services.schema_sampler import SchemaSampler
from toolforge.services.spec_generator import SpecificationGenerator
from toolforge.services.spec_reconciler import SpecificationReconciler
from toolforge.services.tool_catalog import ToolCatalog
from toolforge.services.tool_spec_pipeline import ToolSpecPipeline

logger = logging.getLogger("toolforge.api")

tool_catalog = ToolCatalog()
data_store = DataStoreClient(data_engine)
pipeline = ToolSpecPipeline(
    sampler=SchemaSampler(data_store),
    generator=SpecificationGenerator(config),
    reconciler=SpecificationReconciler(tool_catalog, config),
    config=config,
)


def get_catalog() -> ToolCatalog:
    return tool_catalog


def get_data_store() -> DataStoreClient:
    return data_store


def get_pipeline() -> ToolSpecPipeline:
    return pipeline


def error_response(error: Exception, action: str) -> JSONResponse:
    """Turn a failure into ``{success: false, error}`` with its status."""
    status_code = status_for_error(error)
    message = error.message if isinstance(error, ToolSpecError) else (str(error) or f"Failed to {action}")
    if status_code >= 500:
        logger.error(f"Error trying to {action}: {message}", exc_info=error)
    else:
        logger.info(f"Rejected request to {action}: {message}")
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})
