"""Model picker and data-source listing routers."""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from toolforge.adapters.data_store import DataStoreClient
from toolforge.api.dependencies import error_response, get_data_store
from toolforge.api.models import ERROR_RESPONSES, ModelListResponse, ObjectListResponse
from toolforge.models.tool_spec import DataType
from toolforge.services.model_catalog import clamp_limit, list_models

router = APIRouter(prefix="/api")

OBJECT_TYPES = {"collections": DataType.COLLECTION, "tables": DataType.TABLE}


@router.get("/llm-models", tags=["Models"], response_model=ModelListResponse)
async def get_llm_models(limit: Optional[str] = Query(None, description="Models per provider (1-50, default 6)")):
    """
    List available models per provider and the default model.

    Providers without credentials or without a `*_MODELS` setting report no
    models. Per-provider failures are reported in `error` and do not fail
    the request.
    """
    listing = await list_models(clamp_limit(limit))
    return {
        "success": True,
        "defaultModel": listing.default_model,
        "providers": {
            name: provider.model_dump(exclude_none=True)
            for name, provider in listing.providers.items()
        },
    }


@router.get("/db/objects", tags=["Data Sources"], response_model=ObjectListResponse, responses=ERROR_RESPONSES)
async def list_objects(
    object_type: str = Query(..., alias="type", description="'collections' | 'tables'"),
    db_name: Optional[str] = Query(None, alias="dbName", description="Database name"),
    data_store: DataStoreClient = Depends(get_data_store),
):
    """List collections or tables available for tool generation."""
    data_type = OBJECT_TYPES.get(object_type)
    if data_type is None:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": 'Type must be "collections" or "tables"'},
        )

    try:
        objects = data_store.list_objects(data_type, db_name=db_name)
    except Exception as e:
        return error_response(e, "list database objects")
    return {"success": True, "objects": objects}
