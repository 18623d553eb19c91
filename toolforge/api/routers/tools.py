"""Tools API router: generate, list, fetch, save."""

from typing import Any, Dict
from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from toolforge.api.dependencies import error_response, get_catalog, get_pipeline
from toolforge.api.models import (
    ERROR_RESPONSES,
    GenerateToolResponse,
    ToolListResponse,
    ToolResponse,
)
from toolforge.infra.errors import ValidationFailure
from toolforge.models.generation import GenerateToolSpecRequest
from toolforge.models.tool_spec import ToolSpecification
from toolforge.services.tool_catalog import ToolCatalog
from toolforge.services.tool_spec_pipeline import ToolSpecPipeline

router = APIRouter(prefix="/api/tools")


@router.post(
    "/generate",
    tags=["Tools"],
    response_model=GenerateToolResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
async def generate_tool(
    request: GenerateToolSpecRequest,
    pipeline: ToolSpecPipeline = Depends(get_pipeline),
):
    """
    Generate a tool specification for a collection or table.

    The result is not saved; send it to `POST /api/tools` once reviewed.
    Pass the previous result as `existingToolSpec` to refine it.

    **Example Request:**
    ```json
    {
        "dataType": "collection",
        "name": "orders",
        "prompt": "filter by status",
        "model": "openai:gpt-4o-mini"
    }
    ```
    """
    try:
        result = await pipeline.generate(request)
    except Exception as e:
        return error_response(e, "generate tool specification")

    return {
        "success": True,
        "tool": result.tool_spec.to_document(),
        "explanation": result.explanation,
    }


@router.get("", tags=["Tools"], response_model=ToolListResponse, responses=ERROR_RESPONSES)
async def list_tools(catalog: ToolCatalog = Depends(get_catalog)):
    """List all saved tool specifications."""
    try:
        tools = catalog.list_tools()
    except Exception as e:
        return error_response(e, "fetch tools")
    return {"success": True, "tools": [tool.to_document() for tool in tools]}


@router.get("/{tool_key}", tags=["Tools"], response_model=ToolResponse, responses=ERROR_RESPONSES)
async def get_tool(tool_key: str, catalog: ToolCatalog = Depends(get_catalog)):
    """Fetch one saved tool by id or name."""
    try:
        tool = catalog.get_tool(tool_key)
    except Exception as e:
        return error_response(e, "fetch tool")

    if tool is None:
        return JSONResponse(
            status_code=404,
            content={"success": False, "error": f'Tool with ID "{tool_key}" not found.'},
        )
    return {"success": True, "tool": tool.to_document()}


@router.post("", tags=["Tools"], response_model=ToolResponse, responses=ERROR_RESPONSES)
async def save_tool(
    tool: Dict[str, Any] = Body(...),
    catalog: ToolCatalog = Depends(get_catalog),
):
    """
    Save a tool specification.

    The name is converted to a slug. A body with `_id` updates that tool;
    otherwise a new tool is created. A name owned by another tool is
    rejected with 409.
    """
    try:
        try:
            spec = ToolSpecification.model_validate(tool)
        except PydanticValidationError as e:
            raise ValidationFailure(f"Invalid tool specification: {e}")
        saved = catalog.upsert_tool(spec)
    except Exception as e:
        return error_response(e, "update tool")
    return {"success": True, "tool": saved.to_document()}
