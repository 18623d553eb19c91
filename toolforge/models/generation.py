"""Generation request and result models."""

from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field

from toolforge.models.tool_spec import ToolSpecification


class GenerateToolSpecRequest(BaseModel):
    """Input of one generation; field names follow the console's JSON."""
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    data_type: Optional[str] = Field(None, alias="dataType", description="'collection' | 'table'", examples=["collection"])
    name: Optional[str] = Field(None, description="Collection or table name", examples=["orders"])
    db_name: Optional[str] = Field(None, alias="dbName", description="Database the source lives in")
    prompt: Optional[str] = Field(None, description="Free-text request", examples=["filter by status"])
    existing_tool_spec: Optional[Dict[str, Any]] = Field(
        None,
        alias="existingToolSpec",
        description="Spec to refine; its data-source identity is kept",
    )
    model: Optional[str] = Field(None, description="'provider:model' or a bare model id", examples=["openai:gpt-4o-mini"])
    model_provider: Optional[str] = Field(None, alias="modelProvider", description="Provider for a bare model id")


class GenerationResult(BaseModel):
    tool_spec: ToolSpecification
    explanation: Optional[str] = None
