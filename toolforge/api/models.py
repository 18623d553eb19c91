"""API response models."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


# ============================================================================
# Shared
# ============================================================================

class ErrorResponse(BaseModel):
    """Body of every failed request."""
    success: bool = Field(default=False)
    error: str = Field(..., examples=['No documents found in collection "orders"'])


# ============================================================================
# Tools Models
# ============================================================================

class GenerateToolResponse(BaseModel):
    """Response model for tool spec generation."""
    success: bool = Field(default=True)
    tool: Dict[str, Any] = Field(..., description="Reconciled tool specification (not yet saved)")
    explanation: Optional[str] = Field(None, description="Advisory review notes about the parameters")


class ToolResponse(BaseModel):
    """Response model for a single tool."""
    success: bool = Field(default=True)
    tool: Dict[str, Any]


class ToolListResponse(BaseModel):
    """Response model for listing tools."""
    success: bool = Field(default=True)
    tools: List[Dict[str, Any]]


# ============================================================================
# Models / Data Objects Models
# ============================================================================

class ProviderModelsResponse(BaseModel):
    models: List[str]
    error: Optional[str] = None


class ModelListResponse(BaseModel):
    """Response model for the model picker."""
    success: bool = Field(default=True)
    defaultModel: str = Field(..., examples=["openai:gpt-4o-mini"])
    providers: Dict[str, ProviderModelsResponse]


class ObjectListResponse(BaseModel):
    """Response model for listing collections or tables."""
    success: bool = Field(default=True)
    objects: List[str]


ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request"},
    404: {"model": ErrorResponse, "description": "Data source or tool not found"},
    409: {"model": ErrorResponse, "description": "Tool name already taken"},
    500: {"model": ErrorResponse, "description": "Generation or server failure"},
}
