"""Aggregate model listings across providers for the model picker."""

import asyncio
import logging
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from toolforge.adapters.vendor_adapter_anthropic import list_anthropic_models
from toolforge.adapters.vendor_adapter_openai import list_openai_models
from toolforge.adapters.vendor_adapter_watsonx import list_watsonx_models
from toolforge.infra.config import Config, config as default_config
from toolforge.infra.metrics import model_listing_errors_total
from toolforge.infra.timeout import MODEL_LISTING_TIMEOUT

logger = logging.getLogger("toolforge.services.model_catalog")

DEFAULT_LIMIT = 6
MAX_LIMIT = 50

# Default-model priority
PROVIDER_ORDER = ("openai", "anthropic", "watsonx")


class ProviderModels(BaseModel):
    models: List[str] = Field(default_factory=list)
    error: Optional[str] = None


class ModelListing(BaseModel):
    default_model: str = ""
    providers: Dict[str, ProviderModels] = Field(default_factory=dict)


def clamp_limit(limit: Optional[str]) -> int:
    """Parse a requested limit, clamped to 1..50, defaulting to 6."""
    if limit is None or limit == "":
        return DEFAULT_LIMIT
    try:
        value = int(float(limit))
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_LIMIT
    return max(1, min(MAX_LIMIT, value))


async def _bounded(provider: str, listing) -> ProviderModels:
    try:
        result = await asyncio.wait_for(listing, timeout=MODEL_LISTING_TIMEOUT)
    except asyncio.TimeoutError:
        result = {"models": [], "error": f"Timed out listing {provider} models"}

    provider_models = ProviderModels(**result)
    if provider_models.error:
        model_listing_errors_total.labels(provider=provider).inc()
        logger.warning(f"Model listing failed for {provider}: {provider_models.error}")
    return provider_models


async def list_models(limit: int = DEFAULT_LIMIT, config: Optional[Config] = None) -> ModelListing:
    """
    Query every provider concurrently.

    The default model is the first model of the first provider (in
    PROVIDER_ORDER) that returned any, formatted ``provider:model``.
    """
    config = config or default_config
    openai, anthropic, watsonx = await asyncio.gather(
        _bounded("openai", list_openai_models(limit, config)),
        _bounded("anthropic", list_anthropic_models(limit, config)),
        _bounded("watsonx", list_watsonx_models(limit, config)),
    )
    providers = {"openai": openai, "anthropic": anthropic, "watsonx": watsonx}

    default_model = ""
    for provider in PROVIDER_ORDER:
        if providers[provider].models:
            default_model = f"{provider}:{providers[provider].models[0]}"
            break

    return ModelListing(default_model=default_model, providers=providers)
