"""Prometheus metrics export."""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# LLM metrics
llm_calls_total = Counter(
    "toolforge_llm_calls_total",
    "Total LLM API calls",
    ["provider", "model", "status"],
)

llm_call_duration = Histogram(
    "toolforge_llm_call_duration_seconds",
    "LLM API call duration in seconds",
    ["provider", "model"],
)

# Pipeline metrics
generations_total = Counter(
    "toolforge_generations_total",
    "Tool specification generations by data type and outcome",
    ["data_type", "outcome"],
)

generation_duration = Histogram(
    "toolforge_generation_duration_seconds",
    "End-to-end generation pipeline duration in seconds",
    ["data_type"],
)

# Catalog metrics
catalog_writes_total = Counter(
    "toolforge_catalog_writes_total",
    "Catalog upserts by outcome",
    ["outcome"],  # inserted, updated, conflict, invalid
)

model_listing_errors_total = Counter(
    "toolforge_model_listing_errors_total",
    "Provider model listing failures",
    ["provider"],
)


def get_metrics_response() -> Response:
    """Get Prometheus metrics as HTTP response."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
