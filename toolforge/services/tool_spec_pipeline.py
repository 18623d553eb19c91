"""Tool specification generation pipeline."""

import logging
import time
from typing import Optional

from toolforge.infra.config import Config, config as default_config
from toolforge.infra.errors import ToolSpecError, ValidationFailure
from toolforge.infra.metrics import generation_duration, generations_total
from toolforge.models.generation import GenerateToolSpecRequest, GenerationResult
from toolforge.models.tool_spec import DataType
from toolforge.services.column_review import format_explanation, review_parameters
from toolforge.services.prompt_composer import compose_instruction
from toolforge.services.schema_sampler import SchemaSampler
from toolforge.services.spec_generator import SpecificationGenerator
from toolforge.services.spec_reconciler import SpecificationReconciler

logger = logging.getLogger("toolforge.services.pipeline")


def validate_request(request: GenerateToolSpecRequest) -> DataType:
    """Check the required fields and return the parsed data type."""
    if not request.name or not request.data_type:
        raise ValidationFailure("Collection/table name and data type are required")
    try:
        return DataType(request.data_type)
    except ValueError:
        raise ValidationFailure('Data type must be "collection" or "table"')


class ToolSpecPipeline:
    """
    Sample -> compose -> generate -> reconcile, in that order.

    Nothing is retried; the first failure propagates to the caller. There
    is no server-side session: a refinement passes the previous spec back in.
    """

    def __init__(
        self,
        sampler: SchemaSampler,
        generator: SpecificationGenerator,
        reconciler: SpecificationReconciler,
        config: Optional[Config] = None,
    ):
        self.sampler = sampler
        self.generator = generator
        self.reconciler = reconciler
        self.config = config or default_config

    async def generate(self, request: GenerateToolSpecRequest) -> GenerationResult:
        data_type = validate_request(request)
        name = request.name
        db_name = request.db_name or self.config.DEFAULT_DB_NAME or None
        existing = request.existing_tool_spec or None
        existing_id = None
        if existing:
            existing_id = existing.get("_id") or existing.get("id")

        # Fail on a bad model selector before touching the data store
        self.generator.resolve(request.model, request.model_provider)

        start_time = time.time()
        outcome = "success"
        try:
            sample = self.sampler.sample(data_type, name, db_name=db_name)
            instruction = compose_instruction(
                data_type,
                name,
                sample,
                prompt=request.prompt,
                existing_tool_spec=existing,
                db_name=db_name,
            )
            generated = await self.generator.generate(
                instruction,
                data_type,
                model=request.model,
                provider=request.model_provider,
            )
            tool_spec = self.reconciler.reconcile(
                generated,
                data_type,
                name,
                db_name=request.db_name,
                existing_id=str(existing_id) if existing_id else None,
            )
        except ToolSpecError as e:
            outcome = e.category.value
            raise
        except Exception:
            outcome = "error"
            raise
        finally:
            generations_total.labels(data_type=data_type.value, outcome=outcome).inc()
            generation_duration.labels(data_type=data_type.value).observe(time.time() - start_time)

        explanation = format_explanation(review_parameters(tool_spec, data_type, sample))
        logger.info(
            "Generated tool specification",
            extra={
                "data_type": data_type.value,
                "source": name,
                "tool_name": tool_spec.name,
                "parameters": len(tool_spec.parameters),
                "refinement": existing is not None,
            },
        )
        return GenerationResult(tool_spec=tool_spec, explanation=explanation)
