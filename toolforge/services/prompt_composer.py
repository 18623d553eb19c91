"""Compose the instruction sent to the model for tool spec generation."""

import json
import tiktoken
from typing import Any, Dict, List, Optional

from toolforge.models.sample import SampleSet, TableMetadata
from toolforge.models.tool_spec import DataType, ParamType


SYSTEM_PROMPT = (
    "You are an expert at creating database query tool specifications. "
    "Always return valid JSON only, no markdown formatting."
)

EMBEDDING_MODEL = "text-embedding-3-small"

# Token budget for the sample records block
MAX_SAMPLE_TOKENS = 3000

TABLE_RULES = f"""IMPORTANT: Consider ONLY the partition keys, sorting keys and indexed columns as parameters.
IMPORTANT: Partition keys are mandatory parameters (set "required": true).
IMPORTANT: For indexed date time or timestamp columns, generate start_<column_name> and end_<column_name> parameters. Use the $gt operator for start_<column_name> and the $lte operator for end_<column_name>.
IMPORTANT: For indexed numeric columns, generate min_<column_name> and max_<column_name> parameters. Use the $gte operator for min_<column_name> and the $lte operator for max_<column_name>.
IMPORTANT: If the column is a vector column, set "embedding_model" to "{EMBEDDING_MODEL}"."""

OUTPUT_RULES = "IMPORTANT: Return ONLY valid JSON without any markdown formatting, code blocks, or additional text."


def column_kind(declared_type: str) -> ParamType:
    """Map a declared column type to the parameter type vocabulary."""
    lowered = declared_type.lower()
    if "vector" in lowered:
        return ParamType.VECTOR
    if any(token in lowered for token in ("timestamp", "date", "time")):
        return ParamType.TIMESTAMP
    if "bool" in lowered:
        return ParamType.BOOLEAN
    if any(token in lowered for token in ("float", "double", "real")):
        return ParamType.FLOAT
    if any(token in lowered for token in ("int", "numeric", "decimal", "number", "counter", "varint")):
        return ParamType.NUMBER
    if any(token in lowered for token in ("text", "clob")):
        return ParamType.TEXT
    return ParamType.STRING


def _to_json(value: Any) -> str:
    return json.dumps(value, indent=2, default=str)


def _get_encoding():
    try:
        return tiktoken.get_encoding("cl100k_base")
    except Exception:
        # Fallback to the unbounded sample block if the tokenizer is unavailable
        return None


def render_sample_block(sample_data: List[Dict[str, Any]], max_tokens: int = MAX_SAMPLE_TOKENS) -> str:
    """
    Render sample records as JSON, keeping whole records within a token budget.

    The first record is always kept; later records are dropped once the
    budget would be exceeded.
    """
    encoding = _get_encoding()
    if encoding is None:
        return _to_json(sample_data)

    selected: List[Dict[str, Any]] = []
    total_tokens = 0
    for record in sample_data:
        record_tokens = len(encoding.encode(_to_json(record)))
        if selected and total_tokens + record_tokens > max_tokens:
            break
        selected.append(record)
        total_tokens += record_tokens
    return _to_json(selected)


def describe_table(metadata: TableMetadata) -> str:
    """
    Spell out which columns may become parameters and how.

    Only key and indexed columns are listed; range-pair and vector hints are
    derived from each eligible column's declared type.
    """
    lines = ["Eligible parameter columns (use ONLY these as parameters):"]
    eligible = metadata.eligible_columns()
    if not eligible:
        lines.append("- none declared; use the primary key columns only")

    range_hints = []
    for column in eligible:
        declared_type = metadata.columns.get(column, "unknown")
        role = metadata.column_role(column)
        suffix = " (MANDATORY, required: true)" if role == "partition key" else ""
        lines.append(f"- {column}: {declared_type}, {role}{suffix}")

        kind = column_kind(declared_type)
        if role != "indexed":
            continue
        if kind == ParamType.TIMESTAMP:
            range_hints.append(f"- {column}: start_{column} ($gt) and end_{column} ($lte)")
        elif kind in (ParamType.NUMBER, ParamType.FLOAT):
            range_hints.append(f"- {column}: min_{column} ($gte) and max_{column} ($lte)")
        elif kind == ParamType.VECTOR:
            range_hints.append(f'- {column}: vector column, embedding_model "{EMBEDDING_MODEL}"')

    if range_hints:
        lines.append("")
        lines.append("Range and vector parameters to generate:")
        lines.extend(range_hints)

    definition = {
        "columns": metadata.columns,
        "primaryKey": {
            "partitionKey": metadata.partition_key,
            "clusteringKey": metadata.clustering_key,
        },
        "indexes": [index.model_dump() for index in metadata.indexes],
    }
    lines.append("")
    lines.append("Table schema (columns, partition keys, sort keys, indexes):")
    lines.append(_to_json(definition))
    return "\n".join(lines)


def output_layout(data_type: DataType, name: str, db_name: Optional[str]) -> str:
    """The JSON layout the model must produce."""
    return f"""{{
  "name": "descriptive_tool_name",
  "description": "Clear description of what this tool does",
  "type": "tool",
  "method": "find",
  "{data_type.identity_field}": "{name}",
  "db_name": "{db_name or 'default'}",
  "parameters": [
    {{
      "param": "parameter_name",
      "paramMode": "tool_param",
      "type": "string|number|boolean|text|timestamp|float|vector",
      "description": "Parameter description",
      "attribute": "attribute_name_from_list",
      "operator": "$eq|$gt|$gte|$lt|$lte|$in|$ne",
      "required": true,
      "info": "Why the parameter was considered, eg: it is an indexed column, a partition key or any other reason."
    }}
  ],
  "projection": {{
    "attribute_name": 1
  }},
  "limit": 10,
  "enabled": true,
  "tags": ["relevant", "tags"]
}}"""


def compose_instruction(
    data_type: DataType,
    name: str,
    sample: SampleSet,
    prompt: Optional[str] = None,
    existing_tool_spec: Optional[Dict[str, Any]] = None,
    db_name: Optional[str] = None,
) -> str:
    """
    Build the single user instruction for the generator.

    Order: task framing, table rules, output rules, table structure, user
    request, existing spec (update framing), attributes, sample records,
    required layout.

    Args:
        data_type: collection or table
        name: Collection or table name
        sample: Output of the schema sampler
        prompt: Free-text user request
        existing_tool_spec: Spec to update instead of generating afresh
        db_name: Database the source lives in

    Returns:
        Instruction text
    """
    user_prompt = (prompt or "").strip()
    is_update = bool(existing_tool_spec)
    sections: List[str] = []

    if is_update:
        sections.append(
            f"You are an expert at creating database query tool specifications. Update the existing "
            f"tool specification below for the {data_type.value} \"{name}\" according to the user request. "
            f"Keep every part of the existing specification the request does not ask to change."
        )
    else:
        sections.append(
            f"You are an expert at creating database query tool specifications. Based on the following "
            f"{data_type.value} structure and sample data, generate a comprehensive tool specification in JSON format."
        )

    sections.append(
        "You are given a table schema or collection attributes and sample data.\n"
        "While generating descriptions, write them so that an LLM can easily understand them.\n"
        "Use the sample data to identify data types, patterns and enums.\n"
        "Every parameter attribute MUST be taken from the available attributes."
    )

    if data_type == DataType.TABLE:
        sections.append(TABLE_RULES)

    sections.append(OUTPUT_RULES)

    if data_type == DataType.TABLE and sample.table_metadata is not None:
        sections.append(describe_table(sample.table_metadata))

    sections.append(f"User Request:\n{user_prompt or 'No additional instructions provided.'}")

    if is_update:
        sections.append(
            "Existing Tool Spec (update this based on the new request):\n"
            f"{_to_json(existing_tool_spec)}"
        )

    sections.append(
        f"{data_type.value.capitalize()} Name: {name}\n"
        f"Available Attributes: {', '.join(sample.attributes)}"
    )
    sections.append(
        "Sample Documents:\n"
        f"{render_sample_block(sample.sample_data)}"
    )
    sections.append(
        "Generate a tool specification JSON with the following structure:\n"
        f"{output_layout(data_type, name, db_name)}"
    )
    sections.append("Return ONLY valid JSON, no markdown, no explanations.")

    return "\n\n".join(sections)
