"""Advisory checks of generated parameters against the sampled schema."""

from typing import List, Optional, Tuple

from toolforge.models.sample import SampleSet, TableMetadata
from toolforge.models.tool_spec import DataType, ToolSpecification


def validate_column_for_parameter(metadata: TableMetadata, column: str, table_name: str) -> Tuple[bool, str]:
    """
    Decide whether a table column can back a filter parameter.

    Partition keys, clustering keys and indexed columns can; anything else,
    including unknown columns, cannot.

    Returns:
        (valid, reason)
    """
    if column not in metadata.columns:
        return False, f'Column "{column}" does not exist in table "{table_name}"'

    role = metadata.column_role(column)
    if role == "partition key":
        return True, f'Column "{column}" is a partition key'
    if role == "clustering key":
        return True, f'Column "{column}" is a clustering/sorting key'
    if role == "indexed":
        return True, f'Column "{column}" is indexed'

    return False, (
        f'Column "{column}" is not a partition key, clustering key, or indexed column. '
        f"Only these columns can be used as filter parameters."
    )


def review_parameters(spec: ToolSpecification, data_type: DataType, sample: SampleSet) -> List[str]:
    """
    List advisory notes about parameters that do not fit the source.

    Never raises; the spec is returned to the user as generated and the
    notes travel with it as an explanation.
    """
    notes: List[str] = []
    source_name = spec.source_name or ""

    if data_type == DataType.TABLE and sample.table_metadata is not None:
        metadata = sample.table_metadata
        for parameter in spec.parameters:
            valid, reason = validate_column_for_parameter(metadata, parameter.attribute, source_name)
            if not valid:
                notes.append(f'Parameter "{parameter.param}": {reason}')

        covered = {parameter.attribute for parameter in spec.parameters}
        for column in metadata.partition_key:
            if column not in covered:
                notes.append(f'Partition key "{column}" has no parameter; queries on this table need it')
            elif not any(p.required for p in spec.parameters if p.attribute == column):
                notes.append(f'Partition key "{column}" should be a required parameter')
        return notes

    known = set(sample.attributes)
    for parameter in spec.parameters:
        if parameter.attribute not in known:
            notes.append(
                f'Parameter "{parameter.param}": attribute "{parameter.attribute}" '
                f'was not observed in the sampled documents of "{source_name}"'
            )
    return notes


def format_explanation(notes: List[str]) -> Optional[str]:
    if not notes:
        return None
    return "Review notes:\n" + "\n".join(f"- {note}" for note in notes)
