from .tool_spec import DataType, Operator, Parameter, ParamMode, ParamType, ToolSpecification
from .sample import IndexDescriptor, SampleSet, TableMetadata

__all__ = [
    "DataType",
    "Operator",
    "Parameter",
    "ParamMode",
    "ParamType",
    "ToolSpecification",
    "IndexDescriptor",
    "SampleSet",
    "TableMetadata",
]
