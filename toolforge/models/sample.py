"""Ephemeral sampling results fed to the prompt composer."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class IndexDescriptor(BaseModel):
    """A secondary index on a table."""
    name: Optional[str] = None
    columns: List[str] = Field(default_factory=list)
    unique: bool = False


class TableMetadata(BaseModel):
    """Structural description of a tabular source."""
    columns: Dict[str, str] = Field(default_factory=dict, description="Column name -> declared type")
    partition_key: List[str] = Field(default_factory=list)
    clustering_key: List[str] = Field(default_factory=list)
    indexes: List[IndexDescriptor] = Field(default_factory=list)

    @property
    def indexed_columns(self) -> List[str]:
        seen: List[str] = []
        for index in self.indexes:
            for column in index.columns:
                if column not in seen:
                    seen.append(column)
        return seen

    def column_role(self, column: str) -> Optional[str]:
        """Why a column may be filtered on, or None when it may not."""
        if column in self.partition_key:
            return "partition key"
        if column in self.clustering_key:
            return "clustering key"
        if column in self.indexed_columns:
            return "indexed"
        return None

    def eligible_columns(self) -> List[str]:
        """Partition keys, then clustering keys, then indexed columns."""
        ordered: List[str] = []
        for column in self.partition_key + self.clustering_key + self.indexed_columns:
            if column not in ordered:
                ordered.append(column)
        return ordered


class SampleSet(BaseModel):
    """Records and attributes sampled from one data source."""
    sample_data: List[Dict[str, Any]] = Field(default_factory=list)
    attributes: List[str] = Field(default_factory=list)
    table_metadata: Optional[TableMetadata] = None
