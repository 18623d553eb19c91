"""Sample records and structure from a data source."""

import logging
from typing import Any, Dict, Iterable, List, Optional, Set

from toolforge.adapters.data_store import COLLECTION_ID_COLUMN, DataStoreClient
from toolforge.infra.errors import NotFoundError
from toolforge.models.sample import SampleSet
from toolforge.models.tool_spec import DataType

logger = logging.getLogger("toolforge.services.schema_sampler")

SAMPLE_FETCH_LIMIT = 10
PROMPT_SAMPLE_SIZE = 5


def extract_attributes(documents: Iterable[Dict[str, Any]]) -> List[str]:
    """
    Collect the sorted union of field names across documents.

    Nested objects contribute dotted paths (``address.city``) alongside the
    parent field. The identity field is left out.
    """
    attributes: Set[str] = set()

    def walk(document: Dict[str, Any], prefix: str = ""):
        for key, value in document.items():
            if not prefix and key == COLLECTION_ID_COLUMN:
                continue
            path = f"{prefix}{key}"
            attributes.add(path)
            if isinstance(value, dict):
                walk(value, prefix=f"{path}.")

    for document in documents:
        walk(document)
    return sorted(attributes)


class SchemaSampler:
    """Fetch a bounded sample and, for tables, structural metadata."""

    def __init__(self, data_store: DataStoreClient):
        self.data_store = data_store

    def sample(self, data_type: DataType, name: str, db_name: Optional[str] = None) -> SampleSet:
        """
        Sample a collection or table.

        Raises:
            NotFoundError: when the source has no records
        """
        documents = self.data_store.get_sample_documents(
            data_type, name, db_name=db_name, limit=SAMPLE_FETCH_LIMIT
        )
        if not documents:
            raise NotFoundError(f'No documents found in {data_type.value} "{name}"')

        attributes = extract_attributes(documents)
        table_metadata = None
        if data_type == DataType.TABLE:
            table_metadata = self.data_store.get_table_metadata(name, db_name=db_name)
            if table_metadata.columns:
                attributes = sorted(set(table_metadata.columns) | set(attributes))

        sample_data = [
            {key: value for key, value in document.items() if key != COLLECTION_ID_COLUMN}
            for document in documents[:PROMPT_SAMPLE_SIZE]
        ]

        logger.debug(
            "Sampled data source",
            extra={
                "data_type": data_type.value,
                "source": name,
                "db_name": db_name,
                "records": len(documents),
                "attributes": len(attributes),
            },
        )
        return SampleSet(sample_data=sample_data, attributes=attributes, table_metadata=table_metadata)
