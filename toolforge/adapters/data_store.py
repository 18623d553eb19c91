"""SQL-backed document/table store used for sampling."""

import json
import logging
from typing import Any, Dict, List, Optional
from sqlalchemy import MetaData, Table, inspect, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import NoSuchTableError

from toolforge.infra.errors import NotFoundError, ValidationFailure
from toolforge.models.sample import IndexDescriptor, TableMetadata
from toolforge.models.tool_spec import DataType

logger = logging.getLogger("toolforge.adapters.data_store")

# A collection is a table holding one JSON document per row
COLLECTION_ID_COLUMN = "_id"
COLLECTION_DOCUMENT_COLUMN = "document"
COLLECTION_COLUMNS = {COLLECTION_ID_COLUMN, COLLECTION_DOCUMENT_COLUMN}


def _schema(db_name: Optional[str]) -> Optional[str]:
    return db_name or None


class DataStoreClient:
    """
    Reads sample records and structure from a SQL database.

    The database name of a tool maps to a SQL schema. Collections are
    tables whose columns are exactly ``_id`` and ``document`` (JSON text);
    every other table is treated as a tabular source.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def _reflect(self, name: str, db_name: Optional[str]) -> Table:
        try:
            return Table(name, MetaData(), schema=_schema(db_name), autoload_with=self.engine)
        except NoSuchTableError:
            raise NotFoundError(f'Object "{name}" not found in database "{db_name or "default"}"')

    def _is_collection(self, column_names) -> bool:
        return set(column_names) == COLLECTION_COLUMNS

    def list_objects(self, data_type: DataType, db_name: Optional[str] = None) -> List[str]:
        """List collection or table names in a database."""
        inspector = inspect(self.engine)
        schema = _schema(db_name)
        objects = []
        for table_name in inspector.get_table_names(schema=schema):
            column_names = [column["name"] for column in inspector.get_columns(table_name, schema=schema)]
            if self._is_collection(column_names) == (data_type == DataType.COLLECTION):
                objects.append(table_name)
        return sorted(objects)

    def get_sample_documents(
        self,
        data_type: DataType,
        name: str,
        db_name: Optional[str] = None,
        limit: int = 10,
    ) -> List[Dict[str, Any]]:
        """
        Fetch up to ``limit`` records.

        Collection rows are returned as their decoded document with ``_id``
        added; table rows are returned as column -> value mappings.
        """
        table = self._reflect(name, db_name)
        is_collection = self._is_collection(table.columns.keys())
        if is_collection != (data_type == DataType.COLLECTION):
            raise ValidationFailure(f'"{name}" is not a {data_type.value}')

        with self.engine.connect() as conn:
            rows = conn.execute(select(table).limit(limit)).mappings().all()

        if not is_collection:
            return [dict(row) for row in rows]

        documents = []
        for row in rows:
            document = row[COLLECTION_DOCUMENT_COLUMN]
            if isinstance(document, (str, bytes)):
                document = json.loads(document)
            if not isinstance(document, dict):
                logger.warning(f"Skipping non-object document {row[COLLECTION_ID_COLUMN]} in {name}")
                continue
            documents.append({COLLECTION_ID_COLUMN: row[COLLECTION_ID_COLUMN], **document})
        return documents

    def get_table_metadata(self, name: str, db_name: Optional[str] = None) -> TableMetadata:
        """
        Describe a table's columns, primary key and indexes.

        The first primary-key column is the partition key; the remaining
        primary-key columns are clustering keys.
        """
        inspector = inspect(self.engine)
        schema = _schema(db_name)
        if not inspector.has_table(name, schema=schema):
            raise NotFoundError(f'Table "{name}" not found in database "{db_name or "default"}"')

        columns = {
            column["name"]: str(column["type"])
            for column in inspector.get_columns(name, schema=schema)
        }
        primary_key = inspector.get_pk_constraint(name, schema=schema).get("constrained_columns") or []
        indexes = [
            IndexDescriptor(
                name=index.get("name"),
                columns=[column for column in index.get("column_names", []) if column],
                unique=bool(index.get("unique")),
            )
            for index in inspector.get_indexes(name, schema=schema)
        ]

        return TableMetadata(
            columns=columns,
            partition_key=list(primary_key[:1]),
            clustering_key=list(primary_key[1:]),
            indexes=indexes,
        )
