"""Catalog of saved tool specifications."""

import json
import logging
import uuid
from typing import List, Optional
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from toolforge.infra.database import get_db_session
from toolforge.infra.errors import ConflictError, ValidationFailure
from toolforge.infra.metrics import catalog_writes_total
from toolforge.models.tool_spec import ToolSpecification
from toolforge.services.slug import is_valid_slug, to_slug

logger = logging.getLogger("toolforge.services.tool_catalog")

CREATE_TOOL_SPECS_TABLE = """
    CREATE TABLE IF NOT EXISTS tool_specs (
        id VARCHAR(36) PRIMARY KEY,
        name VARCHAR(255) NOT NULL UNIQUE,
        spec TEXT NOT NULL,
        created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
"""


def _row_to_tool(row) -> ToolSpecification:
    document = json.loads(row.spec)
    document["_id"] = str(row.id)
    document["name"] = row.name
    return ToolSpecification.model_validate(document)


class ToolCatalog:
    """
    Tool specifications stored one row per tool.

    ``name`` carries a unique constraint, so two concurrent saves of the same
    name cannot both succeed; the loser gets a ConflictError.
    """

    def __init__(self, session_scope=get_db_session):
        self.session_scope = session_scope

    def init_schema(self) -> None:
        with self.session_scope() as session:
            session.execute(text(CREATE_TOOL_SPECS_TABLE))

    def list_tools(self) -> List[ToolSpecification]:
        with self.session_scope() as session:
            rows = session.execute(
                text("SELECT id, name, spec FROM tool_specs ORDER BY name")
            ).fetchall()
            return [_row_to_tool(row) for row in rows]

    def get_tool(self, key: str) -> Optional[ToolSpecification]:
        """Look a tool up by id or by name."""
        with self.session_scope() as session:
            row = session.execute(
                text("SELECT id, name, spec FROM tool_specs WHERE id = :key OR name = :key"),
                {"key": key},
            ).fetchone()
            return _row_to_tool(row) if row else None

    def upsert_tool(self, tool: ToolSpecification) -> ToolSpecification:
        """
        Insert or update a tool keyed by name.

        The name is slugged first. A tool carrying an ``_id`` updates that
        record; without one a new record is created.

        Raises:
            ValidationFailure: missing name or a name that does not slug
            ConflictError: another tool already owns the name
        """
        if not tool.name or not tool.name.strip():
            catalog_writes_total.labels(outcome="invalid").inc()
            raise ValidationFailure("Tool name is required")

        slug_name = to_slug(tool.name)
        if not is_valid_slug(slug_name):
            catalog_writes_total.labels(outcome="invalid").inc()
            raise ValidationFailure(
                "Tool name must be a valid slug (lowercase letters, numbers, and hyphens only)"
            )

        saved = tool.model_copy(deep=True)
        saved.name = slug_name
        saved.type = "tool"
        saved.fill_parameter_defaults()

        document = saved.to_document()
        document.pop("_id", None)
        payload = json.dumps(document)

        try:
            with self.session_scope() as session:
                owner = session.execute(
                    text("SELECT id FROM tool_specs WHERE name = :name"),
                    {"name": slug_name},
                ).fetchone()
                if owner and str(owner.id) != saved.id:
                    raise ConflictError(f'A tool with the name "{slug_name}" already exists', name=slug_name)

                existing = None
                if saved.id:
                    existing = session.execute(
                        text("SELECT id FROM tool_specs WHERE id = :id"),
                        {"id": saved.id},
                    ).fetchone()

                if existing:
                    session.execute(
                        text("""
                            UPDATE tool_specs
                            SET name = :name, spec = :spec, updated_at = CURRENT_TIMESTAMP
                            WHERE id = :id
                        """),
                        {"id": saved.id, "name": slug_name, "spec": payload},
                    )
                    outcome = "updated"
                else:
                    saved.id = saved.id or str(uuid.uuid4())
                    session.execute(
                        text("""
                            INSERT INTO tool_specs (id, name, spec)
                            VALUES (:id, :name, :spec)
                        """),
                        {"id": saved.id, "name": slug_name, "spec": payload},
                    )
                    outcome = "inserted"
        except ConflictError:
            catalog_writes_total.labels(outcome="conflict").inc()
            raise
        except IntegrityError:
            # Lost a race against a concurrent save of the same name
            catalog_writes_total.labels(outcome="conflict").inc()
            raise ConflictError(f'A tool with the name "{slug_name}" already exists', name=slug_name)

        catalog_writes_total.labels(outcome=outcome).inc()
        logger.info(f"Tool {outcome}", extra={"tool_id": saved.id, "tool_name": slug_name})
        return saved
