"""Pytest configuration and fixtures."""

import json
import os

import pytest
from dotenv import load_dotenv

# Load test environment variables
load_dotenv()

# Set test environment before any toolforge module builds its engine
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("DATA_SOURCE_URL", None)
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "false")

from sqlalchemy import text  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from toolforge.adapters.data_store import DataStoreClient  # noqa: E402
from toolforge.infra.database import create_db_engine, session_scope_for  # noqa: E402
from toolforge.models.generation import GenerationResult  # noqa: E402
from toolforge.services.tool_catalog import ToolCatalog  # noqa: E402

ORDERS = [
    {"_id": "o-1", "status": "shipped", "total": 120.5, "customer": {"id": "c-1", "city": "Pune"}},
    {"_id": "o-2", "status": "pending", "total": 40, "customer": {"id": "c-2", "city": "Oslo"}},
    {"_id": "o-3", "status": "shipped", "total": 9.99, "coupon": "SPRING"},
]

EVENTS = [
    ("t-1", "2024-01-01 10:00:00", 30, "first"),
    ("t-1", "2024-01-02 11:30:00", 75, "second"),
    ("t-2", "2024-01-03 09:15:00", 12, "third"),
]


class FakeProvider:
    """Stands in for a vendor chat client; replies with canned content."""

    def __init__(self, replies=None, error=None):
        self.replies = list(replies or [])
        self.error = error
        self.calls = []

    async def complete(self, model_id, system_prompt, instruction, schema):
        self.calls.append(
            {"model_id": model_id, "system_prompt": system_prompt, "instruction": instruction, "schema": schema}
        )
        if self.error is not None:
            raise self.error
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        return json.dumps(reply) if isinstance(reply, dict) else reply


class FakePipeline:
    """Records generation requests and returns queued results or errors."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.requests = []

    async def generate(self, request):
        self.requests.append(request)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, GenerationResult):
            return outcome
        return GenerationResult(tool_spec=outcome)


@pytest.fixture
def engine():
    """Fresh in-memory database per test."""
    db_engine = create_db_engine("sqlite://")
    yield db_engine
    db_engine.dispose()


@pytest.fixture
def catalog(engine):
    tool_catalog = ToolCatalog(session_scope_for(sessionmaker(bind=engine)))
    tool_catalog.init_schema()
    return tool_catalog


@pytest.fixture
def data_store(engine):
    """Data store with an ``orders`` collection and an ``events`` table."""
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE orders (_id VARCHAR(36) PRIMARY KEY, document TEXT NOT NULL)"))
        for order in ORDERS:
            document = {key: value for key, value in order.items() if key != "_id"}
            conn.execute(
                text("INSERT INTO orders (_id, document) VALUES (:id, :document)"),
                {"id": order["_id"], "document": json.dumps(document)},
            )

        conn.execute(text("CREATE TABLE empty_orders (_id VARCHAR(36) PRIMARY KEY, document TEXT NOT NULL)"))

        conn.execute(text("""
            CREATE TABLE events (
                tenant_id VARCHAR(36) NOT NULL,
                event_time TIMESTAMP NOT NULL,
                amount INTEGER,
                note TEXT,
                PRIMARY KEY (tenant_id, event_time)
            )
        """))
        conn.execute(text("CREATE INDEX idx_events_amount ON events (amount)"))
        for tenant_id, event_time, amount, note in EVENTS:
            conn.execute(
                text("INSERT INTO events VALUES (:tenant_id, :event_time, :amount, :note)"),
                {"tenant_id": tenant_id, "event_time": event_time, "amount": amount, "note": note},
            )
    return DataStoreClient(engine)
