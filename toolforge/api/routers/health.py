"""Liveness, readiness and metrics endpoints."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.engine import Engine

from toolforge.infra import database
from toolforge.infra.metrics import get_metrics_response

router = APIRouter(tags=["Health"])

SERVICE_NAME = "toolforge"
SERVICE_VERSION = "0.1.0"


def _ping(engine: Engine) -> str:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        return f"error: {e}"
    return "ok"


@router.get("/health")
async def health_check():
    """Service identity; does not touch the databases."""
    return {"status": "ok", "service": SERVICE_NAME, "version": SERVICE_VERSION}


@router.get("/health/live")
async def liveness_probe():
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_probe():
    """Ready when the catalog database and the sampled data store both answer."""
    checks = {"catalog": _ping(database.engine)}
    if database.data_engine is not database.engine:
        checks["data_store"] = _ping(database.data_engine)

    if any(result != "ok" for result in checks.values()):
        return JSONResponse(status_code=503, content={"status": "not_ready", "checks": checks})
    return {"status": "ready", "checks": checks}


@router.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return get_metrics_response()
