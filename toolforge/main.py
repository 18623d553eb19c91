"""FastAPI application for the tool specification console."""

import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from toolforge.infra.config import config
from toolforge.infra.logging import app_logger
from toolforge.infra.middleware import RequestIDMiddleware, RequestLoggingMiddleware, setup_cors
from toolforge.infra.timeout import TimeoutMiddleware, REQUEST_TIMEOUT


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    from toolforge.api.dependencies import tool_catalog

    app_logger.info("Application starting up")
    tool_catalog.init_schema()

    yield

    app_logger.info("Application shutting down")
    from toolforge.infra.database import data_engine, engine
    engine.dispose()
    if data_engine is not engine:
        data_engine.dispose()


app = FastAPI(
    title="Toolforge API",
    description="""
    Toolforge generates and curates tool specifications: named, parameterized
    queries against collections and tables, drafted by a language model from
    sampled data and refined by the user.

    ## Features

    - **Generation**: Sample a collection or table and draft a tool specification
    - **Refinement**: Pass the previous draft back with a new request to update it
    - **Catalog**: List, fetch and save tool specifications under unique slug names
    - **Model Picker**: List available models across OpenAI, Anthropic and watsonx
    """,
    version="0.1.0",
    lifespan=lifespan,
    tags_metadata=[
        {"name": "Tools", "description": "Generate, list and save tool specifications"},
        {"name": "Models", "description": "Language models available for generation"},
        {"name": "Data Sources", "description": "Collections and tables available for sampling"},
        {"name": "Health", "description": "Health check and monitoring endpoints"},
    ],
)

# Middleware
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    TimeoutMiddleware,
    timeout=REQUEST_TIMEOUT,
    path_timeouts={"/api/tools/generate": config.LLM_CALL_TIMEOUT + REQUEST_TIMEOUT},
)
app.add_middleware(RequestIDMiddleware)
setup_cors(app)

# Routers
from toolforge.api.routers import catalog_sources, health, tools

app.include_router(tools.router)
app.include_router(catalog_sources.router)
app.include_router(health.router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    return JSONResponse(
        status_code=422,
        content={"success": False, "error": "Invalid request body", "detail": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle all other exceptions."""
    error_id = str(uuid.uuid4())
    app_logger.error(f"Unhandled exception: {exc}", exc_info=True, extra={"error_id": error_id})
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": f"Internal server error. Error ID: {error_id}"},
    )
