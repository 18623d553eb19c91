"""Request deadlines."""

import asyncio
import logging
from typing import Dict, Optional
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("toolforge.timeout")

REQUEST_TIMEOUT = 60  # seconds, every route without an override
MODEL_LISTING_TIMEOUT = 15  # seconds per provider listing


class TimeoutMiddleware(BaseHTTPMiddleware):
    """
    Answer 504 when a request outlives its deadline.

    Generation waits on a model call, so its route gets a longer budget
    through ``path_timeouts``.
    """

    def __init__(self, app, timeout: float = REQUEST_TIMEOUT, path_timeouts: Optional[Dict[str, float]] = None):
        super().__init__(app)
        self.timeout = timeout
        self.path_timeouts = dict(path_timeouts or {})

    def deadline_for(self, path: str) -> float:
        return self.path_timeouts.get(path.rstrip("/") or "/", self.timeout)

    async def dispatch(self, request: Request, call_next):
        deadline = self.deadline_for(request.url.path)
        try:
            return await asyncio.wait_for(call_next(request), timeout=deadline)
        except asyncio.TimeoutError:
            logger.warning(
                f"Request exceeded {deadline:g}s",
                extra={"path": request.url.path, "method": request.method},
            )
            return JSONResponse(
                status_code=status.HTTP_504_GATEWAY_TIMEOUT,
                content={"success": False, "error": f"Request timed out after {deadline:g} seconds"},
            )
