"""FastAPI middleware for correlation ID handling."""

import time
import uuid
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from shared.logging_config import set_correlation_id

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Propagates X-Correlation-ID; workflow runs started by the request log under the same id"""

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        set_correlation_id(correlation_id)
        start = time.perf_counter()

        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id

        logger.info("Request handled", extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "elapsed_ms": round((time.perf_counter() - start) * 1000, 2)
        })
        return response
