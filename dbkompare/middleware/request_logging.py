# dbkompare/middleware/request_logging.py
# Registra cada petición con su request id, estado y duración

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from dbkompare.core.logging_config import log_api_request

logger = logging.getLogger("dbkompare.api")

REQUEST_ID_HEADER = "X-Request-ID"


def generate_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        # API Gateway propaga su propio id; si no llega se genera uno
        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        request.state.request_id = request_id
        started = time.perf_counter()

        response = await call_next(request)

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        response.headers[REQUEST_ID_HEADER] = request_id
        log_api_request(
            logger,
            request.method,
            request.url.path,
            status_code=response.status_code,
            response_time_ms=elapsed_ms,
            request_id=request_id,
        )
        return response
