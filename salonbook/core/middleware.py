# salonbook/core/middleware.py
"""Request tracing: correlation IDs and per-request access logging"""
import uuid
import time
import logging
from contextvars import ContextVar
from starlette.requests import Request

logger = logging.getLogger(__name__)

# Read by the log filter so every line logged while serving a request carries its ID
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="-")


class CorrelationIdFilter(logging.Filter):
    """Stamp records with the correlation ID of the request being served"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get()
        return True


async def correlation_id_middleware(request: Request, call_next):
    """Reuse the caller's X-Correlation-ID or mint one, and echo it back"""
    correlation_id = request.headers.get("X-Correlation-ID") or uuid.uuid4().hex
    request.state.correlation_id = correlation_id
    token = correlation_id_var.set(correlation_id)

    try:
        response = await call_next(request)
    finally:
        correlation_id_var.reset(token)

    response.headers["X-Correlation-ID"] = correlation_id
    return response


async def request_logging_middleware(request: Request, call_next):
    """One access line per request with status and timing"""
    start_time = time.perf_counter()
    client = request.client.host if request.client else "unknown"

    try:
        response = await call_next(request)
    except Exception:
        logger.exception(f"{request.method} {request.url.path} from {client} failed")
        raise

    duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
    log = logger.warning if response.status_code >= 500 else logger.info
    log(f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms} ms, client={client})")

    return response
