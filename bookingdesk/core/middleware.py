"""HTTP middleware: correlation ids and request logging"""
import logging
import time
import uuid

from fastapi import Request

logger = logging.getLogger("bookingdesk.requests")


async def correlation_id_middleware(request: Request, call_next):
    """Attach an X-Correlation-ID to every request/response"""
    correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
    request.state.correlation_id = correlation_id
    response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id
    return response


async def request_logging_middleware(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    elapsed_ms = int((time.time() - start_time) * 1000)
    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms}ms) "
        f"[{getattr(request.state, 'correlation_id', '-')}]"
    )
    return response
