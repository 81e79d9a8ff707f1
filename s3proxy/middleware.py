"""Access log middleware.

Emits one request_completed event per request with the client address,
elapsed seconds, status code, method and URL. Only installed when the proxy
runs verbose.
"""

import time

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

logger = structlog.get_logger()

def client_address(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded
    if request.client is None:
        return "-"
    return f"{request.client.host}:{request.client.port}"

class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "request_completed",
            addr=client_address(request),
            duration=round(time.perf_counter() - start, 3),
            status_code=response.status_code,
            method=request.method,
            url=str(request.url),
        )
        return response
