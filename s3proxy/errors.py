from fastapi import Request
from fastapi.responses import PlainTextResponse

class ProxyError(Exception):
    """Base class for failures that map straight onto an HTTP status."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

class NotFound(ProxyError):
    status_code = 404

class BackendError(ProxyError):
    status_code = 500

class MethodNotAllowed(ProxyError):
    status_code = 405

    def __init__(self, method: str, allowed: list[str]):
        super().__init__("Method Not Allowed")
        self.method = method
        self.allowed = allowed

class StartupError(Exception):
    """Unrecoverable configuration problem detected before serving."""

async def proxy_error_handler(request: Request, exc: ProxyError) -> PlainTextResponse:
    headers = {}
    if isinstance(exc, MethodNotAllowed):
        headers["Allow"] = ", ".join(exc.allowed)
    return PlainTextResponse(exc.message + "\n", status_code=exc.status_code, headers=headers)
