import structlog
from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from .config import Settings
from .dispatch import ObjectDispatcher, ObjectRequest
from .errors import NotFound, ProxyError, proxy_error_handler
from .middleware import AccessLogMiddleware
from .readiness import ReadinessProber
from .schemas import ObjectReference
from .signing import SignedUrlGenerator
from .storage import StorageGateway, build_client

logger = structlog.get_logger()

# PATCH and OPTIONS reach the dispatcher so it can reject them itself
ROUTED_METHODS = ["GET", "HEAD", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]

router = APIRouter()

def get_dispatcher(request: Request) -> ObjectDispatcher:
    return request.app.state.dispatcher

def get_prober(request: Request) -> ReadinessProber:
    return request.app.state.prober

@router.get("/healthz")
def healthz():
    return {"status": "ok"}

@router.get("/readiness")
async def readiness(prober: ReadinessProber = Depends(get_prober)):
    if await prober.check():
        return {"status": "ok"}
    return PlainTextResponse("Service unavailable\n", status_code=503)

@router.api_route("/{bucket}/{object_key:path}", methods=ROUTED_METHODS)
async def proxy(
    request: Request,
    bucket: str,
    object_key: str,
    dispatcher: ObjectDispatcher = Depends(get_dispatcher),
) -> Response:
    try:
        ref = ObjectReference(bucket=bucket, key=object_key)
    except ValidationError:
        raise NotFound(f"invalid bucket name: {bucket}") from None

    req = ObjectRequest(
        method=request.method,
        ref=ref,
        query=request.query_params,
        query_string=request.url.query,
        body=await request.body(),
        content_type=request.headers.get("Content-Type"),
    )
    # boto3 blocks; keep it off the event loop
    return await run_in_threadpool(dispatcher.dispatch, req)

async def unhandled_exception_handler(request: Request, exc: Exception) -> PlainTextResponse:
    logger.error(
        "unhandled_exception",
        method=request.method,
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )
    return PlainTextResponse(str(exc) + "\n", status_code=500)

def create_app(settings: Settings | None = None, client=None) -> FastAPI:
    """Build the proxy application.

    The storage client is created here, once, unless one is passed in. Raises
    StartupError when credentials required by the settings cannot be loaded.
    """
    settings = settings or Settings()
    if client is None:
        client = build_client(settings)

    gateway = StorageGateway(client)
    signer = SignedUrlGenerator(client, settings.signed_url_expiry) if settings.signed_url else None

    app = FastAPI(title="s3proxy", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.settings = settings
    app.state.gateway = gateway
    app.state.dispatcher = ObjectDispatcher(gateway, signer)
    app.state.prober = ReadinessProber(
        gateway,
        settings.readiness_bucket_list,
        timeout=settings.readiness_timeout,
    )

    app.add_exception_handler(ProxyError, proxy_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
    if settings.verbose:
        app.add_middleware(AccessLogMiddleware)
    app.include_router(router)

    logger.info(
        "proxy_configured",
        signed_url=settings.signed_url,
        readiness_buckets=settings.readiness_bucket_list,
    )
    return app
