from dataclasses import dataclass, field
from email.utils import format_datetime
from enum import Enum
from typing import Callable, Mapping
from urllib.parse import quote

import structlog
from fastapi import Response
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, StreamingResponse

from .errors import MethodNotAllowed
from .listing import is_directory, list_directory, render_index
from .schemas import ObjectAttributes, ObjectReference, ObjectWriteResult
from .signing import SignedUrlGenerator
from .storage import StorageGateway

logger = structlog.get_logger()

class Method(str, Enum):
    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

ALLOWED_METHODS = [m.value for m in Method]
READ_METHODS = [Method.GET.value, Method.HEAD.value]

@dataclass
class ObjectRequest:
    """The parts of an HTTP request the dispatcher looks at."""

    method: str
    ref: ObjectReference
    query: Mapping[str, str] = field(default_factory=dict)
    query_string: str = ""
    body: bytes = b""
    content_type: str | None = None

    @property
    def wants_media(self) -> bool:
        return self.query.get("alt") == "media"

def media_headers(attrs: ObjectAttributes) -> dict[str, str]:
    candidates = {
        "Content-Type": attrs.content_type,
        "Content-Language": attrs.content_language,
        "Cache-Control": attrs.cache_control,
        "Content-Encoding": attrs.content_encoding,
        "Content-Disposition": attrs.content_disposition,
        "ETag": attrs.etag,
    }
    headers = {name: value for name, value in candidates.items() if value}
    if attrs.size > 0:
        headers["Content-Length"] = str(attrs.size)
    if attrs.updated is not None:
        headers["Last-Modified"] = format_datetime(attrs.updated, usegmt=True)
    return headers

class ObjectDispatcher:
    """Turns an HTTP verb on /{bucket}/{key} into storage calls and a response."""

    def __init__(self, gateway: StorageGateway, signer: SignedUrlGenerator | None = None):
        self.gateway = gateway
        self.signer = signer
        self._handlers: dict[Method, Callable[[ObjectRequest], Response]] = {
            Method.GET: self._get,
            Method.HEAD: self._head,
            Method.POST: self._write,
            Method.PUT: self._write,
            Method.DELETE: self._delete,
        }

    def dispatch(self, req: ObjectRequest) -> Response:
        try:
            method = Method(req.method.upper())
        except ValueError:
            raise MethodNotAllowed(req.method, ALLOWED_METHODS) from None
        return self._handlers[method](req)

    def _get(self, req: ObjectRequest) -> Response:
        return self._read(req, head_only=False)

    def _head(self, req: ObjectRequest) -> Response:
        return self._read(req, head_only=True)

    def _read(self, req: ObjectRequest, head_only: bool) -> Response:
        ref = req.ref
        if is_directory(self.gateway, ref.bucket, ref.key):
            return self._directory(req)

        attrs = self.gateway.attrs(ref)
        if self.signer is not None:
            return RedirectResponse(self.signer.sign(ref), status_code=307)

        if not req.wants_media:
            return Response(content=attrs.model_dump_json(), media_type="application/json")

        headers = media_headers(attrs)
        if head_only:
            return Response(headers=headers)
        return StreamingResponse(self.gateway.iter_content(ref), headers=headers)

    def _directory(self, req: ObjectRequest) -> Response:
        ref = req.ref
        if ref.key and not ref.key.endswith("/"):
            location = "/" + quote(f"{ref.bucket}/{ref.key}/", safe="/")
            if req.query_string:
                location += "?" + req.query_string
            return RedirectResponse(location, status_code=307)

        listing = list_directory(self.gateway, ref.bucket, ref.key)
        return HTMLResponse(render_index(listing))

    def _write(self, req: ObjectRequest) -> Response:
        ref = req.ref
        if not ref.key:
            raise MethodNotAllowed(req.method, READ_METHODS)
        self.gateway.write(ref, req.body, req.content_type)
        logger.info("object_written", bucket=ref.bucket, key=ref.key, size=len(req.body))
        result = ObjectWriteResult(bucket=ref.bucket, name=ref.key, size=len(req.body))
        return JSONResponse(result.model_dump())

    def _delete(self, req: ObjectRequest) -> Response:
        ref = req.ref
        if not ref.key:
            raise MethodNotAllowed(req.method, READ_METHODS)
        self.gateway.delete(ref)
        logger.info("object_deleted", bucket=ref.bucket, key=ref.key)
        return Response(status_code=204)
