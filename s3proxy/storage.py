from contextlib import contextmanager
from typing import Any, Iterator

import boto3
import botocore.session
import structlog
from botocore import UNSIGNED
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .config import Settings
from .errors import BackendError, NotFound, StartupError
from .schemas import ObjectAttributes, ObjectReference

logger = structlog.get_logger()

NOT_FOUND_CODES = {"404", "NoSuchKey", "NoSuchBucket", "NotFound"}
CHUNK_SIZE = 1024 * 1024

def build_client(settings: Settings):
    """Create the process-wide S3 client; raises StartupError on bad credentials."""
    core = botocore.session.get_session()
    if settings.credentials_file is not None:
        if not settings.credentials_file.is_file():
            raise StartupError(f"credentials file not found: {settings.credentials_file}")
        core.set_config_variable("credentials_file", str(settings.credentials_file))

    try:
        if settings.credentials_file is not None:
            session = boto3.Session(botocore_session=core, profile_name=settings.credentials_profile)
        else:
            session = boto3.Session(botocore_session=core)
        credentials = session.get_credentials()
    except BotoCoreError as exc:
        raise StartupError(f"Failed to load credentials: {exc}") from exc

    if credentials is None and (settings.credentials_file is not None or settings.signed_url):
        raise StartupError("no signing credentials available for the configured mode")

    if credentials is None:
        # public buckets only
        logger.warning("storage_anonymous_access")
        signature_version = UNSIGNED
    else:
        signature_version = "s3v4"

    return session.client(
        "s3",
        endpoint_url=settings.endpoint_url,
        region_name=settings.region,
        config=Config(signature_version=signature_version, s3={"addressing_style": "path"}),
    )

@contextmanager
def backend_errors() -> Iterator[None]:
    try:
        yield
    except ClientError as exc:
        code = str(exc.response.get("Error", {}).get("Code", ""))
        status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        if code in NOT_FOUND_CODES or status == 404:
            raise NotFound(str(exc)) from exc
        raise BackendError(str(exc)) from exc
    except BotoCoreError as exc:
        raise BackendError(str(exc)) from exc

class StorageGateway:
    """Object store operations used by the proxy, on top of one boto3 S3 client."""

    def __init__(self, client):
        self.client = client

    def attrs(self, ref: ObjectReference) -> ObjectAttributes:
        with backend_errors():
            head = self.client.head_object(Bucket=ref.bucket, Key=ref.key)
        return ObjectAttributes.from_head(ref, head)

    def iter_content(self, ref: ObjectReference) -> Iterator[bytes]:
        with backend_errors():
            body = self.client.get_object(Bucket=ref.bucket, Key=ref.key)["Body"]

        def iter_chunks():
            try:
                for chunk in body.iter_chunks(chunk_size=CHUNK_SIZE):
                    if chunk:
                        yield chunk
            finally:
                body.close()

        return iter_chunks()

    def write(self, ref: ObjectReference, data: bytes, content_type: str | None = None) -> None:
        extra = {"ContentType": content_type} if content_type else {}
        with backend_errors():
            self.client.put_object(Bucket=ref.bucket, Key=ref.key, Body=data, **extra)

    def delete(self, ref: ObjectReference) -> None:
        # S3 deletes succeed for missing keys; look first so absence is a 404
        with backend_errors():
            self.client.head_object(Bucket=ref.bucket, Key=ref.key)
            self.client.delete_object(Bucket=ref.bucket, Key=ref.key)

    def list_objects(self, bucket: str, prefix: str = "") -> Iterator[dict[str, Any]]:
        """Yield every object summary under prefix, following continuation tokens."""
        params: dict[str, Any] = {"Bucket": bucket}
        if prefix:
            params["Prefix"] = prefix
        while True:
            with backend_errors():
                resp = self.client.list_objects_v2(**params)
            yield from resp.get("Contents", [])
            token = resp.get("NextContinuationToken")
            if not resp.get("IsTruncated") or not token:
                return
            params["ContinuationToken"] = token

    def has_objects(self, bucket: str, prefix: str = "") -> bool:
        params: dict[str, Any] = {"Bucket": bucket, "MaxKeys": 1}
        if prefix:
            params["Prefix"] = prefix
        with backend_errors():
            resp = self.client.list_objects_v2(**params)
        return bool(resp.get("Contents"))

    def bucket_attrs(self, bucket: str) -> dict[str, Any]:
        with backend_errors():
            return self.client.head_bucket(Bucket=bucket)
