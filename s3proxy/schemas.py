from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

BUCKET_PATTERN = r"^[0-9A-Za-z\-_.]+$"
DIR_SIZE = "-"

class ObjectReference(BaseModel):
    model_config = ConfigDict(frozen=True)

    bucket: str = Field(min_length=1, pattern=BUCKET_PATTERN)
    key: str = ""

class ObjectAttributes(BaseModel):
    bucket: str
    name: str
    content_type: str | None = None
    content_language: str | None = None
    cache_control: str | None = None
    content_encoding: str | None = None
    content_disposition: str | None = None
    etag: str | None = None
    size: int = Field(default=0, ge=0)
    created: datetime | None = None
    updated: datetime | None = None
    metadata: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_head(cls, ref: ObjectReference, head: dict[str, Any]) -> "ObjectAttributes":
        # S3 keeps no creation time; LastModified stands in for both.
        modified = head.get("LastModified")
        return cls(
            bucket=ref.bucket,
            name=ref.key,
            content_type=head.get("ContentType"),
            content_language=head.get("ContentLanguage"),
            cache_control=head.get("CacheControl"),
            content_encoding=head.get("ContentEncoding"),
            content_disposition=head.get("ContentDisposition"),
            etag=head.get("ETag"),
            size=head.get("ContentLength", 0),
            created=modified,
            updated=modified,
            metadata=head.get("Metadata") or {},
        )

class ObjectWriteResult(BaseModel):
    bucket: str
    name: str
    size: int

class DirectoryEntry(BaseModel):
    name: str
    modified: str | None = None
    size: int | Literal["-"] = DIR_SIZE

    @property
    def is_dir(self) -> bool:
        return self.size == DIR_SIZE

class DirectoryListing(BaseModel):
    bucket: str
    prefix: str = ""
    entries: list[DirectoryEntry] = Field(default_factory=list)

    @property
    def is_root(self) -> bool:
        return self.prefix == ""

class ReadinessResult(BaseModel):
    bucket: str
    succeeded: bool
    error: str | None = None
