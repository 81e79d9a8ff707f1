"""Directory emulation on top of a flat object namespace.

Object stores have no folders, only keys. A key prefix ending in "/" is
treated as a directory when at least one object lives under it, and its
immediate children are the first path segments of the keys below it.
"""

from datetime import datetime
from functools import lru_cache
from typing import Any, Iterable

from jinja2 import Environment, PackageLoader, select_autoescape

from .schemas import DIR_SIZE, DirectoryEntry, DirectoryListing
from .storage import StorageGateway

DATE_FORMAT = "%d-%b-%Y %H:%M"

def normalize_prefix(prefix: str) -> str:
    if prefix and not prefix.endswith("/"):
        return prefix + "/"
    return prefix

def is_directory(gateway: StorageGateway, bucket: str, prefix: str) -> bool:
    if prefix == "":
        return True
    return gateway.has_objects(bucket, normalize_prefix(prefix))

def format_modified(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.strftime(DATE_FORMAT)

def build_entries(objects: Iterable[dict[str, Any]], prefix: str) -> list[DirectoryEntry]:
    """Collapse object summaries under prefix into its immediate children.

    Keys nested deeper than one level become a single "name/" entry with the
    "-" size sentinel. The first occurrence of a name wins, so the backend's
    listing order does not have to be lexicographic.
    """
    entries: list[DirectoryEntry] = []
    seen: set[str] = set()
    for obj in objects:
        key = obj["Key"]
        if not key.startswith(prefix):
            continue
        rest = key[len(prefix):]
        if not rest:
            continue
        head, sep, _ = rest.partition("/")
        name = head + sep
        if name in seen:
            continue
        seen.add(name)
        if sep:
            entries.append(DirectoryEntry(name=name, size=DIR_SIZE))
        else:
            entries.append(
                DirectoryEntry(
                    name=name,
                    size=obj.get("Size", 0),
                    modified=format_modified(obj.get("LastModified")),
                )
            )
    return entries

def list_directory(gateway: StorageGateway, bucket: str, prefix: str) -> DirectoryListing:
    """List a canonical (empty or slash-terminated) prefix."""
    entries = build_entries(gateway.list_objects(bucket, prefix), prefix)
    return DirectoryListing(bucket=bucket, prefix=prefix, entries=entries)

@lru_cache(maxsize=1)
def _environment() -> Environment:
    return Environment(
        loader=PackageLoader("s3proxy", "templates"),
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )

def render_index(listing: DirectoryListing) -> str:
    template = _environment().get_template("index.html")
    return template.render(listing=listing)
