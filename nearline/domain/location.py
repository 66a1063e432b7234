"""Bucket naming and location references.

A flushed file is addressed by ``<type>://<name>/<file_id>#<bucket>``. The
same reference is later handed back in remove requests.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote, urlsplit, urlunsplit

_INVALID_BUCKET_CHARS = re.compile(r"[^a-z-.]")
_URI_SCHEME = re.compile(r"[A-Za-z][A-Za-z0-9+.-]*")


class InvalidLocationError(ValueError):
    """Raised when a location reference cannot be parsed."""


def bucket_name_for(storage_class: str) -> str:
    """Derive the bucket name for a storage class.

    Lower-cases the label, then replaces every character outside
    ``[a-z-.]`` with ``.``. ``"Tape-1 (gold)"`` becomes ``"tape-1..gold."``.
    """
    return _INVALID_BUCKET_CHARS.sub(".", storage_class.lower())


@dataclass(frozen=True, slots=True)
class ObjectLocation:
    """Bucket and object key of a file stored on the nearline tier."""

    bucket: str
    object_key: str


def build_location(hsm_type: str, hsm_name: str, file_id: str, bucket: str) -> str:
    """Build the reference a flush reports and a later remove parses.

    Raises:
        InvalidLocationError: If ``hsm_type`` is not a valid URI scheme.
    """
    if not _URI_SCHEME.fullmatch(hsm_type):
        raise InvalidLocationError(f"HSM type {hsm_type!r} is not a valid URI scheme")
    return urlunsplit((hsm_type, hsm_name, "/" + file_id, "", bucket))


def parse_location(uri: str) -> ObjectLocation:
    """Split a location reference into bucket (fragment) and key (path)."""
    parts = urlsplit(uri)
    if not parts.scheme:
        raise InvalidLocationError(f"Location {uri} has no HSM type scheme")
    bucket = parts.fragment
    object_key = parts.path.lstrip("/")
    if not bucket:
        raise InvalidLocationError(f"Location {uri} has no bucket fragment")
    if not object_key:
        raise InvalidLocationError(f"Location {uri} has no object path")
    return ObjectLocation(bucket=bucket, object_key=object_key)


def local_path(replica_uri: str) -> Path:
    """Resolve a replica URI (``file:///...`` or a bare path) to a local path."""
    parts = urlsplit(str(replica_uri))
    if parts.scheme in ("", "file"):
        return Path(unquote(parts.path) if parts.scheme else str(replica_uri))
    raise InvalidLocationError(f"Unsupported replica URI scheme: {parts.scheme}")
